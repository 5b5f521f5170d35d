"""
Validation utilities for the profile matching endpoint.
"""
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ..schemas.profile_match import ACTIONS, ProfileMatchRequest
from .error_handlers import ValidationError, get_error_message

_REQUEST_ADAPTER = TypeAdapter(ProfileMatchRequest)

USER_ID_MAX_LENGTH = 64


def validate_user_id(value: Any) -> str:
    """user_id must be a non-empty string of at most 64 characters."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(get_error_message("user_id_required"))
    if not isinstance(value, str):
        raise ValidationError("user_id must be a string")
    value = value.strip()
    if len(value) > USER_ID_MAX_LENGTH:
        raise ValidationError(f"user_id must not exceed {USER_ID_MAX_LENGTH} characters")
    return value


def validate_action(value: Any) -> str:
    if not isinstance(value, str) or value not in ACTIONS:
        raise ValidationError(get_error_message("invalid_action"))
    return value


def parse_profile_match_request(payload: Any):
    """
    Turn a raw JSON body into EmbedRequest / MatchRequest / CareerPathRequest.

    Checks run in the order callers see them: body shape, action, user_id,
    then the remaining fields.
    """
    if not isinstance(payload, dict):
        raise ValidationError(get_error_message("invalid_body"))

    validate_action(payload.get("action"))
    validate_user_id(payload.get("user_id"))

    target_role = payload.get("target_role")
    if target_role is not None and not isinstance(target_role, str):
        raise ValidationError("target_role must be a string")

    try:
        return _REQUEST_ADAPTER.validate_python(payload)
    except PydanticValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        field = ".".join(str(p) for p in first.get("loc", ()) if p not in ACTIONS)
        raise ValidationError(
            f"{field or 'request'}: {first.get('msg', get_error_message('validation_error'))}"
        ) from e
