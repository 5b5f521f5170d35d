import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from ..config import AI_CAREER_MODEL, CAREER_COHORT_LIMIT, CAREER_EXPERIENCE_GAP
from ..models.profile import Profile
from ..schemas.career_path import CareerPrediction
from ..utils.error_handlers import InferenceError, NotFoundError, get_error_message, raise_for_ai_error
from .ai_client import AIClientError, CompletionClient
from .ai_prompts import PREDICT_CAREER_FN, career_function_parameters, career_system_prompt, career_user_prompt


logger = logging.getLogger(__name__)

NO_COHORT_CONTEXT = "No senior alumni data"


def select_cohort(
    db: Session,
    subject: Profile,
    *,
    limit: int = CAREER_COHORT_LIMIT,
    gap: int = CAREER_EXPERIENCE_GAP,
) -> list[Profile]:
    """
    Profiles with strictly more than `gap` extra years of experience than the
    subject, closest-senior first.
    """
    threshold = (subject.experience_years or 0) + gap
    return (
        db.query(Profile)
        .filter(Profile.experience_years > threshold)
        .order_by(Profile.experience_years.asc())
        .limit(limit)
        .all()
    )


def _field(value: Any) -> str:
    # Missing values show up in the prompt as "null".
    return "null" if value is None else str(value)


def cohort_context(cohort: list[Profile]) -> str:
    if not cohort:
        return NO_COHORT_CONTEXT
    lines = [
        f"{_field(p.full_name)} | {_field(p.designation)} at {_field(p.company)} | {_field(p.industry)} | "
        f"{_field(p.experience_years)}yr | Skills: {', '.join(str(s) for s in (p.skills or []))}"
        for p in cohort
    ]
    return "\n".join(lines)


async def predict_career_path(
    db: Session,
    user_id: str,
    *,
    client: CompletionClient,
    model: str = AI_CAREER_MODEL,
) -> dict[str, Any]:
    """Returns the model's predict_career arguments as-is once they pass schema validation."""
    profile = db.query(Profile).filter(Profile.user_id == user_id).first()
    if not profile:
        raise NotFoundError(get_error_message("profile_not_found"))

    cohort = select_cohort(db, profile)
    user_prompt = career_user_prompt(
        designation=profile.designation,
        company=profile.company,
        experience_years=profile.experience_years,
        skills=profile.skills,
        industry=profile.industry,
        alumni_context=cohort_context(cohort),
    )

    try:
        prediction, meta = await client.call_function(
            model=model,
            system_text=career_system_prompt(),
            user_text=user_prompt,
            function_name=PREDICT_CAREER_FN,
            description="Return predicted career path",
            parameters=career_function_parameters(),
        )
    except AIClientError as e:
        raise_for_ai_error(
            e,
            InferenceError,
            operation="career_path",
            missing_message=get_error_message("no_prediction_returned"),
            status_message=get_error_message("ai_failed"),
        )

    try:
        CareerPrediction.model_validate(prediction)
    except PydanticValidationError as e:
        logger.warning("Career prediction failed schema validation: %s", e.error_count())
        raise InferenceError(get_error_message("no_prediction_returned")) from e

    logger.info("Career path predicted user=%s cohort=%s latency_ms=%s", user_id, len(cohort), meta.latency_ms)
    return prediction
