import logging
from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.profile_match import (
    CareerPathRequest,
    EmbedRequest,
    EmbedResponse,
    EmbeddingStatus,
    MatchRequest,
    MatchResponse,
)
from ..services.ai_client import CompletionClient, get_completion_client
from ..services.career_path import predict_career_path
from ..services.embeddings import embed_profile, embedding_status
from ..services.semantic_similarity import match_profiles
from ..utils.validation import parse_profile_match_request, validate_user_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/embed-profile", tags=["Profile Matching"])


@router.post("")
async def profile_match_action(
    payload: Any = Body(default=None),
    db: Session = Depends(get_db),
    client: CompletionClient = Depends(get_completion_client),
):
    """
    Single entrypoint keyed by `action`:

    - embed: generate/refresh the caller's profile embedding
    - match: top profiles by cosine similarity (optionally mentors only)
    - career_path: predicted next roles from more senior alumni
    """
    request = parse_profile_match_request(payload)

    if isinstance(request, EmbedRequest):
        result = await embed_profile(db, request.user_id, client=client)
        return EmbedResponse(**result).model_dump(exclude_none=True)

    if isinstance(request, MatchRequest):
        matches = match_profiles(db, request.user_id, target_role=request.target_role)
        return MatchResponse(matches=matches).model_dump()

    if isinstance(request, CareerPathRequest):
        prediction = await predict_career_path(db, request.user_id, client=client)
        return {"prediction": prediction}

    # parse_profile_match_request only yields the three request types above.
    raise AssertionError(f"unhandled request type {type(request).__name__}")


@router.get("/{user_id}/status")
def profile_embedding_status(user_id: str, db: Session = Depends(get_db)):
    """Whether the user has an embedding and whether it still matches the profile."""
    uid = validate_user_id(user_id)
    return EmbeddingStatus(**embedding_status(db, uid)).model_dump()
