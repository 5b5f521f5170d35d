import logging
import math
from numbers import Real
from typing import Any

from sqlalchemy.orm import Session

from ..config import AI_EMBEDDING_MODEL, EMBEDDING_DIM
from ..models.profile import Profile
from ..utils.error_handlers import GenerationError, NotFoundError, get_error_message, raise_for_ai_error
from .ai_client import AIClientError, CompletionClient
from .ai_prompts import (
    STORE_EMBEDDING_FN,
    embedding_function_description,
    embedding_function_parameters,
    embedding_system_prompt,
)
from .embedding_store import EmbeddingStore
from .fingerprint import profile_fingerprint


logger = logging.getLogger(__name__)


def build_profile_text(profile: Any) -> str:
    """
    Flatten a profile into the fixed "Key: value | ..." layout the model sees.
    Every key is always present so the layout never shifts with missing data.
    """
    skills = getattr(profile, "skills", None) or []
    interests = getattr(profile, "interests", None) or []
    parts = [
        f"Skills: {', '.join(str(s) for s in skills)}",
        f"Industry: {getattr(profile, 'industry', None) or 'unknown'}",
        f"Role: {getattr(profile, 'designation', None) or 'unknown'}",
        f"Company: {getattr(profile, 'company', None) or 'unknown'}",
        f"Experience: {getattr(profile, 'experience_years', None) or 0} years",
        f"Department: {getattr(profile, 'department', None) or 'unknown'}",
        f"Interests: {', '.join(str(i) for i in interests)}",
        f"Mentor: {'yes' if getattr(profile, 'is_mentor', None) else 'no'}",
        f"Hiring: {'yes' if getattr(profile, 'is_hiring', None) else 'no'}",
        f"Location: {getattr(profile, 'location', None) or 'unknown'}",
    ]
    return " | ".join(parts)


def l2_normalize(vector: list[float]) -> list[float]:
    """Scale to unit length. A zero vector is returned unchanged."""
    magnitude = math.sqrt(sum(x * x for x in vector))
    if magnitude == 0:
        return list(vector)
    return [x / magnitude for x in vector]


def _coerce_vector(raw: Any, *, dimensions: int) -> list[float]:
    if not isinstance(raw, list) or not raw:
        raise GenerationError("Invalid embedding")
    # bool is a Real subclass; a vector of true/false is not an embedding.
    if any(isinstance(x, bool) or not isinstance(x, Real) for x in raw):
        raise GenerationError("Invalid embedding: non-numeric component")
    vector = [float(x) for x in raw]
    if any(math.isnan(x) or math.isinf(x) for x in vector):
        raise GenerationError("Invalid embedding: non-finite component")
    if len(vector) != dimensions:
        raise GenerationError(
            f"Invalid embedding: expected {dimensions} dimensions, got {len(vector)}",
            details={"dimensions": len(vector)},
        )
    return vector


async def generate_embedding(
    profile_text: str,
    *,
    client: CompletionClient,
    dimensions: int = EMBEDDING_DIM,
    model: str = AI_EMBEDDING_MODEL,
) -> list[float]:
    try:
        args, _meta = await client.call_function(
            model=model,
            system_text=embedding_system_prompt(dimensions=dimensions),
            user_text=profile_text,
            function_name=STORE_EMBEDDING_FN,
            description=embedding_function_description(dimensions=dimensions),
            parameters=embedding_function_parameters(dimensions=dimensions),
        )
    except AIClientError as e:
        raise_for_ai_error(
            e,
            GenerationError,
            operation="embedding",
            missing_message=get_error_message("no_embedding_returned"),
        )

    if "vector" not in args:
        raise GenerationError(get_error_message("no_embedding_returned"))
    vector = _coerce_vector(args.get("vector"), dimensions=dimensions)
    return l2_normalize(vector)


async def embed_profile(
    db: Session,
    user_id: str,
    *,
    client: CompletionClient,
    dimensions: int = EMBEDDING_DIM,
) -> dict[str, Any]:
    """
    Generate (or refresh) the stored embedding for one user.

    Skips the completion call entirely when the profile fingerprint matches the
    stored one.
    """
    profile = db.query(Profile).filter(Profile.user_id == user_id).first()
    if not profile:
        raise NotFoundError(get_error_message("profile_not_found"))

    store = EmbeddingStore(db, dimensions=dimensions)
    new_hash = profile_fingerprint(profile)
    if store.get_fingerprint(user_id) == new_hash:
        logger.info("Embedding up to date user=%s hash=%s", user_id, new_hash)
        return {"message": get_error_message("embedding_up_to_date"), "hash": new_hash}

    vector = await generate_embedding(build_profile_text(profile), client=client, dimensions=dimensions)
    store.upsert(user_id, vector, new_hash)
    logger.info("Embedding generated user=%s dim=%s hash=%s", user_id, len(vector), new_hash)
    return {"message": get_error_message("embedding_generated"), "dimensions": len(vector), "hash": new_hash}


def embedding_status(db: Session, user_id: str, *, dimensions: int = EMBEDDING_DIM) -> dict[str, Any]:
    store = EmbeddingStore(db, dimensions=dimensions)
    row = store.get(user_id)
    if row is None:
        return {"user_id": user_id, "has_embedding": False, "hash": None, "up_to_date": None, "updated_at": None}

    profile = db.query(Profile).filter(Profile.user_id == user_id).first()
    up_to_date = bool(profile) and profile_fingerprint(profile) == row.profile_hash
    return {
        "user_id": user_id,
        "has_embedding": True,
        "hash": row.profile_hash,
        "up_to_date": up_to_date,
        "updated_at": row.updated_at.isoformat() if row.updated_at else None,
    }
