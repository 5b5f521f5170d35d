import logging
import math
from typing import Any

from sqlalchemy.orm import Session

from ..config import EMBEDDING_DIM, MATCH_ROLE_PREFILTER, MATCH_TOP_K
from ..models.profile import Profile
from ..schemas.profile import ProfileSummary
from ..utils.error_handlers import NoEmbeddingError
from .embedding_store import EmbeddingStore


logger = logging.getLogger(__name__)

MENTOR_ROLE = "mentor"


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """
    Cosine over the first min(len(a), len(b)) components.
    Zero magnitude on either side gives 0.
    """
    n = min(len(a), len(b))
    dot = 0.0
    na = 0.0
    nb = 0.0
    for i in range(n):
        x = a[i]
        y = b[i]
        dot += x * y
        na += x * x
        nb += y * y
    denom = math.sqrt(na) * math.sqrt(nb)
    if denom == 0.0:
        return 0.0
    return float(dot / denom)


def rank_candidates(
    query: list[float],
    candidates: list[tuple[str, list[float]]],
    *,
    top_k: int = MATCH_TOP_K,
) -> list[dict[str, Any]]:
    """Score every candidate, sort by similarity (stable, descending) and keep top_k."""
    scored = [
        {"user_id": user_id, "similarity": cosine_similarity(query, vector)}
        for user_id, vector in candidates
    ]
    scored.sort(key=lambda m: m["similarity"], reverse=True)
    return scored[: max(int(top_k), 0)]


def _profiles_by_user(db: Session, user_ids: list[str]) -> dict[str, Profile]:
    if not user_ids:
        return {}
    rows = db.query(Profile).filter(Profile.user_id.in_(user_ids)).all()
    return {p.user_id: p for p in rows}


def _mentor_ids(db: Session, user_ids: list[str]) -> set[str]:
    if not user_ids:
        return set()
    rows = (
        db.query(Profile.user_id)
        .filter(Profile.user_id.in_(user_ids), Profile.is_mentor.is_(True))
        .all()
    )
    return {r[0] for r in rows}


def match_profiles(
    db: Session,
    user_id: str,
    *,
    top_k: int = MATCH_TOP_K,
    target_role: str | None = None,
    prefilter_role: bool = MATCH_ROLE_PREFILTER,
    dimensions: int = EMBEDDING_DIM,
) -> list[dict[str, Any]]:
    """
    Nearest profiles to `user_id` by cosine similarity of stored embeddings.

    With target_role="mentor" the non-mentors are dropped *after* the top_k
    cut, so fewer than top_k (or zero) mentors can come back even when more
    mentors exist further down the ranking. prefilter_role=True filters the
    pool first instead.
    """
    store = EmbeddingStore(db, dimensions=dimensions)
    query = store.vector(user_id)
    if query is None:
        raise NoEmbeddingError()

    candidates = store.list_all_except(user_id)
    if not candidates:
        return []

    want_mentors = target_role == MENTOR_ROLE
    if want_mentors and prefilter_role:
        mentors = _mentor_ids(db, [uid for uid, _ in candidates])
        candidates = [(uid, vec) for uid, vec in candidates if uid in mentors]

    top = rank_candidates(query, candidates, top_k=top_k)
    profiles = _profiles_by_user(db, [m["user_id"] for m in top])

    results: list[dict[str, Any]] = []
    for m in top:
        profile = profiles.get(m["user_id"])
        # Embeddings can outlive their profile row; those candidates are skipped.
        if profile is None:
            continue
        results.append(
            {
                "user_id": m["user_id"],
                "similarity": m["similarity"],
                "profile": ProfileSummary.model_validate(profile).model_dump(),
            }
        )

    if want_mentors:
        results = [r for r in results if r["profile"].get("is_mentor")]

    logger.info(
        "Match user=%s candidates=%s returned=%s target_role=%s",
        user_id,
        len(candidates),
        len(results),
        target_role,
    )
    return results
