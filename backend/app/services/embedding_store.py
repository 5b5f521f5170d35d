import json
import logging
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import EMBEDDING_DIM
from ..models.embedding import UserEmbedding
from ..utils.error_handlers import StoreError


logger = logging.getLogger(__name__)


def _dialect_insert(dialect: str):
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    elif dialect in {"mysql", "mariadb"}:
        from sqlalchemy.dialects.mysql import insert
    else:
        raise StoreError(f"Upsert is not supported on dialect {dialect!r}")
    return insert


def vector_from_row(row: UserEmbedding) -> list[float]:
    try:
        data: Any = json.loads(row.vector_json or "[]")
    except json.JSONDecodeError as e:
        raise StoreError(f"Corrupt embedding for user {row.user_id}") from e
    if not isinstance(data, list):
        raise StoreError(f"Corrupt embedding for user {row.user_id}")
    return [float(x) for x in data]


class EmbeddingStore:
    """
    One embedding row per user id.

    Writes go through a single INSERT ... ON CONFLICT statement so concurrent
    embeds for the same user settle as last-write-wins without duplicates.
    """

    def __init__(self, db: Session, *, dimensions: int = EMBEDDING_DIM):
        self.db = db
        self.dimensions = dimensions

    def _check_dimensions(self, user_id: str, vector: list[float]) -> list[float]:
        if len(vector) != self.dimensions:
            raise StoreError(
                f"Embedding for user {user_id} has {len(vector)} dimensions, expected {self.dimensions}",
                details={"user_id": user_id, "dim": len(vector)},
            )
        return vector

    def get(self, user_id: str) -> UserEmbedding | None:
        return self.db.query(UserEmbedding).filter(UserEmbedding.user_id == user_id).first()

    def get_fingerprint(self, user_id: str) -> str | None:
        row = (
            self.db.query(UserEmbedding.profile_hash)
            .filter(UserEmbedding.user_id == user_id)
            .first()
        )
        return row[0] if row else None

    def vector(self, user_id: str) -> list[float] | None:
        row = self.get(user_id)
        if row is None:
            return None
        return self._check_dimensions(user_id, vector_from_row(row))

    def upsert(self, user_id: str, vector: list[float], fingerprint_hash: str) -> UserEmbedding:
        self._check_dimensions(user_id, vector)
        now = datetime.now(timezone.utc)
        values = {
            "user_id": user_id,
            "dim": len(vector),
            "vector_json": json.dumps(vector),
            "profile_hash": fingerprint_hash,
            "updated_at": now,
        }
        try:
            dialect = self.db.get_bind().dialect.name
            insert = _dialect_insert(dialect)
            stmt = insert(UserEmbedding).values(id=str(uuid4()), created_at=now, **values)
            update_cols = {k: v for k, v in values.items() if k != "user_id"}
            if dialect in {"mysql", "mariadb"}:
                stmt = stmt.on_duplicate_key_update(**update_cols)
            else:
                stmt = stmt.on_conflict_do_update(index_elements=[UserEmbedding.user_id], set_=update_cols)
            self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Embedding upsert failed for user=%s: %s", user_id, e)
            raise StoreError("Failed to store embedding") from e

        row = self.get(user_id)
        if row is None:
            raise StoreError("Embedding upsert did not persist")
        self.db.refresh(row)
        return row

    def list_all_except(self, user_id: str) -> list[tuple[str, list[float]]]:
        """
        Full scan of every other user's vector, in storage order.

        No pagination: fine for a single institution's alumni, not for
        hundreds of thousands of rows.
        """
        rows = (
            self.db.query(UserEmbedding)
            .filter(UserEmbedding.user_id != user_id)
            .order_by(UserEmbedding.created_at.asc(), UserEmbedding.id.asc())
            .all()
        )
        return [(row.user_id, self._check_dimensions(row.user_id, vector_from_row(row))) for row in rows]
