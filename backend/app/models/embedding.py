from uuid import uuid4

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from ..database import Base


class UserEmbedding(Base):
    __tablename__ = "user_embeddings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String(64), unique=True, index=True, nullable=False)  # one vector per user
    dim = Column(Integer, nullable=False, default=0)
    vector_json = Column(Text, nullable=False)  # JSON array of floats
    profile_hash = Column(String(16), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<UserEmbedding(user_id={self.user_id}, dim={self.dim}, hash={self.profile_hash})>"
