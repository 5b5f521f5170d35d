from uuid import uuid4

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from ..database import Base


class Profile(Base):
    """
    Alumni profile row. Owned by the surrounding application; this service only reads it.
    """
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String(64), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=False, default="")
    avatar_url = Column(Text, nullable=True)
    bio = Column(Text, nullable=True)

    company = Column(String(255), nullable=True)
    designation = Column(String(255), nullable=True)
    industry = Column(String(255), nullable=True)
    department = Column(String(255), nullable=True)
    location = Column(String(255), nullable=True)
    experience_years = Column(Integer, nullable=True, index=True)

    skills = Column(JSON, nullable=True)  # list[str], order preserved
    interests = Column(JSON, nullable=True)  # list[str], order preserved

    is_mentor = Column(Boolean, nullable=True, default=False)
    is_hiring = Column(Boolean, nullable=True, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<Profile(user_id={self.user_id}, name={self.full_name!r})>"
