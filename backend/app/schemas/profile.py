from pydantic import BaseModel, ConfigDict, field_validator


class ProfileSummary(BaseModel):
    """Profile metadata attached to each match result."""

    model_config = ConfigDict(from_attributes=True)

    user_id: str
    full_name: str | None = None
    company: str | None = None
    designation: str | None = None
    industry: str | None = None
    skills: list[str] | None = None
    location: str | None = None
    is_mentor: bool | None = None
    is_hiring: bool | None = None
    avatar_url: str | None = None

    @field_validator("skills", mode="before")
    @classmethod
    def _coerce_skills(cls, v):
        # skills is a free JSON column; anything that is not a list is dropped.
        if isinstance(v, (list, tuple)):
            return [str(x) for x in v if x is not None]
        return None
