from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, field_validator

from .profile import ProfileSummary


class _UserRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)

    @field_validator("user_id", mode="before")
    @classmethod
    def _strip_user_id(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


class EmbedRequest(_UserRequest):
    action: Literal["embed"]


class MatchRequest(_UserRequest):
    action: Literal["match"]
    target_role: str | None = None


class CareerPathRequest(_UserRequest):
    action: Literal["career_path"]


ProfileMatchRequest = Annotated[
    Union[EmbedRequest, MatchRequest, CareerPathRequest],
    Field(discriminator="action"),
]

ACTIONS = ("embed", "match", "career_path")


class EmbedResponse(BaseModel):
    message: str
    hash: str
    dimensions: int | None = None


class MatchItem(BaseModel):
    user_id: str
    similarity: float
    profile: ProfileSummary


class MatchResponse(BaseModel):
    matches: list[MatchItem] = Field(default_factory=list)


class EmbeddingStatus(BaseModel):
    user_id: str
    has_embedding: bool
    hash: str | None = None
    up_to_date: bool | None = None
    updated_at: str | None = None
