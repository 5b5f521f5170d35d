from pydantic import BaseModel


class CareerStep(BaseModel):
    role: str
    # Models return "2-3" or 3 interchangeably; both are kept as given.
    years: str | int | float
    company_type: str | None = None


class CareerPrediction(BaseModel):
    current_role: str
    next_role: str
    timeline: str
    skills_needed: list[str]
    career_trajectory: list[CareerStep]
    suggested_mentors: list[str] | None = None


