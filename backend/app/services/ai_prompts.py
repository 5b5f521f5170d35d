from typing import Any


STORE_EMBEDDING_FN = "store_embedding"
PREDICT_CAREER_FN = "predict_career"


def embedding_system_prompt(*, dimensions: int) -> str:
    return (
        "You are a profile embedding generator. Given a professional profile, generate a "
        f"{dimensions}-dimensional normalized vector that captures the semantic meaning of the "
        "person's skills, industry, role, and experience. Each dimension should be a float "
        "between -1 and 1."
    )


def embedding_function_parameters(*, dimensions: int) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "vector": {
                "type": "array",
                "items": {"type": "number"},
                "description": f"{dimensions}-dimensional embedding vector with values between -1 and 1",
            }
        },
        "required": ["vector"],
        "additionalProperties": False,
    }


def embedding_function_description(*, dimensions: int) -> str:
    return f"Store the generated {dimensions}-dimensional embedding vector"


def career_system_prompt() -> str:
    return (
        "You are a career path predictor. Based on alumni career progressions, predict the "
        "next career steps for this person. Return JSON with tool call."
    )


def career_user_prompt(
    *,
    designation: str | None,
    company: str | None,
    experience_years: int | None,
    skills: list[str] | None,
    industry: str | None,
    alumni_context: str,
) -> str:
    return (
        f"Current: {designation or 'Unknown'} at {company or 'Unknown'}, "
        f"{experience_years or 0}yr experience, "
        f"Skills: {', '.join(skills or [])}, "
        f"Industry: {industry or 'Unknown'}\n\n"
        "Senior Alumni Paths:\n"
        f"{alumni_context}"
    )


def career_function_parameters() -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "current_role": {"type": "string"},
            "next_role": {"type": "string"},
            "timeline": {"type": "string"},
            "skills_needed": {"type": "array", "items": {"type": "string"}},
            "suggested_mentors": {"type": "array", "items": {"type": "string"}},
            "career_trajectory": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "role": {"type": "string"},
                        "years": {"type": "string"},
                        "company_type": {"type": "string"},
                    },
                    "required": ["role", "years"],
                    "additionalProperties": False,
                },
            },
        },
        "required": ["current_role", "next_role", "timeline", "skills_needed", "career_trajectory"],
        "additionalProperties": False,
    }
