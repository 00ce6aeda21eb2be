"""Resume suggestions (summary, achievements, ATS keywords) for a target role."""
from typing import List, Any

from coach.schemas import ResumeInsights, Skill
from services.llm_client import LLMClient, LLMError
from utils.text_cleaning import format_skill_list
from utils.logging_utils import get_logger

logger = get_logger(__name__)


class ResumeInsightsError(Exception):
    pass


RESUME_INSIGHTS_SCHEMA = {
    "type": "object",
    "properties": {
        "professionalSummary": {"type": "string"},
        "achievements": {"type": "array", "items": {"type": "string"}},
        "keywords": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["professionalSummary", "achievements", "keywords"],
}


def build_resume_prompt(role: str, skills: List[Skill]) -> str:
    return f"""You are an expert resume writer and ATS (Applicant Tracking System) specialist.

Target Role: {role}

Candidate Skills:
{format_skill_list(skills)}

Task:
1. Write a 3-4 sentence professional summary positioning the candidate for the Target Role.
2. Suggest 4-6 achievement bullet points the candidate could adapt, each starting with a strong action verb and showing measurable impact.
3. List 8-12 keywords recruiters and ATS filters expect for this role.

Output the result in strict JSON format matching the schema provided."""


def _is_text_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


def generate_resume_insights(role: str, skills: List[Skill], llm: LLMClient) -> ResumeInsights:
    """
    Generate resume insights. Every call asks the AI service again.

    Raises:
        ResumeInsightsError: On any failure; no partial result is returned
    """
    if not role or not role.strip():
        raise ResumeInsightsError("A target role is required for resume insights.")

    try:
        data = llm.generate_json(build_resume_prompt(role.strip(), skills), RESUME_INSIGHTS_SCHEMA)
    except (LLMError, ValueError) as e:
        logger.error(f"Failed to generate resume insights: {str(e)}")
        raise ResumeInsightsError(str(e)) from e

    if (
        not isinstance(data.get("professionalSummary"), str)
        or not _is_text_list(data.get("achievements"))
        or not _is_text_list(data.get("keywords"))
    ):
        logger.error(f"Unexpected resume insights response: {str(data)[:500]}")
        raise ResumeInsightsError("Resume insights response did not match the expected shape")

    insights: ResumeInsights = {
        "professionalSummary": data["professionalSummary"],
        "achievements": data["achievements"],
        "keywords": data["keywords"],
    }
    return insights
