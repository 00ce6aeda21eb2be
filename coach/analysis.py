"""Skill gap analysis: prompt the AI service and parse its structured reply."""
from typing import List, Dict, Any

from coach.schemas import AnalysisResult, Skill
from services.llm_client import LLMClient, LLMError
from utils.text_cleaning import format_skill_list, validate_analysis_input
from utils.logging_utils import get_logger

logger = get_logger(__name__)


class AnalysisError(Exception):
    """The AI service failed or returned something that is not an analysis."""


_RESOURCE_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "type": {"type": "string", "enum": ["Course", "Project", "Documentation", "Video"]},
        "provider": {"type": "string"},
        "estimatedDuration": {"type": "string"},
        "description": {"type": "string"},
        "url": {"type": "string"},
    },
    "required": ["title", "type", "provider", "estimatedDuration", "description"],
}

ANALYSIS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "jobTitle": {"type": "string"},
        "matchScore": {"type": "integer"},
        "marketSummary": {"type": "string"},
        "topSkillsRequired": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "frequency": {"type": "number", "description": "Importance score 1-100"},
                },
                "required": ["name", "frequency"],
            },
        },
        "gaps": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "skillName": {"type": "string"},
                    "userLevel": {"type": "string"},
                    "marketRequirement": {"type": "string"},
                    "importance": {"type": "string", "enum": ["Critical", "High", "Medium", "Low"]},
                    "gapDescription": {"type": "string"},
                },
                "required": ["skillName", "userLevel", "marketRequirement", "importance", "gapDescription"],
            },
        },
        "learningPath": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "stepNumber": {"type": "integer"},
                    "topic": {"type": "string"},
                    "description": {"type": "string"},
                    "resources": {"type": "array", "items": _RESOURCE_SCHEMA},
                },
                "required": ["stepNumber", "topic", "description", "resources"],
            },
        },
    },
    "required": ["jobTitle", "matchScore", "marketSummary", "topSkillsRequired", "gaps", "learningPath"],
}


def build_analysis_prompt(role: str, skills: List[Skill], context: str) -> str:
    """Instruction text embedding the role, the skill list and the context."""
    return f"""You are a career coach and job market analyst engine.

Target Role: {role}

User's Current Skills:
{format_skill_list(skills)}

Additional Context:
{context}

Task:
1. Analyze the current job market requirements for the Target Role.
2. Compare the user's current skills against these requirements.
3. Identify critical skill gaps.
4. Create a structured learning path to bridge these gaps.
5. Estimate a match score (0-100).

Output the result in strict JSON format matching the schema provided.
Ensure "topSkillsRequired" includes both technical and soft skills relevant to the role.
"marketSummary" should be a concise paragraph about the current state of this role in the industry."""


_JSON_TYPES = {
    "string": (str,),
    "integer": (int,),
    "number": (int, float),
    "array": (list,),
    "object": (dict,),
}


def _require_list(data: Dict[str, Any], key: str) -> list:
    value = data.get(key)
    if not isinstance(value, list):
        raise AnalysisError(f"Analysis response field '{key}' must be a list, got {type(value).__name__}")
    return value


def _check_item(item: Any, schema: Dict[str, Any], where: str) -> None:
    """
    Check one nested object against its schema entry.

    Required keys must be present and every present field must have the
    declared JSON type. Optional fields set to null are ignored. Enum
    values are not enforced here; the UI renders unknown ones neutrally.

    Raises:
        AnalysisError: On a missing key or a wrongly typed field
    """
    if not isinstance(item, dict):
        raise AnalysisError(f"Analysis response '{where}' must be an object")

    missing = [k for k in schema["required"] if k not in item]
    if missing:
        raise AnalysisError(f"Analysis response '{where}' missing fields: {', '.join(missing)}")

    for key, prop in schema["properties"].items():
        if key not in item:
            continue
        value = item[key]
        if value is None and key not in schema["required"]:
            continue
        # bool is an int subclass
        if isinstance(value, bool) or not isinstance(value, _JSON_TYPES[prop["type"]]):
            raise AnalysisError(f"Analysis response '{where}.{key}' must be {prop['type']}, got {value!r}")
        if prop["type"] == "array":
            for index, sub in enumerate(value):
                _check_item(sub, prop["items"], f"{where}.{key}[{index}]")


def parse_analysis_result(data: Any) -> AnalysisResult:
    """
    Check that a decoded response has the AnalysisResult shape.

    Structure is checked down to each skill, gap, step and resource;
    numbers such as matchScore are passed through as-is, even when
    outside 0-100.

    Raises:
        AnalysisError: If a required field is missing or has the wrong type
    """
    if not isinstance(data, dict):
        raise AnalysisError("Analysis response is not a JSON object")

    missing = [k for k in ANALYSIS_SCHEMA["required"] if k not in data]
    if missing:
        raise AnalysisError(f"Analysis response missing fields: {', '.join(missing)}")

    if not isinstance(data["jobTitle"], str) or not isinstance(data["marketSummary"], str):
        raise AnalysisError("Analysis response 'jobTitle' and 'marketSummary' must be text")

    score = data["matchScore"]
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise AnalysisError(f"Analysis response 'matchScore' must be a number, got {score!r}")

    for key in ("topSkillsRequired", "gaps", "learningPath"):
        item_schema = ANALYSIS_SCHEMA["properties"][key]["items"]
        for index, item in enumerate(_require_list(data, key)):
            _check_item(item, item_schema, f"{key}[{index}]")

    result: AnalysisResult = {
        "jobTitle": data["jobTitle"],
        "matchScore": score,
        "marketSummary": data["marketSummary"],
        "topSkillsRequired": data["topSkillsRequired"],
        "gaps": data["gaps"],
        "learningPath": data["learningPath"],
    }
    return result


def analyze_skill_gap(role: str, skills: List[Skill], context: str, llm: LLMClient) -> AnalysisResult:
    """
    Run a skill gap analysis for a target role.

    Args:
        role: Target job role
        skills: User's current skills
        context: Free-text context (may be empty)
        llm: LLM client instance

    Returns:
        AnalysisResult

    Raises:
        ValueError: If role or skills are empty
        AnalysisError: If the AI call fails or the reply is not an analysis
    """
    validate_analysis_input(role, skills)
    prompt = build_analysis_prompt(role.strip(), skills, context or "")

    try:
        response = llm.generate_json(prompt, ANALYSIS_SCHEMA)
    except (LLMError, ValueError) as e:
        logger.error(f"Skill gap analysis failed: {str(e)}")
        raise AnalysisError(str(e)) from e

    try:
        result = parse_analysis_result(response)
    except AnalysisError as e:
        logger.error(f"Unexpected analysis response: {str(e)}")
        raise

    logger.info(
        f"Analysis for '{result['jobTitle']}': score={result['matchScore']}, "
        f"gaps={len(result['gaps'])}, steps={len(result['learningPath'])}"
    )
    return result
