import pytest

from coach.resume_insights import (
    generate_resume_insights,
    build_resume_prompt,
    ResumeInsightsError,
    RESUME_INSIGHTS_SCHEMA,
)
from coach.schemas import Skill
from services.llm_client import LLMError


@pytest.fixture
def insights_payload():
    return {
        "professionalSummary": "Frontend engineer with 5 years building React apps.",
        "achievements": ["Cut bundle size by 40%", "Led migration to TypeScript"],
        "keywords": ["React", "TypeScript", "Accessibility"],
    }


def test_prompt_mentions_role_and_skills():
    prompt = build_resume_prompt("Data Engineer", [Skill("SQL", "Expert")])
    assert "Target Role: Data Engineer" in prompt
    assert "- SQL (Expert)" in prompt


def test_generates_insights(fake_llm_factory, insights_payload):
    llm = fake_llm_factory(json_response=insights_payload)
    insights = generate_resume_insights("Frontend Engineer", [Skill("React", "Advanced")], llm)

    assert insights == insights_payload
    assert llm.schemas == [RESUME_INSIGHTS_SCHEMA]


def test_each_call_regenerates(fake_llm_factory, insights_payload):
    llm = fake_llm_factory(json_response=insights_payload)
    generate_resume_insights("Frontend Engineer", [Skill("React")], llm)
    generate_resume_insights("Frontend Engineer", [Skill("React")], llm)
    assert len(llm.prompts) == 2


def test_remote_failure(fake_llm_factory):
    llm = fake_llm_factory(error=LLMError("timeout"))
    with pytest.raises(ResumeInsightsError):
        generate_resume_insights("Frontend Engineer", [Skill("React")], llm)


@pytest.mark.parametrize("field,value", [
    ("professionalSummary", None),
    ("achievements", "one big string"),
    ("keywords", [1, 2]),
])
def test_malformed_response_gives_no_partial_result(fake_llm_factory, insights_payload, field, value):
    insights_payload[field] = value
    llm = fake_llm_factory(json_response=insights_payload)
    with pytest.raises(ResumeInsightsError):
        generate_resume_insights("Frontend Engineer", [Skill("React")], llm)


def test_blank_role_rejected(fake_llm_factory, insights_payload):
    llm = fake_llm_factory(json_response=insights_payload)
    with pytest.raises(ResumeInsightsError):
        generate_resume_insights(" ", [Skill("React")], llm)
    assert llm.prompts == []
