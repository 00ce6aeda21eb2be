import pytest

from coach.schemas import Skill
from utils.text_cleaning import (
    clean_text,
    parse_skill_entry,
    parse_skill_list,
    format_skill_list,
    validate_analysis_input,
)


def test_clean_text_collapses_whitespace():
    assert clean_text("  React   Native \t ") == "React Native"
    assert clean_text("") == ""


@pytest.mark.parametrize("entry,expected", [
    ("React", Skill("React", "Intermediate")),
    ("React (Expert)", Skill("React", "Expert")),
    ("Python (beginner)", Skill("Python", "Beginner")),
    ("  Go (ADVANCED) ", Skill("Go", "Advanced")),
    ("(Expert) Rust", Skill("Rust", "Expert")),
    ("SQL (Intermediate)", Skill("SQL", "Intermediate")),
])
def test_parse_skill_entry(entry, expected):
    assert parse_skill_entry(entry) == expected


@pytest.mark.parametrize("entry", ["", "   ", "(Expert)"])
def test_parse_blank_skill_entry(entry):
    assert parse_skill_entry(entry) is None


def test_parse_skill_list():
    skills = parse_skill_list("React (Expert), TypeScript\nCSS (beginner),,")
    assert skills == [
        Skill("React", "Expert"),
        Skill("TypeScript", "Intermediate"),
        Skill("CSS", "Beginner"),
    ]


def test_format_skill_list():
    assert format_skill_list([Skill("React", "Advanced"), Skill("Go", "Beginner")]) == (
        "- React (Advanced)\n- Go (Beginner)"
    )


def test_validate_analysis_input():
    validate_analysis_input("Data Scientist", [Skill("Python")])
    with pytest.raises(ValueError):
        validate_analysis_input("", [Skill("Python")])
    with pytest.raises(ValueError):
        validate_analysis_input("Data Scientist", [])


@pytest.mark.parametrize("text,expected", [
    ("Python (Expert)", [Skill("Python", "Expert")]),
    ("", []),
    (" , ", []),
])
def test_parse_skill_list_single_or_blank_entry(text, expected):
    assert parse_skill_list(text) == expected
