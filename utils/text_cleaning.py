"""Text cleaning and input-collection utilities."""
import re
from typing import List, Optional

from config import SKILL_LEVELS, DEFAULT_SKILL_LEVEL
from coach.schemas import Skill

# Matches a trailing "(Expert)" style level marker, case-insensitive
_LEVEL_PATTERN = re.compile(
    r'\((' + '|'.join(SKILL_LEVELS) + r')\)', flags=re.IGNORECASE
)


def clean_text(text: str) -> str:
    """
    Basic text cleaning: collapse runs of spaces/tabs and blank lines.

    Args:
        text: Raw text

    Returns:
        Cleaned text
    """
    if not text:
        return ""

    text = re.sub(r'[ \t]+', ' ', text)
    text = re.sub(r'\n\s*\n+', '\n\n', text)
    return text.strip()


def parse_skill_entry(entry: str) -> Optional[Skill]:
    """
    Turn a free-text entry like "React (Expert)" into a Skill.

    The level marker may appear anywhere in the entry; without one the
    skill defaults to Intermediate.

    Args:
        entry: Text typed by the user

    Returns:
        Skill, or None if the entry is blank
    """
    name = clean_text(entry or "")
    if not name:
        return None

    level = DEFAULT_SKILL_LEVEL
    match = _LEVEL_PATTERN.search(name)
    if match:
        level = match.group(1).capitalize()
        name = clean_text(_LEVEL_PATTERN.sub('', name, count=1))
        if not name:
            return None

    return Skill(name=name, level=level)


def parse_skill_list(text: str) -> List[Skill]:
    """
    Parse several skill entries separated by commas or newlines.

    Args:
        text: e.g. "React (Expert), TypeScript\\nCSS (beginner)"

    Returns:
        Skills in entry order (blank entries skipped)
    """
    skills = []
    for entry in re.split(r'[,\n]', text or ""):
        skill = parse_skill_entry(entry)
        if skill is not None:
            skills.append(skill)
    return skills


def format_skill_list(skills: List[Skill]) -> str:
    """Render skills as a bulleted "- name (level)" list."""
    return "\n".join(f"- {s.name} ({s.level})" for s in skills)


def validate_analysis_input(role: str, skills: List[Skill]) -> None:
    """
    Check the minimum input needed before calling the AI service.

    Raises:
        ValueError: If the role is blank or no skills were given
    """
    if not role or not role.strip():
        raise ValueError("Please enter a target role.")
    if not skills:
        raise ValueError("Please add at least one skill.")
