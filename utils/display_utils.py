"""Helpers for rendering analysis data in the UI."""
from typing import Any, Dict

from coach.schemas import Badge, BadgeIcon

# Every BadgeIcon member must have an entry here
BADGE_ICONS: Dict[BadgeIcon, str] = {
    BadgeIcon.AWARD: "🏆",
    BadgeIcon.TRENDING_UP: "📈",
    BadgeIcon.ZAP: "⚡",
    BadgeIcon.CROWN: "👑",
    BadgeIcon.MAP: "🗺️",
    BadgeIcon.STAR: "⭐",
}

IMPORTANCE_COLORS = {
    "Critical": "red",
    "High": "orange",
    "Medium": "violet",
    "Low": "green",
}

RESOURCE_ICONS = {
    "Course": "🎓",
    "Project": "🛠️",
    "Documentation": "📄",
    "Video": "🎬",
}


def clamp_percentage(value: Any) -> int:
    """Clamp an AI-reported percentage into 0-100 for display."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if number != number:  # NaN
        return 0
    return int(round(min(100.0, max(0.0, number))))


def badge_icon(badge: Badge) -> str:
    return BADGE_ICONS[badge.icon_name]


def badge_label(badge: Badge) -> str:
    """Markdown label such as ':orange[🏆 **Top Candidate**]'."""
    return f":{badge.color_class}[{badge_icon(badge)} **{badge.title}**]"


def importance_label(importance: str) -> str:
    color = IMPORTANCE_COLORS.get(importance, "gray")
    return f":{color}[{importance}]"
