"""Data models/schemas for the skill gap coach."""
from dataclasses import dataclass, asdict
from enum import Enum
from typing import TypedDict, List, Optional, Dict, Any


# --- Payloads returned by the AI service (keys match the JSON schema) ---

class SkillDemand(TypedDict):
    """A skill the market asks for, with its relative demand."""
    name: str
    frequency: float  # importance score, nominally 0-100


class LearningResource(TypedDict, total=False):
    """A course, project, doc or video that helps close a gap."""
    title: str
    type: str  # one of RESOURCE_TYPES
    provider: str
    estimatedDuration: str
    description: str
    url: Optional[str]


class LearningStep(TypedDict):
    """One step of the learning path."""
    stepNumber: int
    topic: str
    description: str
    resources: List[LearningResource]


class MarketGap(TypedDict):
    """A skill where the user's level falls short of the market requirement."""
    skillName: str
    userLevel: str
    marketRequirement: str
    importance: str  # Critical | High | Medium | Low
    gapDescription: str


class AnalysisResult(TypedDict):
    """Skill gap analysis for a target role."""
    jobTitle: str
    matchScore: int  # nominally 0-100, not range-checked
    marketSummary: str
    topSkillsRequired: List[SkillDemand]
    gaps: List[MarketGap]
    learningPath: List[LearningStep]


class ResumeInsights(TypedDict):
    """Resume suggestions for a target role."""
    professionalSummary: str
    achievements: List[str]
    keywords: List[str]


# --- Records owned by the application ---

@dataclass(frozen=True)
class Skill:
    name: str
    level: str = "Intermediate"


@dataclass(frozen=True)
class User:
    """Session-safe user record (never carries the password surrogate)."""
    id: str
    name: str
    email: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(id=str(data["id"]), name=data["name"], email=data["email"])


class BadgeIcon(str, Enum):
    AWARD = "Award"
    TRENDING_UP = "TrendingUp"
    ZAP = "Zap"
    CROWN = "Crown"
    MAP = "Map"
    STAR = "Star"


@dataclass(frozen=True)
class Badge:
    id: str
    title: str
    description: str
    icon_name: BadgeIcon
    color_class: str
    date_earned: str  # ISO-8601

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["icon_name"] = self.icon_name.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Badge":
        try:
            icon = BadgeIcon(data.get("icon_name"))
        except ValueError:
            icon = BadgeIcon.STAR
        return cls(
            id=data["id"],
            title=data["title"],
            description=data.get("description", ""),
            icon_name=icon,
            color_class=data.get("color_class", "gray"),
            date_earned=data.get("date_earned", ""),
        )


@dataclass(frozen=True)
class ChatMessage:
    """Immutable snapshot of a chat message.

    A streamed reply is emitted as several snapshots sharing the same id;
    the last one has is_streaming=False.
    """
    id: str
    role: str  # "user" | "model"
    text: str
    is_streaming: bool = False
