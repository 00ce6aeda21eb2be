"""Badges awarded from analysis results, persisted per user."""
import sqlite3
from datetime import datetime, timezone
from typing import List, Optional

from config import BADGES_KEY_PREFIX
from coach.schemas import AnalysisResult, Badge, BadgeIcon
from services.storage import KeyValueStore, load_json_list, save_json
from utils.logging_utils import get_logger

logger = get_logger(__name__)


def _badge(badge_id: str, title: str, description: str, icon: BadgeIcon,
           color: str, earned_at: str) -> Badge:
    return Badge(
        id=badge_id,
        title=title,
        description=description,
        icon_name=icon,
        color_class=color,
        date_earned=earned_at,
    )


def score_to_badges(result: AnalysisResult, earned_at: Optional[str] = None) -> List[Badge]:
    """
    Map an analysis result to the badges it earns.

    Exactly one score band badge is awarded, then skill-master and
    pathfinder when their conditions hold, and future-ready always.

    Args:
        result: Analysis result
        earned_at: ISO timestamp to stamp on the badges (defaults to now, UTC)

    Returns:
        Badges in rule order
    """
    if earned_at is None:
        earned_at = datetime.now(timezone.utc).isoformat()

    score = result["matchScore"]
    badges = []

    if score >= 80:
        badges.append(_badge("top-candidate", "Top Candidate", "Achieved > 80% match score",
                             BadgeIcon.AWARD, "orange", earned_at))
    elif score >= 50:
        badges.append(_badge("rising-star", "Rising Star", "Achieved > 50% match score",
                             BadgeIcon.TRENDING_UP, "green", earned_at))
    else:
        badges.append(_badge("growth-seeker", "Growth Seeker", "Identified key growth areas",
                             BadgeIcon.ZAP, "blue", earned_at))

    if len(result["gaps"]) < 3:
        badges.append(_badge("skill-master", "Skill Master", "Less than 3 critical gaps",
                             BadgeIcon.CROWN, "violet", earned_at))

    if len(result["learningPath"]) > 0:
        badges.append(_badge("pathfinder", "Pathfinder", "Generated a learning path",
                             BadgeIcon.MAP, "blue", earned_at))

    # Participation
    badges.append(_badge("future-ready", "Future Ready", "Completed a career analysis",
                         BadgeIcon.STAR, "orange", earned_at))

    return badges


def badges_key(user_id: str) -> str:
    return f"{BADGES_KEY_PREFIX}{user_id}"


class BadgeRepository:
    """Per-user badge sets with union-by-id semantics."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def get_badges(self, user_id: str) -> List[Badge]:
        badges = []
        for raw in load_json_list(self.store, badges_key(user_id)):
            try:
                badges.append(Badge.from_dict(raw))
            except (KeyError, TypeError, AttributeError) as e:
                logger.warning(f"Skipping malformed badge for user {user_id}: {str(e)}")
        return badges

    def merge(self, user_id: str, badges: List[Badge]) -> List[Badge]:
        """
        Add badges the user does not have yet; existing ids keep their
        original date_earned. Storage failures are logged, not raised.

        Returns:
            The user's full badge set after merging
        """
        merged = {b.id: b for b in self.get_badges(user_id)}
        added = 0
        for badge in badges:
            if badge.id not in merged:
                merged[badge.id] = badge
                added += 1

        result = list(merged.values())
        if added:
            try:
                save_json(self.store, badges_key(user_id), [b.to_dict() for b in result])
                logger.info(f"Saved {added} new badge(s) for user {user_id}")
            except (sqlite3.Error, OSError) as e:
                logger.error(f"Failed to save badges for user {user_id}: {str(e)}")
        return result
