"""Badge catalogue and award rules."""

from datetime import datetime
from typing import Dict, List, Optional, Sequence
from schemas.check_in import CheckIn
from schemas.enums import BadgeId
from schemas.gamification import Badge, BadgeDefinition, GamificationData
from schemas.user import UserProfile

CHECK_IN_POINTS = 10

ALL_BADGES: Dict[BadgeId, BadgeDefinition] = {
    BadgeId.FIRST_CHECK_IN: BadgeDefinition(
        id=BadgeId.FIRST_CHECK_IN,
        name="First Step",
        description="You logged your first check-in and started your journey!",
        icon="Star",
    ),
    BadgeId.PERFECT_DAY: BadgeDefinition(
        id=BadgeId.PERFECT_DAY,
        name="Perfect Day",
        description="Completed every meal and task of a day.",
        icon="CheckCircle",
    ),
    BadgeId.STREAK_3: BadgeDefinition(
        id=BadgeId.STREAK_3,
        name="On Track",
        description="Kept a 3-day check-in streak.",
        icon="Zap",
    ),
    BadgeId.STREAK_7: BadgeDefinition(
        id=BadgeId.STREAK_7,
        name="Winning Week",
        description="Checked in 7 days in a row!",
        icon="Award",
    ),
    BadgeId.POINT_COLLECTOR_100: BadgeDefinition(
        id=BadgeId.POINT_COLLECTOR_100,
        name="Collector",
        description="Earned 100 points.",
        icon="Gem",
    ),
    BadgeId.POINT_COLLECTOR_500: BadgeDefinition(
        id=BadgeId.POINT_COLLECTOR_500,
        name="Points Master",
        description="Earned 500 points. Wow!",
        icon="Gem",
    ),
    BadgeId.GOAL_REACHED: BadgeDefinition(
        id=BadgeId.GOAL_REACHED,
        name="Goal Reached!",
        description="Congratulations! You reached your target weight.",
        icon="Target",
    ),
}


def _award(badge_id: BadgeId, now: datetime) -> Badge:
    return Badge(**ALL_BADGES[badge_id].model_dump(), earned_on=now)


def check_and_award_badges(
    data: GamificationData,
    profile: Optional[UserProfile],
    check_ins: Sequence[CheckIn],
    now: Optional[datetime] = None,
) -> List[Badge]:
    """Return the badges earned now that are not already held.

    The perfect-day badge is catalogued only; no rule awards it yet.
    """
    if profile is None:
        return []

    now = now or datetime.now()
    held = {badge.id for badge in data.badges}
    earned: List[Badge] = []

    def grant(badge_id: BadgeId, condition: bool):
        if condition and badge_id not in held:
            earned.append(_award(badge_id, now))

    grant(BadgeId.FIRST_CHECK_IN, len(check_ins) > 0)
    grant(BadgeId.STREAK_3, data.streak >= 3)
    grant(BadgeId.STREAK_7, data.streak >= 7)
    grant(BadgeId.POINT_COLLECTOR_100, data.points >= 100)
    grant(BadgeId.POINT_COLLECTOR_500, data.points >= 500)
    grant(
        BadgeId.GOAL_REACHED,
        bool(profile.weight and profile.weight_goal and profile.weight <= profile.weight_goal),
    )
    return earned


def register_check_in(data: GamificationData, now: Optional[datetime] = None) -> GamificationData:
    """Add the check-in points and extend or restart the daily streak."""
    now = now or datetime.now()
    last = data.last_check_in_date

    if last is not None and last.date() == now.date():
        streak = data.streak
    elif last is not None and (now.date() - last.date()).days == 1:
        streak = data.streak + 1
    else:
        streak = 1

    return data.model_copy(update={
        "points": data.points + CHECK_IN_POINTS,
        "streak": streak,
        "longest_streak": max(data.longest_streak, streak),
        "last_check_in_date": now,
    })
