"""Helper utility functions."""

from typing import Any, Dict, List, Optional, Sequence
from schemas.check_in import CheckIn
from schemas.user import UserProfile


def format_state_event(event_type: str, content: Any, session_id: Optional[str] = None) -> Dict[str, Any]:
    """Format a state-stream message for the WebSocket."""
    return {
        "event": event_type,
        "data": content,
        "session_id": session_id,
    }


def current_weight(profile: Optional[UserProfile], check_ins: Sequence[CheckIn]) -> Optional[float]:
    """Latest check-in weight, else the profile weight."""
    if check_ins:
        return check_ins[-1].weight
    return profile.weight if profile else None


def weight_series(profile: Optional[UserProfile], check_ins: Sequence[CheckIn]) -> List[Dict[str, Any]]:
    """Weight points for the progress chart; day 0 is labelled 'Start'."""
    if check_ins:
        return [
            {"label": "Start" if c.day == 0 else f"Day {c.day}", "day": c.day, "weight": c.weight}
            for c in check_ins
        ]
    weight = current_weight(profile, check_ins)
    return [{"label": "Start", "day": 0, "weight": weight}] if weight else []


def weight_change(check_ins: Sequence[CheckIn]) -> Optional[float]:
    """Difference between the latest and the first recorded weight."""
    if len(check_ins) < 2:
        return None
    return round(check_ins[-1].weight - check_ins[0].weight, 2)
