from typing import Optional

from needled.services.progress import round_half_up


def week_change(current: float, previous: Optional[float]) -> Optional[float]:
    """Change since the previous weigh-in, None without one to compare."""
    if previous is None:
        return None
    return round_half_up(current - previous, 1)


def total_change(current: float, start_weight: float) -> float:
    return round_half_up(current - start_weight, 1)


def clamp_percent(value: Optional[float]) -> Optional[float]:
    """Presentation clamp for progress rings."""
    if value is None:
        return None
    return min(100.0, max(0.0, value))
