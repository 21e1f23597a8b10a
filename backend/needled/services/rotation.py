from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from needled.models.enums import InjectionSite

# Recommended pattern: even distribution and healing time per site
SITE_ROTATION_ORDER: list[InjectionSite] = [
    InjectionSite.ABDOMEN_LEFT,
    InjectionSite.ABDOMEN_RIGHT,
    InjectionSite.THIGH_LEFT,
    InjectionSite.THIGH_RIGHT,
    InjectionSite.UPPER_ARM_LEFT,
    InjectionSite.UPPER_ARM_RIGHT,
]

SITE_LABELS: dict[InjectionSite, str] = {
    InjectionSite.ABDOMEN_LEFT: "Left Abdomen",
    InjectionSite.ABDOMEN_RIGHT: "Right Abdomen",
    InjectionSite.THIGH_LEFT: "Left Thigh",
    InjectionSite.THIGH_RIGHT: "Right Thigh",
    InjectionSite.UPPER_ARM_LEFT: "Left Upper Arm",
    InjectionSite.UPPER_ARM_RIGHT: "Right Upper Arm",
}

DEFAULT_DOSES_PER_PEN = 4


class LoggedInjection(Protocol):
    site: str
    dose_number: Optional[int]


@dataclass(frozen=True)
class RotationAdvice:
    suggested_site: InjectionSite
    next_dose: int
    doses_remaining: int


def site_label(site: InjectionSite) -> str:
    return SITE_LABELS[InjectionSite(site)]


def next_site(
    last_site: Optional[str],
    rotation_order: Sequence[InjectionSite] = SITE_ROTATION_ORDER,
) -> InjectionSite:
    """Site after ``last_site`` in the rotation, wrapping to the start.

    No history or an unknown site restarts at the first entry.
    """
    if last_site is None:
        return rotation_order[0]
    try:
        idx = list(rotation_order).index(InjectionSite(last_site))
    except ValueError:
        return rotation_order[0]
    return rotation_order[(idx + 1) % len(rotation_order)]


def next_dose_number(last_dose: Optional[int], doses_per_pen: int = DEFAULT_DOSES_PER_PEN) -> int:
    """Doses cycle 1 -> 2 -> ... -> doses_per_pen -> 1 (new pen)."""
    if last_dose is None:
        return 1
    if last_dose < doses_per_pen:
        return last_dose + 1
    return 1


def doses_remaining(last_dose: Optional[int], doses_per_pen: int = DEFAULT_DOSES_PER_PEN) -> int:
    if last_dose is None or last_dose >= doses_per_pen:
        return doses_per_pen
    return doses_per_pen - last_dose


def suggest_next(
    last_injection: Optional[LoggedInjection],
    rotation_order: Sequence[InjectionSite] = SITE_ROTATION_ORDER,
    doses_per_pen: int = DEFAULT_DOSES_PER_PEN,
) -> RotationAdvice:
    """Default site and dose for the next injection.

    Only a suggestion: callers logging an injection may pass their own site
    and dose number.
    """
    if last_injection is None:
        return RotationAdvice(
            suggested_site=rotation_order[0],
            next_dose=1,
            doses_remaining=doses_per_pen,
        )

    last_dose = last_injection.dose_number
    return RotationAdvice(
        suggested_site=next_site(last_injection.site, rotation_order),
        next_dose=next_dose_number(last_dose, doses_per_pen),
        doses_remaining=doses_remaining(last_dose, doses_per_pen),
    )
