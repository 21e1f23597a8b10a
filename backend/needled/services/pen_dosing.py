"""Pen configuration and dose-in-pen position.

Builds on the rotation advisor with the per-user pen settings: microdose pens
derive their dose count from strength / dose amount, and users who track the
"golden dose" (the residual extra dose left in most pens) get one extra slot.
"""
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence

from needled.models.enums import DosingMode, InjectionSite
from needled.services.rotation import (
    SITE_ROTATION_ORDER,
    LoggedInjection,
    next_site,
    suggest_next,
)


NULLABLE_PEN_FIELDS = ("pen_strength_mg", "dose_amount_mg")


class PenSettingsError(ValueError):
    """Raised when a pen configuration cannot produce a valid dose count."""


@dataclass(frozen=True)
class PenSettings:
    dosing_mode: str = DosingMode.STANDARD.value
    pen_strength_mg: Optional[float] = None
    dose_amount_mg: Optional[float] = None
    doses_per_pen: int = 4
    tracks_golden_dose: bool = False
    current_dose_in_pen: int = 1

    @classmethod
    def from_user(cls, user: Any) -> "PenSettings":
        return cls(
            dosing_mode=user.dosing_mode,
            pen_strength_mg=user.pen_strength_mg,
            dose_amount_mg=user.dose_amount_mg,
            doses_per_pen=user.doses_per_pen,
            tracks_golden_dose=user.tracks_golden_dose,
            current_dose_in_pen=user.current_dose_in_pen,
        )

    @property
    def capacity(self) -> int:
        return pen_capacity(self.doses_per_pen, self.tracks_golden_dose)


@dataclass(frozen=True)
class PenStatus:
    suggested_site: InjectionSite
    current_dose: Optional[int]
    next_dose: int
    doses_remaining: int
    doses_per_pen: int
    tracks_golden_dose: bool
    is_golden_dose_available: bool
    is_on_golden_dose: bool


def calculate_doses_per_pen(pen_strength_mg: float, dose_amount_mg: float) -> int:
    # Decimal avoids 2.4 / 0.6 flooring to 3
    return int(Decimal(str(pen_strength_mg)) // Decimal(str(dose_amount_mg)))


def pen_capacity(doses_per_pen: int, tracks_golden_dose: bool) -> int:
    return doses_per_pen + (1 if tracks_golden_dose else 0)


def merge_pen_settings(current: PenSettings, changes: Mapping[str, Any]) -> PenSettings:
    """Apply a partial update.

    ``changes`` holds only the fields the client sent; an explicit None clears
    the optional mg fields. Microdose pens recompute ``doses_per_pen`` and raise
    ``PenSettingsError`` when the strength does not cover a single dose; a dose
    position beyond the new capacity restarts at 1 (new pen).
    """
    updates = {k: v for k, v in changes.items() if v is not None or k in NULLABLE_PEN_FIELDS}
    merged = replace(current, **updates)

    doses_per_pen = merged.doses_per_pen
    if merged.dosing_mode == DosingMode.MICRODOSE.value:
        if not (merged.pen_strength_mg and merged.dose_amount_mg):
            raise PenSettingsError("Microdose mode requires pen strength and dose amount")
        doses_per_pen = calculate_doses_per_pen(merged.pen_strength_mg, merged.dose_amount_mg)
        if doses_per_pen < 1:
            raise PenSettingsError("Dose amount cannot exceed pen strength")

    current_dose = merged.current_dose_in_pen
    if current_dose > pen_capacity(doses_per_pen, merged.tracks_golden_dose):
        current_dose = 1

    return replace(merged, doses_per_pen=doses_per_pen, current_dose_in_pen=current_dose)


def pen_status(
    last_injection: Optional[LoggedInjection],
    settings: PenSettings,
    rotation_order: Sequence[InjectionSite] = SITE_ROTATION_ORDER,
) -> PenStatus:
    """Where the user is in the current pen and what to inject next.

    Without a logged dose the position comes from the user's configured
    ``current_dose_in_pen`` (users can start mid-pen at registration).
    """
    capacity = settings.capacity
    current_dose = last_injection.dose_number if last_injection is not None else None

    if current_dose is None:
        next_dose = min(max(settings.current_dose_in_pen, 1), capacity)
        suggested = next_site(last_injection.site if last_injection is not None else None, rotation_order)
        position = next_dose
    else:
        advice = suggest_next(last_injection, rotation_order, capacity)
        next_dose = advice.next_dose
        suggested = advice.suggested_site
        position = current_dose

    # Standard doses left in the pen, the golden dose is never counted
    doses_remaining = max(0, settings.doses_per_pen - next_dose + 1)
    golden_slot = settings.doses_per_pen + 1

    return PenStatus(
        suggested_site=suggested,
        current_dose=current_dose,
        next_dose=next_dose,
        doses_remaining=doses_remaining,
        doses_per_pen=settings.doses_per_pen,
        tracks_golden_dose=settings.tracks_golden_dose,
        is_golden_dose_available=settings.tracks_golden_dose and next_dose == golden_slot,
        is_on_golden_dose=settings.tracks_golden_dose and position == golden_slot,
    )
