from types import SimpleNamespace

import pytest

from needled.models.enums import InjectionSite
from needled.services.pen_dosing import (
    PenSettings,
    PenSettingsError,
    calculate_doses_per_pen,
    merge_pen_settings,
    pen_capacity,
    pen_status,
)


def test_doses_per_pen_uses_exact_division():
    assert calculate_doses_per_pen(2.4, 0.6) == 4
    assert calculate_doses_per_pen(10, 2.5) == 4
    assert calculate_doses_per_pen(10, 3) == 3


def test_capacity_includes_golden_dose():
    assert pen_capacity(4, False) == 4
    assert pen_capacity(4, True) == 5


def test_status_without_history_uses_configured_position():
    status = pen_status(None, PenSettings(current_dose_in_pen=3))
    assert status.suggested_site == InjectionSite.ABDOMEN_LEFT
    assert status.current_dose is None
    assert status.next_dose == 3
    assert status.doses_remaining == 2


def test_status_after_last_standard_dose_offers_golden_dose():
    settings = PenSettings(doses_per_pen=4, tracks_golden_dose=True)
    status = pen_status(SimpleNamespace(site="ABDOMEN_RIGHT", dose_number=4), settings)
    assert status.next_dose == 5
    assert status.is_golden_dose_available
    assert not status.is_on_golden_dose
    assert status.doses_remaining == 0


def test_status_after_golden_dose_starts_new_pen():
    settings = PenSettings(doses_per_pen=4, tracks_golden_dose=True)
    status = pen_status(SimpleNamespace(site="THIGH_LEFT", dose_number=5), settings)
    assert status.next_dose == 1
    assert status.is_on_golden_dose
    assert not status.is_golden_dose_available
    assert status.doses_remaining == 4
    assert status.suggested_site == InjectionSite.THIGH_RIGHT


def test_status_without_golden_dose_tracking_wraps_after_last_dose():
    status = pen_status(SimpleNamespace(site="THIGH_LEFT", dose_number=4), PenSettings())
    assert status.next_dose == 1
    assert not status.is_golden_dose_available
    assert not status.is_on_golden_dose


def test_legacy_injection_without_dose_number():
    status = pen_status(SimpleNamespace(site="ABDOMEN_LEFT", dose_number=None), PenSettings(current_dose_in_pen=2))
    assert status.suggested_site == InjectionSite.ABDOMEN_RIGHT
    assert status.next_dose == 2


def test_merge_microdose_recomputes_doses_per_pen():
    merged = merge_pen_settings(
        PenSettings(),
        {"dosing_mode": "MICRODOSE", "pen_strength_mg": 10.0, "dose_amount_mg": 2.0},
    )
    assert merged.doses_per_pen == 5
    assert merged.dosing_mode == "MICRODOSE"


def test_merge_resets_position_beyond_new_capacity():
    current = PenSettings(doses_per_pen=6, current_dose_in_pen=6)
    merged = merge_pen_settings(current, {"doses_per_pen": 4})
    assert merged.current_dose_in_pen == 1


def test_merge_keeps_unsent_fields_and_clears_explicit_mg_none():
    current = PenSettings(pen_strength_mg=5.0, dose_amount_mg=1.0, tracks_golden_dose=True)
    merged = merge_pen_settings(current, {"pen_strength_mg": None, "tracks_golden_dose": None})
    assert merged.pen_strength_mg is None
    assert merged.dose_amount_mg == 1.0
    assert merged.tracks_golden_dose is True


def test_merge_rejects_dose_larger_than_pen():
    with pytest.raises(PenSettingsError):
        merge_pen_settings(
            PenSettings(),
            {"dosing_mode": "MICRODOSE", "pen_strength_mg": 0.5, "dose_amount_mg": 1.0},
        )


def test_merge_rejects_microdose_without_amounts():
    with pytest.raises(PenSettingsError):
        merge_pen_settings(PenSettings(), {"dosing_mode": "MICRODOSE", "pen_strength_mg": 2.4})
