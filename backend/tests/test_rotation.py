from types import SimpleNamespace

from needled.models.enums import InjectionSite
from needled.services.rotation import (
    SITE_ROTATION_ORDER,
    doses_remaining,
    next_dose_number,
    next_site,
    site_label,
    suggest_next,
)


def test_next_site_follows_rotation_and_wraps():
    assert next_site(None) == InjectionSite.ABDOMEN_LEFT
    assert next_site("ABDOMEN_LEFT") == InjectionSite.ABDOMEN_RIGHT
    assert next_site("UPPER_ARM_RIGHT") == InjectionSite.ABDOMEN_LEFT


def test_unknown_site_restarts_rotation():
    assert next_site("SHOULDER") == SITE_ROTATION_ORDER[0]


def test_custom_rotation_order():
    order = [InjectionSite.THIGH_LEFT, InjectionSite.THIGH_RIGHT]
    assert next_site("THIGH_RIGHT", order) == InjectionSite.THIGH_LEFT
    assert next_site("ABDOMEN_LEFT", order) == InjectionSite.THIGH_LEFT


def test_dose_numbers_cycle_through_pen():
    assert next_dose_number(None) == 1
    assert next_dose_number(1) == 2
    assert next_dose_number(4) == 1
    assert next_dose_number(4, doses_per_pen=6) == 5


def test_doses_remaining():
    assert doses_remaining(None) == 4
    assert doses_remaining(1) == 3
    assert doses_remaining(4) == 4


def test_suggest_next_without_history():
    advice = suggest_next(None)
    assert advice.suggested_site == InjectionSite.ABDOMEN_LEFT
    assert advice.next_dose == 1
    assert advice.doses_remaining == 4


def test_suggest_next_after_last_dose_of_pen():
    advice = suggest_next(SimpleNamespace(site="THIGH_RIGHT", dose_number=4))
    assert advice.suggested_site == InjectionSite.UPPER_ARM_LEFT
    assert advice.next_dose == 1
    assert advice.doses_remaining == 4


def test_site_label():
    assert site_label(InjectionSite.UPPER_ARM_LEFT) == "Left Upper Arm"
    assert site_label("THIGH_RIGHT") == "Right Thigh"
