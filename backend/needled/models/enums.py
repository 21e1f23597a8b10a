from enum import Enum


class InjectionSite(str, Enum):
    ABDOMEN_LEFT = "ABDOMEN_LEFT"
    ABDOMEN_RIGHT = "ABDOMEN_RIGHT"
    THIGH_LEFT = "THIGH_LEFT"
    THIGH_RIGHT = "THIGH_RIGHT"
    UPPER_ARM_LEFT = "UPPER_ARM_LEFT"
    UPPER_ARM_RIGHT = "UPPER_ARM_RIGHT"


class WeightUnit(str, Enum):
    KG = "kg"
    LBS = "lbs"


class Medication(str, Enum):
    OZEMPIC = "OZEMPIC"
    WEGOVY = "WEGOVY"
    MOUNJARO = "MOUNJARO"
    ZEPBOUND = "ZEPBOUND"
    OTHER = "OTHER"


class DosingMode(str, Enum):
    STANDARD = "STANDARD"
    MICRODOSE = "MICRODOSE"


class HabitType(str, Enum):
    WATER = "water"
    NUTRITION = "nutrition"
    EXERCISE = "exercise"


class InjectionStatus(str, Enum):
    DUE = "due"
    DONE = "done"
    OVERDUE = "overdue"
    UPCOMING = "upcoming"


# Valid dosages per medication (mg). OTHER has no dosage tracking.
MEDICATION_DOSAGES: dict[Medication, list[float]] = {
    Medication.OZEMPIC: [0.25, 0.5, 1, 2],
    Medication.WEGOVY: [0.25, 0.5, 1, 1.7, 2.4],
    Medication.MOUNJARO: [2.5, 5, 7.5, 10, 12.5, 15],
    Medication.ZEPBOUND: [2.5, 5, 7.5, 10, 12.5, 15],
}
