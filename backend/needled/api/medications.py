from fastapi import APIRouter, Depends
from pydantic import BaseModel

from needled.core.security import auth_required
from needled.models.enums import MEDICATION_DOSAGES, Medication
from needled.services.rotation import DEFAULT_DOSES_PER_PEN

router = APIRouter()

MEDICATION_INFO: dict[Medication, tuple[str, str]] = {
    Medication.OZEMPIC: ("Ozempic", "Novo Nordisk"),
    Medication.WEGOVY: ("Wegovy", "Novo Nordisk"),
    Medication.MOUNJARO: ("Mounjaro", "Eli Lilly"),
    Medication.ZEPBOUND: ("Zepbound", "Eli Lilly"),
    Medication.OTHER: ("Other", ""),
}


class MedicationOut(BaseModel):
    code: Medication
    name: str
    manufacturer: str
    dosages: list[float]


class MedicationsResponse(BaseModel):
    medications: list[MedicationOut]
    default_doses_per_pen: int


@router.get("", response_model=MedicationsResponse, summary="Supported medications")
async def list_medications(_: str = Depends(auth_required)):
    return MedicationsResponse(
        medications=[
            MedicationOut(
                code=medication,
                name=MEDICATION_INFO[medication][0],
                manufacturer=MEDICATION_INFO[medication][1],
                dosages=MEDICATION_DOSAGES.get(medication, []),
            )
            for medication in Medication
        ],
        default_doses_per_pen=DEFAULT_DOSES_PER_PEN,
    )
