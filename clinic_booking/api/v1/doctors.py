from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from ...core.database import get_db
from ...api.deps import get_any_user, get_patient_user
from ...services.availability_service import AvailabilityService
from ...services.doctor_service import DoctorService
from ...schemas.appointment import AvailabilityResponse, SlotResponse
from ...schemas.doctor import DoctorResponse

router = APIRouter(prefix="/doctors", tags=["Doctors"])

@router.get("", response_model=List[DoctorResponse], dependencies=[Depends(get_any_user)])
def list_doctors(db: Session = Depends(get_db)):
    """List doctors ordered by name."""
    doctors = DoctorService(db).list_doctors()
    return [DoctorResponse.from_orm(doctor) for doctor in doctors]

@router.get("/{doctor_id}", response_model=DoctorResponse, dependencies=[Depends(get_patient_user)])
def get_doctor(doctor_id: int, db: Session = Depends(get_db)):
    """Doctor details shown on the booking form."""
    return DoctorResponse.from_orm(DoctorService(db).get_doctor(doctor_id))

@router.get(
    "/{doctor_id}/availability",
    response_model=AvailabilityResponse,
    dependencies=[Depends(get_any_user)]
)
def get_availability(
    doctor_id: int,
    date: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Free 30 minute slots of a doctor on ``date`` (YYYY-MM-DD)."""
    availability = AvailabilityService(db).get_availability(doctor_id, date)
    return AvailabilityResponse(
        available_slots=[SlotResponse.from_orm(slot) for slot in availability.slots],
        message=availability.message
    )
