from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from ...core.database import get_db
from ...api.deps import get_any_user, get_patient_user
from ...services.booking_service import BookingService
from ...schemas.appointment import (
    AppointmentCreate, AppointmentCreated, AppointmentCancelled, AppointmentListItem
)
from ...models.user import User

router = APIRouter(prefix="/appointments", tags=["Appointments"])

@router.post("", response_model=AppointmentCreated)
def create_appointment(
    appointment_data: AppointmentCreate,
    current_user: User = Depends(get_patient_user),
    db: Session = Depends(get_db)
):
    """Book an appointment for the current patient."""
    appointment = BookingService(db).create_appointment(
        current_user,
        appointment_data.doctor_id,
        appointment_data.appointment_datetime,
        appointment_data.description
    )
    return AppointmentCreated(appointment_id=appointment.id)

@router.get("", response_model=List[AppointmentListItem])
def list_appointments(
    current_user: User = Depends(get_any_user),
    db: Session = Depends(get_db)
):
    """Appointments of the current user, newest first."""
    return BookingService(db).list_appointments(current_user)

@router.post("/{appointment_id}/cancel", response_model=AppointmentCancelled)
def cancel_appointment(
    appointment_id: int,
    current_user: User = Depends(get_any_user),
    db: Session = Depends(get_db)
):
    """Cancel an appointment the current user takes part in."""
    appointment = BookingService(db).cancel_appointment(appointment_id, current_user)
    return AppointmentCancelled(appointment_id=appointment.id, status=appointment.status)
