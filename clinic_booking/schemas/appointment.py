from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from ..models.appointment import AppointmentStatus

class AppointmentCreate(BaseModel):
    """Booking request; presence and format are checked by the booking service."""

    doctor_id: Optional[int] = Field(None, alias="doctorId")
    appointment_datetime: Optional[str] = Field(None, alias="appointmentDateTime")
    description: Optional[str] = None

    class Config:
        populate_by_name = True

class AppointmentCreated(BaseModel):
    success: bool = True
    appointment_id: int
    message: str = "Appointment created successfully"

class AppointmentCancelled(BaseModel):
    success: bool = True
    appointment_id: int
    status: AppointmentStatus

class AppointmentListItem(BaseModel):
    id: int
    appointment_date: datetime
    formatted_date: str
    status: AppointmentStatus
    description: Optional[str] = None
    patient_name: Optional[str] = None
    doctor_name: Optional[str] = None
    specialty: Optional[str] = None

class SlotResponse(BaseModel):
    start_time: datetime
    end_time: datetime
    display_label: str

    class Config:
        from_attributes = True

class AvailabilityResponse(BaseModel):
    available_slots: List[SlotResponse]
    message: Optional[str] = None
