from sqlalchemy.orm import Session
from datetime import datetime
from typing import Callable, List, Optional
import logging

from ..core.config import settings
from ..core.exceptions import (
    MissingParameter, InvalidDateFormat, PastDateRejected,
    DoctorNotFound, SlotConflict, NotFound
)
from ..core.security import UserRole
from ..models.appointment import Appointment, AppointmentStatus
from ..models.user import User
from ..schemas.appointment import AppointmentListItem
from .gateway import PersistenceGateway

logger = logging.getLogger(__name__)

def parse_appointment_datetime(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp to a naive local datetime at minute precision.

    Offsets are converted to the server's local time. Seconds are dropped so
    two bookings for the same minute are the same slot.
    """
    try:
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    except (AttributeError, ValueError):
        raise InvalidDateFormat(f"Invalid date format: '{value}'")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)

    return parsed.replace(second=0, microsecond=0)

class BookingService:
    def __init__(self, db: Session, clock: Callable[[], datetime] = datetime.now):
        self.gateway = PersistenceGateway(db)
        self.clock = clock

    def create_appointment(
        self,
        patient: User,
        doctor_id: Optional[int],
        appointment_datetime: Optional[str],
        description: Optional[str] = None
    ) -> Appointment:
        """Book a slot for ``patient``; each failed precondition raises its own error."""
        if not doctor_id or not appointment_datetime:
            raise MissingParameter("Doctor ID and appointment date are required")

        appointment_date = parse_appointment_datetime(appointment_datetime)

        if appointment_date <= self.clock():
            raise PastDateRejected()

        if self.gateway.find_doctor(doctor_id) is None:
            raise DoctorNotFound()

        if self.gateway.appointment_exists(doctor_id, appointment_date):
            logger.info(
                f"Booking rejected, doctor_id={doctor_id} already has an appointment "
                f"at {appointment_date.isoformat()}"
            )
            raise SlotConflict()

        # Concurrent bookings that both pass the check above are settled by
        # the unique index; the loser gets SlotConflict from the gateway.
        appointment = self.gateway.insert_appointment(
            doctor_id, patient.id, appointment_date, description
        )
        logger.info(
            f"Appointment {appointment.id} booked: doctor_id={doctor_id} "
            f"patient_id={patient.id} at {appointment_date.isoformat()}"
        )
        return appointment

    def cancel_appointment(self, appointment_id: int, user: User) -> Appointment:
        """
        Cancel an appointment held by ``user`` as doctor or patient.

        Appointments of other users are reported as not found. Cancelling an
        already cancelled appointment changes nothing.
        """
        appointment = self.gateway.find_appointment(appointment_id)
        if appointment is None or user.id not in (appointment.doctor_id, appointment.patient_id):
            raise NotFound("Appointment not found or access denied")

        if appointment.status == AppointmentStatus.CANCELLED:
            return appointment

        appointment = self.gateway.set_appointment_status(
            appointment_id, AppointmentStatus.CANCELLED
        )
        logger.info(f"Appointment {appointment_id} cancelled by user {user.id}")
        return appointment

    def list_appointments(self, user: User) -> List[AppointmentListItem]:
        """Doctors see their schedule, patients see their bookings; newest first."""
        if user.role == UserRole.DOCTOR:
            return [
                AppointmentListItem(
                    id=appointment.id,
                    appointment_date=appointment.appointment_date,
                    formatted_date=self._format_date(appointment.appointment_date),
                    status=appointment.status,
                    description=appointment.description,
                    patient_name=appointment.patient.name
                )
                for appointment in self.gateway.list_appointments_for_doctor(user.id)
            ]

        return [
            AppointmentListItem(
                id=appointment.id,
                appointment_date=appointment.appointment_date,
                formatted_date=self._format_date(appointment.appointment_date),
                status=appointment.status,
                description=appointment.description,
                doctor_name=appointment.doctor.name,
                specialty=appointment.doctor.doctor.specialty if appointment.doctor.doctor else None
            )
            for appointment in self.gateway.list_appointments_for_patient(user.id)
        ]

    @staticmethod
    def _format_date(value: datetime) -> str:
        return value.strftime(settings.APPOINTMENT_DATE_FORMAT)
