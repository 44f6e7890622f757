from sqlalchemy.orm import Session, contains_eager, joinedload
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from datetime import date, datetime, time as day_time, timedelta
from typing import Callable, List, Optional, TypeVar
import logging
import time

from ..core.config import settings
from ..core.exceptions import DownstreamFailure, SlotConflict
from ..models.appointment import Appointment, AppointmentStatus
from ..models.doctor import Doctor
from ..models.user import User

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Integer primary keys are 32-bit signed on PostgreSQL
MAX_ID = 2**31 - 1

def valid_id(value) -> bool:
    """Ids outside the column range cannot match a row."""
    return isinstance(value, int) and 0 < value <= MAX_ID

class PersistenceGateway:
    """
    Record queries used by the booking core.

    Values are bound through the mapped column types, so every parameter is
    sent with the type of the column it is compared against. Connection
    failures and timeouts are retried once, then reported as
    ``DownstreamFailure``.
    """

    def __init__(self, db: Session):
        self.db = db

    def find_doctor(self, doctor_id: int) -> Optional[Doctor]:
        """Doctor profile (with its user) for ``doctor_id``."""
        if not valid_id(doctor_id):
            return None
        return self._run("find_doctor", lambda: self.db.query(Doctor).options(
            joinedload(Doctor.user)
        ).filter(
            Doctor.user_id == doctor_id
        ).first())

    def list_doctors(self) -> List[Doctor]:
        return self._run("list_doctors", lambda: self.db.query(Doctor).join(
            Doctor.user
        ).options(
            contains_eager(Doctor.user)
        ).order_by(User.name).all())

    def list_scheduled_appointments(self, doctor_id: int, day: date) -> List[Appointment]:
        """Scheduled appointments of a doctor that start on ``day``."""
        day_start = datetime.combine(day, day_time())
        day_end = day_start + timedelta(days=1)
        if not valid_id(doctor_id):
            return []

        return self._run("list_scheduled_appointments", lambda: self.db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_date >= day_start,
            Appointment.appointment_date < day_end,
            Appointment.status == AppointmentStatus.SCHEDULED
        ).order_by(Appointment.appointment_date).all())

    def appointment_exists(self, doctor_id: int, timestamp: datetime) -> bool:
        if not valid_id(doctor_id):
            return False
        return self._run("appointment_exists", lambda: self.db.query(Appointment.id).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_date == timestamp,
            Appointment.status == AppointmentStatus.SCHEDULED
        ).first() is not None)

    def insert_appointment(
        self,
        doctor_id: int,
        patient_id: int,
        timestamp: datetime,
        description: Optional[str] = None
    ) -> Appointment:
        """
        Insert a scheduled appointment and commit.

        The partial unique index on (doctor_id, appointment_date) rejects a
        second scheduled row for the same slot; that rejection is reported as
        ``SlotConflict``.
        """
        def insert():
            appointment = Appointment(
                doctor_id=doctor_id,
                patient_id=patient_id,
                appointment_date=timestamp,
                status=AppointmentStatus.SCHEDULED,
                description=description
            )
            self.db.add(appointment)
            self.db.commit()
            self.db.refresh(appointment)
            return appointment

        try:
            return self._run("insert_appointment", insert)
        except IntegrityError:
            self.db.rollback()
            logger.info(
                f"Slot already taken for doctor_id={doctor_id} at {timestamp.isoformat()}"
            )
            raise SlotConflict()

    def find_appointment(self, appointment_id: int) -> Optional[Appointment]:
        if not valid_id(appointment_id):
            return None
        return self._run("find_appointment", lambda: self.db.query(Appointment).filter(
            Appointment.id == appointment_id
        ).first())

    def set_appointment_status(
        self,
        appointment_id: int,
        status: AppointmentStatus
    ) -> Optional[Appointment]:
        def update():
            appointment = self.db.query(Appointment).filter(
                Appointment.id == appointment_id
            ).first()
            if appointment is None:
                return None
            appointment.status = status
            self.db.commit()
            self.db.refresh(appointment)
            return appointment

        return self._run("set_appointment_status", update)

    def list_appointments_for_doctor(self, doctor_id: int) -> List[Appointment]:
        return self._run("list_appointments_for_doctor", lambda: self.db.query(Appointment).options(
            joinedload(Appointment.patient)
        ).filter(
            Appointment.doctor_id == doctor_id
        ).order_by(Appointment.appointment_date.desc()).all())

    def list_appointments_for_patient(self, patient_id: int) -> List[Appointment]:
        return self._run("list_appointments_for_patient", lambda: self.db.query(Appointment).options(
            joinedload(Appointment.doctor).joinedload(User.doctor)
        ).filter(
            Appointment.patient_id == patient_id
        ).order_by(Appointment.appointment_date.desc()).all())

    def find_user(self, user_id: int) -> Optional[User]:
        if not valid_id(user_id):
            return None
        return self._run("find_user", lambda: self.db.query(User).filter(
            User.id == user_id
        ).first())

    def find_user_by_email(self, email: str) -> Optional[User]:
        return self._run("find_user_by_email", lambda: self.db.query(User).filter(
            User.email == email
        ).first())

    def insert_user(self, user: User, specialty: Optional[str] = None) -> User:
        """
        Insert a user, and its doctor profile when ``specialty`` is given, in
        one transaction. A duplicate email raises ``IntegrityError``.
        """
        def insert():
            self.db.add(user)
            if specialty is not None:
                self.db.flush()
                self.db.add(Doctor(user_id=user.id, specialty=specialty))
            self.db.commit()
            self.db.refresh(user)
            return user

        try:
            return self._run("insert_user", insert)
        except IntegrityError:
            self.db.rollback()
            raise

    def _run(self, operation: str, query: Callable[[], T]) -> T:
        """Run ``query``, retrying a lost connection or timeout once."""
        attempts = 2
        for attempt in range(1, attempts + 1):
            try:
                return query()
            except IntegrityError:
                raise
            except OperationalError as exc:
                self.db.rollback()
                if attempt < attempts:
                    logger.warning(
                        f"{operation} failed ({exc.orig!r}), retrying in "
                        f"{settings.DB_RETRY_BACKOFF_SECONDS}s"
                    )
                    time.sleep(settings.DB_RETRY_BACKOFF_SECONDS)
                    continue
                logger.error(f"{operation} failed after {attempts} attempts: {exc}")
                raise DownstreamFailure() from exc
            except SQLAlchemyError as exc:
                self.db.rollback()
                logger.error(f"{operation} failed: {exc}")
                raise DownstreamFailure() from exc
