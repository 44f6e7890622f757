from sqlalchemy import Column, Integer, ForeignKey, DateTime, Text, Index, Enum as SQLEnum, text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    CANCELLED = "cancelled"

class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)

    # Both sides reference user accounts
    doctor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Appointment details
    appointment_date = Column(DateTime, nullable=False, index=True)
    status = Column(
        SQLEnum(
            AppointmentStatus,
            values_callable=lambda statuses: [s.value for s in statuses]
        ),
        nullable=False,
        default=AppointmentStatus.SCHEDULED
    )
    description = Column(Text, nullable=True)

    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # A doctor holds at most one scheduled appointment per timestamp
    __table_args__ = (
        Index(
            "uq_appointments_doctor_slot_scheduled",
            "doctor_id",
            "appointment_date",
            unique=True,
            postgresql_where=text("status = 'scheduled'"),
            sqlite_where=text("status = 'scheduled'"),
        ),
    )

    # Relationships
    doctor = relationship("User", foreign_keys=[doctor_id])
    patient = relationship("User", foreign_keys=[patient_id])

    def __repr__(self):
        return f"<Appointment(id={self.id}, patient_id={self.patient_id}, doctor_id={self.doctor_id}, date='{self.appointment_date}')>"
