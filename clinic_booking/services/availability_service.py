from sqlalchemy.orm import Session
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Union
import logging

from ..core.exceptions import MissingParameter
from .gateway import PersistenceGateway
from .slots import Slot, generate_slots

logger = logging.getLogger(__name__)

NO_SLOTS_MESSAGE = "No available appointment slots on this date"

@dataclass
class Availability:
    slots: List[Slot]
    message: Optional[str] = None

class AvailabilityService:
    def __init__(self, db: Session):
        self.gateway = PersistenceGateway(db)

    def get_availability(self, doctor_id: int, day: Union[date, str, None]) -> Availability:
        """
        Free slots of a doctor on ``day``.

        A slot is taken when a scheduled appointment starts at the same hour
        and minute. An unknown doctor simply has every slot free.
        """
        if day is None or day == "":
            raise MissingParameter("The date parameter is required")

        grid = generate_slots(day)
        booked = {
            (appointment.appointment_date.hour, appointment.appointment_date.minute)
            for appointment in self.gateway.list_scheduled_appointments(doctor_id, grid.day)
        }

        slots = [slot for slot in grid if (slot.hour, slot.minute) not in booked]
        logger.info(
            f"Doctor {doctor_id} has {len(slots)}/{len(grid)} free slots on {grid.day}"
        )

        return Availability(
            slots=slots,
            message=None if slots else NO_SLOTS_MESSAGE
        )
