from sqlalchemy.orm import Session
from typing import List

from ..core.exceptions import DoctorNotFound
from ..models.doctor import Doctor
from .gateway import PersistenceGateway

class DoctorService:
    def __init__(self, db: Session):
        self.gateway = PersistenceGateway(db)

    def list_doctors(self) -> List[Doctor]:
        """All doctors ordered by name."""
        return self.gateway.list_doctors()

    def get_doctor(self, doctor_id: int) -> Doctor:
        doctor = self.gateway.find_doctor(doctor_id)
        if doctor is None:
            raise DoctorNotFound()
        return doctor
