from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship

from ..core.database import Base

class Doctor(Base):
    __tablename__ = "doctors"

    # Doctors are identified by the id of their user account
    user_id = Column(Integer, ForeignKey("users.id"), primary_key=True)
    specialty = Column(String(100), nullable=False)

    # Relationships
    user = relationship("User", back_populates="doctor")

    @property
    def id(self):
        return self.user_id

    @property
    def name(self):
        return self.user.name

    def __repr__(self):
        return f"<Doctor(user_id={self.user_id}, specialty='{self.specialty}')>"
