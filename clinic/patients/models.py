"""
Patient Model - Stores patient-specific information.

A patient profile references exactly one User account. The account itself has
no relationship back to the profile; profiles are looked up by user_id.
"""
from sqlalchemy import Column, Integer, String, Date, ForeignKey, Text, func
from ..database import Base, UTCDateTime
from ..auth.models import generate_uuid, utcnow


class Patient(Base):
    """
    Patient Model - Stores patient-specific information

    Fields:
    - id: UUID primary key for the patient profile
    - patient_id: Human-readable identifier, "P" + 6 zero-padded digits
    - user_id: Foreign key to User model (one profile per account)
    - phone, date_of_birth, address: Optional demographic details
    - created_at: When the patient profile was created
    """
    __tablename__ = "patients"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    patient_id = Column(String(16), unique=True, index=True, nullable=False)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False)
    phone = Column(String(32), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    address = Column(Text, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow, server_default=func.now())

    def __repr__(self):
        """String representation of the Patient model"""
        return f"<Patient(id={self.id}, patient_id={self.patient_id}, user_id={self.user_id})>"


class PatientSequence(Base):
    """
    Counter row backing patient_id allocation.

    value holds the last number issued; it is only ever advanced with a single
    atomic UPDATE inside the registering transaction.
    """
    __tablename__ = "patient_sequences"

    name = Column(String(32), primary_key=True)
    value = Column(Integer, nullable=False, default=0)
