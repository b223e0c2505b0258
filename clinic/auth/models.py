"""
User Model - Stores account identity and credentials for every clinic role.
"""
import enum
import uuid
from datetime import datetime, timezone
from typing import Dict
from sqlalchemy import Column, String, Enum
from sqlalchemy.sql import func
from ..database import Base, UTCDateTime


class UserRole(str, enum.Enum):
    """
    Enumeration for user roles in the clinic system.

    Roles:
    - ADMIN: System administrators
    - DOCTOR: Medical practitioners
    - RECEPTIONIST: Front-desk staff
    - PATIENT: Patients; the only role that receives a patient profile
    """
    ADMIN = "admin"
    DOCTOR = "doctor"
    RECEPTIONIST = "receptionist"
    PATIENT = "patient"


# Every role must appear here; registration looks roles up by key.
ROLE_REQUIRES_PATIENT_PROFILE: Dict[UserRole, bool] = {
    UserRole.ADMIN: False,
    UserRole.DOCTOR: False,
    UserRole.RECEPTIONIST: False,
    UserRole.PATIENT: True,
}


def generate_uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    User Model - Stores all account information in the system

    Fields:
    - id: UUID primary key
    - email: Unique email address used for login
    - password_hash: bcrypt hash (never store raw passwords)
    - first_name / last_name: Display name
    - role: One of UserRole, defaults to patient
    - created_at / updated_at: Timestamps
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    role = Column(
        Enum(UserRole, name="user_role", values_callable=lambda roles: [r.value for r in roles]),
        nullable=False,
        default=UserRole.PATIENT,
    )
    created_at = Column(UTCDateTime, nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(UTCDateTime, onupdate=func.now())

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
