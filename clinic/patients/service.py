"""
Patient profile allocation.

Patient numbers come from the patient_sequences counter row. The counter is
advanced with an atomic UPDATE inside the registering transaction, so the row
lock (PostgreSQL) or the database write lock (SQLite) serializes concurrent
registrations until commit and no two profiles receive the same number.
"""
import logging
from typing import Optional
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .exceptions import AllocationFailureException
from .models import Patient, PatientSequence

logger = logging.getLogger(__name__)

PATIENT_SEQUENCE = "patient"
PATIENT_ID_PREFIX = "P"
PATIENT_ID_DIGITS = 6


def format_patient_id(number: int) -> str:
    """Format a sequence number as a patient identifier, e.g. 7 -> "P000007"."""
    if number < 1:
        raise ValueError(f"Patient numbers start at 1, got {number}")
    return f"{PATIENT_ID_PREFIX}{number:0{PATIENT_ID_DIGITS}d}"


def ensure_patient_sequence(db: Session) -> int:
    """
    Make sure the counter row exists, seeding it from the existing profile count.

    Called once the schema is ready, before traffic is served.

    Returns:
        int: The last issued patient number
    """
    current = db.execute(
        select(PatientSequence.value).where(PatientSequence.name == PATIENT_SEQUENCE)
    ).scalar_one_or_none()
    if current is not None:
        return current

    existing = db.query(func.count(Patient.id)).scalar() or 0
    db.add(PatientSequence(name=PATIENT_SEQUENCE, value=existing))
    try:
        db.commit()
    except IntegrityError:
        # Another process seeded the row first
        db.rollback()
        return db.execute(
            select(PatientSequence.value).where(PatientSequence.name == PATIENT_SEQUENCE)
        ).scalar_one()

    logger.info(f"Patient sequence seeded at {existing}")
    return existing


def next_patient_number(db: Session) -> int:
    """
    Advance the patient counter and return the new value.

    Must run inside the caller's transaction; the counter row stays locked
    until that transaction commits or rolls back.
    """
    result = db.execute(
        update(PatientSequence)
        .where(PatientSequence.name == PATIENT_SEQUENCE)
        .values(value=PatientSequence.value + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        # Counter was never seeded; start from the current profile count
        number = (db.query(func.count(Patient.id)).scalar() or 0) + 1
        db.add(PatientSequence(name=PATIENT_SEQUENCE, value=number))
        db.flush()
        return number

    return db.execute(
        select(PatientSequence.value).where(PatientSequence.name == PATIENT_SEQUENCE)
    ).scalar_one()


def allocate_patient_profile(db: Session, user_id: str) -> Patient:
    """
    Create the patient profile for a newly registered account.

    The profile is flushed, not committed; the caller commits it together with
    the account.

    Args:
        db: Database session holding the registration transaction
        user_id: ID of the account the profile belongs to

    Returns:
        Patient: The new profile

    Raises:
        AllocationFailureException: If the counter or profile row cannot be written
    """
    try:
        number = next_patient_number(db)
        profile = Patient(patient_id=format_patient_id(number), user_id=user_id)
        db.add(profile)
        db.flush()
    except SQLAlchemyError as e:
        logger.error(f"Patient profile allocation failed for user {user_id}: {str(e)}")
        raise AllocationFailureException() from e

    logger.info(f"Patient profile {profile.patient_id} allocated for user {user_id}")
    return profile


def get_patient_by_user_id(db: Session, user_id: str) -> Optional[Patient]:
    """Return the patient profile linked to an account, if any."""
    return db.query(Patient).filter(Patient.user_id == user_id).first()
