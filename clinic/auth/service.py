"""
Authentication service layer for business logic.
"""
import asyncio
import logging
from datetime import timedelta
from typing import Dict, Any, List, Optional
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from ..config import Settings
from ..core.security import (
    create_access_token,
    dummy_password_hash,
    hash_password,
    verify_password,
)
from ..patients.exceptions import AllocationFailureException
from ..patients.service import allocate_patient_profile
from .exceptions import (
    EmailAlreadyExistsException,
    HashingFailureException,
    InvalidCredentialsException,
)
from .models import ROLE_REQUIRES_PATIENT_PROFILE, User, UserRole
from .schemas import UserResponse

# Set up logging
logger = logging.getLogger(__name__)


# ============================================================================
# ACCOUNT STORE
# ============================================================================

def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Return the account with this exact email, or None."""
    return db.query(User).filter(User.email == email).first()


def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
    """Return the account with this ID, or None."""
    return db.query(User).filter(User.id == user_id).first()


def list_users(db: Session) -> List[User]:
    """Return all accounts, oldest first."""
    return db.query(User).order_by(User.created_at.asc(), User.email.asc()).all()


def create_user(
    db: Session,
    email: str,
    password_hash: str,
    first_name: str,
    last_name: str,
    role: UserRole = UserRole.PATIENT,
) -> User:
    """
    Insert a new account inside the caller's transaction.

    The row is flushed so the email UNIQUE constraint is checked immediately;
    committing is left to the caller.

    Raises:
        EmailAlreadyExistsException: If the email is already registered
    """
    user = User(
        email=email,
        password_hash=password_hash,
        first_name=first_name,
        last_name=last_name,
        role=role,
    )
    db.add(user)
    try:
        db.flush()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Account creation rejected: email {email} already registered")
        raise EmailAlreadyExistsException() from e
    return user


# ============================================================================
# HASHING
# ============================================================================

async def hash_password_async(password: str, settings: Settings) -> str:
    """
    Hash a password on the thread pool so the event loop is not blocked.

    Raises:
        HashingFailureException: If hashing fails or exceeds hash_timeout_seconds
    """
    try:
        return await asyncio.wait_for(
            run_in_threadpool(hash_password, password, settings.bcrypt_rounds),
            timeout=settings.hash_timeout_seconds,
        )
    except asyncio.TimeoutError as e:
        logger.error(f"Password hashing exceeded {settings.hash_timeout_seconds}s")
        raise HashingFailureException("Password hashing timed out") from e


def _verify_or_burn(password: str, password_hash: Optional[str], rounds: int) -> bool:
    if password_hash is None:
        verify_password(password, dummy_password_hash(rounds))
        return False
    return verify_password(password, password_hash)


async def verify_password_async(password: str, password_hash: Optional[str], settings: Settings) -> bool:
    """
    Verify a password on the thread pool, bounded by hash_timeout_seconds.

    A password_hash of None runs the check against a dummy hash and returns False.
    """
    try:
        return await asyncio.wait_for(
            run_in_threadpool(_verify_or_burn, password, password_hash, settings.bcrypt_rounds),
            timeout=settings.hash_timeout_seconds,
        )
    except asyncio.TimeoutError as e:
        logger.error(f"Password verification exceeded {settings.hash_timeout_seconds}s")
        raise HashingFailureException("Password verification timed out") from e


# ============================================================================
# REGISTRATION / LOGIN
# ============================================================================

async def register_user(
    db: Session,
    settings: Settings,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    role: UserRole = UserRole.PATIENT,
) -> Dict[str, Any]:
    """
    Register a new account, with a patient profile when the role is patient.

    The account and its profile are committed in one transaction: if profile
    allocation fails the account is rolled back too.

    Args:
        db: Database session
        settings: Application settings
        email: Unique email address
        password: Plain text password
        first_name: Given name
        last_name: Family name
        role: Account role (default: patient)

    Returns:
        Dict with the account summary and, for patients, the allocated patient ID

    Raises:
        EmailAlreadyExistsException: If email already exists
        AllocationFailureException: If the patient profile could not be created
        HashingFailureException: If the password could not be hashed
    """
    role = UserRole(role)
    logger.info(f"Registration attempt for email: {email} (role: {role.value})")

    # Cheap pre-check; the UNIQUE constraint is the real guard
    if get_user_by_email(db, email):
        logger.warning(f"Registration failed: Email {email} already registered")
        raise EmailAlreadyExistsException()

    password_hash = await hash_password_async(password, settings)

    profile = None
    try:
        user = create_user(db, email, password_hash, first_name, last_name, role)
        if ROLE_REQUIRES_PATIENT_PROFILE[role]:
            profile = allocate_patient_profile(db, user.id)
        db.commit()
    except AllocationFailureException:
        db.rollback()
        logger.error(f"Registration rolled back for {email}: patient profile allocation failed")
        raise
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Registration failed at commit: Email {email} already registered")
        raise EmailAlreadyExistsException() from e
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Registration rolled back for {email}: store error")
        raise

    logger.info(f"Account created: {user.id} ({email})")

    return {
        "message": "Account created successfully",
        "user": UserResponse.model_validate(user),
        "patient_id": profile.patient_id if profile else None,
    }


async def login_user(
    db: Session,
    settings: Settings,
    email: str,
    password: str,
) -> Dict[str, Any]:
    """
    Authenticate a user and generate a session token.

    Unknown emails and wrong passwords raise the same exception, after the
    same amount of hashing work.

    Args:
        db: Database session
        settings: Application settings
        email: User's email address
        password: User's password

    Returns:
        Dict with the session token and account summary

    Raises:
        InvalidCredentialsException: If credentials are invalid
    """
    user = get_user_by_email(db, email)

    if user is None:
        await verify_password_async(password, None, settings)
        logger.warning(f"Login failed: Invalid credentials for {email}")
        raise InvalidCredentialsException()

    if not await verify_password_async(password, user.password_hash, settings):
        logger.warning(f"Login failed: Invalid credentials for {email}")
        raise InvalidCredentialsException()

    token = create_access_token(
        account_id=user.id,
        role=user.role,
        secret_key=settings.secret_key,
        expires_delta=timedelta(minutes=settings.access_token_expire_minutes),
        algorithm=settings.algorithm,
    )

    logger.info(f"Login successful: User {user.id} ({email})")

    return {
        "message": "Login successful",
        "token": token,
        "token_type": "bearer",
        "user": UserResponse.model_validate(user),
    }
