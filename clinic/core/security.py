"""
Core security utilities for password hashing and session tokens.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional, Union
from jose import jwt
from jose.exceptions import ExpiredSignatureError, JOSEError, JWTClaimsError
from passlib.context import CryptContext
import logging

from ..auth.exceptions import (
    HashingFailureException,
    InvalidSignatureException,
    MalformedTokenException,
    TokenExpiredException,
)
from ..auth.models import UserRole

# Set up logging
logger = logging.getLogger(__name__)

DEFAULT_BCRYPT_ROUNDS = 10
DEFAULT_ALGORITHM = "HS256"
DEFAULT_TOKEN_TTL = timedelta(days=7)

# bcrypt ignores everything past this many bytes of the encoded password
MAX_PASSWORD_BYTES = 72


def password_exceeds_bcrypt_limit(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


@lru_cache(maxsize=None)
def get_password_context(rounds: int = DEFAULT_BCRYPT_ROUNDS) -> CryptContext:
    """
    Password hashing context for a given bcrypt work factor.

    Contexts are cached per work factor, so every caller sharing a factor
    shares one context.
    """
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__default_rounds=rounds)


def hash_password(password: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password
        rounds: bcrypt work factor

    Returns:
        str: Salted bcrypt hash

    Raises:
        HashingFailureException: If the password is over MAX_PASSWORD_BYTES
            or the bcrypt backend fails
    """
    if password_exceeds_bcrypt_limit(password):
        logger.error("Password hashing refused: password exceeds bcrypt byte limit")
        raise HashingFailureException(f"Password exceeds {MAX_PASSWORD_BYTES} bytes")
    try:
        return get_password_context(rounds).hash(password)
    except (ValueError, TypeError) as e:
        logger.error(f"Password hashing failed: {str(e)}")
        raise HashingFailureException() from e


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against a hash.

    Args:
        plain_password: Plain text password
        hashed_password: Hashed password to compare against

    Returns:
        bool: True if password matches hash

    Raises:
        HashingFailureException: If the stored hash is malformed
    """
    try:
        matched = get_password_context().verify(plain_password, hashed_password)
    except (ValueError, TypeError) as e:
        logger.error(f"Password verification failed: {str(e)}")
        raise HashingFailureException() from e
    # A longer input only matches through truncation
    return matched and not password_exceeds_bcrypt_limit(plain_password)


@lru_cache(maxsize=None)
def dummy_password_hash(rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """
    Hash verified against when an email is unknown, so login timing stays uniform.

    Must be produced at the same cost as real account hashes.
    """
    return hash_password("clinic_timing_dummy", rounds)


@dataclass(frozen=True)
class TokenPayload:
    """Identity carried by a verified session token."""
    account_id: str
    role: UserRole
    expires_at: datetime


def create_access_token(
    account_id: str,
    role: Union[UserRole, str],
    secret_key: str,
    expires_delta: Optional[timedelta] = None,
    algorithm: str = DEFAULT_ALGORITHM,
    now: Optional[datetime] = None,
) -> str:
    """
    Create a signed JWT session token.

    Args:
        account_id: ID of the authenticated account (stored as "sub")
        role: Role of the account
        secret_key: Signing key from process configuration
        expires_delta: Token lifetime (default: 7 days)
        algorithm: JWT signing algorithm
        now: Issue time, defaults to the current UTC time

    Returns:
        str: Encoded JWT token
    """
    issued_at = now or datetime.now(timezone.utc)
    expire = issued_at + (expires_delta if expires_delta is not None else DEFAULT_TOKEN_TTL)

    to_encode = {
        "sub": str(account_id),
        "role": UserRole(role).value,
        "iat": issued_at,
        "exp": expire,
    }
    return jwt.encode(to_encode, secret_key, algorithm=algorithm)


def verify_access_token(token: str, secret_key: str, algorithm: str = DEFAULT_ALGORITHM) -> TokenPayload:
    """
    Verify and decode a JWT session token.

    Args:
        token: JWT token string
        secret_key: Signing key from process configuration
        algorithm: Expected signing algorithm

    Returns:
        TokenPayload: Account ID, role and expiry carried by the token

    Raises:
        MalformedTokenException: Token cannot be parsed or lacks required claims
        InvalidSignatureException: Signature does not verify with secret_key
        TokenExpiredException: Signature is valid but the token has expired
    """
    if not isinstance(token, str) or not token:
        raise MalformedTokenException()

    # Structure first, so a garbled token is not reported as a bad signature
    try:
        jwt.get_unverified_header(token)
        jwt.get_unverified_claims(token)
    except JOSEError as e:
        raise MalformedTokenException() from e

    try:
        claims = jwt.decode(token, secret_key, algorithms=[algorithm])
    except ExpiredSignatureError as e:
        raise TokenExpiredException() from e
    except JWTClaimsError as e:
        raise MalformedTokenException() from e
    except JOSEError as e:
        raise InvalidSignatureException() from e

    account_id = claims.get("sub")
    role_value = claims.get("role")
    exp = claims.get("exp")
    if not account_id or role_value is None or not isinstance(exp, (int, float)):
        raise MalformedTokenException()

    try:
        role = UserRole(role_value)
    except ValueError as e:
        raise MalformedTokenException() from e

    return TokenPayload(
        account_id=account_id,
        role=role,
        expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
    )
