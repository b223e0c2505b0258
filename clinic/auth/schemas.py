"""
User Schemas - Pydantic models for request validation and response serialization.

JSON field names are camelCase on the wire (firstName, createdAt, ...);
Python code uses the snake_case attribute names.
"""
from typing import Optional, List
from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime
from ..core.security import MAX_PASSWORD_BYTES, password_exceeds_bcrypt_limit
from .models import UserRole


class CamelModel(BaseModel):
    """Base schema serializing to camelCase while accepting either spelling."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class UserRegister(CamelModel):
    """
    User Registration Schema - Used when registering a new account

    Fields:
    - email: Unique email address
    - password: Plain text password (hashed before storage)
    - first_name / last_name: Display name
    - role: Account role, defaults to patient
    """
    email: str
    password: str = Field(..., min_length=1)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    role: UserRole = UserRole.PATIENT

    @field_validator("email")
    @classmethod
    def email_must_be_valid(cls, v: str) -> str:
        """Check the address format but keep the string exactly as submitted."""
        try:
            validate_email(v, check_deliverability=False)
        except EmailNotValidError as e:
            raise ValueError(f"Invalid email address: {e}") from e
        return v

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        if password_exceeds_bcrypt_limit(v):
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        return v


class UserLogin(CamelModel):
    """
    User Login Schema - Used for authentication

    Fields:
    - email: User's email address
    - password: User's plain text password
    """
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserResponse(CamelModel):
    """
    Account summary returned to callers. Never carries the password hash.
    """
    id: str
    email: str
    first_name: str
    last_name: str
    role: UserRole
    created_at: Optional[datetime] = None

    class Config:
        """Configuration for Pydantic model to enable ORM mode"""
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True


class RegisterResponse(CamelModel):
    """Returned after a successful registration."""
    message: str
    user: UserResponse
    patient_id: Optional[str] = None


class LoginResponse(CamelModel):
    """
    Login Response Schema - Returned after successful authentication

    Fields:
    - token: Signed JWT session token
    - token_type: Type of token (always "bearer")
    - user: Account summary
    """
    message: str
    token: str
    token_type: str = "bearer"
    user: UserResponse


class UserListResponse(CamelModel):
    """List of account summaries."""
    users: List[UserResponse]
