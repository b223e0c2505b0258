"""
Authentication routes for the clinic system.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
import logging

from ..config import Settings
from ..database import get_db
from .dependencies import get_current_user, get_settings
from .exceptions import EmailAlreadyExistsException, InvalidCredentialsException
from .models import User
from .schemas import (
    LoginResponse,
    RegisterResponse,
    UserListResponse,
    UserLogin,
    UserRegister,
    UserResponse,
)
from .service import list_users, login_user, register_user

# Set up logging
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(prefix="/api", tags=["Authentication"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register Account",
)
async def register_route(
    user_data: UserRegister,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Account registration endpoint.

    Patients additionally receive a patient profile with a "P000001"-style ID.

    Raises:
        HTTPException: 400 if the email is already registered, 422 on invalid input
    """
    try:
        return await register_user(
            db=db,
            settings=settings,
            email=user_data.email,
            password=user_data.password,
            first_name=user_data.first_name,
            last_name=user_data.last_name,
            role=user_data.role,
        )
    except EmailAlreadyExistsException:
        logger.warning(f"Registration rejected: {user_data.email} already registered")
        raise


@router.post("/login", response_model=LoginResponse, summary="User Login")
async def login_route(
    login_data: UserLogin,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    User login endpoint.

    Raises:
        HTTPException: 401 with the same detail for unknown email and wrong password
    """
    try:
        return await login_user(
            db=db,
            settings=settings,
            email=login_data.email,
            password=login_data.password,
        )
    except InvalidCredentialsException:
        logger.warning(f"Login rejected for {login_data.email}")
        raise


@router.get("/users", response_model=UserListResponse, summary="List Accounts")
def list_users_route(db: Session = Depends(get_db)):
    """
    List all accounts, oldest first. Password hashes are never returned.
    """
    return {"users": [UserResponse.model_validate(user) for user in list_users(db)]}


@router.get("/me", response_model=UserResponse, summary="Current Account")
def get_current_user_profile(current_user: User = Depends(get_current_user)):
    """
    Return the account identified by the bearer token.
    """
    return current_user
