"""
Authentication API routes
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from docsign.core.user_directory import UserDirectory
from docsign.database import get_db
from docsign.models.user import User
from .models import UserCreate, UserLogin, UserResponse, Token, ProfileUpdate, PasswordChange
from .jwt_auth import authenticator, create_user_token, ACCESS_TOKEN_EXPIRE_MINUTES, get_current_user
from .password import get_password_hash, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


def _email_taken(db: Session, email: str) -> bool:
    return db.query(User).filter(User.email == email).first() is not None


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
async def register_user(
    user_data: UserCreate,
    db: Session = Depends(get_db)
) -> Any:
    """
    Register a new uploader or signer and return a token.

    Raises:
        HTTPException: If email already exists
    """
    email = user_data.email.lower()
    if _email_taken(db, email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User with this email already exists"
        )

    user = User(
        name=user_data.name,
        email=email,
        password_hash=get_password_hash(user_data.password),
        role=user_data.role.value,
        is_active=True
    )

    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"New user registered: {user.email} ({user.role})")

    return Token(
        access_token=create_user_token(user),
        expires_in=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserResponse.model_validate(user)
    )


@router.post("/login", response_model=Token)
async def login_user(
    login_data: UserLogin,
    db: Session = Depends(get_db)
) -> Any:
    """
    Login user and return JWT token.

    Raises:
        HTTPException: If authentication fails or the account is deactivated
    """
    user = authenticator.authenticate_user(db, login_data.email, login_data.password)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Your account has been deactivated. Please contact support."
        )

    logger.info(f"User logged in: {user.email}")

    return Token(
        access_token=create_user_token(user),
        expires_in=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserResponse.model_validate(user)
    )


@router.get("/profile", response_model=UserResponse)
async def get_profile(
    current_user: User = Depends(get_current_user)
) -> Any:
    """Get current user information."""
    return UserResponse.model_validate(current_user)


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    profile: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Any:
    """Update the current user's name or email."""
    if profile.email:
        email = profile.email.lower()
        if email != current_user.email and _email_taken(db, email):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="User with this email already exists"
            )
        UserDirectory(db).change_email(current_user, email)
    if profile.name:
        current_user.name = profile.name

    db.commit()
    db.refresh(current_user)
    return UserResponse.model_validate(current_user)


@router.put("/change-password")
async def change_password(
    request: PasswordChange,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Any:
    """Change the current user's password."""
    if not verify_password(request.current_password, current_user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect"
        )

    current_user.password_hash = get_password_hash(request.new_password)
    db.commit()

    logger.info(f"Password changed for user {current_user.id}")
    return {"success": True, "message": "Password changed successfully"}
