"""
User Administration API Endpoints

Read routes are open to any authenticated user. Mutating routes require
the operator token configured in ``ADMIN_API_TOKEN``.
"""

import logging
import math
import os
import secrets
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from docsign.auth.jwt_auth import get_current_user
from docsign.auth.models import UserCreate, UserResponse
from docsign.auth.password import get_password_hash
from docsign.core.exceptions import InvalidState, NotFound, ValidationError
from docsign.core.user_directory import UserDirectory
from docsign.database import get_db
from docsign.models.user import User, UserRole

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/users", tags=["users"])


def require_admin_token(x_admin_token: Optional[str] = Header(None)) -> None:
    """Allow the request only if it carries the configured operator token."""
    expected = os.getenv("ADMIN_API_TOKEN")
    if not expected or not x_admin_token or not secrets.compare_digest(x_admin_token, expected):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator token required"
        )


# Pydantic models for API
class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None


class PasswordReset(BaseModel):
    password: str = Field(..., min_length=6)


class UserListResponse(BaseModel):
    """Response model for user list."""
    users: List[UserResponse]
    total: int
    page: int
    limit: int
    pages: int
    has_next: bool
    has_prev: bool


def _load_user(db: Session, user_id: UUID) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User", user_id)
    return user


def _email_taken(db: Session, email: str, exclude_id: Optional[UUID] = None) -> bool:
    query = db.query(User).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


@router.get("/", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List users, newest first."""
    query = db.query(User)
    total = query.count()
    users = (
        query.order_by(User.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    pages = math.ceil(total / limit)

    return UserListResponse(
        users=[UserResponse.model_validate(user) for user in users],
        total=total,
        page=page,
        limit=limit,
        pages=pages,
        has_next=page < pages,
        has_prev=page > 1
    )


@router.get("/role/{role}", response_model=List[UserResponse])
async def list_users_by_role(
    role: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List active users holding a role, by name. Used to pick a signer."""
    try:
        role_value = UserRole(role).value
    except ValueError:
        raise ValidationError(f"Invalid role: {role}")

    users = (
        db.query(User)
        .filter(User.role == role_value, User.is_active.is_(True))
        .order_by(User.name)
        .all()
    )
    return [UserResponse.model_validate(user) for user in users]


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return UserResponse.model_validate(_load_user(db, user_id))


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(require_admin_token)])
async def create_user(
    user_data: UserCreate,
    db: Session = Depends(get_db)
):
    """Create an account on behalf of an operator."""
    email = user_data.email.lower()
    if _email_taken(db, email):
        raise ValidationError("User with this email already exists")

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

    logger.info(f"User created by operator: {user.email} ({user.role})")
    return UserResponse.model_validate(user)


@router.put("/{user_id}", response_model=UserResponse, dependencies=[Depends(require_admin_token)])
async def update_user(
    user_id: UUID,
    update: UserUpdate,
    db: Session = Depends(get_db)
):
    """Update name, email, role or activation of an account."""
    user = _load_user(db, user_id)

    if update.email is not None:
        email = update.email.lower()
        if _email_taken(db, email, exclude_id=user.id):
            raise ValidationError("Email is already in use")
        UserDirectory(db).change_email(user, email)
    if update.name is not None:
        user.name = update.name
    if update.role is not None:
        user.role = update.role.value
    if update.is_active is not None:
        user.is_active = update.is_active

    db.commit()
    db.refresh(user)

    logger.info(f"User updated: {user.id}")
    return UserResponse.model_validate(user)


@router.put("/{user_id}/password", dependencies=[Depends(require_admin_token)])
async def reset_user_password(
    user_id: UUID,
    reset: PasswordReset,
    db: Session = Depends(get_db)
):
    user = _load_user(db, user_id)
    user.password_hash = get_password_hash(reset.password)
    db.commit()

    logger.info(f"Password reset for user {user.id}")
    return {"success": True, "message": "Password updated successfully"}


@router.delete("/{user_id}", dependencies=[Depends(require_admin_token)])
async def delete_user(
    user_id: UUID,
    db: Session = Depends(get_db)
):
    """
    Delete an account.

    Accounts that uploaded, are assigned to, or signed any document are
    kept; deactivate them instead.
    """
    user = _load_user(db, user_id)
    if user.uploaded_documents or user.assigned_documents or user.signatures:
        raise InvalidState("User is referenced by documents; deactivate the account instead")

    db.delete(user)
    db.commit()

    logger.info(f"User deleted: {user_id}")
    return {"success": True, "message": "User deleted successfully"}
