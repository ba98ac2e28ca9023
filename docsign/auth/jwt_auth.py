"""
JWT Authentication implementation for docsign
"""

import os
import logging
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from docsign.core.access_policy import Principal
from docsign.database import get_db
from docsign.models.user import User
from .models import TokenData
from .password import verify_password

logger = logging.getLogger(__name__)

# JWT Configuration
SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 30)))

# Security scheme
security = HTTPBearer(auto_error=False)


class JWTAuthenticator:
    """JWT Authentication handler"""

    def __init__(self, secret_key: str = SECRET_KEY, algorithm: str = ALGORITHM):
        self.secret_key = secret_key
        self.algorithm = algorithm

    def create_access_token(self, data: dict, expires_delta: Optional[timedelta] = None) -> str:
        """
        Create JWT access token.

        Args:
            data: Token payload data
            expires_delta: Token expiration time

        Returns:
            JWT token string
        """
        to_encode = data.copy()

        if expires_delta:
            expire = datetime.utcnow() + expires_delta
        else:
            expire = datetime.utcnow() + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

        to_encode.update({"exp": expire})
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> TokenData:
        """
        Verify and decode JWT token.

        Raises:
            HTTPException: If token is invalid
        """
        credentials_exception = HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            raise credentials_exception

        user_id: str = payload.get("sub")
        if user_id is None:
            raise credentials_exception

        return TokenData(
            user_id=user_id,
            email=payload.get("email"),
            role=payload.get("role")
        )

    def authenticate_user(self, db: Session, email: str, password: str) -> Optional[User]:
        """
        Authenticate user with email and password.

        Returns:
            User object if authentication successful, None otherwise
        """
        user = db.query(User).filter(User.email == email.strip().lower()).first()

        if not user:
            return None

        if not verify_password(password, user.password_hash):
            return None

        return user


# Global authenticator instance
authenticator = JWTAuthenticator()


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create access token using global authenticator"""
    return authenticator.create_access_token(data, expires_delta)


def create_user_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """Issue a token carrying the user's id, email and role."""
    return create_access_token(
        {"sub": str(user.id), "email": user.email, "role": user.role},
        expires_delta
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Get current authenticated user from JWT token.

    Raises:
        HTTPException: If authentication fails
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, no token provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token_data = authenticator.verify_token(credentials.credentials)

    try:
        user_id = UUID(token_data.user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.get(User, user_id)

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, user not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is deactivated"
        )

    return user


async def get_current_principal(current_user: User = Depends(get_current_user)) -> Principal:
    """Identity handed to the core: id and role only."""
    return Principal(id=current_user.id, role=current_user.role)


def require_role(*roles: str):
    """Dependency factory allowing only the given roles through."""

    async def role_checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"User role '{principal.role}' is not authorized to access this route"
            )
        return principal

    return role_checker
