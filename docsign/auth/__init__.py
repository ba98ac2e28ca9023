"""
Authentication module for docsign
"""

from .jwt_auth import (
    JWTAuthenticator,
    get_current_user,
    get_current_principal,
    require_role,
    create_access_token,
    create_user_token,
)
from .models import UserCreate, UserLogin, Token
from .password import get_password_hash, verify_password

__all__ = [
    "JWTAuthenticator",
    "get_current_user",
    "get_current_principal",
    "require_role",
    "create_access_token",
    "create_user_token",
    "UserCreate",
    "UserLogin",
    "Token",
    "get_password_hash",
    "verify_password"
]
