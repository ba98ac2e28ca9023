"""
Database Models Package

Core database models for docsign.
"""

from .base import Base
from .user import User, UserRole
from .document import Document, DocumentStatus, SignatureFieldType, FINALIZED_STATUSES
from .signature import Signature

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Document",
    "DocumentStatus",
    "SignatureFieldType",
    "FINALIZED_STATUSES",
    "Signature",
]
