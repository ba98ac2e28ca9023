"""
User model for authentication and document ownership.
"""

from enum import Enum

from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship

from .base import BaseModel


class UserRole(str, Enum):
    """Roles a docsign account can hold."""
    UPLOADER = "uploader"
    SIGNER = "signer"


class User(BaseModel):
    """User model for uploaders and signers."""

    __tablename__ = "users"

    # Basic info
    name = Column(String(255), nullable=False, doc="Display name")
    email = Column(String(255), unique=True, nullable=False, index=True, doc="User email address")

    # Authentication
    password_hash = Column(String(255), nullable=False, doc="bcrypt password hash")
    is_active = Column(Boolean, default=True, nullable=False, doc="Whether user account is active")

    # Role
    role = Column(String(20), nullable=False, doc="User role (uploader, signer)")

    # Relationships
    uploaded_documents = relationship(
        "Document",
        foreign_keys="Document.uploader_id",
        back_populates="uploader"
    )
    assigned_documents = relationship(
        "Document",
        foreign_keys="Document.assigned_signer_id",
        back_populates="assigned_signer"
    )
    signatures = relationship("Signature", back_populates="signer")

    @property
    def is_uploader(self) -> bool:
        return self.role == UserRole.UPLOADER.value

    @property
    def is_signer(self) -> bool:
        return self.role == UserRole.SIGNER.value

    def __repr__(self) -> str:
        return f"<User(email='{self.email}', role='{self.role}')>"
