"""
Document model for uploaded PDFs moving through the signing lifecycle.
"""

from enum import Enum
from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, JSON, Uuid
from sqlalchemy.orm import relationship

from .base import BaseModel


class DocumentStatus(str, Enum):
    """Document lifecycle status."""
    PENDING = "pending"
    SIGNED = "signed"
    VERIFIED = "verified"
    REJECTED = "rejected"


# Statuses after which core fields are frozen
FINALIZED_STATUSES = frozenset({DocumentStatus.SIGNED.value, DocumentStatus.VERIFIED.value})


class SignatureFieldType(str, Enum):
    """Kinds of placements a signer fills in."""
    SIGNATURE = "signature"
    NAME = "name"
    EMAIL = "email"
    DATE = "date"


class Document(BaseModel):
    """Document model for managing uploaded files awaiting signature."""

    __tablename__ = "documents"

    # Basic info
    title = Column(String(255), nullable=False, doc="Document title")
    original_file_name = Column(String(255), nullable=False, doc="Original filename")

    # Storage
    content_url = Column(String(1000), nullable=False, doc="Dereferenceable URL of the current content")
    content_id = Column(String(500), nullable=False, doc="Object id in blob storage")

    # Ownership
    uploader_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
        doc="User who uploaded the document"
    )
    assigned_signer_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
        doc="User assigned to sign"
    )
    signer_email = Column(
        String(255),
        nullable=False,
        index=True,
        doc="Email of the assigned signer, kept in step with assigned_signer_id"
    )

    # Layout
    signature_fields = Column(JSON, default=list, nullable=False, doc="Ordered signature field placements")

    # Status
    status = Column(
        String(20),
        default=DocumentStatus.PENDING.value,
        nullable=False,
        index=True,
        doc="Lifecycle status"
    )
    signed_at = Column(DateTime, nullable=True, doc="When the document was signed")
    verified_at = Column(DateTime, nullable=True, doc="When the document was verified")
    rejection_reason = Column(Text, nullable=True, doc="Why the document was rejected")

    # Allow-listed and custom_* metadata
    extra_fields = Column(JSON, default=dict, nullable=False, doc="Additional document metadata")

    # Optimistic concurrency
    version = Column(Integer, nullable=False, default=1, doc="Row version")

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    uploader = relationship(
        "User",
        foreign_keys=[uploader_id],
        back_populates="uploaded_documents"
    )
    assigned_signer = relationship(
        "User",
        foreign_keys=[assigned_signer_id],
        back_populates="assigned_documents"
    )
    signatures = relationship(
        "Signature",
        back_populates="document",
        order_by="Signature.created_at"
    )

    @property
    def is_finalized(self) -> bool:
        """Check if the document is signed or verified."""
        return self.status in FINALIZED_STATUSES

    @property
    def is_signed(self) -> bool:
        return self.status == DocumentStatus.SIGNED

    @property
    def signature_count(self) -> int:
        """Get number of signature records on this document."""
        return len(self.signatures)

    def __repr__(self) -> str:
        return f"<Document(title='{self.title}', status='{self.status}')>"
