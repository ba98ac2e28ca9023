"""
Signature model: the immutable audit record of a signing event.
"""

from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from .base import BaseModel


class Signature(BaseModel):
    """Record written once per successful signing; never updated."""

    __tablename__ = "signatures"

    # Document relationship
    document_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("documents.id"),
        nullable=False,
        index=True,
        doc="Document that was signed"
    )

    # Signer info
    signer_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
        doc="User who signed"
    )
    signer_name = Column(String(255), nullable=False, doc="Name asserted by the signer")
    signer_email = Column(String(255), nullable=False, doc="Email asserted by the signer")

    # Signature details
    signature_data = Column(Text, nullable=True, doc="Signature image payload (data URL or base64)")
    signed_date = Column(DateTime, default=datetime.utcnow, nullable=False, doc="Signing timestamp")

    # Request provenance
    ip_address = Column(String(45), nullable=True, doc="Client IP of the signing request")
    user_agent = Column(Text, nullable=True, doc="User-Agent of the signing request")

    # Resulting content
    signed_document_url = Column(String(1000), nullable=True, doc="URL of the signed rendition")
    signed_document_id = Column(String(500), nullable=True, doc="Object id of the signed rendition")

    # Relationships
    document = relationship("Document", back_populates="signatures")
    signer = relationship("User", back_populates="signatures")

    @property
    def has_image(self) -> bool:
        return bool(self.signature_data)

    def __repr__(self) -> str:
        return f"<Signature(document_id='{self.document_id}', signer_email='{self.signer_email}')>"
