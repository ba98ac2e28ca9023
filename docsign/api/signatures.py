"""
Signature API Endpoints

FastAPI endpoints for signing a document and reading its signature records.
"""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from pydantic import BaseModel, ConfigDict

from docsign.auth.jwt_auth import get_current_principal, require_role
from docsign.core.access_policy import Principal
from docsign.core.document_lifecycle import DocumentLifecycleEngine
from docsign.core.signing_protocol import SigningProtocolHandler
from docsign.models.document import DocumentStatus
from docsign.models.user import UserRole
from docsign.utils.request_utils import get_client_ip, get_user_agent
from .dependencies import get_lifecycle_engine, get_signing_handler
from .documents import DocumentResponse, validate_pdf_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/documents", tags=["signatures"])


# Pydantic models for API
class SignatureResponse(BaseModel):
    """Response model for a signature record."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    document_id: UUID
    signer_id: UUID
    signer_name: str
    signer_email: str
    signed_date: datetime
    signature_data: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    signed_document_url: Optional[str] = None
    created_at: datetime


class SignDocumentResponse(BaseModel):
    """Response model for a completed signing."""
    document: DocumentResponse
    signature: SignatureResponse
    message: str


@router.post("/{document_id}/sign", response_model=SignDocumentResponse)
async def sign_document(
    document_id: UUID,
    request: Request,
    signer_name: Optional[str] = Form(None),
    signer_email: Optional[str] = Form(None),
    signed_date: Optional[datetime] = Form(None),
    signature_data: Optional[str] = Form(None),
    status: Optional[str] = Form(None),
    signed_pdf: Optional[UploadFile] = File(None),
    principal: Principal = Depends(require_role(UserRole.SIGNER.value)),
    engine: DocumentLifecycleEngine = Depends(get_lifecycle_engine),
    handler: SigningProtocolHandler = Depends(get_signing_handler)
):
    """
    Sign a document as its assigned signer.

    An optional ``signed_pdf`` replaces the stored content with the
    signed rendition.
    """
    document = engine.load(document_id)

    new_content = None
    new_file_name = None
    if signed_pdf is not None and signed_pdf.filename:
        new_content = await signed_pdf.read()
        validate_pdf_upload(signed_pdf, new_content)
        new_file_name = signed_pdf.filename

    result = await handler.sign(
        principal,
        document,
        signer_name=signer_name,
        signer_email=signer_email,
        signed_date=signed_date,
        signature_image=signature_data,
        new_content=new_content,
        new_file_name=new_file_name,
        status=status or DocumentStatus.SIGNED,
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request)
    )

    logger.info(f"Document {document_id} signed by user {principal.id}")

    return SignDocumentResponse(
        document=DocumentResponse.model_validate(result.document),
        signature=SignatureResponse.model_validate(result.signature),
        message="Document signed successfully"
    )


@router.get("/{document_id}/signatures", response_model=List[SignatureResponse])
async def list_document_signatures(
    document_id: UUID,
    principal: Principal = Depends(get_current_principal),
    engine: DocumentLifecycleEngine = Depends(get_lifecycle_engine)
):
    """Get the signature records of a document."""
    document = engine.get(principal, document_id)
    return [SignatureResponse.model_validate(signature) for signature in document.signatures]
