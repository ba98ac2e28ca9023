"""
Document API Endpoints

FastAPI endpoints for document upload, metadata edits, listing,
retrieval and deletion. Signing lives in ``api.signatures``.
"""

import logging
import os
from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict

from docsign.auth.jwt_auth import get_current_principal, require_role
from docsign.core.access_policy import Principal
from docsign.core.document_lifecycle import DEFAULT_PAGE_SIZE, DocumentLifecycleEngine, DocumentPage
from docsign.core.document_metadata import normalize_form_metadata
from docsign.core.exceptions import Forbidden, ValidationError
from docsign.models.user import UserRole
from docsign.storage.blob_store import BlobStore, get_blob_store
from .dependencies import get_lifecycle_engine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/documents", tags=["documents"])

MAX_UPLOAD_SIZE_MB = int(os.getenv("MAX_UPLOAD_SIZE_MB", "10"))
PDF_MIME_TYPE = "application/pdf"

# Form keys consumed by the upload route itself
UPLOAD_FORM_FIELDS = frozenset({"document", "title", "signer_email", "signature_fields"})


# Pydantic models for API
class UserSummary(BaseModel):
    """Uploader or signer joined into document responses."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    role: str


class DocumentResponse(BaseModel):
    """Response model for document information."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    original_file_name: str
    content_url: str
    status: str
    signer_email: str
    uploader: UserSummary
    assigned_signer: UserSummary
    signature_fields: List[Dict[str, Any]]
    extra_fields: Dict[str, Any]
    signed_at: Optional[datetime] = None
    verified_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    signature_count: int
    created_at: datetime
    updated_at: datetime


class DocumentListResponse(BaseModel):
    """Response model for document list."""
    documents: List[DocumentResponse]
    total: int
    page: int
    limit: int
    pages: int
    has_next: bool
    has_prev: bool


class DocumentUpdateRequest(BaseModel):
    """Metadata patch; unknown keys are passed to the allow-list filter."""
    model_config = ConfigDict(extra="allow")

    title: Optional[str] = None
    signer_email: Optional[str] = None
    signature_fields: Optional[Union[str, List[Any]]] = None


def _page_response(result: DocumentPage) -> DocumentListResponse:
    return DocumentListResponse(
        documents=[DocumentResponse.model_validate(doc) for doc in result.items],
        total=result.total,
        page=result.page,
        limit=result.limit,
        pages=result.pages,
        has_next=result.has_next,
        has_prev=result.has_prev
    )


def validate_pdf_upload(upload: UploadFile, content: bytes) -> None:
    """Reject empty, oversized or non-PDF uploads."""
    if len(content) == 0:
        raise ValidationError("File is empty")

    max_size = MAX_UPLOAD_SIZE_MB * 1024 * 1024
    if len(content) > max_size:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Maximum size is {MAX_UPLOAD_SIZE_MB}MB"
        )

    if (upload.content_type or "").lower() != PDF_MIME_TYPE:
        raise ValidationError("Only PDF files are allowed")


@router.post("/upload", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def upload_document(
    request: Request,
    document: UploadFile = File(...),
    title: Optional[str] = Form(None),
    signer_email: Optional[str] = Form(None),
    signature_fields: Optional[str] = Form(None),
    principal: Principal = Depends(require_role(UserRole.UPLOADER.value)),
    engine: DocumentLifecycleEngine = Depends(get_lifecycle_engine)
):
    """
    Upload a PDF and assign it to a signer.

    Any extra form fields are treated as document metadata and passed
    through the allow-list.
    """
    content = await document.read()
    validate_pdf_upload(document, content)

    form = await request.form()
    extra_fields = normalize_form_metadata({
        key: value
        for key, value in form.items()
        if key not in UPLOAD_FORM_FIELDS and isinstance(value, str)
    })

    created = await engine.create(
        principal,
        title=title,
        signer_email=signer_email,
        content=content,
        original_file_name=document.filename or "document.pdf",
        content_type=PDF_MIME_TYPE,
        signature_fields=signature_fields,
        extra_fields=extra_fields
    )

    logger.info(f"Document uploaded: {created.id} by user {principal.id}")
    return DocumentResponse.model_validate(created)


@router.get("/", response_model=DocumentListResponse)
async def list_documents(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    status_filter: Optional[str] = Query(None, alias="status"),
    principal: Principal = Depends(get_current_principal),
    engine: DocumentLifecycleEngine = Depends(get_lifecycle_engine)
):
    """
    List documents for the caller: uploads for uploaders, assignments for signers.
    """
    return _page_response(engine.list_documents(principal, status_filter, page, limit))


@router.get("/my-documents", response_model=DocumentListResponse)
async def list_my_documents(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    status_filter: Optional[str] = Query(None, alias="status"),
    principal: Principal = Depends(get_current_principal),
    engine: DocumentLifecycleEngine = Depends(get_lifecycle_engine)
):
    """List documents the caller uploaded."""
    result = engine.list_for_owner(UserRole.UPLOADER.value, principal.id, status_filter, page, limit)
    return _page_response(result)


@router.get("/uploader/{uploader_id}", response_model=DocumentListResponse)
async def list_documents_by_uploader(
    uploader_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    status_filter: Optional[str] = Query(None, alias="status"),
    principal: Principal = Depends(get_current_principal),
    engine: DocumentLifecycleEngine = Depends(get_lifecycle_engine)
):
    """List documents uploaded by a user; callers may only query themselves."""
    if uploader_id != principal.id:
        raise Forbidden()
    result = engine.list_for_owner(UserRole.UPLOADER.value, uploader_id, status_filter, page, limit)
    return _page_response(result)


@router.get("/signer/{signer_id}", response_model=DocumentListResponse)
async def list_documents_by_signer(
    signer_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    status_filter: Optional[str] = Query(None, alias="status"),
    principal: Principal = Depends(get_current_principal),
    engine: DocumentLifecycleEngine = Depends(get_lifecycle_engine)
):
    """List documents assigned to a signer; callers may only query themselves."""
    if signer_id != principal.id:
        raise Forbidden()
    result = engine.list_for_owner(UserRole.SIGNER.value, signer_id, status_filter, page, limit)
    return _page_response(result)


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: UUID,
    principal: Principal = Depends(get_current_principal),
    engine: DocumentLifecycleEngine = Depends(get_lifecycle_engine)
):
    """Get document details by ID."""
    return DocumentResponse.model_validate(engine.get(principal, document_id))


@router.get("/{document_id}/download")
async def download_document(
    document_id: UUID,
    principal: Principal = Depends(get_current_principal),
    engine: DocumentLifecycleEngine = Depends(get_lifecycle_engine),
    blob_store: BlobStore = Depends(get_blob_store)
):
    """Download the document's current content."""
    document = engine.get(principal, document_id)
    file_data = await blob_store.get(document.content_id)

    def generate():
        yield file_data

    return StreamingResponse(
        generate(),
        media_type=PDF_MIME_TYPE,
        headers={
            "Content-Disposition": f"attachment; filename=\"{document.original_file_name}\""
        }
    )


@router.put("/{document_id}", response_model=DocumentResponse)
async def update_document(
    document_id: UUID,
    patch: DocumentUpdateRequest,
    principal: Principal = Depends(require_role(UserRole.UPLOADER.value)),
    engine: DocumentLifecycleEngine = Depends(get_lifecycle_engine)
):
    """Edit title, signer assignment, signature fields or metadata of a pending document."""
    document = engine.load(document_id)
    updated = await engine.update_metadata(
        principal,
        document,
        title=patch.title,
        signer_email=patch.signer_email,
        signature_fields=patch.signature_fields,
        extra_fields=patch.model_extra
    )
    return DocumentResponse.model_validate(updated)


@router.delete("/{document_id}")
async def delete_document(
    document_id: UUID,
    principal: Principal = Depends(require_role(UserRole.UPLOADER.value)),
    engine: DocumentLifecycleEngine = Depends(get_lifecycle_engine)
):
    """Delete a pending document and its stored content."""
    document = engine.load(document_id)
    await engine.delete(principal, document)
    return {"success": True, "message": "Document deleted successfully"}
