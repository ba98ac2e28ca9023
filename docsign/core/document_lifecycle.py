"""
Document Lifecycle Engine

Owns the Document entity: its status state machine, the guards on
every mutation, and the metadata merge policy. Signing is handled by
the signing protocol, which uses the transition table defined here.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Union
from uuid import UUID

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from docsign.models.document import Document, DocumentStatus, FINALIZED_STATUSES
from docsign.models.user import User, UserRole
from docsign.storage.blob_store import BlobStore
from .access_policy import AccessPolicy, Principal, is_editable
from .document_metadata import filter_extra_fields, merge_extra_fields, parse_signature_fields
from .exceptions import (
    Forbidden, InvalidFormat, InvalidState, NotFound, SignerNotFound, StorageError, ValidationError
)
from .user_directory import UserDirectory

logger = structlog.get_logger(__name__)


ALLOWED_TRANSITIONS = {
    DocumentStatus.PENDING.value: frozenset({DocumentStatus.SIGNED.value, DocumentStatus.REJECTED.value}),
    DocumentStatus.SIGNED.value: frozenset({DocumentStatus.VERIFIED.value}),
    DocumentStatus.VERIFIED.value: frozenset(),
    DocumentStatus.REJECTED.value: frozenset(),
}

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def parse_status(value: Union[str, DocumentStatus]) -> DocumentStatus:
    """Map a boundary string onto the closed status set."""
    try:
        return DocumentStatus(value)
    except ValueError:
        raise InvalidFormat(f"Invalid status: {value}")


def ensure_transition(current: str, target: str) -> None:
    """
    Check a status change against the transition table.

    Raises:
        InvalidState: If ``current -> target`` is not a defined transition
    """
    current = DocumentStatus(current).value
    target = DocumentStatus(target).value
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidState(
            f"Cannot move document from '{current}' to '{target}'",
            current_status=current
        )


@dataclass
class DocumentPage:
    """One page of a document listing"""
    items: List[Document]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


class DocumentLifecycleEngine:
    """
    Creates, edits, deletes and lists documents.

    Collaborators are injected: a database session, a blob store and a
    user directory. The engine never authenticates; it receives the
    caller as a ``Principal``.
    """

    def __init__(
        self,
        db: Session,
        blob_store: BlobStore,
        user_directory: Optional[UserDirectory] = None,
        policy: Optional[AccessPolicy] = None
    ):
        self.db = db
        self.blob_store = blob_store
        self.user_directory = user_directory or UserDirectory(db)
        self.policy = policy or AccessPolicy()

    def _resolve_signer(self, signer_email: str) -> User:
        signer = self.user_directory.find_active_signer(signer_email)
        if signer is None:
            raise SignerNotFound(signer_email)
        return signer

    def load(self, document_id: UUID) -> Document:
        document = self.db.get(Document, document_id)
        if document is None:
            raise NotFound("Document", document_id)
        return document

    def get(self, principal: Principal, document_id: UUID) -> Document:
        """Load a document the principal may view."""
        document = self.load(document_id)
        if not self.policy.can_view(principal, document):
            raise Forbidden()
        return document

    async def create(
        self,
        principal: Principal,
        title: str,
        signer_email: str,
        content: bytes,
        original_file_name: str,
        content_type: str = "application/pdf",
        signature_fields: Union[str, List[Any], None] = None,
        extra_fields: Optional[Mapping[str, Any]] = None
    ) -> Document:
        """
        Create a pending document assigned to a signer.

        Input is validated and the signer resolved before anything is
        written to the blob store.

        Raises:
            ValidationError: Missing title, signer email or content
            InvalidFormat: Malformed signature fields or metadata
            SignerNotFound: Signer email does not resolve to an active signer
            StorageError: Upload failed
        """
        if not principal.is_uploader:
            raise Forbidden("Only uploaders can create documents")
        if not title or not signer_email:
            raise ValidationError("Please provide title and signer email")
        if not content:
            raise ValidationError("Please upload a PDF document")

        fields = parse_signature_fields(signature_fields)
        metadata = filter_extra_fields(extra_fields)
        signer = self._resolve_signer(signer_email)

        stored = await self.blob_store.put(content, content_type, original_file_name)

        document = Document(
            title=title,
            original_file_name=original_file_name,
            content_url=stored.url,
            content_id=stored.id,
            uploader_id=principal.id,
            assigned_signer_id=signer.id,
            signer_email=signer.email,
            signature_fields=fields,
            status=DocumentStatus.PENDING.value,
            extra_fields=metadata
        )

        try:
            self.db.add(document)
            self.db.commit()
        except Exception:
            self.db.rollback()
            await self._discard_blob(stored.id)
            raise

        self.db.refresh(document)
        logger.info(
            "document_created",
            document_id=str(document.id),
            uploader_id=str(principal.id),
            signer_id=str(signer.id),
            content_id=stored.id
        )
        return document

    def _ensure_can_modify(self, principal: Principal, document: Document, action: str) -> None:
        if self.policy.can_modify(principal, document):
            return
        if not is_editable(document):
            raise InvalidState(
                f"Cannot {action} a document with status '{document.status}'",
                current_status=document.status
            )
        raise Forbidden()

    async def update_metadata(
        self,
        principal: Principal,
        document: Document,
        title: Optional[str] = None,
        signer_email: Optional[str] = None,
        signature_fields: Union[str, List[Any], None] = None,
        extra_fields: Optional[Mapping[str, Any]] = None
    ) -> Document:
        """
        Apply a non-signing edit to a pending document.

        Everything is parsed and resolved before the entity is touched,
        so a failing patch leaves the document unchanged.

        Raises:
            InvalidState: Document is no longer editable, or was modified concurrently
            Forbidden: Principal is not the uploader
            InvalidFormat: Malformed signature fields or metadata
            SignerNotFound: New signer email does not resolve
        """
        self._ensure_can_modify(principal, document, "update")

        changes: Dict[str, Any] = {}
        if title is not None:
            if not title.strip():
                raise ValidationError("Title cannot be empty")
            changes["title"] = title
        if signature_fields is not None:
            changes["signature_fields"] = parse_signature_fields(signature_fields)
        if extra_fields:
            changes["extra_fields"] = merge_extra_fields(document.extra_fields, extra_fields)
        if signer_email and signer_email.strip().lower() != document.signer_email.lower():
            signer = self._resolve_signer(signer_email)
            changes["assigned_signer_id"] = signer.id
            changes["signer_email"] = signer.email

        if not changes:
            return document

        for attribute, value in changes.items():
            setattr(document, attribute, value)

        try:
            self.db.commit()
        except StaleDataError as e:
            self.db.rollback()
            raise InvalidState("Document was modified concurrently; reload and retry") from e

        self.db.refresh(document)
        logger.info(
            "document_updated",
            document_id=str(document.id),
            fields=sorted(changes)
        )
        return document

    async def delete(self, principal: Principal, document: Document) -> None:
        """
        Delete a pending document: stored content first, then the record.

        Raises:
            InvalidState: Document is signed or verified
            Forbidden: Principal is not the uploader
            StorageError: Content deletion failed; the record is untouched
        """
        if document.status in FINALIZED_STATUSES:
            raise InvalidState(
                f"Cannot delete a document with status '{document.status}'",
                current_status=document.status
            )
        if not self.policy.is_uploader(principal, document):
            raise Forbidden()

        document_id = document.id
        content_id = document.content_id
        await self.blob_store.delete(content_id)

        try:
            self.db.delete(document)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.error("document_delete_failed", document_id=str(document_id), content_id=content_id)
            raise
        logger.info("document_deleted", document_id=str(document_id), uploader_id=str(principal.id))

    def list_documents(
        self,
        principal: Principal,
        status: Optional[Union[str, DocumentStatus]] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE
    ) -> DocumentPage:
        """List documents visible through the principal's role."""
        return self.list_for_owner(principal.role, principal.id, status, page, limit)

    def list_for_owner(
        self,
        owner_role: str,
        owner_id: UUID,
        status: Optional[Union[str, DocumentStatus]] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE
    ) -> DocumentPage:
        """
        Page through documents uploaded by, or assigned to, one user.

        Results are newest first; ``pages`` is ``ceil(total / limit)``.
        """
        if page < 1 or limit < 1:
            raise ValidationError("Page and limit must be positive")
        limit = min(limit, MAX_PAGE_SIZE)

        query = self.db.query(Document)
        if owner_role == UserRole.UPLOADER.value:
            query = query.filter(Document.uploader_id == owner_id)
        elif owner_role == UserRole.SIGNER.value:
            query = query.filter(Document.assigned_signer_id == owner_id)
        else:
            raise ValidationError(f"Unknown owner role: {owner_role}")

        if status is not None:
            query = query.filter(Document.status == parse_status(status).value)

        total = query.count()
        items = (
            query.order_by(Document.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return DocumentPage(items=items, total=total, page=page, limit=limit)

    async def _discard_blob(self, object_id: str) -> None:
        try:
            await self.blob_store.delete(object_id)
        except StorageError as e:
            logger.warning("orphaned_blob", content_id=object_id, error=e.message)


def utc_naive(value: datetime) -> datetime:
    """Drop tzinfo after converting to UTC; timestamps are stored naive."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
