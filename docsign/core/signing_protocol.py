"""
Signing Protocol Handler

Orchestrates the signing transaction: optional replacement of the
stored PDF with its signed rendition, the status change on the
document, and creation of the immutable signature record.

Replacement content is uploaded before any record is written and the
previous content is deleted only after the new state has committed,
so persisted rows never reference a missing blob. A request that loses
the status check discards its own upload.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

import structlog
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from docsign.models.document import Document, DocumentStatus
from docsign.models.signature import Signature
from docsign.storage.blob_store import BlobStore, StoredObject
from .access_policy import AccessPolicy, Principal
from .document_lifecycle import ensure_transition, parse_status, utc_naive
from .exceptions import AlreadySigned, Forbidden, StorageError, ValidationError

logger = structlog.get_logger(__name__)


# Statuses a signing request may finalize a document into
SIGNING_TARGET_STATUSES = frozenset({DocumentStatus.SIGNED.value})


@dataclass
class SigningResult:
    """Outcome of a successful signing transaction"""
    document: Document
    signature: Signature


class SigningProtocolHandler:
    """Runs the signing transaction for one document at a time."""

    def __init__(
        self,
        db: Session,
        blob_store: BlobStore,
        policy: Optional[AccessPolicy] = None
    ):
        self.db = db
        self.blob_store = blob_store
        self.policy = policy or AccessPolicy()

    def _ensure_can_sign(self, principal: Principal, document: Document) -> None:
        if self.policy.can_sign(principal, document):
            return
        if not self.policy.is_assigned_signer(principal, document):
            raise Forbidden("Only the assigned signer can sign this document")
        raise AlreadySigned(document.id)

    async def _upload_content(self, document: Document, content: bytes,
                              file_name: Optional[str]) -> StoredObject:
        return await self.blob_store.put(
            content,
            "application/pdf",
            file_name or f"signed_{document.original_file_name}"
        )

    async def _delete_quietly(self, document_id, content_id: str, event: str) -> None:
        try:
            await self.blob_store.delete(content_id)
        except StorageError as e:
            logger.warning(event, document_id=str(document_id), content_id=content_id, error=e.message)

    async def sign(
        self,
        principal: Principal,
        document: Document,
        signer_name: Optional[str],
        signer_email: Optional[str],
        signed_date: Optional[datetime],
        signature_image: Optional[str] = None,
        new_content: Optional[bytes] = None,
        new_file_name: Optional[str] = None,
        status: Union[str, DocumentStatus] = DocumentStatus.SIGNED,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> SigningResult:
        """
        Sign a document on behalf of its assigned signer.

        Args:
            principal: Authenticated caller
            document: Document loaded in this session
            signer_name: Name asserted by the signer
            signer_email: Email asserted by the signer
            signed_date: Signing timestamp
            signature_image: Optional signature image payload
            new_content: Optional signed PDF replacing the stored content
            new_file_name: Name used for the replacement object
            status: Target status; must be a legal transition from the current one
            ip_address: Request provenance
            user_agent: Request provenance

        Returns:
            SigningResult with the updated document and the new signature

        Raises:
            Forbidden: Principal is not the assigned signer
            AlreadySigned: Document is signed or verified, including when a
                concurrent request committed first
            ValidationError: Signer name, email or date missing
            InvalidState: Target status is not reachable from the current one
            StorageError: Upload of the replacement content failed
        """
        self._ensure_can_sign(principal, document)

        if not signer_name or not signer_email or signed_date is None:
            raise ValidationError("Signer name, signer email and signed date are required")

        target = parse_status(status).value
        if target not in SIGNING_TARGET_STATUSES:
            raise ValidationError(f"Signing cannot set status '{target}'")
        ensure_transition(document.status, target)

        signed_at = utc_naive(signed_date)
        expected_status = document.status
        document_id = document.id
        old_content_id = document.content_id

        stored = None
        if new_content:
            stored = await self._upload_content(document, new_content, new_file_name)

        values = {
            "status": target,
            "signed_at": signed_at,
            "version": Document.version + 1,
        }
        if stored is not None:
            values["content_url"] = stored.url
            values["content_id"] = stored.id

        signature = Signature(
            document_id=document.id,
            signer_id=principal.id,
            signer_name=signer_name,
            signer_email=signer_email,
            signature_data=signature_image,
            signed_date=signed_at,
            ip_address=ip_address,
            user_agent=user_agent,
            signed_document_url=stored.url if stored else document.content_url,
            signed_document_id=stored.id if stored else document.content_id
        )

        try:
            result = self.db.execute(
                update(Document)
                .where(Document.id == document_id, Document.status == expected_status)
                .values(**values),
                execution_options={"synchronize_session": False}
            )
            won = result.rowcount != 0
            if won:
                self.db.add(signature)
                self.db.commit()
            else:
                self.db.rollback()
        except SQLAlchemyError:
            self.db.rollback()
            logger.error("signing_persistence_failed", document_id=str(document_id))
            if stored is not None:
                await self._delete_quietly(document_id, stored.id, "orphaned_blob")
            raise

        if not won:
            logger.info("concurrent_sign_rejected", document_id=str(document_id))
            if stored is not None:
                await self._delete_quietly(document_id, stored.id, "orphaned_blob")
            raise AlreadySigned(document_id)

        if stored is not None:
            await self._delete_quietly(document_id, old_content_id, "old_content_cleanup_failed")

        self.db.refresh(document)
        self.db.refresh(signature)

        logger.info(
            "document_signed",
            document_id=str(document.id),
            signer_id=str(principal.id),
            status=target,
            content_replaced=stored is not None
        )
        return SigningResult(document=document, signature=signature)
