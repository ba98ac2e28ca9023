"""
Access Policy

Answers whether a principal may view, modify or sign a document. The
predicates are pure and evaluated on every request; nothing is cached.
"""

from dataclasses import dataclass
from uuid import UUID

from docsign.models.document import Document, DocumentStatus, FINALIZED_STATUSES
from docsign.models.user import UserRole


# Statuses in which the uploader may still edit or delete a document
EDITABLE_STATUSES = frozenset({DocumentStatus.PENDING.value})


@dataclass(frozen=True)
class Principal:
    """Authenticated caller as supplied by the auth provider"""
    id: UUID
    role: str

    @property
    def is_uploader(self) -> bool:
        return self.role == UserRole.UPLOADER.value

    @property
    def is_signer(self) -> bool:
        return self.role == UserRole.SIGNER.value


def is_editable(document: Document) -> bool:
    """Check if the document's status still allows metadata edits."""
    return document.status in EDITABLE_STATUSES


class AccessPolicy:
    """Relationship-based authorization for documents."""

    def is_uploader(self, principal: Principal, document: Document) -> bool:
        return principal.id == document.uploader_id

    def is_assigned_signer(self, principal: Principal, document: Document) -> bool:
        return principal.id == document.assigned_signer_id

    def can_view(self, principal: Principal, document: Document) -> bool:
        """Uploader and assigned signer may read the document."""
        return self.is_uploader(principal, document) or self.is_assigned_signer(principal, document)

    def can_modify(self, principal: Principal, document: Document) -> bool:
        """Only the uploader may edit, and only while the document is pending."""
        return self.is_uploader(principal, document) and is_editable(document)

    def can_sign(self, principal: Principal, document: Document) -> bool:
        """Only the assigned signer may sign, and only before finalization."""
        return (
            self.is_assigned_signer(principal, document)
            and document.status not in FINALIZED_STATUSES
        )
