"""
User Directory

Thin lookup resolving signer identities for the lifecycle engine, and
the one place a user email changes so assigned documents follow it.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from docsign.models.document import Document
from docsign.models.user import User, UserRole


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserDirectory:
    """Resolves users from the database."""

    def __init__(self, db: Session):
        self.db = db

    def find_active_signer(self, email: str) -> Optional[User]:
        """Return the active signer account for ``email``, if any."""
        if not email:
            return None
        return self.db.query(User).filter(
            User.email == normalize_email(email),
            User.role == UserRole.SIGNER.value,
            User.is_active.is_(True)
        ).first()

    def get_user(self, user_id: UUID) -> Optional[User]:
        return self.db.get(User, user_id)

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == normalize_email(email)).first()

    def change_email(self, user: User, email: str) -> int:
        """
        Set a new email on ``user`` and on every document assigned to them.

        The caller commits; returns the number of documents updated.
        """
        email = normalize_email(email)
        user.email = email
        result = self.db.execute(
            update(Document)
            .where(Document.assigned_signer_id == user.id)
            .values(signer_email=email),
            execution_options={"synchronize_session": "fetch"}
        )
        return result.rowcount
