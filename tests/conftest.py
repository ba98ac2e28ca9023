"""
Shared fixtures: in-memory SQLite, an in-memory blob store, users and documents
"""

from datetime import datetime
from typing import Dict

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from docsign.auth.jwt_auth import create_user_token
from docsign.auth.password import get_password_hash
from docsign.core.access_policy import Principal
from docsign.database import get_db
from docsign.main import create_app
from docsign.models import Base, Document, DocumentStatus, User, UserRole
from tests.unit.test_blob_store import InMemoryBlobStore

TEST_PASSWORD = "secret123"
TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def blob_store():
    return InMemoryBlobStore()


@pytest.fixture
def make_user(db):
    def _make_user(name: str, email: str, role: UserRole, is_active: bool = True) -> User:
        user = User(
            name=name,
            email=email,
            password_hash=TEST_PASSWORD_HASH,
            role=role.value,
            is_active=is_active
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def uploader(make_user):
    return make_user("Alice Uploader", "alice@example.com", UserRole.UPLOADER)


@pytest.fixture
def other_uploader(make_user):
    return make_user("Dave Uploader", "dave@example.com", UserRole.UPLOADER)


@pytest.fixture
def signer(make_user):
    return make_user("Jane Signer", "s@x.com", UserRole.SIGNER)


@pytest.fixture
def other_signer(make_user):
    return make_user("Carol Signer", "carol@example.com", UserRole.SIGNER)


def principal_of(user: User) -> Principal:
    return Principal(id=user.id, role=user.role)


@pytest.fixture
def uploader_principal(uploader):
    return principal_of(uploader)


@pytest.fixture
def signer_principal(signer):
    return principal_of(signer)


@pytest.fixture
def make_document(db, blob_store):
    """Insert a document directly, bypassing the engine."""

    def _make_document(uploader: User, signer: User, status: str = DocumentStatus.PENDING.value,
                       title: str = "Contract", created_at: datetime = None,
                       extra_fields: Dict = None) -> Document:
        content_id = f"documents/seed_{len(blob_store.objects)}_{title}.pdf"
        blob_store.objects[content_id] = b"%PDF-1.4 seed"
        document = Document(
            title=title,
            original_file_name=f"{title}.pdf",
            content_url=f"memory://{content_id}",
            content_id=content_id,
            uploader_id=uploader.id,
            assigned_signer_id=signer.id,
            signer_email=signer.email,
            signature_fields=[],
            status=status,
            extra_fields=extra_fields or {}
        )
        if created_at is not None:
            document.created_at = created_at
        db.add(document)
        db.commit()
        db.refresh(document)
        return document

    return _make_document


@pytest.fixture
def pending_document(make_document, uploader, signer):
    return make_document(uploader, signer)


@pytest.fixture
def client(db, blob_store):
    """API client sharing the test session and blob store."""
    app = create_app(blob_store=blob_store)

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def auth_headers():
    def _auth_headers(user: User) -> Dict[str, str]:
        return {"Authorization": f"Bearer {create_user_token(user)}"}

    return _auth_headers
