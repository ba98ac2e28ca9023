"""
Dependency providers wiring the core engines into FastAPI routes.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from docsign.core.document_lifecycle import DocumentLifecycleEngine
from docsign.core.signing_protocol import SigningProtocolHandler
from docsign.database import get_db
from docsign.storage.blob_store import BlobStore, get_blob_store


def get_lifecycle_engine(
    db: Session = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store)
) -> DocumentLifecycleEngine:
    return DocumentLifecycleEngine(db, blob_store)


def get_signing_handler(
    db: Session = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store)
) -> SigningProtocolHandler:
    return SigningProtocolHandler(db, blob_store)
