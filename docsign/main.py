"""
Document Signing Platform - Main FastAPI Application

This is the main entry point for the backend API service.
"""

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from docsign.api import documents, signatures, users
from docsign.auth.routes import router as auth_router
from docsign.core.exceptions import DocSignError
from docsign.database import create_tables, get_db
from docsign.storage.blob_store import BlobStore, get_blob_store
from docsign.storage.minio_client import MinIOClient

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
logger = logging.getLogger(__name__)

app_version = "1.0.0"

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Starting document signing platform...")
    create_tables()
    if getattr(app.state, "blob_store", None) is None:
        app.state.blob_store = MinIOClient.from_env()
    yield
    logger.info("Shutting down document signing platform...")


async def docsign_error_handler(request: Request, exc: DocSignError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "code": exc.code,
            "message": exc.message,
            "details": exc.details
        }
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "code": "INTERNAL_ERROR",
            "message": "Internal server error"
        }
    )


def create_app(blob_store: BlobStore = None) -> FastAPI:
    """
    Build the application.

    Args:
        blob_store: Storage backend; when omitted, a MinIO client is built
            from the environment at startup
    """
    app = FastAPI(
        title="Document Signing Platform",
        description="""
        Backend for uploading PDF documents, assigning them to a signer
        and recording the signature.
        """,
        version=app_version,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan
    )
    app.state.blob_store = blob_store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(","),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(DocSignError, docsign_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "service": "Document Signing Platform",
            "version": app_version,
            "status": "operational",
            "docs": "/api/docs"
        }

    @app.get("/health")
    async def health_check(
        db: Session = Depends(get_db),
        store: BlobStore = Depends(get_blob_store)
    ):
        """Health check endpoint"""
        health_status = {
            "status": "healthy",
            "timestamp": datetime.utcnow().isoformat(),
            "version": app_version,
            "checks": {}
        }

        try:
            db.execute(text("SELECT 1"))
            health_status["checks"]["database"] = {"status": "healthy"}
        except SQLAlchemyError as e:
            health_status["checks"]["database"] = {"status": "unhealthy", "error": str(e)}

        health_status["checks"]["storage"] = await store.health_check()

        if any(check["status"] == "unhealthy" for check in health_status["checks"].values()):
            health_status["status"] = "unhealthy"
            raise HTTPException(status_code=503, detail=health_status)

        return health_status

    app.include_router(auth_router)
    app.include_router(documents.router)
    app.include_router(signatures.router)
    app.include_router(users.router)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "docsign.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD", "false").lower() == "true",
        log_level="info"
    )
