"""
KYC Vault - FastAPI Application

Main entry point for the token, evidence and consent API.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kyc_core.config import settings
from kyc_core.logging import setup_logging
from kyc_core.api import audit, consent, documents, kyc, users
from kyc_core.api.dependencies import register_error_handlers


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    yield


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Reusable KYC tokens with evidence-gated consent",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Include API routers
app.include_router(users.router, prefix=settings.api_v1_prefix)
app.include_router(documents.router, prefix=settings.api_v1_prefix)
app.include_router(kyc.router, prefix=settings.api_v1_prefix)
app.include_router(consent.router, prefix=settings.api_v1_prefix)
app.include_router(audit.router, prefix=settings.api_v1_prefix)


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": "0.1.0",
        "status": "operational",
        "docs": "/docs"
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


# Create tables (in development - use Alembic in production)
# init_db()
