"""
Book Sales Platform API - Main Application.

FastAPI application with CORS enabled for frontend communication.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import __version__
from core.config import get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create FastAPI application
app = FastAPI(
    title="Book Sales Platform API",
    description="REST API for tracking per-platform book sales and royalties",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Origins come from ALLOW_ORIGINS; "*" (the default) is meant for development
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status and version.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "book-sales-platform-api",
        "environment": settings.app_env,
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "Book Sales Platform API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
from api.routers import books, sales, uploads  # noqa: E402

app.include_router(books.router, prefix="/api/v1", tags=["Books"])
app.include_router(sales.router, prefix="/api/v1", tags=["Sales"])
app.include_router(uploads.router, prefix="/api/v1", tags=["Upload"])
