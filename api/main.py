"""
Card Grading Platform API - Main Application.

FastAPI application with CORS enabled for frontend communication.
"""

import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import __version__

# Load environment variables from .env file
load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("GRADING_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# Create FastAPI application
app = FastAPI(
    title="Card Grading Platform API",
    description="REST API for trading card grading submissions, lifecycle and certificate verification",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Configure CORS - Allow all origins for development
# TODO: Restrict origins to the storefront and admin domains in production
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allow all origins for demo
    allow_credentials=True,
    allow_methods=["*"],  # Allow all HTTP methods
    allow_headers=["*"],  # Allow all headers
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
        "service": "card-grading-platform-api"
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "Card Grading Platform API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
from api.routers import certificates, gradings, orders, stats

app.include_router(orders.router, prefix="/api/v1", tags=["Orders"])
app.include_router(gradings.router, prefix="/api/v1", tags=["Gradings"])
app.include_router(stats.router, prefix="/api/v1", tags=["Stats"])
app.include_router(certificates.router, prefix="/api/v1", tags=["Certificates"])
