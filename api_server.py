"""
FODMAP Reintroduction API Server
Stateless decision service for the FODMAP reintroduction protocol.

The service stores nothing: clients send the full protocol snapshot and
the current instant, and receive the next action.
"""

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.reintroduction import ENGINE_VERSION
from app.reintroduction.admin import router as reintroduction_router

API_VERSION = "1.0.0"

# ============================================
# Runtime Configuration
# ============================================
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ALLOW_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",")
    if origin.strip()
]

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)

# ============================================
# App Configuration
# ============================================
app = FastAPI(
    title="FODMAP Reintroduction API",
    description="Protocol decision engine for FODMAP food reintroduction",
    version=API_VERSION,
)

# ============================================
# CORS Configuration
# ============================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# ============================================
# Routers
# ============================================
app.include_router(reintroduction_router)
logger.info("Reintroduction router registered (%s)", ENGINE_VERSION)


# ============================================
# Health & Version Endpoints
# ============================================
@app.get("/")
def root():
    return {
        "service": "FODMAP Reintroduction API",
        "version": API_VERSION,
        "engine_version": ENGINE_VERSION,
        "status": "operational",
    }


@app.get("/health")
def health():
    return {"status": "healthy", "version": API_VERSION}


@app.get("/version")
def version():
    return {
        "api_version": API_VERSION,
        "engine_version": ENGINE_VERSION,
        "features": ["next-action", "validate", "classify", "washout", "profile"],
    }
