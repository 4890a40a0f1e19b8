"""FastAPI application for the loopsafe moderation service.

Provides REST API endpoints wrapping the loopsafe package for:
- Video and text moderation
- The moderator review queue
- Model accuracy tracking
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from loopsafe import __version__
from web.backend.app.routers import moderation

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(name)s - %(message)s")

app = FastAPI(
    title="loopsafe API",
    description="Moderation decisions for Loop videos and posts, plus the moderator review queue.",
    version=__version__,
)

# ---------------------------------------------------------------------------
# CORS middleware (allow all origins for development)
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(moderation.router)


@app.get("/", tags=["meta"])
async def root():
    """Return basic API information."""
    return {
        "name": "loopsafe API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


@app.get("/health", tags=["meta"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
