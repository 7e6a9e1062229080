"""
Root endpoint with service metadata.
"""

from __future__ import annotations

from fastapi import APIRouter

import contentcore.config as config
from contentcore.records import CONTENT_TYPES


router = APIRouter()


@router.get("/")
async def root():
    """Root endpoint with service info."""
    return {
        "service": "ContentCore",
        "version": "0.1.0",
        "description": "Shared content envelopes for content-bearing records",
        "default_visibility": config.DEFAULT_VISIBILITY,
        "content_types": sorted(CONTENT_TYPES),
        "endpoints": {
            "health": "/health",
            "content": "/content/{guid}",
            "move": "/content/{guid}/move",
            "orphans": "/content/orphans",
        },
    }
