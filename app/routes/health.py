"""
Health endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException
from sqlalchemy import text

import contentcore.config as config
from contentcore.db import DB, _get_schema_revisions
from contentcore.integrity import orphan_report


router = APIRouter()


def _check_db_health() -> dict:
    if DB.engine is None:
        return {"ok": False, "error": "db_not_initialized"}

    try:
        with DB.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as exc:
        return {"ok": False, "error": str(exc)}

    current_rev, head_rev = _get_schema_revisions(DB.engine)
    schema_ok = head_rev is None or current_rev == head_rev
    return {
        "ok": schema_ok,
        "backend": config.DB_BACKEND,
        "schema_revision": current_rev,
        "schema_expected": head_rev,
        "schema_up_to_date": schema_ok,
    }


def _check_content_integrity() -> dict:
    db = DB.SessionLocal()
    try:
        report = orphan_report(db)
    finally:
        db.close()
    return {
        "orphan_count": report["orphan_count"],
        "unknown_types": sorted(report["unknown_types"]),
    }


@router.get("/health")
async def health():
    """Health check endpoint; orphaned envelopes are reported, not fatal."""
    db_health = _check_db_health()
    if not db_health.get("ok"):
        raise HTTPException(status_code=503, detail={"database": db_health})

    return {
        "status": "healthy",
        "service": "ContentCore",
        "version": "0.1.0",
        "database": db_health,
        "content": _check_content_integrity(),
    }
