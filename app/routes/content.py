"""
Content envelope endpoints: lookup, move and orphan reporting.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

import contentcore.config as config
from contentcore.collaborators import Collaborators
from contentcore.context import RequestContext
from contentcore.errors import ValidationIssue
from contentcore.integrity import orphan_report
from contentcore.models import ContentEnvelope, Visibility
from contentcore.records import CONTENT_TYPES
from app.deps import get_db_session, get_request_context


router = APIRouter(prefix="/content")


def _visibility_name(value) -> Optional[str]:
    try:
        return Visibility(value).name.lower()
    except ValueError:
        return None


def _serialize_envelope(envelope: ContentEnvelope) -> dict:
    data = {
        "id": envelope.id,
        "guid": envelope.guid,
        "object_model": envelope.object_model,
        "object_id": envelope.object_id,
        "container_id": envelope.contentcontainer_id,
        "visibility": _visibility_name(envelope.visibility),
        "title": envelope.title,
        "pinned": envelope.is_pinned(),
        "archived": envelope.is_archived(),
        "stream_channel": envelope.stream_channel,
        "created_by": envelope.created_by,
        "created_at": envelope.created_at.isoformat() if envelope.created_at else None,
        "updated_by": envelope.updated_by,
        "updated_at": envelope.updated_at.isoformat() if envelope.updated_at else None,
        "labels": [],
    }
    # Unregistered types still get a summary, just without record metadata
    if envelope.object_model in CONTENT_TYPES:
        model = envelope.get_model()
        if model is not None:
            data["content_name"] = model.content_name()
            data["labels"] = [
                {"text": label.text, "kind": label.kind, "icon": label.icon}
                for label in model.labels()
            ]
    return data


def _get_envelope(db, guid: str) -> ContentEnvelope:
    envelope = db.query(ContentEnvelope).filter(ContentEnvelope.guid == guid).first()
    if envelope is None:
        raise HTTPException(status_code=404, detail=f"Content not found: {guid}")
    return envelope


def _container_ref(raw: str):
    value = raw.strip()
    if not value:
        raise ValidationIssue("container is required", field="container", error_type="required")
    if value.isdigit():
        return int(value)
    return value


# Declared before /{guid} so "orphans" is never taken for a guid
@router.get("/orphans")
async def list_orphans(limit: Optional[int] = None, db=Depends(get_db_session)):
    """Dangling envelopes and unbound records per registered content type."""
    return orphan_report(db, limit=limit)


@router.get("/{guid}")
async def get_content(guid: str, db=Depends(get_db_session)):
    envelope = _get_envelope(db, guid)
    return {"status": "ok", "content": _serialize_envelope(envelope)}


@router.post("/{guid}/move")
async def move_content(
    guid: str,
    container: str,
    force: bool = False,
    db=Depends(get_db_session),
    context: RequestContext = Depends(get_request_context),
):
    """Move content to another container; a refused move answers 409."""
    envelope = _get_envelope(db, guid)
    target = Collaborators.containers.resolve(db, _container_ref(container))

    result = envelope.move(target, force=force)
    if not result:
        return JSONResponse(
            status_code=409,
            content={"status": "denied", "reason": result.reason},
        )

    config.logger.info(
        "content_move_request",
        extra={
            "content_guid": guid,
            "container_id": target.id,
            "forced": force,
            "request_id": context.request_id,
        },
    )
    return {"status": "moved", "content": _serialize_envelope(envelope)}
