"""
Detection of envelope/record inconsistencies left by non-atomic deletes.
"""

from __future__ import annotations

from typing import Optional

import contentcore.config as config
from contentcore.models import ContentEnvelope
from contentcore.query import ContentQuery
from contentcore.records import CONTENT_TYPES
from contentcore.validators import validate_limit

logger = config.logger


def orphan_report(db, limit: Optional[int] = None) -> dict:
    """Dangling envelopes and unbound records per registered content type.

    Envelopes tagged with a type nobody registered are reported under
    ``unknown_types``.
    """
    if limit is None:
        limit = config.ORPHAN_REPORT_LIMIT
    validate_limit(limit, "limit", max(config.ORPHAN_REPORT_LIMIT, 1))

    types = {}
    for tag, model in sorted(CONTENT_TYPES.items()):
        query = ContentQuery(db, model)
        dangling = [envelope.id for envelope in query.dangling_envelopes(limit=limit)]
        unbound = [record.id for record in query.unbound_records(limit=limit)]
        if dangling or unbound:
            logger.warning(
                "content_orphans_detected",
                extra={"object_model": tag, "dangling": len(dangling), "unbound": len(unbound)},
            )
        types[tag] = {
            "dangling_envelope_ids": dangling,
            "unbound_record_ids": unbound,
        }

    unknown_rows = (
        db.query(ContentEnvelope.object_model, ContentEnvelope.id)
        .filter(ContentEnvelope.object_model.notin_(list(CONTENT_TYPES)))
        .order_by(ContentEnvelope.id)
        .limit(limit)
        .all()
    )
    unknown: dict[str, list[int]] = {}
    for object_model, envelope_id in unknown_rows:
        unknown.setdefault(object_model, []).append(envelope_id)
    if unknown:
        logger.warning("content_unknown_types", extra={"object_models": sorted(unknown)})

    return {
        "status": "ok",
        "types": types,
        "unknown_types": unknown,
        "orphan_count": sum(
            len(entry["dangling_envelope_ids"]) + len(entry["unbound_record_ids"])
            for entry in types.values()
        ) + sum(len(ids) for ids in unknown.values()),
    }
