"""
Type-filtered queries over content envelopes.

Record ids are only unique per record table, so every lookup here is
restricted to the declared base type of the record class it was built for.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import and_

from contentcore.models import ContentContainer, ContentEnvelope


class ContentQuery:
    def __init__(self, db, model, criteria: Optional[tuple] = None):
        self.db = db
        self.model = model
        self.object_model = model.object_model()
        if criteria is None:
            criteria = (ContentEnvelope.object_model == self.object_model,)
        self._criteria = criteria

    def _chain(self, criterion) -> "ContentQuery":
        return ContentQuery(self.db, self.model, self._criteria + (criterion,))

    # -- filters --------------------------------------------------------------

    def in_container(self, container) -> "ContentQuery":
        container_id = container.id if isinstance(container, ContentContainer) else container
        return self._chain(ContentEnvelope.contentcontainer_id == container_id)

    def with_visibility(self, *visibilities) -> "ContentQuery":
        return self._chain(ContentEnvelope.visibility.in_([int(v) for v in visibilities]))

    def pinned(self, flag: bool = True) -> "ContentQuery":
        return self._chain(ContentEnvelope.pinned == flag)

    def archived(self, flag: bool = True) -> "ContentQuery":
        return self._chain(ContentEnvelope.archived == flag)

    def created_by(self, actor_id: int) -> "ContentQuery":
        return self._chain(ContentEnvelope.created_by == actor_id)

    def in_stream(self, channel: str) -> "ContentQuery":
        return self._chain(ContentEnvelope.stream_channel == channel)

    # -- envelopes ------------------------------------------------------------

    def _envelope_query(self):
        return self.db.query(ContentEnvelope).filter(*self._criteria)

    def envelopes(self, limit: Optional[int] = None) -> list[ContentEnvelope]:
        query = self._envelope_query().order_by(ContentEnvelope.id)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def envelope_for(self, record_id: int) -> Optional[ContentEnvelope]:
        return self._envelope_query().filter(ContentEnvelope.object_id == record_id).first()

    def count(self) -> int:
        return self._envelope_query().count()

    # -- records --------------------------------------------------------------

    def records(self, limit: Optional[int] = None) -> list:
        """Records joined to their envelopes; each record comes back already bound."""
        model = self.model
        query = (
            self.db.query(model, ContentEnvelope)
            .join(ContentEnvelope, and_(ContentEnvelope.object_id == model.id, *self._criteria))
            .order_by(model.id)
        )
        if limit is not None:
            query = query.limit(limit)
        results = []
        for record, envelope in query.all():
            record.bind_envelope(envelope)
            results.append(record)
        return results

    # -- integrity ------------------------------------------------------------

    def dangling_envelopes(self, limit: Optional[int] = None) -> list[ContentEnvelope]:
        """Envelopes of this type whose record row no longer exists."""
        family = self.model.family_model()
        query = (
            self.db.query(ContentEnvelope)
            .outerjoin(family, family.id == ContentEnvelope.object_id)
            .filter(*self._criteria)
            .filter(family.id.is_(None))
            .order_by(ContentEnvelope.id)
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def unbound_records(self, limit: Optional[int] = None) -> list:
        """Records of this class that have no envelope."""
        model = self.model
        query = (
            self.db.query(model)
            .outerjoin(ContentEnvelope, and_(ContentEnvelope.object_id == model.id, *self._criteria))
            .filter(ContentEnvelope.id.is_(None))
            .order_by(model.id)
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()
