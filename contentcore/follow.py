"""
Follow registry: who observes which content record.
"""

from __future__ import annotations

from typing import Optional, Protocol

from sqlalchemy.orm import object_session

from contentcore.models import ContentFollow


class FollowRegistry(Protocol):
    def follow(self, actor_id: int, record, send_notifications: bool = True) -> None:
        ...

    def unfollow_all(self, record) -> int:
        ...


class StoredFollowRegistry:
    """Follow rows keyed by the record's declared base type and id.

    Writes go through the record's own session so they join its transaction.
    """

    def _session(self, record):
        db = object_session(record)
        if db is None:
            raise RuntimeError("Record must be attached to a session to change follows")
        return db

    def _query(self, db, record):
        return (
            db.query(ContentFollow)
            .filter(ContentFollow.object_model == record.object_model())
            .filter(ContentFollow.object_id == record.id)
        )

    def follow(self, actor_id: int, record, send_notifications: bool = True) -> None:
        db = self._session(record)
        existing = self._query(db, record).filter(ContentFollow.user_id == actor_id).first()
        if existing is not None:
            existing.send_notifications = send_notifications
            return
        db.add(
            ContentFollow(
                object_model=record.object_model(),
                object_id=record.id,
                user_id=actor_id,
                send_notifications=send_notifications,
            )
        )

    def unfollow_all(self, record) -> int:
        db = self._session(record)
        return self._query(db, record).delete(synchronize_session=False)

    def followers(self, record) -> list[int]:
        db = self._session(record)
        return [row.user_id for row in self._query(db, record).order_by(ContentFollow.id).all()]

    def is_following(self, actor_id: Optional[int], record) -> bool:
        if actor_id is None:
            return False
        db = self._session(record)
        return self._query(db, record).filter(ContentFollow.user_id == actor_id).first() is not None
