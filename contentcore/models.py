"""
Content core database models.

The ``content`` table holds one envelope per content-bearing record, linked
back to the record through the ``(object_model, object_id)`` pointer.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import IntEnum
import uuid

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, ForeignKey,
    Index, UniqueConstraint, Table, event,
)
from sqlalchemy.orm import declarative_base, object_session, relationship

import contentcore.config as config
from contentcore.context import resolve_actor_id
from contentcore.errors import (
    ConfigurationError,
    ContentValidationError,
    MoveDenied,
    ValidationIssue,
)
from contentcore.validators import validate_optional_text, validate_required_text

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _guid_default() -> str:
    return str(uuid.uuid4())


# =============================================================================
# Enums
# =============================================================================

class Visibility(IntEnum):
    PRIVATE = 0
    PUBLIC = 1
    OWNER_ONLY = 2

    @classmethod
    def from_name(cls, name: str) -> "Visibility":
        try:
            return cls[name.strip().upper()]
        except KeyError as exc:
            raise ValidationIssue(
                f"Unknown visibility: {name}",
                field="visibility",
                error_type="invalid_choice",
            ) from exc


def default_visibility() -> int:
    return int(Visibility.from_name(config.DEFAULT_VISIBILITY))


# =============================================================================
# Containers (spaces, user profiles)
# =============================================================================

class ContentContainer(Base):
    __tablename__ = "content_containers"

    id = Column(Integer, primary_key=True)
    guid = Column(String(45), nullable=False, unique=True, default=_guid_default)
    container_type = Column(String(50), nullable=False)  # "space", "user"
    name = Column(String(255), nullable=False)
    owner_id = Column(Integer)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    permissions = relationship(
        "ContainerPermission",
        back_populates="container",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_content_containers_type", "container_type"),
    )

    def can(self, actor_id, capability: str) -> bool:
        """Capability check for ``actor_id`` through the configured resolver."""
        from contentcore.collaborators import Collaborators

        return Collaborators.permissions.can(actor_id, self, capability)

    def __repr__(self) -> str:
        return f"<ContentContainer {self.container_type}:{self.id} {self.name!r}>"


class ContainerPermission(Base):
    __tablename__ = "container_permissions"

    id = Column(Integer, primary_key=True)
    contentcontainer_id = Column(
        Integer,
        ForeignKey("content_containers.id", ondelete="CASCADE"),
        nullable=False,
    )
    capability = Column(String(100), nullable=False)
    actor_id = Column(Integer)  # NULL grants to every actor
    allowed = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    container = relationship("ContentContainer", back_populates="permissions")

    __table_args__ = (
        UniqueConstraint(
            "contentcontainer_id",
            "capability",
            "actor_id",
            name="uq_container_permissions_grant",
        ),
        Index("ix_container_permissions_lookup", "contentcontainer_id", "capability"),
    )


# =============================================================================
# Topics
# =============================================================================

content_topic_links = Table(
    "content_topic_links",
    Base.metadata,
    Column("content_id", Integer, ForeignKey("content.id", ondelete="CASCADE"), primary_key=True),
    Column("topic_id", Integer, ForeignKey("content_topics.id", ondelete="CASCADE"), primary_key=True),
)


class ContentTopic(Base):
    __tablename__ = "content_topics"

    id = Column(Integer, primary_key=True)
    contentcontainer_id = Column(
        Integer,
        ForeignKey("content_containers.id", ondelete="CASCADE"),
        nullable=False,
    )
    name = Column(String(100), nullable=False)
    sort_order = Column(Integer, default=1000, nullable=False)

    __table_args__ = (
        UniqueConstraint("contentcontainer_id", "name", name="uq_content_topics_container_name"),
    )


# =============================================================================
# Content envelope
# =============================================================================

class ContentEnvelope(Base):
    __tablename__ = "content"

    id = Column(Integer, primary_key=True)
    guid = Column(String(45), nullable=False, unique=True, default=_guid_default)

    # Polymorphic pointer to the owning record
    object_model = Column(String(100), nullable=False)
    object_id = Column(Integer, nullable=False)

    contentcontainer_id = Column(Integer, ForeignKey("content_containers.id"), nullable=False)
    visibility = Column(Integer, nullable=False, default=default_visibility)
    title = Column(String(255))
    pinned = Column(Boolean, default=False, nullable=False)
    archived = Column(Boolean, default=False, nullable=False)
    stream_channel = Column(String(50))

    created_by = Column(Integer)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_by = Column(Integer)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    container = relationship("ContentContainer")
    topics = relationship(
        "ContentTopic",
        secondary=content_topic_links,
        order_by="ContentTopic.sort_order",
    )

    __table_args__ = (
        UniqueConstraint("object_model", "object_id", name="uq_content_object"),
        Index("ix_content_container", "contentcontainer_id"),
        Index("ix_content_stream_channel", "stream_channel"),
    )

    # -- predicates -----------------------------------------------------------

    def is_pinned(self) -> bool:
        return bool(self.pinned)

    def is_archived(self) -> bool:
        return bool(self.archived)

    def is_public(self) -> bool:
        return self.visibility == Visibility.PUBLIC

    def is_private(self) -> bool:
        return self.visibility == Visibility.PRIVATE

    def is_owner_only(self) -> bool:
        return self.visibility == Visibility.OWNER_ONLY

    # -- moderation -----------------------------------------------------------

    def pin(self) -> None:
        self.pinned = True

    def unpin(self) -> None:
        self.pinned = False

    def archive(self) -> None:
        self.archived = True

    def unarchive(self) -> None:
        self.archived = False

    # -- polymorphic pointer --------------------------------------------------

    def declare_owner_type(self, object_model: str) -> None:
        """Tag this envelope with a family base type instead of the concrete one."""
        validate_required_text(object_model, "object_model", config.MAX_OBJECT_MODEL_LENGTH)
        self.object_model = object_model

    def bind(self, record) -> None:
        self._owner = record

    def get_model(self):
        """The record owning this envelope, loaded through the type registry."""
        owner = getattr(self, "_owner", None)
        if owner is not None:
            return owner
        if self.object_model is None or self.object_id is None:
            return None

        from contentcore.records import get_content_type

        db = object_session(self)
        if db is None:
            return None
        model = db.get(get_content_type(self.object_model), self.object_id)
        if model is not None:
            model.bind_envelope(self)
        return model

    # -- validation -----------------------------------------------------------

    def validate(self, actor_id=None) -> None:
        """Check visibility and container rules, raising ContentValidationError."""
        from contentcore.permissions import CREATE_PUBLIC_CONTENT

        container = self.container
        if container is None:
            raise ConfigurationError("Content container must be set before the content is saved")

        errors: dict[str, list[str]] = {}
        try:
            validate_optional_text(self.title, "title", config.MAX_TITLE_LENGTH)
        except ValidationIssue as exc:
            errors.setdefault(exc.field, []).append(str(exc))

        try:
            visibility = Visibility(self.visibility)
        except ValueError:
            errors.setdefault("visibility", []).append("Invalid visibility mode!")
        else:
            actor = resolve_actor_id(actor_id)
            if actor is None:
                actor = self.created_by
            if visibility == Visibility.PUBLIC and not container.can(actor, CREATE_PUBLIC_CONTENT):
                errors.setdefault("visibility", []).append(
                    "You are not allowed to create public content."
                )

        if errors:
            raise ContentValidationError(errors)

    # -- moving ---------------------------------------------------------------

    def _check_move_permission(self, model, actor_id, container=None) -> bool:
        if actor_id is not None and actor_id == self.created_by:
            return True
        return model.can_manage(actor_id, container or self.container)

    def can_move(self, container=None, actor_id=None):
        """Return True when the move is allowed, otherwise a MoveDenied value."""
        model = self.get_model()
        if model is None:
            return MoveDenied("The content record of this entry could not be found.")

        model_check = model.can_move(container)
        if model_check is not True:
            return model_check

        actor = resolve_actor_id(actor_id)
        if container is None:
            if self._check_move_permission(model, actor):
                return True
            return MoveDenied("You do not have the permission to move this content.")

        if container.id == self.contentcontainer_id:
            return MoveDenied("The content can't be moved to its current space.")

        if not self._check_move_permission(model, actor):
            return MoveDenied("You do not have the permission to move this content.")

        if not self._check_move_permission(model, actor, container):
            return MoveDenied("You do not have the permission to move this content to the given space.")

        return True

    def move(self, container, force: bool = False, actor_id=None):
        """Reassign the container, returning this envelope or a MoveDenied value.

        Topic links are container scoped and are dropped. The owning record's
        ``after_move`` hook runs in the same transaction.
        """
        from contentcore.db import transaction

        if container is None:
            return MoveDenied("No target space given.")

        allowed = True if force else self.can_move(container, actor_id)
        if allowed is not True:
            config.logger.info(
                "content_move_denied",
                extra={"content_id": self.id, "reason": allowed.reason},
            )
            return allowed

        model = self.get_model()
        db = object_session(self)
        if db is None:
            self.container = container
            self.topics = []
            return self

        with transaction(db):
            self.container = container
            self.topics = []
            self.updated_by = resolve_actor_id(actor_id)
            db.flush()
            if model is not None:
                model.after_move(container)
        config.logger.info(
            "content_moved",
            extra={"content_id": self.id, "container_id": container.id, "forced": force},
        )
        return self

    def __repr__(self) -> str:
        return f"<ContentEnvelope {self.id} {self.object_model}:{self.object_id}>"


# =============================================================================
# Follows
# =============================================================================

class ContentFollow(Base):
    __tablename__ = "content_follows"

    id = Column(Integer, primary_key=True)
    object_model = Column(String(100), nullable=False)
    object_id = Column(Integer, nullable=False)
    user_id = Column(Integer, nullable=False)
    send_notifications = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        UniqueConstraint("object_model", "object_id", "user_id", name="uq_content_follows_target_user"),
        Index("ix_content_follows_target", "object_model", "object_id"),
    )


@event.listens_for(ContentEnvelope, "before_insert")
def _require_container_before_insert(mapper, connection, target) -> None:
    if target.contentcontainer_id is None and target.container is None:
        raise ConfigurationError("Content container must be set before the content is saved")


__all__ = [
    "Base",
    "Visibility",
    "default_visibility",
    "ContentContainer",
    "ContainerPermission",
    "ContentTopic",
    "content_topic_links",
    "ContentEnvelope",
    "ContentFollow",
]
