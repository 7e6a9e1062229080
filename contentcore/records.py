"""
ContentRecord: base for every model that carries a content envelope.

Each instance belongs to exactly one ``ContentEnvelope`` reachable through
``record.envelope``. The envelope exists in memory before the record is first
inserted, so container, visibility and title can be assigned up front:

    note = Note(space, Visibility.PRIVATE, message="Hello")
    note.content_title = "Hello world"
    note.save(db)

A container must be assigned before saving.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum as PyEnum
from typing import ClassVar, Iterable, Optional

from sqlalchemy import inspect
from sqlalchemy.orm import object_session

import contentcore.config as config
from contentcore.collaborators import Collaborators
from contentcore.context import resolve_actor_id
from contentcore.db import transaction
from contentcore.errors import (
    ConfigurationError,
    ContentValidationError,
    MoveDenied,
    SaveAborted,
    ValidationIssue,
)
from contentcore.models import ContentContainer, ContentEnvelope, Visibility, default_visibility
from contentcore.permissions import MANAGE_CONTENT, RuleLike, as_rule
from contentcore.query import ContentQuery

logger = config.logger


class BindingState(str, PyEnum):
    UNBOUND = "unbound"
    MATERIALIZED = "materialized"
    LINKED = "linked"
    DELETED = "deleted"


@dataclass(frozen=True)
class Label:
    text: str
    kind: str = "default"
    icon: Optional[str] = None
    sort_order: int = 1000


def sort_labels(labels: Iterable[Label]) -> list[Label]:
    return sorted(labels, key=lambda label: label.sort_order)


# =============================================================================
# Content type registry
# =============================================================================

CONTENT_TYPES: dict[str, type] = {}


def get_content_type(object_model: str) -> type:
    model = CONTENT_TYPES.get(object_model)
    if model is None:
        raise ValidationIssue(
            f"Unsupported content type: {object_model}",
            field="object_model",
            error_type="invalid_type",
        )
    return model


def _register_content_type(cls) -> None:
    tag = cls.object_model()
    if tag != cls.content_type:
        return
    existing = CONTENT_TYPES.get(tag)
    if existing is not None and existing.__qualname__ != cls.__qualname__:
        raise ValueError(
            f"Content type '{tag}' already registered by {existing.__module__}.{existing.__qualname__}"
        )
    CONTENT_TYPES[tag] = cls


# =============================================================================
# ContentRecord
# =============================================================================

class ContentRecord:
    """Mix in ahead of ``Base``: ``class Note(ContentRecord, Base)``.

    Mapped subclasses need an integer primary key named ``id``.
    """

    content_type: ClassVar[str] = ""

    auto_follow: ClassVar[bool] = True
    stream_channel: ClassVar[Optional[str]] = config.DEFAULT_STREAM_CHANNEL
    move_enabled: ClassVar[bool] = False
    move_permission: ClassVar[RuleLike] = None
    manage_permission: ClassVar[RuleLike] = MANAGE_CONTENT
    create_permission: ClassVar[RuleLike] = None
    icon: ClassVar[Optional[str]] = None

    _envelope = None
    _binding_state = BindingState.UNBOUND

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if "move" in cls.__dict__:
            raise TypeError(f"{cls.__name__} may not override move(); implement after_move() instead")
        if not cls.__dict__.get("content_type"):
            cls.content_type = cls.__name__.lower()
        if cls.__dict__.get("__abstract__"):
            return
        _register_content_type(cls)

    def __init__(self, container: Optional[ContentContainer] = None, visibility=None, **kwargs):
        super().__init__(**kwargs)
        if container is not None:
            self.content_container = container
        if visibility is not None:
            self.content_visibility = visibility

    # -- type resolution ------------------------------------------------------

    @classmethod
    def object_model(cls) -> str:
        """Tag stored in ``content.object_model``; families override to share one."""
        return cls.content_type

    @classmethod
    def family_model(cls) -> type:
        return CONTENT_TYPES.get(cls.object_model(), cls)

    @classmethod
    def find(cls, db, record_id: int):
        return db.get(cls, record_id)

    @classmethod
    def content_query(cls, db) -> ContentQuery:
        return ContentQuery(db, cls)

    # -- envelope binding -----------------------------------------------------

    @property
    def binding_state(self) -> BindingState:
        return self._binding_state

    @property
    def envelope(self) -> ContentEnvelope:
        """The bound envelope; created in memory on first access when none exists.

        Once materialized the instance is cached for the lifetime of this
        record and never re-read from storage.
        """
        if self._envelope is not None:
            return self._envelope

        envelope = None
        persisted = inspect(self).has_identity
        db = object_session(self)
        if db is not None and persisted:
            with db.no_autoflush:
                envelope = ContentQuery(db, type(self)).envelope_for(self.id)

        if envelope is None:
            # A persisted record without an envelope row gets a fully pointed one
            envelope = ContentEnvelope(
                object_model=self.object_model(),
                object_id=self.id if persisted else None,
                visibility=default_visibility(),
                stream_channel=self.stream_channel,
                pinned=False,
                archived=False,
            )
            self._binding_state = BindingState.MATERIALIZED
        else:
            self._binding_state = BindingState.LINKED

        envelope.bind(self)
        self._envelope = envelope
        return envelope

    def bind_envelope(self, envelope: ContentEnvelope) -> None:
        if self._envelope is not None:
            return
        envelope.bind(self)
        self._envelope = envelope
        self._binding_state = BindingState.LINKED

    # -- envelope pass-throughs -----------------------------------------------

    @property
    def content_title(self) -> Optional[str]:
        return self.envelope.title

    @content_title.setter
    def content_title(self, title: Optional[str]) -> None:
        self.envelope.title = title

    @property
    def content_visibility(self):
        return self.envelope.visibility

    @content_visibility.setter
    def content_visibility(self, visibility) -> None:
        if isinstance(visibility, str):
            visibility = Visibility.from_name(visibility)
        if isinstance(visibility, int) and not isinstance(visibility, bool):
            visibility = int(visibility)
        self.envelope.visibility = visibility

    @property
    def content_container(self) -> Optional[ContentContainer]:
        return self.envelope.container

    @content_container.setter
    def content_container(self, container: ContentContainer) -> None:
        if not isinstance(container, ContentContainer):
            raise ValidationIssue(
                "Invalid content container given!",
                field="content_container",
                error_type="invalid_type",
            )
        self.envelope.container = container

    def assign_container(self, db, container_ref) -> ContentContainer:
        container = Collaborators.containers.resolve(db, container_ref)
        self.content_container = container
        return container

    # -- presentation metadata ------------------------------------------------

    def content_name(self) -> str:
        return type(self).__name__

    def content_description(self) -> str:
        return ""

    def labels(self, extra: Iterable[Label] = (), include_content_name: bool = True) -> list[Label]:
        """Descriptive labels ordered by ``sort_order``; ties keep insertion order."""
        envelope = self.envelope
        labels = list(extra)
        if envelope.is_pinned():
            labels.append(Label("Pinned", "danger", "fa-map-pin", 100))
        if envelope.is_archived():
            labels.append(Label("Archived", "warning", "fa-archive", 200))
        if envelope.is_public():
            labels.append(Label("Public", "info", "fa-globe", 300))
        if include_content_name:
            labels.append(Label(self.content_name(), "default", self.icon, 400))
        for topic in envelope.topics:
            labels.append(Label(topic.name, "topic", "fa-star", topic.sort_order))
        return sort_labels(labels)

    # -- ownership ------------------------------------------------------------

    def get_owner(self) -> Optional[int]:
        return self.envelope.created_by

    def is_owner(self, actor_id: Optional[int] = None) -> bool:
        actor = resolve_actor_id(actor_id)
        if actor is None:
            return False
        return self.envelope.created_by == actor

    def can_manage(self, actor_id: Optional[int] = None, container: Optional[ContentContainer] = None) -> bool:
        rule = as_rule(self.manage_permission)
        if rule is None:
            return False
        return rule.evaluate(resolve_actor_id(actor_id), container or self.envelope.container)

    # -- validation -----------------------------------------------------------

    def validate_fields(self) -> dict[str, list[str]]:
        """Domain validation hook for concrete types; returns field -> messages."""
        return {}

    def validate(self, actor_id: Optional[int] = None, insert: bool = False) -> None:
        errors: dict[str, list[str]] = {}
        if insert:
            rule = as_rule(self.create_permission)
            if rule is not None and not rule.evaluate(actor_id, self.envelope.container):
                errors.setdefault("content_container", []).append(
                    "You are not allowed to create this content."
                )
        for field, messages in self.validate_fields().items():
            errors.setdefault(field, []).extend(messages)
        if errors:
            raise ContentValidationError(errors)

    # -- lifecycle hooks ------------------------------------------------------

    def before_save(self, insert: bool) -> None:
        pass

    def after_save(self, insert: bool) -> None:
        pass

    def after_move(self, container: Optional[ContentContainer]) -> None:
        """Called inside the move transaction; cascade to owned sub-records here."""

    # -- persistence ----------------------------------------------------------

    def _reset_identity(self) -> None:
        mapper = inspect(type(self))
        for column in mapper.primary_key:
            setattr(self, mapper.get_property_by_column(column).key, None)

    def save(self, db=None, actor_id: Optional[int] = None):
        """Validate the envelope, then persist record and envelope in one transaction.

        Without ``db`` the record's own session is used; a detached record
        needs one passed in, and the caller owns it.

        Raises ConfigurationError without a container, SaveAborted when the
        envelope is invalid and ContentValidationError when the record is.
        Nothing is written in any of those cases.
        """
        if db is None:
            db = object_session(self)
        if db is None:
            raise RuntimeError(f"{type(self).__name__} is not attached to a session; pass db to save()")
        insert = not inspect(self).has_identity
        envelope = self.envelope
        if envelope.container is None:
            raise ConfigurationError(
                f"{type(self).__name__} must be assigned a content container before it is saved"
            )

        actor = resolve_actor_id(actor_id)
        relink = not inspect(envelope).has_identity
        if relink and envelope.created_by is None:
            envelope.created_by = actor

        try:
            envelope.validate(actor)
        except ContentValidationError as exc:
            logger.info(
                "content_validation_failed",
                extra={"object_model": self.object_model(), "fields": sorted(exc.errors)},
            )
            raise SaveAborted(exc) from exc
        self.validate(actor if actor is not None else envelope.created_by, insert=insert)

        envelope.stream_channel = self.stream_channel

        try:
            with transaction(db):
                db.add(self)
                self.before_save(insert)
                db.flush()
                if relink:
                    envelope.declare_owner_type(self.object_model())
                    envelope.object_id = self.id
                if not insert and actor is not None:
                    envelope.updated_by = actor
                db.add(envelope)
                db.flush()
                if self.auto_follow and envelope.created_by is not None:
                    Collaborators.follows.follow(envelope.created_by, self)
                self.after_save(insert)
        except Exception:
            if relink and not inspect(envelope).has_identity:
                envelope.id = None
            if insert:
                envelope.object_id = None
                self._reset_identity()
            raise

        self._binding_state = BindingState.LINKED
        logger.debug(
            "content_saved",
            extra={"object_model": self.object_model(), "object_id": self.id, "insert": insert},
        )
        return self

    def delete(self, db=None) -> None:
        """Delete the record, then its envelope; a missing envelope is tolerated."""
        if db is None:
            db = object_session(self)
        if db is None or not inspect(self).has_identity:
            raise RuntimeError(f"{type(self).__name__} is not persisted")

        record_id = self.id
        object_model = self.object_model()
        with transaction(db):
            Collaborators.follows.unfollow_all(self)
            db.delete(self)
            db.flush()
            envelope = ContentQuery(db, type(self)).envelope_for(record_id)
            if envelope is not None:
                db.delete(envelope)
            else:
                logger.warning(
                    "content_envelope_missing",
                    extra={"object_model": object_model, "object_id": record_id},
                )

        self._binding_state = BindingState.DELETED

    # -- moving ---------------------------------------------------------------

    def can_move(self, container: Optional[ContentContainer] = None, actor_id: Optional[int] = None):
        """Type-level move check. Returns True or a MoveDenied value, never raises."""
        if not self.move_enabled:
            return MoveDenied("This content type can't be moved.")

        rule = as_rule(self.move_permission)
        if container is not None and rule is not None:
            if not rule.evaluate(self.envelope.created_by, container):
                return MoveDenied(
                    "The author of this content is not allowed to create this type of content within this space."
                )
        return True

    def move(self, container: Optional[ContentContainer] = None, force: bool = False, actor_id: Optional[int] = None):
        return self.envelope.move(container, force=force, actor_id=actor_id)


__all__ = [
    "BindingState",
    "Label",
    "sort_labels",
    "CONTENT_TYPES",
    "get_content_type",
    "ContentRecord",
]
