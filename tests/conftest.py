import os

os.environ.setdefault("DB_BACKEND", "sqlite")
os.environ.setdefault("AUTO_MIGRATE_ON_STARTUP", "true")

import pytest
from sqlalchemy import Boolean, Column, Integer, String, Text, create_engine
from sqlalchemy.orm import sessionmaker

from contentcore.collaborators import reset_collaborators
from contentcore.context import (
    AuthContext,
    RequestContext,
    reset_current_request_context,
    set_current_request_context,
)
from contentcore.db import DB, upgrade_schema
from contentcore.models import Base, ContentContainer
from contentcore.records import ContentRecord
from contentcore.permissions import set_permission


SPACE_OWNER = 1
AUTHOR = 2
STRANGER = 3


# =============================================================================
# Content families used across the suite
# =============================================================================

class Note(ContentRecord, Base):
    __tablename__ = "test_notes"

    id = Column(Integer, primary_key=True)
    kind = Column(String(20), nullable=False, default="note")
    message = Column(Text)
    has_url = Column(Boolean, default=False, nullable=False)

    __mapper_args__ = {"polymorphic_on": kind, "polymorphic_identity": "note"}

    create_permission = "create_note"
    icon = "fa-sticky-note"

    def content_name(self) -> str:
        return "Note"

    def content_description(self) -> str:
        return self.message or ""

    def validate_fields(self) -> dict:
        if not self.message or not self.message.strip():
            return {"message": ["Message cannot be blank."]}
        return {}

    def before_save(self, insert: bool) -> None:
        message = self.message or ""
        self.has_url = "http://" in message or "https://" in message


class ChecklistNote(Note):
    __mapper_args__ = {"polymorphic_identity": "checklist"}

    @classmethod
    def object_model(cls) -> str:
        return Note.content_type

    def content_name(self) -> str:
        return "Checklist"


class Event(ContentRecord, Base):
    __tablename__ = "test_events"

    id = Column(Integer, primary_key=True)
    summary = Column(String(255), nullable=False)
    move_count = Column(Integer, default=0, nullable=False)

    stream_channel = "calendar"
    move_enabled = True
    move_permission = "create_event"
    icon = "fa-calendar"

    def content_name(self) -> str:
        return "Event"

    def after_move(self, container) -> None:
        self.move_count = (self.move_count or 0) + 1


# =============================================================================
# Fixtures
# =============================================================================

def _make_engine(db_path):
    return create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )


@pytest.fixture
def engine(tmp_path):
    engine = _make_engine(tmp_path / "content.sqlite")
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def server_db(tmp_path):
    """Point the DB holder at a migrated sqlite database for app-level tests."""
    db_path = tmp_path / "server.sqlite"
    upgrade_schema(f"sqlite:///{db_path}")
    engine = _make_engine(db_path)
    # Test-only record tables live outside the migration history
    Base.metadata.create_all(engine)
    previous_engine = DB.engine
    previous_session = DB.SessionLocal
    DB.engine = engine
    DB.SessionLocal = sessionmaker(bind=engine)
    try:
        yield DB.SessionLocal
    finally:
        DB.engine = previous_engine
        DB.SessionLocal = previous_session
        engine.dispose()


@pytest.fixture(autouse=True)
def _reset_collaborators():
    reset_collaborators()
    yield
    reset_collaborators()


@pytest.fixture
def acting_as():
    """Install a request context for the given user id until the test ends."""
    tokens = []

    def _act(user_id):
        context = RequestContext(
            auth=AuthContext(user_id=user_id, actor="user"),
            request_id="test-request",
            source="test",
        )
        tokens.append(set_current_request_context(context))

    yield _act
    while tokens:
        reset_current_request_context(tokens.pop())


def make_space(db, name: str, owner_id=SPACE_OWNER, grants=()) -> ContentContainer:
    space = ContentContainer(container_type="space", name=name, owner_id=owner_id)
    db.add(space)
    db.flush()
    for capability in grants:
        set_permission(db, space, capability)
    db.commit()
    return space


@pytest.fixture
def space(db_session):
    return make_space(db_session, "Welcome Space", grants=("create_note", "create_event"))


@pytest.fixture
def other_space(db_session):
    return make_space(db_session, "Project Space", grants=("create_note", "create_event"))
