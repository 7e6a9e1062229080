import os
from concurrent.futures import ThreadPoolExecutor

os.environ.setdefault("DB_BACKEND", "sqlite")

from contentcore.db import open_session
from contentcore.models import ContentContainer, ContentEnvelope

from conftest import AUTHOR, Note, make_space


def _save_note(space_id: int, message: str) -> int:
    db = open_session()
    try:
        space = db.get(ContentContainer, space_id)
        note = Note(space, message=message)
        note.save(db, actor_id=AUTHOR)
        return note.envelope.object_id
    finally:
        db.close()


def test_concurrent_saves_get_distinct_envelopes(server_db):
    db = server_db()
    try:
        space_id = make_space(db, "Busy Space", grants=("create_note",)).id
    finally:
        db.close()

    messages = ["Concurrent note 1", "Concurrent note 2"]
    with ThreadPoolExecutor(max_workers=2) as executor:
        object_ids = list(executor.map(_save_note, [space_id] * len(messages), messages))

    assert len(set(object_ids)) == 2

    db = server_db()
    try:
        assert Note.content_query(db).count() == 2
        envelopes = db.query(ContentEnvelope).all()
        assert sorted(envelope.object_id for envelope in envelopes) == sorted(object_ids)
    finally:
        db.close()
