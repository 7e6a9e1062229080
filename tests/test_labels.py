from contentcore.models import ContentTopic, Visibility
from contentcore.records import Label, sort_labels

from conftest import AUTHOR, SPACE_OWNER, Note


def _texts(labels):
    return [label.text for label in labels]


def test_default_labels_follow_envelope_flags(space):
    note = Note(space, Visibility.PUBLIC, message="Labelled")
    assert _texts(note.labels()) == ["Public", "Note"]

    note.envelope.pin()
    note.envelope.archive()
    labels = note.labels()
    assert _texts(labels) == ["Pinned", "Archived", "Public", "Note"]
    assert labels[0] == Label("Pinned", "danger", "fa-map-pin", 100)
    assert labels[-1].icon == "fa-sticky-note"

    note.envelope.unpin()
    note.envelope.unarchive()
    assert _texts(note.labels(include_content_name=False)) == ["Public"]


def test_extra_labels_keep_insertion_order_on_ties(space):
    note = Note(space, message="Ties")
    note.envelope.pin()
    extra = [Label("Draft", sort_order=100), Label("Review", sort_order=400)]

    assert _texts(note.labels(extra=extra)) == ["Draft", "Pinned", "Review", "Note"]


def test_topic_labels_sort_by_topic_order(db_session, space):
    note = Note(space, Visibility.PUBLIC, message="Topics")
    note.save(db_session, actor_id=SPACE_OWNER)
    early = ContentTopic(contentcontainer_id=space.id, name="Roadmap", sort_order=50)
    late = ContentTopic(contentcontainer_id=space.id, name="Archive", sort_order=2000)
    db_session.add_all([early, late])
    note.envelope.topics.extend([late, early])
    db_session.commit()

    labels = note.labels()
    assert _texts(labels) == ["Roadmap", "Public", "Note", "Archive"]
    assert labels[0].kind == "topic"


def test_sort_labels_is_stable():
    labels = [Label("b", sort_order=5), Label("a", sort_order=1), Label("c", sort_order=5)]
    assert _texts(sort_labels(labels)) == ["a", "b", "c"]


def test_content_metadata_defaults(db_session, space):
    note = Note(space, message="Describe me")
    note.save(db_session, actor_id=AUTHOR)
    assert note.content_name() == "Note"
    assert note.content_description() == "Describe me"
