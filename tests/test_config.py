import importlib
import os

import pytest

os.environ.setdefault("DB_BACKEND", "sqlite")

import contentcore.config as config
from contentcore.errors import SaveAborted

from conftest import AUTHOR, Note


def _use_sqlite(monkeypatch):
    monkeypatch.setattr(config, "DB_BACKEND", "sqlite")
    monkeypatch.setattr(config, "DATABASE_URL", "sqlite:///:memory:")


def test_non_positive_orphan_limit_is_rejected(monkeypatch):
    _use_sqlite(monkeypatch)
    monkeypatch.setattr(config, "ORPHAN_REPORT_LIMIT", 0)

    with pytest.raises(RuntimeError, match="ORPHAN_REPORT_LIMIT must be a positive integer"):
        config.validate_and_prepare_config()


def test_valid_settings_pass(monkeypatch):
    _use_sqlite(monkeypatch)
    monkeypatch.setattr(config, "ORPHAN_REPORT_LIMIT", 25)

    config.validate_and_prepare_config()


def test_input_limits_read_unprefixed_env_names(monkeypatch):
    monkeypatch.setenv("MAX_TITLE_LENGTH", "40")
    monkeypatch.setenv("MAX_CAPABILITY_LENGTH", "30")
    monkeypatch.setenv("MAX_OBJECT_MODEL_LENGTH", "20")
    monkeypatch.setenv("ORPHAN_REPORT_LIMIT", "10")
    try:
        importlib.reload(config)
        assert config.MAX_TITLE_LENGTH == 40
        assert config.MAX_CAPABILITY_LENGTH == 30
        assert config.MAX_OBJECT_MODEL_LENGTH == 20
        assert config.ORPHAN_REPORT_LIMIT == 10
    finally:
        monkeypatch.undo()
        importlib.reload(config)


def test_title_limit_applies_on_save(db_session, space, monkeypatch):
    monkeypatch.setattr(config, "MAX_TITLE_LENGTH", 5)
    note = Note(space, message="Long title")
    note.content_title = "Far too long"

    with pytest.raises(SaveAborted) as excinfo:
        note.save(db_session, actor_id=AUTHOR)
    assert excinfo.value.errors["title"] == ["title exceeds max length 5"]
