import pytest

from contentcore.collaborators import Collaborators, configure_collaborators
from contentcore.models import ContainerPermission, Visibility
from contentcore.permissions import (
    CREATE_PUBLIC_CONTENT,
    CapabilityRule,
    PredicateRule,
    StoredPermissionResolver,
    StructuredRule,
    as_rule,
    set_permission,
)

from conftest import AUTHOR, SPACE_OWNER, STRANGER, Note


def _allow(actor_id, container):
    return True


def _deny(actor_id, container):
    return False


def test_as_rule_normalizes_every_variant():
    rule = CapabilityRule("create_note")
    assert as_rule(None) is None
    assert as_rule(rule) is rule
    assert as_rule("create_note") == CapabilityRule("create_note")
    assert as_rule(_allow) == PredicateRule(_allow)
    with pytest.raises(TypeError):
        as_rule(42)


def test_structured_rule_composition(space):
    assert StructuredRule().evaluate(AUTHOR, space) is True
    assert StructuredRule(all_of=(PredicateRule(_allow), PredicateRule(_deny))).evaluate(AUTHOR, space) is False
    assert StructuredRule(any_of=(PredicateRule(_deny), PredicateRule(_allow))).evaluate(AUTHOR, space) is True
    assert StructuredRule(
        all_of=(PredicateRule(_allow),),
        any_of=(PredicateRule(_deny),),
    ).evaluate(AUTHOR, space) is False


def test_capability_rule_without_container_denies():
    assert CapabilityRule("create_note").evaluate(AUTHOR, None) is False


def test_resolver_precedence(db_session, space):
    resolver = StoredPermissionResolver()

    # Owner fallback only applies when no grant row exists
    assert resolver.can(SPACE_OWNER, space, "publish") is True
    assert resolver.can(AUTHOR, space, "publish") is False

    set_permission(db_session, space, "publish", allowed=False)
    set_permission(db_session, space, "publish", actor_id=AUTHOR, allowed=True)
    db_session.commit()
    assert resolver.can(AUTHOR, space, "publish") is True
    assert resolver.can(STRANGER, space, "publish") is False
    assert resolver.can(SPACE_OWNER, space, "publish") is False
    assert resolver.can(None, space, "publish") is False


def test_resolver_default_grants(space):
    resolver = StoredPermissionResolver(default_grants=("comment",))
    assert resolver.can(STRANGER, space, "comment") is True
    assert resolver.can(STRANGER, space, "publish") is False


def test_set_permission_updates_existing_row(db_session, space):
    set_permission(db_session, space, "publish", actor_id=AUTHOR)
    db_session.commit()
    set_permission(db_session, space, "publish", actor_id=AUTHOR, allowed=False)
    db_session.commit()

    rows = (
        db_session.query(ContainerPermission)
        .filter(ContainerPermission.capability == "publish")
        .all()
    )
    assert len(rows) == 1
    assert rows[0].allowed is False


def test_custom_resolver_is_used_for_visibility(db_session, space):
    class AllowEverything:
        def can(self, actor_id, container, capability):
            return True

    configure_collaborators(permissions=AllowEverything())
    note = Note(space, Visibility.PUBLIC, message="Open")
    note.save(db_session, actor_id=STRANGER)

    assert note.envelope.is_public()
    assert space.can(STRANGER, CREATE_PUBLIC_CONTENT) is True


def test_collaborators_reset_between_tests():
    assert isinstance(Collaborators.permissions, StoredPermissionResolver)
