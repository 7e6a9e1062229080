"""
Capability tokens, permission rules and the default grant-table resolver.

A rule is one of three variants sharing ``evaluate(actor_id, container)``:

- ``CapabilityRule``: a named capability checked on the container
- ``PredicateRule``: a custom function
- ``StructuredRule``: all_of / any_of composition of other rules
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Protocol, Union

from sqlalchemy.orm import object_session

import contentcore.config as config
from contentcore.models import ContainerPermission, ContentContainer
from contentcore.validators import validate_required_text

CREATE_PUBLIC_CONTENT = "create_public_content"
MANAGE_CONTENT = "manage_content"


class PermissionResolver(Protocol):
    def can(self, actor_id: Optional[int], container: ContentContainer, capability: str) -> bool:
        ...


class PermissionRule:
    def evaluate(self, actor_id: Optional[int], container: Optional[ContentContainer]) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class CapabilityRule(PermissionRule):
    capability: str

    def evaluate(self, actor_id, container) -> bool:
        if container is None:
            return False
        return container.can(actor_id, self.capability)


@dataclass(frozen=True)
class PredicateRule(PermissionRule):
    predicate: Callable[[Optional[int], Optional[ContentContainer]], bool]

    def evaluate(self, actor_id, container) -> bool:
        return bool(self.predicate(actor_id, container))


@dataclass(frozen=True)
class StructuredRule(PermissionRule):
    all_of: tuple[PermissionRule, ...] = ()
    any_of: tuple[PermissionRule, ...] = ()

    def evaluate(self, actor_id, container) -> bool:
        if not all(rule.evaluate(actor_id, container) for rule in self.all_of):
            return False
        if self.any_of:
            return any(rule.evaluate(actor_id, container) for rule in self.any_of)
        return True


RuleLike = Union[None, str, PermissionRule, Callable]


def as_rule(rule: RuleLike) -> Optional[PermissionRule]:
    """Normalize a capability token, callable or rule into a PermissionRule."""
    if rule is None or isinstance(rule, PermissionRule):
        return rule
    if isinstance(rule, str):
        return CapabilityRule(rule)
    if callable(rule):
        return PredicateRule(rule)
    raise TypeError(f"Unsupported permission rule: {rule!r}")


class StoredPermissionResolver:
    """Resolve capabilities from ``container_permissions`` grant rows.

    An actor-specific row wins over an everyone row. Without a row the
    container owner is granted everything, then the configured defaults apply.
    """

    def __init__(self, default_grants: Optional[Iterable[str]] = None):
        if default_grants is None:
            default_grants = config.DEFAULT_GRANTED_CAPABILITIES
        self.default_grants = frozenset(default_grants)

    def can(self, actor_id, container, capability) -> bool:
        if container is None:
            return False
        db = object_session(container)
        if db is not None and container.id is not None:
            with db.no_autoflush:
                rows = (
                    db.query(ContainerPermission)
                    .filter(ContainerPermission.contentcontainer_id == container.id)
                    .filter(ContainerPermission.capability == capability)
                    .all()
                )
            if actor_id is not None:
                for row in rows:
                    if row.actor_id == actor_id:
                        return row.allowed
            for row in rows:
                if row.actor_id is None:
                    return row.allowed
        if actor_id is not None and container.owner_id == actor_id:
            return True
        return capability in self.default_grants


def set_permission(
    db,
    container: ContentContainer,
    capability: str,
    actor_id: Optional[int] = None,
    allowed: bool = True,
) -> ContainerPermission:
    """Create or update a grant row. The caller commits."""
    validate_required_text(capability, "capability", config.MAX_CAPABILITY_LENGTH)
    query = (
        db.query(ContainerPermission)
        .filter(ContainerPermission.contentcontainer_id == container.id)
        .filter(ContainerPermission.capability == capability)
    )
    if actor_id is None:
        query = query.filter(ContainerPermission.actor_id.is_(None))
    else:
        query = query.filter(ContainerPermission.actor_id == actor_id)
    row = query.first()
    if row is None:
        row = ContainerPermission(
            contentcontainer_id=container.id,
            capability=capability,
            actor_id=actor_id,
        )
        db.add(row)
    row.allowed = allowed
    return row


__all__ = [
    "CREATE_PUBLIC_CONTENT",
    "MANAGE_CONTENT",
    "PermissionResolver",
    "PermissionRule",
    "CapabilityRule",
    "PredicateRule",
    "StructuredRule",
    "as_rule",
    "StoredPermissionResolver",
    "set_permission",
]
