"""
External collaborators used by the content lifecycle.
"""

from __future__ import annotations

from typing import Optional

from contentcore.containers import ContainerRegistry, StoredContainerRegistry
from contentcore.follow import FollowRegistry, StoredFollowRegistry
from contentcore.permissions import PermissionResolver, StoredPermissionResolver


class Collaborators:
    """Collaborator state holder, mirrors the DB holder."""

    permissions: PermissionResolver = StoredPermissionResolver()
    containers: ContainerRegistry = StoredContainerRegistry()
    follows: FollowRegistry = StoredFollowRegistry()


def configure_collaborators(
    permissions: Optional[PermissionResolver] = None,
    containers: Optional[ContainerRegistry] = None,
    follows: Optional[FollowRegistry] = None,
) -> None:
    if permissions is not None:
        Collaborators.permissions = permissions
    if containers is not None:
        Collaborators.containers = containers
    if follows is not None:
        Collaborators.follows = follows


def reset_collaborators() -> None:
    Collaborators.permissions = StoredPermissionResolver()
    Collaborators.containers = StoredContainerRegistry()
    Collaborators.follows = StoredFollowRegistry()
