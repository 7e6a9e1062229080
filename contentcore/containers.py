"""
Container lookup for content envelopes.
"""

from __future__ import annotations

from typing import Protocol, Union

from contentcore.errors import ContainerNotFound
from contentcore.models import ContentContainer

ContainerRef = Union[int, str, ContentContainer]

SUPPORTED_CONTAINER_TYPES = {"space", "user"}


class ContainerRegistry(Protocol):
    def resolve(self, db, container_ref: ContainerRef) -> ContentContainer:
        ...


class StoredContainerRegistry:
    """Resolve containers from the ``content_containers`` table by id or guid."""

    def resolve(self, db, container_ref: ContainerRef) -> ContentContainer:
        if isinstance(container_ref, ContentContainer):
            if container_ref.container_type not in SUPPORTED_CONTAINER_TYPES:
                raise ContainerNotFound(container_ref.id)
            return container_ref

        container = None
        if isinstance(container_ref, bool):
            container = None
        elif isinstance(container_ref, int):
            container = db.get(ContentContainer, container_ref)
        elif isinstance(container_ref, str) and container_ref.strip():
            container = (
                db.query(ContentContainer)
                .filter(ContentContainer.guid == container_ref.strip())
                .first()
            )

        if container is None or container.container_type not in SUPPORTED_CONTAINER_TYPES:
            raise ContainerNotFound(container_ref)
        return container
