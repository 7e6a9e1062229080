"""
Request-scoped context objects for the content core.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import contextvars


@dataclass(frozen=True)
class AuthContext:
    user_id: Optional[int] = None
    actor: Optional[str] = None

    @property
    def is_guest(self) -> bool:
        return self.user_id is None


@dataclass(frozen=True)
class RequestContext:
    auth: AuthContext
    request_id: Optional[str] = None
    source: Optional[str] = None


_CURRENT_REQUEST_CONTEXT: contextvars.ContextVar[Optional["RequestContext"]] = contextvars.ContextVar(
    "contentcore_request_context",
    default=None,
)


def get_current_request_context() -> Optional["RequestContext"]:
    return _CURRENT_REQUEST_CONTEXT.get()


def set_current_request_context(context: Optional["RequestContext"]) -> contextvars.Token:
    return _CURRENT_REQUEST_CONTEXT.set(context)


def reset_current_request_context(token: contextvars.Token) -> None:
    _CURRENT_REQUEST_CONTEXT.reset(token)


def current_user_id() -> Optional[int]:
    """User id of the ambient request, or None for guests and background work."""
    context = get_current_request_context()
    if context is None or context.auth is None or context.auth.is_guest:
        return None
    return context.auth.user_id


def resolve_actor_id(actor_id: Optional[int] = None) -> Optional[int]:
    if actor_id is not None:
        return actor_id
    return current_user_id()


__all__ = [
    "AuthContext",
    "RequestContext",
    "get_current_request_context",
    "set_current_request_context",
    "reset_current_request_context",
    "current_user_id",
    "resolve_actor_id",
]
