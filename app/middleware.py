"""
Middleware configuration for the standalone FastAPI app.
"""

from __future__ import annotations

import os
import uuid

from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware

from contentcore.context import (
    AuthContext,
    RequestContext,
    reset_current_request_context,
    set_current_request_context,
)

ACTOR_HEADER = b"x-actor-id"
REQUEST_ID_HEADER = b"x-request-id"


def _header(scope, name: bytes):
    for key, value in scope.get("headers") or []:
        if key.lower() == name:
            return value.decode("latin-1")
    return None


class RequestContextASGI:
    """Install the acting identity for the duration of one HTTP request.

    Authentication happens upstream; this only trusts the forwarded actor id.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        raw_actor = _header(scope, ACTOR_HEADER)
        user_id = None
        if raw_actor and raw_actor.strip().isdigit():
            user_id = int(raw_actor.strip())
        context = RequestContext(
            auth=AuthContext(user_id=user_id, actor="user" if user_id is not None else "anonymous"),
            request_id=_header(scope, REQUEST_ID_HEADER) or str(uuid.uuid4()),
            source="http",
        )
        token = set_current_request_context(context)
        try:
            await self.app(scope, receive, send)
        finally:
            reset_current_request_context(token)


def configure_middleware(app) -> None:
    """Configure request context, host allowlist and CORS middleware."""
    app.add_middleware(RequestContextASGI)

    # Optional host allowlist for production deployments
    trusted_hosts_env = os.environ.get("TRUSTED_HOSTS", "")
    trusted_hosts = [host.strip() for host in trusted_hosts_env.split(",") if host.strip()]
    if trusted_hosts:
        app.add_middleware(
            TrustedHostMiddleware,
            allowed_hosts=trusted_hosts,
        )

    cors_allowed_env = os.environ.get("CORS_ALLOWED_ORIGINS", "")
    if cors_allowed_env.strip():
        allow_origins = [origin.strip() for origin in cors_allowed_env.split(",") if origin.strip()]
    else:
        allow_origins = [os.environ.get("FRONTEND_URL", "http://localhost:3000")]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
