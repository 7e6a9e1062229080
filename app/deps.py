"""
Dependency helpers for the standalone FastAPI app.
"""

from __future__ import annotations

from typing import Generator

from contentcore.context import AuthContext, RequestContext, get_current_request_context
from contentcore.db import open_session


def get_db_session() -> Generator:
    db = open_session()
    try:
        yield db
    finally:
        db.close()


async def get_request_context() -> RequestContext:
    context = get_current_request_context()
    if context is None:
        return RequestContext(auth=AuthContext(actor="anonymous"))
    return context
