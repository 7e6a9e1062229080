"""
ContentCore - shared content envelopes for content-bearing records.

Entry point for running the HTTP surface with uvicorn.
"""

import os

import uvicorn

from app.main import app


if __name__ == "__main__":
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8080"))
    print("ContentCore starting...")
    uvicorn.run(app, host=host, port=port)
