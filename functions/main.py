"""
Serverless entry point.

The Python runtime serves the module-level ASGI ``app``; every route lives in
``backend.routes`` under the configured API prefix.
"""

from backend.app import app  # noqa: F401
