"""
FastAPI application entry point for the phone identity backend.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from backend.config import get_settings
from backend.error_handlers import register_error_handlers
from backend.routes import debug_router, router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not settings.use_in_memory_backends and not (
        settings.supabase_url and settings.supabase_service_role_key
    ):
        logger.warning("SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY not set")

    app = FastAPI(title="Phone Identity Backend (FastAPI)", version="0.1.0")
    register_error_handlers(app)
    app.include_router(router, prefix=settings.api_prefix)
    if settings.enable_debug_routes:
        app.include_router(debug_router, prefix=settings.api_prefix)
    return app


app = create_app()
