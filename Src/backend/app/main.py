"""Application factory for the FunnelHQ API."""

from __future__ import annotations

from typing import Dict

from fastapi import FastAPI

from app import deps
from app.config import settings
from app.domain.errors import add_exception_handlers
from app.domain.models import Base
from app.instrumentation.middleware import TraceRequestMiddleware
from app.logging_setup import setup_logging
from app.utils.seed_data import ensure_seed_data


def create_app() -> FastAPI:
    """Initialise and configure the FastAPI application."""

    setup_logging()
    Base.metadata.create_all(bind=deps.engine)
    if settings.seed_demo_data:
        ensure_seed_data()

    app = FastAPI(title="FunnelHQ API", version="0.1.0")
    add_exception_handlers(app)
    app.add_middleware(TraceRequestMiddleware)
    from app.routes import client_routes, navigation_routes, project_routes, team_routes

    app.include_router(client_routes.router)
    app.include_router(project_routes.router)
    app.include_router(team_routes.router)
    app.include_router(navigation_routes.router)

    @app.get("/api/health")
    def health() -> Dict[str, str]:
        return {"status": "ok", "env": settings.env}

    return app


app = create_app()
