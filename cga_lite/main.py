"""FastAPI application entry point."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cga_lite.config import get_settings
from cga_lite.api.routes import crs, health, rules


def create_app() -> FastAPI:
    settings = get_settings()
    logging.getLogger("cga_lite").setLevel(settings.log_level.upper())

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Procedural massing rule interpreter",
        debug=settings.debug,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(rules.router, prefix="/api/v1/rules", tags=["Rules"])
    app.include_router(crs.router, prefix="/api/v1/crs", tags=["CRS"])

    return app


app = create_app()
