"""FastAPI application entrypoint."""

import logging

from fastapi import FastAPI

from liz.core.config import settings
from liz.core.exceptions import register_exception_handlers
from liz.modules.appointments.router import router as appointments_router
from liz.modules.catalog.router import router as catalog_router
from liz.modules.reviews.router import admin_router as admin_reviews_router
from liz.modules.reviews.router import router as reviews_router
from liz.modules.users.router import router as users_router


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        version="0.1.0",
    )
    register_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(users_router)
    app.include_router(catalog_router)
    app.include_router(appointments_router)
    app.include_router(reviews_router)
    app.include_router(admin_reviews_router)

    return app


app = create_app()
