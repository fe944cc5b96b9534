"""FastAPI entry point: item authoring and grading service."""

import logging

from fastapi import FastAPI

from qbank.api import router as api_router
from qbank.config import get_settings
from qbank.db import Base, engine
from qbank.log import configure_logging
from qbank.models import QbankItem  # noqa: F401  registers the table

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Application factory."""

    settings = get_settings()
    configure_logging(settings.log_level)
    app = FastAPI(title="Q-Bank Items API", version="0.1.0")

    @app.on_event("startup")
    def init_models() -> None:
        """Create tables on startup."""

        Base.metadata.create_all(bind=engine)
        logger.info("Item store ready at %s", settings.database_url)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "database": settings.database_url}

    app.include_router(api_router)
    return app


app = create_app()
