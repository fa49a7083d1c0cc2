# app/core/startup.py
import logging

from fastapi import FastAPI

from app.core.config import settings
from app.data.database import init_models

logger = logging.getLogger(__name__)


def configure_logging():
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


async def startup_event(app: FastAPI):
    """
    Initialize resources on application startup.
    """
    try:
        if settings.AUTO_CREATE_TABLES:
            await init_models()
            logger.info("Database tables ensured.")
    except Exception as e:
        logger.error(f"Failed to startup: {e}")
        raise
