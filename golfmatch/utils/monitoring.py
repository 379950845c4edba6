"""Sentry initialisation for services embedding the GolfMatch core."""

import sentry_sdk
from sentry_sdk.integrations.redis import RedisIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from golfmatch.config import settings
from golfmatch.utils.logging import get_logger

logger = get_logger(__name__)


def init_sentry() -> bool:
    """
    Initialize Sentry if a DSN is configured.

    Returns:
        bool: True if Sentry was initialized.
    """
    if not settings.SENTRY_DSN:
        logger.debug("Sentry DSN not configured, skipping initialization")
        return False

    logger.info("Initializing Sentry...")
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        traces_sample_rate=1.0 if settings.ENVIRONMENT == "development" else 0.1,
        integrations=[
            SqlalchemyIntegration(),
            RedisIntegration(),
        ],
    )
    logger.info("Sentry initialized")
    return True
