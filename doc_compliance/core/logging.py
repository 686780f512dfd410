import sys
from loguru import logger
from .config import settings


def setup_logging(level: str | None = None):
    """Configure the loguru stderr sink and return the shared logger."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=(level or settings.log_level).upper(),
        format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
               "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level> | {extra}",
    )
    return logger.bind(app=settings.app_name, env=settings.app_env)
