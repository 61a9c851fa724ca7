"""
API Initialization - Logging Module.

Module: logging.py
Configures loguru logger for the indexer processes.
Sets up log rotation and retention policies.
"""

from loguru import logger

from app.config.settings import settings


def setup_logging(service: str = "api") -> None:
    """
    Configure logger with file rotation.

    Args:
        service: Process name, used for the log file name
    """
    logger.add(
        f"logs/{service}.log",
        rotation="1 day",
        retention="7 days",
        level=settings.log_level,
        encoding="utf-8",
    )

    logger.info(f"Starting Paycrypt indexer {service} ({settings.environment})...")
