"""Process initialization helpers."""

from api.initialization.logging import setup_logging
from api.initialization.shutdown import shutdown_handler

__all__ = ["setup_logging", "shutdown_handler"]
