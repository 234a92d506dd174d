"""Utils module."""
from utils.logger import setup_logger, get_logger, app_logger

__all__ = [
    "setup_logger",
    "get_logger",
    "app_logger"
]
