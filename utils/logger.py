"""
Logging configuration with file rotation and automatic cleanup.
Keeps logs for 10 days with daily rotation.
"""
import os
import logging
from logging.handlers import TimedRotatingFileHandler
from datetime import datetime, timedelta
from pathlib import Path


LOGS_DIR = os.getenv(
    "LOGS_DIR",
    os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "logs"),
)
os.makedirs(LOGS_DIR, exist_ok=True)

LOG_FILE = os.path.join(LOGS_DIR, "app.log")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_RETENTION_DAYS = 10


def _level_from_env(default: int = logging.INFO) -> int:
    name = os.getenv("LOG_LEVEL", "").upper()
    level = logging.getLevelName(name) if name else default
    return level if isinstance(level, int) else default


def cleanup_old_logs(directory: str, retention_days: int = LOG_RETENTION_DAYS):
    """Remove rotated log files older than retention_days."""
    try:
        now = datetime.now()
        cutoff = now - timedelta(days=retention_days)

        log_dir = Path(directory)
        if not log_dir.exists():
            return

        deleted_count = 0
        for log_file in log_dir.glob("app.log.*"):
            if not log_file.is_file():
                continue
            # Rotated files are named app.log.YYYY-MM-DD
            try:
                file_date = datetime.strptime(log_file.name.replace("app.log.", ""), "%Y-%m-%d")
            except ValueError:
                file_date = datetime.fromtimestamp(log_file.stat().st_mtime)
            try:
                if file_date < cutoff:
                    log_file.unlink()
                    deleted_count += 1
            except OSError as e:
                logging.error(f"Failed to delete log file {log_file.name}: {e}")

        if deleted_count > 0:
            logging.info(f"Cleaned up {deleted_count} old log file(s)")
    except Exception as e:
        logging.error(f"Error during log cleanup: {e}")


def setup_logger(name: str = "app", level: int = logging.INFO) -> logging.Logger:
    """
    Set up logger with file rotation and console output.

    Args:
        name: Logger name
        level: Logging level (default: INFO)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    logger.setLevel(level)

    file_handler = TimedRotatingFileHandler(
        LOG_FILE,
        when="midnight",
        interval=1,
        backupCount=LOG_RETENTION_DAYS,
        encoding="utf-8",
        utc=True
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(levelname)s - %(message)s", "%H:%M:%S")
    )

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    cleanup_old_logs(LOGS_DIR, LOG_RETENTION_DAYS)

    return logger


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (if None, returns the root app logger)

    Returns:
        Logger instance
    """
    if name is None:
        return logging.getLogger("app")
    return logging.getLogger(f"app.{name}")


# Create default application logger
app_logger = setup_logger("app", _level_from_env())
app_logger.debug(f"Application logger initialized (log file: {LOG_FILE})")
