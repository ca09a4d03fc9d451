"""
Logging configuration

Console output always, daily-rotated files when LOG_TO_FILE is on. Sync runs
bind session_id and target_date with log.contextualize(); console lines show
them whenever they are bound.
"""
from loguru import logger
from pathlib import Path
import sys
from artisan_sync.config import get_settings

settings = get_settings()

RUN_CONTEXT_KEYS = ("session_id", "target_date")

BASE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)

# (file name pattern, level, retention, compression)
FILE_SINKS = (
    ("artisan_sync_{time:YYYY-MM-DD}.log", "INFO", "30 days", "zip"),
    ("errors_{time:YYYY-MM-DD}.log", "ERROR", "90 days", None),
)


def _console_format(record) -> str:
    bound = [key for key in RUN_CONTEXT_KEYS if key in record["extra"]]
    context = " ".join(f"{key}={{extra[{key}]}}" for key in bound)
    suffix = f" <magenta>[{context}]</magenta>" if context else ""
    return BASE_FORMAT + suffix + "\n{exception}"


def _add_file_sinks(log_dir: str):
    for pattern, level, retention, compression in FILE_SINKS:
        logger.add(
            str(Path(log_dir) / pattern),
            rotation="00:00",
            retention=retention,
            compression=compression,
            level=level,
        )


def setup_logger():
    """Replace loguru's default handler with the service sinks"""
    logger.remove()

    logger.add(sys.stdout, colorize=True, format=_console_format, level=settings.log_level)

    if settings.log_to_file:
        _add_file_sinks(settings.log_dir)

    return logger


# Initialize logger
log = setup_logger()
