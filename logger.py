# logger.py
import sys

from loguru import logger

from config import LOG_LEVEL

log_format = " | ".join(
    (
        "<lk>{time:YYYY-MM-DD HH:mm:ss.SSS}</>",
        "<lvl>{level:<8}</>",
        "<c>{file}::{function}:{line}</>",
        "{message}",
    )
)

# Remove default handler to avoid duplicate output
logger.remove()
logger.add(sys.stdout, format=log_format, level=LOG_LEVEL)

__all__ = ["logger"]
