from loguru import logger
from pathlib import Path
from typing import Optional
import sys

from ..config import settings


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = "logs/code_graph.log"):
    """Setup logging configuration."""
    # Remove default logger
    logger.remove()

    # Console logger
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{extra[component]}</cyan> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=log_level,
        colorize=True,
    )

    # File logger
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[component]} | {name}:{function}:{line} - {message}",
            level=log_level,
            rotation="10 MB",
            retention="30 days",
            compression="zip",
        )

    # Records logged without a bound component still render
    logger.configure(extra={"component": "code_graph"})

    return logger


# Initialize logger
app_logger = setup_logging(settings.log_level, settings.log_file)
