"""Centralized logging configuration for the instance info tooling."""

import logging
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _resolve_level(level: str) -> int:
    try:
        return getattr(logging, level.upper())
    except AttributeError:
        return logging.INFO  # fallback to INFO


def configure_root_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Setup console and optional file logging for command line runs.

    Examples:
        # Console only
        configure_root_logging()

        # Console + logs/build.log
        configure_root_logging("DEBUG", "build.log")
    """
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path("logs").mkdir(exist_ok=True)
        handlers.append(logging.FileHandler(f"logs/{log_file}"))

    logging.basicConfig(
        level=_resolve_level(level), format=LOG_FORMAT, handlers=handlers, force=True
    )


def get_infrastructure_logger(module_name: str) -> logging.Logger:
    """Get logger for infrastructure modules."""
    return logging.getLogger(f"infrastructure.{module_name}")
