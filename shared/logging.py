"""
Simple structured logging setup for the Room Visualizer service.
"""

import sys

from loguru import logger

from .config import ServiceSettings, get_settings


def setup_logging(service_name: str, settings: ServiceSettings | None = None) -> None:
    """Configure basic structured logging for a service."""
    settings = settings or get_settings()

    # Remove default logger
    logger.remove()

    # Service context must exist before the handler formats any record
    logger.configure(extra={"service": service_name})

    json_output = settings.log_format.lower() == "json"
    format_string = "{time:HH:mm:ss} | {level: <8} | {extra[service]} | {message}"

    logger.add(
        sys.stdout,
        format=format_string,
        level=settings.log_level,
        serialize=json_output,
    )


def get_logger(request_id: str | None = None):
    """Get a logger with optional request ID."""
    if request_id:
        return logger.bind(request_id=request_id)
    return logger
