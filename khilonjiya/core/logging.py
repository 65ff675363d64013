"""Structured logging configuration."""

import logging
import sys
from typing import Any
from urllib.parse import urlsplit


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure structured logging for the application."""
    logger = logging.getLogger("khilonjiya")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG)

    # Format: timestamp - level - module - message
    formatter = logging.Formatter(
        "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


# Global logger instance
logger = setup_logging()


def mask_url(url: str) -> str:
    """Reduce a URL to scheme and host so paths and query tokens never hit the log."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return "invalid-url"
    if not parts.scheme or not parts.hostname:
        return "invalid-url"
    return f"{parts.scheme}://{parts.hostname}"


def mask_key(key: str | None) -> str:
    """Describe an API key without revealing it."""
    if not key:
        return "<missing>"
    return f"<{len(key)} chars>"


def log_request(method: str, path: str, **kwargs: Any) -> None:
    """Log an incoming request."""
    extra = " ".join(f"{k}={v}" for k, v in kwargs.items())
    logger.info(f"REQUEST {method} {path} {extra}".strip())


def log_response(method: str, path: str, status: int, duration_ms: float) -> None:
    """Log an outgoing response."""
    logger.info(
        f"RESPONSE {method} {path} status={status} duration_ms={duration_ms:.2f}"
    )


def log_error(message: str, exc: Exception | None = None, **kwargs: Any) -> None:
    """Log an error with optional exception."""
    extra = " ".join(f"{k}={v}" for k, v in kwargs.items())
    if exc:
        logger.error(f"ERROR {message} {extra}".strip(), exc_info=exc)
    else:
        logger.error(f"ERROR {message} {extra}".strip())


def log_external_call(
    service: str, operation: str, success: bool, duration_ms: float | None = None
) -> None:
    """Log an external service call."""
    status = "success" if success else "failed"
    duration = f"duration_ms={duration_ms:.2f}" if duration_ms else ""
    logger.info(f"EXTERNAL {service} {operation} status={status} {duration}".strip())
