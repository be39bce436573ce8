"""Structured logging setup."""
import logging

import structlog


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog to emit JSON lines at the given level."""
    timestamper = structlog.processors.TimeStamper(fmt="iso")
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        timestamper,
        structlog.processors.add_log_level,
    ]

    structlog.configure(
        processors=shared_processors
        + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
    )

    logging.basicConfig(level=level.upper())


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)
