"""
Logging configuration for the RAG backend.

One console handler (plus an optional file) on the package logger, API
keys masked out of every record, and chatty HTTP client libraries held
at ``LOG_LIBRARY_LEVEL``.
"""

import logging
import sys
from typing import Iterable, Optional
from rag_backend.config.settings import get_config

NOISY_LIBRARIES = ("httpx", "httpcore", "qdrant_client", "uvicorn.access")
REDACTED = "***"


class SecretRedactionFilter(logging.Filter):
    """Replace known secrets in log messages with ``***``."""

    def __init__(self, secrets: Iterable[Optional[str]]):
        super().__init__()
        self.secrets = [s for s in secrets if s]

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.secrets:
            return True
        message = record.getMessage()
        masked = message
        for secret in self.secrets:
            masked = masked.replace(secret, REDACTED)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def quiet_libraries(level: str, names: Iterable[str] = NOISY_LIBRARIES) -> None:
    """Raise the threshold of third-party loggers that log every request."""
    for name in names:
        logging.getLogger(name).setLevel(getattr(logging, level.upper()))


def setup_logging(
    name: str,
    level: Optional[str] = None,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Set up logging for the package (or any named logger).

    Args:
        name: Logger name, usually the top-level package
        level: Logging level override
        log_file: Optional log file path

    Returns:
        Configured logger instance
    """
    config = get_config()

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, (level or config.logging.level).upper()))

    if logger.handlers:
        return logger

    formatter = logging.Formatter(fmt=config.logging.format, datefmt='%Y-%m-%d %H:%M:%S')
    redaction = SecretRedactionFilter([config.embedding.api_key, config.llm.api_key, config.database.qdrant_api_key])

    handlers = [logging.StreamHandler(sys.stdout)]
    file_path = log_file or config.logging.file_path
    if file_path:
        handlers.append(logging.FileHandler(file_path))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(redaction)
        logger.addHandler(handler)

    logger.propagate = False
    quiet_libraries(config.logging.library_level)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module."""
    return logging.getLogger(name)
