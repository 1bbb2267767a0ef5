"""Structured logging setup for the invoice verifier."""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Optional, Dict, Any
from pathlib import Path

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(submission_id)s] %(message)s"

# Fields every record carries so format strings can reference them outside a submission
CONTEXT_FIELDS = ("submission_id", "user_id")

NOISY_LOGGERS = ("botocore", "boto3", "urllib3", "semantic_kernel")

# Each asyncio task (and each to_thread call) sees its own copy
_log_context: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})


class ContextFilter(logging.Filter):
    """Attach submission context (submission_id, user_id, ...) to log records."""

    @property
    def context(self) -> Dict[str, Any]:
        return dict(_log_context.get())

    def filter(self, record: logging.LogRecord) -> bool:
        for key in CONTEXT_FIELDS:
            if not hasattr(record, key):
                setattr(record, key, "-")
        for key, value in _log_context.get().items():
            setattr(record, key, value)
        return True

    def set_context(self, **kwargs):
        _log_context.set({**_log_context.get(), **kwargs})


_context_filter = ContextFilter()


def _build_handler(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(_context_filter)
    return handler


def setup_logging(
    level: str = "INFO",
    log_format: str = DEFAULT_FORMAT,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Configure root logging for a verifier process.

    Console output is always enabled; a file handler is added when
    ``log_file`` is set. Both handlers stamp records with the current
    submission context. AWS SDK loggers are held at WARNING unless
    DEBUG is requested.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Format string for log messages
        log_file: Optional path to log file

    Returns:
        Configured root logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    formatter = logging.Formatter(log_format)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()
    root_logger.addHandler(_build_handler(logging.StreamHandler(), numeric_level, formatter))

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        root_logger.addHandler(
            _build_handler(logging.FileHandler(log_file), numeric_level, formatter)
        )

    if numeric_level > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger


def set_context(**kwargs):
    """
    Set context fields for all subsequent log messages.

    Example:
        set_context(submission_id="SUB-1A2B3C4D", user_id="user-42")
        logger.info("Extracting invoice")  # record carries both fields
    """
    _context_filter.set_context(**kwargs)


@contextmanager
def log_context(**context_kwargs):
    """
    Scope context fields to a block, restoring the previous context on exit.

    The context lives in a ContextVar, so concurrent submissions on one
    event loop each see only their own fields:

        with log_context(submission_id=submission_id):
            result = await orchestrator.verify(documents)
    """
    token = _log_context.set({**_log_context.get(), **context_kwargs})
    try:
        yield
    finally:
        _log_context.reset(token)
