import logging
import sys
import contextvars
from typing import Optional

# Context variable naming the schema currently being loaded or checked
_SCHEMA_NAME: contextvars.ContextVar[str] = contextvars.ContextVar("schema_name", default="-")


class _SchemaFilter(logging.Filter):
    """Logging filter that injects the schema name from contextvars into the record."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        record.schema = _SCHEMA_NAME.get()
        return True


def _build_formatter() -> logging.Formatter:
    return logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | schema=%(schema)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def configure_root_logger(level: str = "INFO") -> None:
    """
    Configure root logger and askitypes-specific logger.

    Root logger stays at INFO to suppress library noise.
    Only askitypes namespace logs are set to the requested level.

    Args:
        level: Log level for askitypes logs (DEBUG, INFO, WARNING, ERROR).

    Safe to call multiple times; it will not duplicate handlers (idempotent).
    """
    root = logging.getLogger()
    package_logger = logging.getLogger("askitypes")

    for h in root.handlers:
        if isinstance(h, logging.StreamHandler) and any(isinstance(f, _SchemaFilter) for f in h.filters):
            # Already configured; just update the package logger level
            package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
            return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_build_formatter())
    handler.addFilter(_SchemaFilter())
    root.addHandler(handler)
    if root.level == logging.NOTSET or root.level > logging.INFO:
        root.setLevel(logging.INFO)

    package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))


def get_logger(name: str = "askitypes") -> logging.Logger:
    """
    Get a module-specific logger.

    Handlers are not attached here; call ``configure_root_logger`` once from
    the application to get the askitypes format on stdout.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, _SchemaFilter) for f in logger.filters):
        logger.addFilter(_SchemaFilter())
    return logger


def push_schema_name(schema_name: Optional[str]) -> Optional[contextvars.Token]:
    """Set the current schema name in context and return a token for later reset."""
    if not schema_name:
        return None
    return _SCHEMA_NAME.set(schema_name)


def reset_schema_name(token: Optional[contextvars.Token]) -> None:
    """Reset the schema name context using the provided token (if any)."""
    if token is None:
        return
    _SCHEMA_NAME.reset(token)


def current_schema_name() -> str:
    return _SCHEMA_NAME.get()
