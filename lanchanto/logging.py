"""Logging setup. Modules use `logging.getLogger(__name__)`; this only configures the root."""

import logging

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def normalize_log_level(level: str | None) -> tuple[str, bool]:
    """Return (level, invalid). Unknown or empty names fall back to INFO."""
    if not level:
        return "INFO", False
    normalized = level.strip().upper()
    if normalized == "WARN":
        normalized = "WARNING"
    if normalized in LEVELS:
        return normalized, False
    return "INFO", True


def configure_logging(level: str | None, *, force: bool = False) -> str:
    normalized, invalid = normalize_log_level(level)
    logging.basicConfig(level=normalized, format=LOG_FORMAT, force=force)
    if invalid:
        logging.getLogger(__name__).warning(
            "unknown log level %r, using INFO", level)
    return normalized
