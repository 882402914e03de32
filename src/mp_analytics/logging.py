from __future__ import annotations

import logging


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
PACKAGE_LOGGER = "mp_analytics"
NOISY_LOGGERS = ("matplotlib", "PIL")


def resolve_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def configure_logging(level: str | int = "INFO") -> int:
    """Configure root logging once; the package logger always follows ``level``."""
    resolved = resolve_level(level)
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger(PACKAGE_LOGGER).setLevel(resolved)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return resolved
