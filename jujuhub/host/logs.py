"""Logging setup for JujuHub.

Library modules log through ``logging.getLogger(__name__)`` and never
configure handlers themselves. Applications call ``configure_logging`` once
at their composition root.
"""

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_handler: logging.Handler | None = None


def parse_level(level: str | int) -> int:
    """Convert a level name ('debug', 'INFO', ...) or number to a logging level.

    Raises:
        ValueError: If the name is not a known logging level
    """
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def configure_logging(level: str | int = "info", log_file: str | Path | None = None) -> logging.Logger:
    """Attach a single handler to the ``jujuhub`` logger.

    Calling this again replaces the previous handler, so tests and
    long-running hosts can reconfigure without duplicating output.

    Args:
        level: Level name or number
        log_file: Optional file to append to; stderr when omitted

    Returns:
        The configured ``jujuhub`` logger
    """
    global _handler

    logger = logging.getLogger("jujuhub")
    if _handler is not None:
        logger.removeHandler(_handler)
        _handler.close()

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(path, encoding="utf-8")
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logger.addHandler(handler)
    logger.setLevel(parse_level(level))
    _handler = handler
    return logger
