# taskmanager/logging_setup.py

from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

_NOISY_LOGGERS = ("sqlalchemy.engine", "passlib", "multipart", "python_multipart")


class _ThirdPartyNoiseFilter(logging.Filter):
    """
    Keep console output readable:
    - allow every taskmanager log at the configured level
    - allow uvicorn access/error logs
    - suppress other third-party records unless WARNING+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name == "taskmanager" or name.startswith("taskmanager."):
            return True
        if name.startswith("uvicorn"):
            return True
        return record.levelno >= logging.WARNING


def setup_logging(level: str | int = logging.INFO) -> None:
    """
    Configure root logging once with a single console handler.

    Calling it again replaces the handler instead of stacking duplicates.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    for handler in list(root.handlers):
        if getattr(handler, "_taskmanager", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler.addFilter(_ThirdPartyNoiseFilter())
    handler._taskmanager = True  # type: ignore[attr-defined]
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.captureWarnings(True)
