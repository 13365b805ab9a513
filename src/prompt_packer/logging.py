from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from pathlib import Path

_LOGGING_CONFIGURED = False


def setup_logging(filename: str | Path | None = None) -> structlog.BoundLogger:
    """Configure the JSON logger shared by every prompt_packer module.

    Records are one JSON object per line with an ISO timestamp and the level.
    Discovery logs inaccessible entries at warning level and the number of
    eligible files at info level. The batch reader logs unreadable
    files and cancellations. The packer logs its progress milestones and the
    delivery summary. Only the first call configures anything; later calls just
    return the logger.

    Args:
        filename: Optional path to a log file. If None, logs are written to stderr.

    Returns:
        The structlog logger named "prompt_packer".
    """
    global _LOGGING_CONFIGURED  # noqa: PLW0603
    if not _LOGGING_CONFIGURED:
        handlers: list[logging.Handler] = []
        if filename:
            handlers.append(logging.FileHandler(str(filename), encoding="utf-8"))
        else:
            handlers.append(logging.StreamHandler(sys.stderr))

        logging.basicConfig(
            level=logging.INFO,
            handlers=handlers,
            format="%(message)s",
        )
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _LOGGING_CONFIGURED = True

    return structlog.get_logger("prompt_packer")


def redirect_logging(filename: str | Path) -> None:
    """Send every record of the root logger to `filename` instead of its current handlers.

    `setup_logging` runs at import time, so a log file requested later on the command
    line has to replace the handlers installed by that first call.

    Args:
        filename: Path of the log file to append to.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.addHandler(logging.FileHandler(str(filename), encoding="utf-8"))
    root.setLevel(logging.INFO)


logger = setup_logging()
