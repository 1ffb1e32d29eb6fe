from __future__ import annotations

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional, TextIO

from stroke2font.config.models import LoggingSettings

# fontTools reports every table it compiles at INFO
_NOISY_LOGGERS = ("fontTools",)


class ProgressFormatter(logging.Formatter):
    """Bare message for progress lines; warnings and errors carry their level name."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.levelno >= logging.WARNING:
            return f"{record.levelname}: {message}"
        return message


def init_logging(settings: LoggingSettings, *, stream: Optional[TextIO] = None) -> None:
    """
    Initialize application logging.

    Progress lines go to ``stream`` (stdout by default) without timestamps. An optional
    daily-rotated log file records the same events with timestamp, level and logger name.
    """

    root_logger = logging.getLogger()

    level_name = settings.level.upper()
    level = logging.getLevelNamesMapping().get(level_name)
    if level is None:
        raise ValueError(f"Invalid logging level: {settings.level}")

    root_logger.setLevel(level)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    stream_handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    stream_handler.setLevel(level)
    stream_handler.setFormatter(ProgressFormatter("%(message)s"))
    root_logger.addHandler(stream_handler)

    file_path = settings.file.path.strip()
    if not file_path:
        return

    try:
        file_path_obj = Path(file_path)
        file_path_obj.parent.mkdir(parents=True, exist_ok=True)

        file_handler = TimedRotatingFileHandler(
            filename=str(file_path_obj),
            when="midnight",
            interval=1,
            backupCount=settings.file.rotation.backup_count,
            encoding="utf-8",
        )
        file_handler.suffix = "%Y-%m-%d"
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter(
                fmt="[%(asctime)s][%(levelname)s][%(name)s] %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root_logger.addHandler(file_handler)
    except OSError:
        root_logger.error(
            "Log file could not be opened, logging to the console only. path=%s",
            file_path,
            exc_info=True,
        )


__all__ = ["ProgressFormatter", "init_logging"]
