"""
logs.py
--------------------
Logging setup for the command line front-end.

Library modules only create module loggers; handlers are attached here,
once, under the ``shelfcase`` logger: a rotating file for everything and
a console handler for warnings and above.
"""
from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from .paths import log_dir


ROOT_LOGGER = "shelfcase"

_FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s:%(lineno)d] - %(message)s"
_CONSOLE_FORMAT = "%(levelname)s: %(message)s"


def setup_logging(
    level: Union[int, str] = logging.INFO,
    *,
    directory: Optional[Path] = None,
    console_level: Union[int, str] = logging.WARNING,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """
    Configure the ``shelfcase`` logger and return it.

    Args:
        level: Level of the log file (name or number)
        directory: Where ``shelfcase.log`` is written (default: user log dir);
            when the directory can not be created only the console is used
        console_level: Level of the console handler
        max_bytes: Log file size before rotation (default: 10MB)
        backup_count: Number of rotated files to keep (default: 5)
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG)
    # reset only our own handlers, calling this twice must not duplicate output
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    directory = Path(directory) if directory else log_dir()
    try:
        directory.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            directory / "shelfcase.log",
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
    except OSError as e:
        logger.warning("file logging disabled: %s", e)
        return logger

    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    return logger
