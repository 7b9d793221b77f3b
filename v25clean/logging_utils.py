from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

LOGGER_NAME = "v25clean"


def get_logger(
    name: str = LOGGER_NAME,
    verbose: bool = False,
    log_dir: Optional[str | Path] = None,
) -> logging.Logger:
    """
    Configure and return the package logger.

    Modules log through ``logging.getLogger(__name__)``, which are children of
    this logger. Repeated calls only adjust the level; handlers are added once.
    ``verbose`` switches to DEBUG, where every per-file decision is logged.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if getattr(logger, "_v25clean_initialized", False):
        return logger

    fmt = logging.Formatter(
        "[%(asctime)s][%(levelname)s] %(message)s",
        "%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(fmt)
    logger.addHandler(console)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / f"{name}.log", encoding="utf-8")
        file_handler.setFormatter(fmt)
        logger.addHandler(file_handler)

    logger.propagate = False
    logger._v25clean_initialized = True  # type: ignore[attr-defined]
    return logger
