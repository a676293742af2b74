# -*- coding: utf-8 -*-
from __future__ import annotations
import logging, logging.handlers, os
from pathlib import Path

LOG_FILE_NAME = "order_hub.log"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# uvicorn and fastapi keep their own handlers; the app loggers propagate to root
WIRED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi")


def setup_logging(settings) -> Path:
    """Rotating file log at DATA_ROOT/logs/order_hub.log, level from LOG_LEVEL."""
    log_dir = Path(settings.DATA_ROOT).expanduser() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / LOG_FILE_NAME
    level = logging.getLevelName(str(settings.LOG_LEVEL).upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = None
    for lg in [logging.getLogger()] + [logging.getLogger(name) for name in WIRED_LOGGERS]:
        lg.setLevel(level)
        if any(_writes_to(h, log_path) for h in lg.handlers):
            continue
        if handler is None:
            handler = _file_handler(log_path, settings, level)
        lg.addHandler(handler)

    return log_path


def _file_handler(log_path: Path, settings, level: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=settings.LOG_MAX_BYTES,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding="utf-8",
        delay=True,
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.setLevel(level)
    return handler


def _writes_to(handler: logging.Handler, log_path: Path) -> bool:
    return isinstance(handler, logging.handlers.RotatingFileHandler) and \
        getattr(handler, "baseFilename", "") == os.path.abspath(log_path)


def teardown_logging(log_path: Path) -> int:
    """Detach and close the handlers setup_logging added for log_path. Returns how many."""
    removed = set()
    for lg in [logging.getLogger()] + [logging.getLogger(name) for name in WIRED_LOGGERS]:
        for handler in [h for h in lg.handlers if _writes_to(h, log_path)]:
            lg.removeHandler(handler)
            removed.add(handler)
    for handler in removed:
        handler.close()
    return len(removed)
