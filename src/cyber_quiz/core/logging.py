"""JSON-lines logging for cyber_quiz commands.

Every command gets a namespaced logger writing one JSON object per record to
``<workspace>/logs/<command>.log``. Fields passed through ``extra=`` end up
under the ``extra`` key. When the log directory is not writable the file moves
to a private directory under the system temp dir instead of failing.
"""

from __future__ import annotations

import json
import logging
import sys
import tempfile
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

__all__ = [
    "JsonLogFormatter",
    "configure_logger",
]

HANDLER_ROLE_ATTR = "_cyber_quiz_role"
FILE_ROLE = "file"
CONSOLE_ROLE = "console"

_FALLBACK_DIR_NAME = "cyber-quiz-logs"
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {
    "message",
    "asctime",
    "taskName",
}


class JsonLogFormatter(logging.Formatter):
    """Serialize a record and its ``extra`` fields as one JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extra = {
            key: _jsonable(value)
            for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS
        }
        if extra:
            entry["extra"] = extra
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            entry["stack"] = record.stack_info
        return json.dumps(entry, ensure_ascii=True)


def configure_logger(
    name: str,
    *,
    log_dir: Path,
    level: str = "INFO",
    verbose: bool = False,
    max_bytes: int = 2 * 1024 * 1024,
    backup_count: int = 3,
    filename: Optional[str] = None,
) -> tuple[logging.Logger, Path]:
    """Return ``(logger, log_path)`` for ``name``.

    The file handler is created once per logger and reused afterwards, so the
    returned path stays the same across calls. ``verbose`` lowers the file
    threshold to DEBUG and mirrors records to stderr; calling again without it
    removes the stderr mirror.
    """

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    file_handler = _find_handler(logger, FILE_ROLE)
    if file_handler is None:
        log_name = filename or name.rpartition(".")[2] + ".log"
        file_handler = _open_file_handler(
            log_dir, log_name, max_bytes=max_bytes, backup_count=backup_count
        )
        logger.addHandler(file_handler)
    file_handler.setLevel(logging.DEBUG if verbose else _coerce_level(level))

    mirror = _find_handler(logger, CONSOLE_ROLE)
    if verbose and mirror is None:
        mirror = logging.StreamHandler(stream=sys.stderr)
        mirror.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        _tag(mirror, CONSOLE_ROLE)
        logger.addHandler(mirror)
    elif not verbose and mirror is not None:
        logger.removeHandler(mirror)
        mirror.close()

    return logger, Path(file_handler.baseFilename)


def _coerce_level(level: str) -> int:
    value = getattr(logging, str(level).upper(), None)
    return value if isinstance(value, int) else logging.INFO


def _tag(handler: logging.Handler, role: str) -> None:
    setattr(handler, HANDLER_ROLE_ATTR, role)


def _find_handler(logger: logging.Logger, role: str) -> Any:
    for handler in logger.handlers:
        if getattr(handler, HANDLER_ROLE_ATTR, None) == role:
            return handler
    return None


def _open_file_handler(
    log_dir: Path, log_name: str, *, max_bytes: int, backup_count: int
) -> RotatingFileHandler:
    path = _private_file(_writable_dir(log_dir), log_name)
    try:
        handler = RotatingFileHandler(
            path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    except PermissionError:
        path = _private_file(_writable_dir(_fallback_log_dir()), log_name)
        handler = RotatingFileHandler(
            path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    handler.setFormatter(JsonLogFormatter())
    _tag(handler, FILE_ROLE)
    return handler


def _writable_dir(log_dir: Path) -> Path:
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except PermissionError:
        log_dir = _fallback_log_dir()
        log_dir.mkdir(parents=True, exist_ok=True)
    _restrict(log_dir, 0o700)
    return log_dir


def _private_file(directory: Path, log_name: str) -> Path:
    path = directory / log_name
    try:
        path.touch(exist_ok=True)
    except PermissionError:  # pragma: no cover - depends on filesystem
        path = _writable_dir(_fallback_log_dir()) / log_name
        path.touch(exist_ok=True)
    _restrict(path, 0o600)
    return path


def _restrict(path: Path, mode: int) -> None:
    try:
        path.chmod(mode)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(item) for item in value]
    return repr(value)


def _fallback_log_dir() -> Path:
    return Path(tempfile.gettempdir()) / _FALLBACK_DIR_NAME
