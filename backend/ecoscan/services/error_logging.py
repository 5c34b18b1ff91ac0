"""
Error Logging Service

Records unexpected failures twice: once through the standard logging tree
(console, plus rotating files under LOGS_DIR when writable) and once as an
ErrorLog row, so a credit that went wrong can be traced back to the user,
barcode and request that caused it.

Usage:
    from ecoscan.services.error_logging import error_logger

    error_logger.log_error(exc, user_id=user_id, context={"barcode": barcode})
"""

import logging
import traceback
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import UUID

from ecoscan.core.config import settings
from ecoscan.models.error_log import ErrorLog

logger = logging.getLogger("ecoscan.errors")

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_MAX_BYTES = 5 * 1024 * 1024

REDACTED_KEYS = ("token", "authorization", "secret", "password", "api_key")

_file_handlers_attached = False


def attach_log_files(logs_dir: str) -> bool:
    """
    Add errors.log (ERROR+) and ecoscan.log (INFO+) handlers to the root logger.

    Returns False and keeps console logging only if logs_dir is not writable.
    """
    global _file_handlers_attached
    if _file_handlers_attached:
        return True

    path = Path(logs_dir)
    try:
        path.mkdir(parents=True, exist_ok=True)
        marker = path / ".write_check"
        marker.touch()
        marker.unlink()
    except OSError as e:
        logger.warning(f"[ErrorLog] {path} is not writable ({e}), logging to console only")
        return False

    root = logging.getLogger()
    for filename, level, backups in (("errors.log", logging.ERROR, 10), ("ecoscan.log", logging.INFO, 3)):
        handler = RotatingFileHandler(path / filename, maxBytes=LOG_MAX_BYTES, backupCount=backups, encoding="utf-8")
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(handler)

    _file_handlers_attached = True
    return True


def scrub(value: Any, depth: int = 0) -> Any:
    """JSON-safe copy of value with credentials masked."""
    if depth > 8:
        return "..."
    if isinstance(value, dict):
        return {
            str(key): "[REDACTED]" if any(k in str(key).lower() for k in REDACTED_KEYS) else scrub(item, depth + 1)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple, set)):
        return [scrub(item, depth + 1) for item in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def _clip(text: Optional[str], limit: int) -> Optional[str]:
    if text is None or len(text) <= limit:
        return text
    return text[:limit] + f"... [{len(text) - limit} more chars]"


def _origin(error: Exception) -> Optional[str]:
    """file:function:line of the innermost frame."""
    frames = traceback.extract_tb(error.__traceback__) if error.__traceback__ else None
    if not frames:
        return None
    frame = frames[-1]
    return f"{Path(frame.filename).name}:{frame.name}:{frame.lineno}"


def _request_info(request) -> Dict[str, Optional[str]]:
    """Method/path/client of a Request or WebSocket."""
    if request is None:
        return {}
    return {
        "request_method": request.scope.get("method", "WEBSOCKET"),
        "request_path": request.url.path,
        "client_ip": request.client.host if request.client else None,
    }


class ErrorLogger:
    """Writes error records to the log and, once bound, to the error_logs table."""

    def __init__(self):
        self.session_factory = None

    def bind(self, session_factory) -> None:
        self.session_factory = session_factory

    def log_error(
        self,
        error: Exception,
        request=None,
        user_id: Optional[UUID] = None,
        severity: str = "error",
        context: Optional[Dict[str, Any]] = None,
    ) -> Optional[UUID]:
        """
        Log error and store it. Returns the ErrorLog id, or None when the
        row could not be written (no database bound, or the insert failed).
        """
        context = scrub(context) if context else None
        request_info = _request_info(request)

        level = logging.CRITICAL if severity == "critical" else logging.ERROR
        logger.log(
            level,
            f"[ErrorLog] {type(error).__name__}: {error} | user={user_id or '-'} "
            f"| path={request_info.get('request_path') or '-'} | context={context or {}}",
        )

        if self.session_factory is None:
            return None

        code = getattr(error, "code", None) or getattr(error, "status_code", None)
        entry = ErrorLog(
            timestamp=datetime.now(timezone.utc),
            error_type=type(error).__name__,
            error_code=str(code) if code is not None else None,
            severity=severity,
            location=_origin(error),
            user_id=user_id,
            message=_clip(str(error), 1000) or "",
            stack_trace=_clip("".join(traceback.format_exception(type(error), error, error.__traceback__)), 20000),
            context_data=context,
            **request_info,
        )

        db = self.session_factory()
        try:
            db.add(entry)
            db.commit()
            return entry.id
        except Exception as db_err:
            db.rollback()
            logger.error(f"[ErrorLog] Could not store error record: {db_err}")
            return None
        finally:
            db.close()


error_logger = ErrorLogger()


def configure_error_logging(session_factory, logs_dir: Optional[str] = None) -> None:
    """Startup hook: file handlers plus database storage."""
    attach_log_files(logs_dir or settings.LOGS_DIR)
    error_logger.bind(session_factory)
    logger.info("[ErrorLog] Error logging configured")
