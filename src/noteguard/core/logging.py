"""
Logging configuration for NoteGuard.

Everything under the ``noteguard`` logger goes to the console and the
rotating application log. Records logged with ``extra={"security": True}``
(cross-tenant attempts) and errors are also written, as JSON, to
``security.log`` so they can be shipped separately.
"""
import json
import logging
import logging.config
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from ..config import Settings, get_settings

# Attributes every LogRecord has; anything else came in through extra=
_RESERVED = frozenset((
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename',
    'module', 'exc_info', 'exc_text', 'stack_info', 'lineno', 'funcName',
    'created', 'msecs', 'relativeCreated', 'thread', 'threadName',
    'processName', 'process', 'taskName', 'message', 'asctime',
))

_request_id: ContextVar[Optional[str]] = ContextVar("noteguard_request_id", default=None)

_LEVEL_COLORS = {
    logging.DEBUG: '\033[36m',
    logging.INFO: '\033[32m',
    logging.WARNING: '\033[33m',
    logging.ERROR: '\033[31m',
    logging.CRITICAL: '\033[35m',
}


class RequestIdFilter(logging.Filter):
    """Stamp the current request id (if any) on every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, 'request_id'):
            record.request_id = _request_id.get()
        return True


class SecurityFilter(logging.Filter):
    """Let through security-flagged records and errors only."""

    def filter(self, record: logging.LogRecord) -> bool:
        return bool(getattr(record, 'security', False)) or record.levelno >= logging.ERROR


class JSONFormatter(logging.Formatter):
    """One JSON object per line, extra= fields nested under "extra"."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'location': f"{record.module}.{record.funcName}:{record.lineno}",
        }

        if record.exc_info and record.exc_info[0] is not None:
            entry['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': self.formatException(record.exc_info),
            }

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED and value is not None
        }
        if extra:
            entry['extra'] = extra

        return json.dumps(entry, ensure_ascii=False, default=str)


class ColoredFormatter(logging.Formatter):
    """Human friendly console output for local development."""

    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        # work on a copy, other handlers share the record
        record = logging.makeLogRecord(record.__dict__)
        color = _LEVEL_COLORS.get(record.levelno, '')
        record.levelname = f"{color}{record.levelname:<8}{self.RESET}"
        line = super().format(record)
        if getattr(record, 'security', False):
            line = f"{line} \033[1;31m[security]{self.RESET}"
        return line


def get_log_level(level_str: Optional[str] = None) -> int:
    """Resolve a level name, falling back to INFO for unknown names."""
    level = logging.getLevelName((level_str or get_settings().log_level).upper())
    return level if isinstance(level, int) else logging.INFO


def _rotating(path: Path, formatter: str, level: str, filters=()) -> Dict[str, Any]:
    return {
        'class': 'logging.handlers.RotatingFileHandler',
        'filename': str(path),
        'maxBytes': 10_000_000,  # 10MB
        'backupCount': 5,
        'encoding': 'utf-8',
        'formatter': formatter,
        'level': level,
        'filters': list(filters),
    }


def build_logging_config(settings: Settings) -> Dict[str, Any]:
    """dictConfig for the given settings; creates the log directory."""
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    return {
        'version': 1,
        'disable_existing_loggers': False,
        'filters': {
            'request_id': {'()': RequestIdFilter},
            'security_only': {'()': SecurityFilter},
        },
        'formatters': {
            'json': {'()': JSONFormatter},
            'colored': {
                '()': ColoredFormatter,
                'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
                'datefmt': '%H:%M:%S',
            },
            'file': {
                'format': '%(asctime)s | %(levelname)-8s | %(name)-22s | %(request_id)s | %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S',
            },
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'colored' if settings.debug else 'json',
                'stream': sys.stdout,
                'level': get_log_level(settings.log_level),
                'filters': ['request_id'],
            },
            'file': _rotating(log_dir / 'noteguard.log', 'file', 'DEBUG', ['request_id']),
            'security_file': _rotating(
                log_dir / 'security.log', 'json', 'WARNING', ['request_id', 'security_only']
            ),
        },
        'loggers': {
            '': {'handlers': ['console', 'file'], 'level': 'INFO'},
            'noteguard': {
                'handlers': ['console', 'file', 'security_file'],
                'level': 'DEBUG',
                'propagate': False,
            },
            'uvicorn': {'handlers': ['console'], 'level': 'INFO', 'propagate': False},
            'sqlalchemy': {'handlers': ['file'], 'level': 'WARNING', 'propagate': False},
            'alembic': {'handlers': ['console', 'file'], 'level': 'INFO', 'propagate': False},
        },
    }


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Install the logging configuration."""
    settings = settings or get_settings()
    logging.config.dictConfig(build_logging_config(settings))

    get_logger('logging').info("Logging system initialized", extra={
        'log_level': settings.log_level,
        'debug': settings.debug,
        'environment': settings.environment,
    })


def get_logger(name: str) -> logging.Logger:
    """Application logger, always below ``noteguard``."""
    return logging.getLogger(f"noteguard.{name}")


class LoggingMiddleware:
    """ASGI middleware logging each HTTP request with a request id.

    The id is taken from the X-Request-ID header when present, echoed
    back in the response and attached to every record logged while the
    request is handled.
    """

    header = b"x-request-id"

    def __init__(self, app, logger_name: str = "http"):
        self.app = app
        self.logger = get_logger(logger_name)

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers") or ())
        request_id = headers.get(self.header, b"").decode("latin-1") or uuid.uuid4().hex
        token = _request_id.set(request_id)
        started = time.perf_counter()
        route = {'method': scope['method'], 'path': scope['path']}

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"] = [
                    *message["headers"],
                    (self.header, request_id.encode("latin-1")),
                ]
                self.logger.info("HTTP Response", extra={
                    **route,
                    'status_code': message.get('status', 0),
                    'duration_ms': round((time.perf_counter() - started) * 1000, 2),
                })
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            self.logger.error("HTTP Request Failed", extra={
                **route,
                'duration_ms': round((time.perf_counter() - started) * 1000, 2),
                'exception_type': type(exc).__name__,
                'exception_message': str(exc),
            })
            raise
        finally:
            _request_id.reset(token)
