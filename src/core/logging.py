"""
Structured logging configuration using structlog.

- JSON output in production, colored console output in debug mode
- Request-scoped context (request_id, session_id, user_id) via contextvars
- One log file per process start under logs/, oldest files culled
- Parent-authored text is never written to logs (see _redact_free_text)
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, List, MutableMapping, Optional

import structlog
from structlog.typing import Processor

from src.core.config import settings

# Event-dict keys that could carry what a parent typed or what the model replied
REDACTED_KEYS = frozenset({"message_text", "reply_text", "content", "prompt", "system"})


def _redact_free_text(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Replace free-text values with their length."""
    for key in REDACTED_KEYS.intersection(event_dict.keys()):
        value = event_dict[key]
        event_dict[key] = f"<redacted len={len(value)}>" if isinstance(value, str) else "<redacted>"
    return event_dict


def _cull_old_logs(logs_dir: Path, keep: int) -> None:
    """Delete old log files, keeping only the N most recent."""
    log_files = sorted(
        logs_dir.glob("coach_*.log"),
        key=lambda p: p.stat().st_mtime,
        reverse=True,
    )
    for old_file in log_files[keep:]:
        try:
            old_file.unlink()
        except OSError:
            pass  # another process may hold or have removed it


def configure_logging(
    log_files_to_keep: int = 5,
    logs_dir: Optional[Path] = None,
    level: int = logging.INFO,
) -> None:
    """Configure structlog for the application.

    Call this once at application startup, before any logging.

    Args:
        log_files_to_keep: Number of recent log files to retain (default: 5)
        logs_dir: Directory for log files (default: ./logs)
        level: Minimum stdlib level emitted

    Outputs:
        - Console (colored in debug, JSON otherwise)
        - File: logs/coach_YYYYMMDD_HHMMSS.log
    """
    logs_dir = logs_dir or Path("logs")
    logs_dir.mkdir(parents=True, exist_ok=True)

    # keep-1 leaves room for the file created below
    _cull_old_logs(logs_dir, keep=max(log_files_to_keep - 1, 0))
    log_file = logs_dir / f"coach_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    shared_processors: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ExtraAdder(),
        _redact_free_text,
    ]

    if settings.debug:
        processors = shared_processors + [structlog.dev.ConsoleRenderer(colors=True)]
    else:
        processors = shared_processors + [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]

    # Reconfiguration (tests, reloads) must not stack handlers
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)
    root_logger.setLevel(level)

    for handler in (logging.StreamHandler(), logging.FileHandler(log_file, mode="w")):
        handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(handler)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a logger instance with the given name.

    Usage:
        from src.core.logging import get_logger

        log = get_logger(__name__)
        log.info("turn_completed", session_id=session_id)
    """
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """Bind request-scoped context (request_id, session_id, user_id) to all later logs."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear request-scoped context so it does not leak between requests."""
    structlog.contextvars.clear_contextvars()
