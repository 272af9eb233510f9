"""Structured logging with loguru for the Flowchain insight service."""

from __future__ import annotations

import sys
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger as _loguru_logger

if TYPE_CHECKING:
    from loguru import Logger

# Request-scoped metadata (set by middleware or the ingestion pipeline)
_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)
_tenant_id: ContextVar[str | None] = ContextVar("tenant_id", default=None)
_operation: ContextVar[str | None] = ContextVar("operation", default=None)

LOG_DIR = Path("logs")
LOG_FILE_NAME = "flowchain.log"
ROTATION = "10 MB"
RETENTION = "7 days"


def _enrich_record(record: dict) -> bool:
    """Copy context vars into the record before it is formatted."""
    for key, var in (
        ("request_id", _request_id),
        ("tenant_id", _tenant_id),
        ("operation", _operation),
    ):
        value = var.get()
        if value is not None:
            record["extra"][key] = value
    record["extra"].setdefault("module", record["name"])
    return True


def setup_logging(
    log_level: str = "INFO",
    log_dir: Path | str | None = None,
) -> None:
    """Configure loguru with a JSON file sink and a readable console sink.

    - JSON format for file logs (one record per line)
    - Pretty format for console
    - File rotation at 10 MB, 7 days retention

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_dir: Optional directory for log files (used for tests).
    """
    _loguru_logger.remove()

    log_path = Path(log_dir) if log_dir else LOG_DIR
    log_path.mkdir(parents=True, exist_ok=True)

    _loguru_logger.add(
        log_path / LOG_FILE_NAME,
        format="{message}",
        rotation=ROTATION,
        retention=RETENTION,
        level=log_level,
        serialize=True,
        filter=_enrich_record,
    )

    _loguru_logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{extra[module]}</cyan> | {message}",
        level=log_level,
        filter=_enrich_record,
    )


def get_logger(module_name: str) -> Logger:
    """Return a logger bound to the given module name.

    Args:
        module_name: Typically __name__ of the calling module.
    """
    return _loguru_logger.bind(module=module_name)


def set_request_context(
    request_id: str | None = None,
    tenant_id: str | None = None,
    operation: str | None = None,
) -> None:
    """Set context for the current request or ingestion run."""
    if request_id is not None:
        _request_id.set(request_id)
    if tenant_id is not None:
        _tenant_id.set(tenant_id)
    if operation is not None:
        _operation.set(operation)


def get_request_context() -> dict[str, str | None]:
    """Return the current context values (None where unset)."""
    return {
        "request_id": _request_id.get(),
        "tenant_id": _tenant_id.get(),
        "operation": _operation.get(),
    }


def clear_request_context() -> None:
    """Clear request context (call at end of request)."""
    _request_id.set(None)
    _tenant_id.set(None)
    _operation.set(None)
