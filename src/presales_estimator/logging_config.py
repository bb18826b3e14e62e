from __future__ import annotations

import json
import logging
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Iterator

from google.cloud import logging as cloud_logging

PACKAGE_LOGGER = "presales_estimator"

# Identifier of the estimation request being processed on this context
request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, with the keys Cloud Logging picks up from stdout."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "severity": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "component": _component(record.name),
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = request_id_var.get()
        if request_id:
            log_obj["request_id"] = request_id

        # Payload passed as extra={"fields": {...}}
        fields = getattr(record, "fields", None)
        if isinstance(fields, dict):
            log_obj.update(fields)

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, default=str)


def _component(logger_name: str) -> str:
    prefix = PACKAGE_LOGGER + "."
    return logger_name[len(prefix):] if logger_name.startswith(prefix) else logger_name


def setup_logging(
    *,
    environment: str = "dev",
    project_id: str | None = None,
    use_cloud_logging: bool = True,
    level: int | None = None,
) -> None:
    """Configure logging for the estimation engine.

    Args:
        environment: Environment name (dev, staging, prod)
        project_id: GCP project ID for Cloud Logging
        use_cloud_logging: Whether to hand records to the Cloud Logging client
        level: Explicit level; defaults to DEBUG in dev and INFO elsewhere
    """
    if level is None:
        level = logging.DEBUG if environment == "dev" else logging.INFO

    if use_cloud_logging and project_id and environment != "dev":
        client = cloud_logging.Client(project=project_id)
        client.setup_logging(log_level=level)
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        logging.basicConfig(level=level, handlers=[handler], force=True)

    # Per-iteration goal seek and per-item normalizer lines are DEBUG only
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)
    logging.getLogger("google").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def get_request_id() -> str | None:
    return request_id_var.get()


@contextmanager
def request_scope(request_id: str | None = None) -> Iterator[str]:
    """Bind a request id (a fresh one when omitted) for the duration of the block."""
    token = request_id_var.set(request_id or uuid.uuid4().hex)
    try:
        yield request_id_var.get()
    finally:
        request_id_var.reset(token)


__all__ = ["setup_logging", "set_request_id", "get_request_id", "request_scope", "StructuredFormatter"]
