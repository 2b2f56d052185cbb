# backend/plotbook/logging_config.py
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from .middleware.request_context import current_context

# `extra={...}` keys copied into the JSON line when present
STRUCTURED_EXTRAS = (
    "method",
    "path",
    "status_code",
    "latency_ms",
    "search_type",
    "result_count",
    "property_id",
    "owner_id",
    "invitation_id",
    "email",
    "permission",
    "error",
)


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line: ts, level, logger, message, the request context
    (request_id, user_id, company_id) and any structured extras.

    An explicit user_id/company_id extra wins over the bound caller.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        ctx = current_context()
        if ctx is not None:
            payload["request_id"] = ctx.request_id
            if ctx.user_id is not None:
                payload["user_id"] = ctx.user_id
            if ctx.company_id is not None:
                payload["company_id"] = ctx.company_id

        for k in ("user_id", "company_id"):
            if getattr(record, k, None) is not None:
                payload[k] = getattr(record, k)

        for k in STRUCTURED_EXTRAS:
            if hasattr(record, k):
                payload[k] = getattr(record, k)

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging() -> None:
    level = (os.getenv("LOG_LEVEL") or "INFO").upper()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    # create_app() may run more than once (uvicorn reload, tests)
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(level)
    logging.getLogger("sqlalchemy.engine").setLevel((os.getenv("SQL_LOG_LEVEL") or "WARNING").upper())
