"""Logging configuration.

procflow uses standard library `logging` with a small convenience wrapper:
- `configure_logging()` sets up root logging once (applications call it, the
  library never does).
- `get_logger()` returns a module logger.

Diagnostics are attached through `extra=` so the JSON formatter can emit them as
structured fields (e.g. `isolated_node_ids`, `dropped_edges`).
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from ..config.settings import Settings

_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime", "taskName"}


def _jsonable(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset, tuple)):
        return [_jsonable(item) for item in value]
    return value


class JsonLogFormatter(logging.Formatter):
    """Minimal JSON formatter for machine-readable logs."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key.startswith("_") or key in _RESERVED_ATTRS:
                continue
            payload[key] = _jsonable(value)

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(
    *,
    level: Optional[str] = None,
    json_logs: Optional[bool] = None,
    settings: Optional["Settings"] = None,
) -> None:
    """Configure root logging once.

    Args:
        level: Root log level (e.g. 'INFO', 'DEBUG'). Defaults to `settings.log_level`.
        json_logs: If True, emit JSON logs; otherwise plain text. Defaults to
            `settings.json_logs`.
        settings: Optional settings object; loaded from the environment when omitted
            and either of the other arguments is missing.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    if level is None or json_logs is None:
        if settings is None:
            from ..config.settings import Settings

            settings = Settings()
        level = settings.log_level if level is None else level
        json_logs = settings.json_logs if json_logs is None else json_logs

    handler = logging.StreamHandler()
    handler.setFormatter(
        JsonLogFormatter() if json_logs else logging.Formatter("%(levelname)s %(name)s: %(message)s")
    )
    root.addHandler(handler)
    root.setLevel(level.upper())


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
