"""
JSON line logging shared by the archive server, the ImageServer and the launcher.

Each record is one object on stdout:
  {"t": 1700000000000, "lvl": "INFO", "name": "image_server", "msg": "Request: GET /health",
   "extra": {"tile": "10/5/3"}}

Structured fields go through `extra={"extra": {...}}`.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import time
from typing import Any, Dict, Mapping, Optional

LEVEL_ENV_VAR = "LOG_LEVEL"

# uvicorn runs with log_config=None, so its loggers propagate here. Access lines
# duplicate the ImageServer's own request log and are kept to WARNING.
_QUIET_LOGGERS = {"uvicorn.access": logging.WARNING}


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "t": int(time.time() * 1000),
            "lvl": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload["extra"] = extra
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        # extents and paths are not always plain JSON types
        return json.dumps(payload, ensure_ascii=False, default=str)


def _resolve_level(name: Optional[str]) -> int:
    lvl = getattr(logging, (name or "INFO").upper(), None)
    return lvl if isinstance(lvl, int) else logging.INFO


def setup_logging(level: Optional[str] = None, force: bool = False) -> None:
    """
    Install the JSON handler on the root logger.

    Level comes from `level`, then $LOG_LEVEL, then INFO. Runs once unless
    `force` is set; the launcher forces it after the config file is read.
    """
    root = logging.getLogger()
    if getattr(root, "_terrain_configured", False) and not force:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(_resolve_level(level or os.environ.get(LEVEL_ENV_VAR)))
    for name, lvl in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(lvl)
    root._terrain_configured = True  # type: ignore[attr-defined]


def configure_from(cfg: Mapping[str, Any]) -> None:
    """Apply the `logging.level` setting of a loaded config."""
    setup_logging((cfg.get("logging") or {}).get("level"), force=True)


def get_logger(name: str) -> logging.Logger:
    setup_logging()
    return logging.getLogger(name)
