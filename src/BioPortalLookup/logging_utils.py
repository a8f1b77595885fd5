# === NAVMAP v1 ===
# {
#   "module": "BioPortalLookup.logging_utils",
#   "purpose": "Structured logging helpers: JSON formatter, secret masking, handler setup",
#   "sections": [
#     {"id": "masking", "name": "Secret Masking", "anchor": "MSK", "kind": "helpers"},
#     {"id": "formatter", "name": "JSONFormatter", "anchor": "class-jsonformatter", "kind": "class"},
#     {"id": "setup", "name": "setup_logging", "anchor": "function-setup-logging", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Structured logging helpers shared across BioPortal lookup components."""

from __future__ import annotations

import json
import logging
import os
import re
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Optional

import platformdirs

__all__ = ["LOGGER_NAME", "JSONFormatter", "mask_sensitive_data", "setup_logging"]

LOGGER_NAME = "BioPortalLookup"

_SENSITIVE_KEYS = {"authorization", "api_key", "apikey", "token", "secret", "password"}
_APIKEY_PATTERN = re.compile(r"(apikey(?:\s+token)?\s*=\s*)[^\s&,]+", re.IGNORECASE)

_STANDARD_RECORD_FIELDS = set(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}


def mask_sensitive_data(payload: Dict[str, object]) -> Dict[str, object]:
    """Return a copy of ``payload`` with common secret fields masked."""

    def _mask_value(value: object, key_hint: Optional[str] = None) -> object:
        if isinstance(value, dict):
            return {
                sub_key: _mask_value(sub_value, str(sub_key).lower())
                for sub_key, sub_value in value.items()
            }
        if isinstance(value, list):
            return [_mask_value(item, key_hint) for item in value]
        if isinstance(value, tuple):
            return tuple(_mask_value(item, key_hint) for item in value)
        if isinstance(value, str):
            if key_hint in _SENSITIVE_KEYS:
                return "***masked***"
            if "apikey" in value.lower():
                return _APIKEY_PATTERN.sub(r"\1***masked***", value)
        return value

    masked: Dict[str, object] = {}
    for key, value in payload.items():
        lower = key.lower()
        if lower in _SENSITIVE_KEYS:
            masked[key] = "***masked***"
        else:
            masked[key] = _mask_value(value, lower)
    return masked


class JSONFormatter(logging.Formatter):
    """Formatter emitting masked JSON log entries.

    Values passed through ``extra={...}`` are copied into the payload.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Render ``record`` as a JSON string."""

        now = datetime.now(timezone.utc)
        payload: Dict[str, object] = {
            "timestamp": now.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _STANDARD_RECORD_FIELDS and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(mask_sensitive_data(payload), default=str)


def _resolve_log_dir(log_dir: Optional[Path]) -> Path:
    if log_dir is not None:
        return log_dir
    env_value = os.environ.get("BIOPORTAL_LOG_DIR", "").strip()
    if env_value:
        return Path(env_value)
    return Path(platformdirs.user_log_dir("bioportal-lookup"))


def setup_logging(
    *,
    level: str = "INFO",
    emit_json_logs: bool = True,
    log_dir: Optional[Path] = None,
    max_log_size_mb: int = 50,
    propagate: bool = False,
) -> logging.Logger:
    """Configure the package logger with a console handler and JSON file sidecar.

    Calling this again replaces the handlers it installed earlier.
    """

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(logger.handlers):
        if getattr(handler, "_bioportal_managed", False):
            logger.removeHandler(handler)
            if isinstance(handler, logging.StreamHandler):
                stream = getattr(handler, "stream", None)
                if stream in (sys.stdout, sys.stderr):
                    continue
            handler.close()

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    stream_handler._bioportal_managed = True  # type: ignore[attr-defined]
    logger.addHandler(stream_handler)

    if emit_json_logs:
        resolved_dir = _resolve_log_dir(log_dir)
        resolved_dir.mkdir(parents=True, exist_ok=True)
        today = datetime.now(timezone.utc).strftime("%Y%m%d")
        file_handler = RotatingFileHandler(
            resolved_dir / f"bioportal-lookup-{today}.jsonl",
            maxBytes=int(max_log_size_mb * 1024 * 1024),
            backupCount=5,
        )
        file_handler.setFormatter(JSONFormatter())
        file_handler._bioportal_managed = True  # type: ignore[attr-defined]
        logger.addHandler(file_handler)

    logger.propagate = propagate
    return logger
