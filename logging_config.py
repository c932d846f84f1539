# logging_config.py
"""
Structured logging for the ledger.

Each record is written as one JSON line: timestamp, level, logger and the
event name, followed by every field passed through ``extra=``. Ledger
errors attached to a record add their ``code`` and attributes.
"""
import json
import logging
import sys
from datetime import date, datetime, timezone
from typing import Any, Dict

# Attributes every LogRecord has; anything else came in through extra=
_STDLIB_KEYS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "taskName"}


def _json_default(value: Any) -> Any:
     if isinstance(value, (datetime, date)):
          return value.isoformat()
     return str(value)


class StructuredFormatter(logging.Formatter):
     """Formats each log record as a single JSON line."""

     def format(self, record: logging.LogRecord) -> str:
          payload: Dict[str, Any] = {
               "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
               "level": record.levelname,
               "logger": record.name,
               "message": record.getMessage(),
          }

          for key, value in vars(record).items():
               if key not in _STDLIB_KEYS and key not in payload:
                    payload[key] = value

          if record.exc_info and record.exc_info[1] is not None:
               exc = record.exc_info[1]
               payload["exc_type"] = type(exc).__name__
               payload["exc_message"] = str(exc)
               if hasattr(exc, "code"):
                    payload["exc_code"] = exc.code
               for key, value in vars(exc).items():
                    if not key.startswith("_") and key not in ("args", "code", "message"):
                         payload[f"exc_{key}"] = value
               payload["traceback"] = self.formatException(record.exc_info)

          return json.dumps(payload, default=_json_default)


def configure_logging(level: str = "INFO") -> None:
     """Send every logger's records through one JSON handler on stderr."""
     handler = logging.StreamHandler(sys.stderr)
     handler.setFormatter(StructuredFormatter())

     root = logging.getLogger()
     for existing in list(root.handlers):
          root.removeHandler(existing)
     root.addHandler(handler)
     root.setLevel(level)
