# stowage/core/logging/formatters.py
from __future__ import annotations

import logging

from stowage.core.jsonutils import safeJsonDumps
from .context import CONTEXT_KEYS, getLogContext



def _contextSuffix(ctx: dict[str, object] | None) -> str:
    if not ctx:
        return ""
    parts = [str(ctx[key]) for key in CONTEXT_KEYS if ctx.get(key)]
    return " [" + "/".join(parts) + "]" if parts else ""



class JsonFormatter(logging.Formatter):
    """Line-per-record JSON for the rotating install log."""
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "ts": int(record.created * 1000),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
            "ctx": getLogContext() or {},
            "pid": record.process,
        }
        if record.exc_info:
            excType, excValue, _ = record.exc_info
            entry["exc"] = {
                "type": getattr(excType, "__name__", "Error"),
                "message": str(excValue),
                "stack": self.formatException(record.exc_info),
            }
        return safeJsonDumps(entry)



class DevFormatter(logging.Formatter):
    """Console output: `LEVEL: [logger] message [package/phase]`."""
    def format(self, record: logging.LogRecord) -> str:
        lines = [record.getMessage()]
        if record.exc_info:
            lines.append(self.formatException(record.exc_info))
        if record.stack_info:
            lines.append(str(record.stack_info))
        return f"{record.levelname}: [{record.name}] " + "\n".join(lines) + _contextSuffix(getLogContext())
