# stowage/core/logging/__init__.py
from __future__ import annotations

from .context import boundLogContext, clearLogContext, getLogContext, setLogContext
from .formatters import DevFormatter, JsonFormatter
from .setup import configureLogging

__all__ = [
    "configureLogging",
    "setLogContext",
    "clearLogContext",
    "getLogContext",
    "boundLogContext",
    "DevFormatter",
    "JsonFormatter",
]
