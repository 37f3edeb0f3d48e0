# stowage/core/logging/setup.py
from __future__ import annotations
import logging
import logging.handlers

from stowage.config.settings import LoggingSettings
from .formatters import DevFormatter, JsonFormatter

__all__ = [
    "ROOT_LOGGER",
    "configureLogging",
]



ROOT_LOGGER = "stowage"



def configureLogging(settings: LoggingSettings | None = None) -> logging.Logger:
    """
    Configure the "stowage" logger tree.

    Dev:
      - Console pretty logs (DEBUG)
      - JSON file log (DEBUG) when logFile is set

    Prod:
      - Console at the configured level (INFO by default)
      - JSON file log with rotation when logFile is set

    Only the package logger is touched, so embedding applications keep
    their own root configuration.
    """
    settings = settings or LoggingSettings()
    if settings.devMode:
        level = logging.DEBUG
    else:
        level = getattr(logging, settings.level.upper(), logging.INFO)

    root = logging.getLogger(ROOT_LOGGER)
    root.handlers.clear()
    root.setLevel(level)
    root.propagate = False

    consoleHandler = logging.StreamHandler()
    consoleHandler.setLevel(level)
    consoleHandler.setFormatter(DevFormatter())
    root.addHandler(consoleHandler)

    if settings.logFile is not None:
        settings.logFile.parent.mkdir(parents=True, exist_ok=True)
        fileHandler = logging.handlers.RotatingFileHandler(
            settings.logFile,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8"
        )
        fileHandler.setLevel(level)
        fileHandler.setFormatter(JsonFormatter())
        root.addHandler(fileHandler)

    return root
