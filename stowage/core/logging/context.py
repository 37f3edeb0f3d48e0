# stowage/core/logging/context.py
from __future__ import annotations
import contextvars
from contextlib import contextmanager
from typing import Iterator

# Keys shown by DevFormatter, in display order
CONTEXT_KEYS = ("package", "phase", "extension")

# Context of the install currently running on this thread of control.
_installLogContext: contextvars.ContextVar[dict[str, object] | None] = contextvars.ContextVar("stowage.logctx", default=None)

def setLogContext(**kvs):
    """Merge values into the install log context. None values are skipped."""
    current = dict(_installLogContext.get() or {})
    current.update({key: value for key, value in kvs.items() if value is not None})
    _installLogContext.set(current)

def clearLogContext():
    _installLogContext.set(None)

def getLogContext():
    return _installLogContext.get()

@contextmanager
def boundLogContext(**kvs) -> Iterator[dict[str, object]]:
    """Adds values for the duration of a block, then restores the previous context."""
    token = _installLogContext.set({**(_installLogContext.get() or {}), **{k: v for k, v in kvs.items() if v is not None}})
    try:
        yield _installLogContext.get() or {}
    finally:
        _installLogContext.reset(token)
