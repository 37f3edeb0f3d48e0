# stowage/ui.py
from __future__ import annotations
import sys
from typing import Protocol, TextIO

__all__ = ["UserInterface", "StreamUI"]



class UserInterface(Protocol):
    """User-facing progress channel. Separate from logging; messages here are meant for people."""

    def say(self, message: str = "") -> None: ...
    def alertWarning(self, message: str) -> None: ...



class StreamUI:
    """Writes `say` to stdout and warnings to stderr, as a terminal front end would."""

    def __init__(self, out: TextIO | None = None, err: TextIO | None = None):
        self._out = out
        self._err = err

    @property
    def out(self) -> TextIO:
        return self._out if self._out is not None else sys.stdout

    @property
    def err(self) -> TextIO:
        return self._err if self._err is not None else sys.stderr

    def say(self, message: str = "") -> None:
        self._write(self.out, message)

    def alertWarning(self, message: str) -> None:
        self._write(self.err, f"WARNING:  {message}")

    @staticmethod
    def _write(stream: TextIO, line: str) -> None:
        stream.write(f"{line}\n")
        stream.flush()
