# stowage/core/paths.py
from __future__ import annotations
import os
from os import PathLike
from pathlib import Path, PureWindowsPath

from stowage.core.errors import PathViolationError

__all__ = ["resolveSafe", "isAbsoluteAnywhere", "currentUmask"]



def isAbsoluteAnywhere(path: str) -> bool:
    """
    True if `path` is absolute on POSIX or Windows.

    Archives are built on one platform and installed on another, so a
    drive-letter or UNC path is refused on Linux too.
    """
    if os.path.isabs(path) or path.startswith(("/", "\\")):
        return True
    windowsPath = PureWindowsPath(path)
    return bool(windowsPath.drive or windowsPath.root)



def resolveSafe(root: Path | str, requested: str | PathLike[str]) -> Path:
    """
    Returns the absolute path of `requested` joined under `root`.

    Raises PathViolationError if `requested` is absolute or if, after
    normalizing "." and "..", it does not stay strictly below `root`.
    Normalization is lexical; the filesystem is never consulted.
    """
    declared = os.fspath(requested)
    if isAbsoluteAnywhere(declared):
        raise PathViolationError(f"attempt to install file into {declared}")

    rootNormalized = os.path.normpath(os.path.abspath(os.fspath(root)))
    joined = os.path.normpath(os.path.join(rootNormalized, declared))

    # Must remain inside the destination root, and must not be the root itself
    if joined == rootNormalized or os.path.commonpath([rootNormalized, joined]) != rootNormalized:
        raise PathViolationError(f'attempt to install file into "{declared}" under {root}')

    return Path(joined)



def currentUmask() -> int:
    """Returns the process file-creation mask (0 where the platform has none)."""
    if os.name == "nt":
        return 0
    mask = os.umask(0)
    os.umask(mask)
    return mask
