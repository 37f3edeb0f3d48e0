# stowage/runtime.py
from __future__ import annotations
import logging
import os
import runpy
import sys
from pathlib import Path
from typing import Any

from stowage.config.settings import loadSettings
from stowage.core.errors import PackageNotFoundError
from stowage.manifest.manifest import DEFAULT_REQUIREMENT
from stowage.manifest.store import InstalledPackageRecord, ManifestStore
from stowage.semver.semver import isValidVersion

logger = logging.getLogger(__name__)

__all__ = ["isValidVersion", "findInstalled", "binPath", "activate", "loadExecutable"]

# Functions used by generated wrapper scripts. Keep the signatures stable,
# wrappers written by older versions still call them.



def _resolveHome(home: Path | str | None) -> Path:
    if home is not None:
        return Path(home)
    return loadSettings().home



def findInstalled(
    home: Path | str | None,
    name: str,
    requirement: str | None = DEFAULT_REQUIREMENT,
) -> InstalledPackageRecord | None:
    """Highest installed version of `name` satisfying `requirement`, or None."""
    matches = ManifestStore(_resolveHome(home)).findByName(name, requirement)
    return matches[0] if matches else None



def _requireExecutable(
    home: Path | str | None,
    name: str,
    executable: str,
    requirement: str | None,
) -> tuple[InstalledPackageRecord, Path]:
    record = findInstalled(home, name, requirement)
    if record is None:
        raise PackageNotFoundError(f"can't find package {name} ({requirement or DEFAULT_REQUIREMENT})")
    if executable not in record.manifest.executables:
        raise PackageNotFoundError(f"can't find executable {executable} for package {record.fullName}")
    return record, record.manifest.binFile(record.installDir, executable)



def binPath(
    name: str,
    executable: str,
    requirement: str | None = DEFAULT_REQUIREMENT,
    *,
    home: Path | str | None = None,
) -> Path:
    return _requireExecutable(home, name, executable, requirement)[1]



def activate(record: InstalledPackageRecord) -> None:
    """Puts the package's require paths at the front of sys.path."""
    for requirePath in reversed(record.manifest.requirePaths):
        entry = os.fspath(record.installDir / requirePath)
        if entry not in sys.path:
            sys.path.insert(0, entry)



def loadExecutable(
    name: str,
    executable: str,
    requirement: str | None = DEFAULT_REQUIREMENT,
    *,
    home: Path | str | None = None,
) -> dict[str, Any]:
    """
    Runs an installed executable as __main__ in this interpreter, after
    activating the best installed version that satisfies `requirement`.
    """
    record, path = _requireExecutable(home, name, executable, requirement)

    activate(record)
    sys.argv[0] = os.fspath(path)
    logger.debug("Running %s from %s", executable, record.fullName)
    return runpy.run_path(os.fspath(path), run_name="__main__")
