# stowage/core/errors.py
from __future__ import annotations

from pathlib import Path

__all__ = [
    "InstallError",
    "PathViolationError",
    "MissingFormatError",
    "ExtensionBuildError",
    "UnsupportedExtensionError",
    "DependencyUnsatisfiedError",
    "VersionIncompatibleError",
    "HookFailureError",
    "FilePermissionError",
    "CorruptArchiveError",
    "PackageNotFoundError",
]



class InstallError(Exception):
    """Base class for every failure that aborts an install."""
    pass



class PathViolationError(InstallError):
    """A payload path is absolute or escapes the install directory."""
    pass



class MissingFormatError(ValueError):
    """Extraction was requested without a source of entries. Caller bug, not a runtime fault."""
    pass



class ExtensionBuildError(InstallError):
    """
    A native extension failed to build.

    The message always starts with the stable header below, followed by the
    captured build log. Tooling greps for the header, so keep it verbatim.
    """
    HEADER = "ERROR: Failed to build gem native extension."

    def __init__(self, buildLog: str, logPath: Path | None = None):
        super().__init__(f"{self.HEADER}\n\n{buildLog}")
        self.buildLog = buildLog
        self.logPath = logPath



class UnsupportedExtensionError(ExtensionBuildError):
    """No builder recognizes the declared extension file."""
    pass



class DependencyUnsatisfiedError(InstallError):
    pass



class VersionIncompatibleError(InstallError):
    """The package declares a runtime or installer version we do not meet."""
    pass



class HookFailureError(InstallError):
    pass



class FilePermissionError(InstallError):
    """
    Raised when a directory we must write into is not writable.

    Kept apart from OSError so front ends can print remediation advice.
    """
    def __init__(self, directory: Path | str):
        self.directory = Path(directory)
        super().__init__(f"You don't have write permissions into the {self.directory} directory.")



class CorruptArchiveError(InstallError):
    pass



class PackageNotFoundError(LookupError):
    """No installed package satisfies a launcher lookup."""
    pass
