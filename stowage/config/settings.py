# stowage/config/settings.py
from __future__ import annotations
import os
import sys
from pathlib import Path
from typing import Any, Mapping, cast

import json5
from pydantic import BaseModel, ConfigDict, Field, JsonValue, field_validator

import logging
logger = logging.getLogger(__name__)

__all__ = [
    "SETTINGS_DEFAULTS", "USER_SETTINGS_PATH", "LoggingSettings", "InstallerSettings",
    "defaultPackageHome", "loadUserSettings", "loadSettings", "deepMerge",
]



USER_SETTINGS_PATH = Path(os.path.expanduser("~/.stowage/stowage.json5"))

SETTINGS_DEFAULTS: dict[str, JsonValue] = {
    "wrappers": True,
    "ignoreDependencies": False,
    "force": False,
    "formatExecutable": False,
    "execFormat": "%s",
    "envShebang": False,
    "pathWarning": True,
    "buildLogName": "stowage_make.out",
    "logging": {"devMode": False, "level": "INFO", "logFile": None},
}



def _absolutePath(value: Path | str) -> Path:
    # Launchers and wrappers embed these paths, so they must not depend on the cwd
    return Path(value).expanduser().absolute()



def defaultPackageHome() -> Path:
    envHome = os.environ.get("STOWAGE_HOME")
    if envHome:
        return _absolutePath(envHome)
    return _absolutePath("~/.stowage/packages")



def _runningVersion() -> str:
    return "%d.%d.%d" % sys.version_info[:3]



class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    devMode: bool = False
    level: str = "INFO"
    logFile: Path | None = None

    @field_validator("logFile")
    @classmethod
    def _absoluteLogFile(cls, value: Path | None) -> Path | None:
        return _absolutePath(value) if value is not None else None



class InstallerSettings(BaseModel):
    """
    Every knob the engine reads. Passed explicitly; nothing is looked up
    from globals once an Installer has been built.
    """
    model_config = ConfigDict(extra="forbid")

    packageHome: Path = Field(default_factory=defaultPackageHome)
    # Alternate home to install into instead of packageHome
    installDir: Path | None = None
    binDir: Path | None = None
    wrappers: bool = True
    ignoreDependencies: bool = False
    force: bool = False
    formatExecutable: bool = False
    execFormat: str = "%s"
    envShebang: bool = False
    interpreterPath: str = Field(default_factory=lambda: sys.executable)
    runtimeVersion: str = Field(default_factory=_runningVersion)
    # Extra homes consulted when checking dependencies
    searchPaths: list[Path] = Field(default_factory=list)
    pathWarning: bool = True
    buildLogName: str = "stowage_make.out"
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("packageHome", "installDir", "binDir")
    @classmethod
    def _absoluteHome(cls, value: Path | None) -> Path | None:
        return _absolutePath(value) if value is not None else None

    @field_validator("searchPaths")
    @classmethod
    def _absoluteSearchPaths(cls, value: list[Path]) -> list[Path]:
        return [_absolutePath(path) for path in value]

    @property
    def home(self) -> Path:
        """The package home this install writes into."""
        return self.installDir if self.installDir is not None else self.packageHome

    @property
    def launcherDir(self) -> Path:
        return self.binDir if self.binDir is not None else self.home / "bin"

    def dependencyHomes(self) -> list[Path]:
        homes: list[Path] = []
        for candidate in (self.home, self.packageHome, *self.searchPaths):
            if candidate not in homes:
                homes.append(candidate)
        return homes



def loadUserSettings(path: Path | None = None) -> JsonValue:
    filePath = path or USER_SETTINGS_PATH
    if filePath.exists():
        try:
            return json5.loads(filePath.read_text(encoding="utf-8"))
        except Exception as err:
            logger.error("Failed to parse '%s': %s", filePath, err)
    return {}



def loadSettings(path: Path | None = None, overrides: Mapping[str, Any] | None = None) -> InstallerSettings:
    """
    Builds InstallerSettings from built-in defaults, the user's json5 file
    and explicit overrides (rightmost wins).
    """
    merged = deepMerge(cast(JsonValue, SETTINGS_DEFAULTS), loadUserSettings(path))
    if overrides:
        merged = deepMerge(merged, cast(JsonValue, dict(overrides)))
    return InstallerSettings.model_validate(merged)



def deepMerge(first: JsonValue, second: JsonValue) -> JsonValue:
    """
    Returns a new JsonValue where keys from `second` override/extend `first`.
    Only merges recursively when BOTH sides are JSON objects (dicts).
    For all other JSON types the right-hand value `second` replaces `first`.
    """
    if isinstance(first, dict) and isinstance(second, dict):
        out: dict[str, JsonValue] = dict(first)
        for key, value in second.items():
            if key in out:
                out[key] = deepMerge(out[key], cast(JsonValue, value))
            else:
                out[key] = cast(JsonValue, value)
        return cast(JsonValue, out)

    return cast(JsonValue, second)
