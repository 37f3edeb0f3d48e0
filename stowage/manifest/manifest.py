# stowage/manifest/manifest.py
from __future__ import annotations
from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator

from stowage.semver.semver import (
    PackageVersion,
    VersionRequirement,
    parsePackageVersion,
    parseVersionRequirement,
)

__all__ = ["Dependency", "PackageManifest", "DEFAULT_REQUIREMENT"]



DEFAULT_REQUIREMENT = ">= 0"



class Dependency(BaseModel):
    """A runtime dependency on another package."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    requirement: str = DEFAULT_REQUIREMENT

    @field_validator("requirement")
    @classmethod
    def _checkRequirement(cls, value: str) -> str:
        parseVersionRequirement(value)
        return value.strip() or DEFAULT_REQUIREMENT

    @property
    def parsedRequirement(self) -> VersionRequirement | None:
        return parseVersionRequirement(self.requirement)

    def __str__(self) -> str:
        return f"{self.name} ({self.requirement})"



class PackageManifest(BaseModel):
    """
    Validated package manifest. Immutable for the duration of an install;
    use model_copy(update=...) or withoutFiles() to derive variants.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    version: str
    platform: str = "any"
    summary: str | None = None
    files: tuple[str, ...] = ()
    executables: tuple[str, ...] = ()
    # A null entry is kept so the builder can report it
    extensions: tuple[str | None, ...] = ()
    requirePaths: tuple[str, ...] = ("lib",)
    dependencies: tuple[Dependency, ...] = ()
    requiredRuntimeVersion: str = DEFAULT_REQUIREMENT
    requiredInstallerVersion: str = DEFAULT_REQUIREMENT
    postInstallMessage: str | None = None
    bindir: str = "bin"

    @field_validator("name")
    @classmethod
    def _checkName(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Package name cannot be empty")
        if "/" in value or "\\" in value:
            raise ValueError(f"Package name {value!r} cannot contain path separators")
        return value

    @field_validator("version")
    @classmethod
    def _checkVersion(cls, value: str) -> str:
        parsePackageVersion(value)
        return value.strip()

    @field_validator("requiredRuntimeVersion", "requiredInstallerVersion")
    @classmethod
    def _checkConstraint(cls, value: str) -> str:
        parseVersionRequirement(value)
        return value.strip() or DEFAULT_REQUIREMENT

    # ----- Derived -----

    @property
    def semver(self) -> PackageVersion:
        return parsePackageVersion(self.version)

    @property
    def fullName(self) -> str:
        if self.platform and self.platform != "any":
            return f"{self.name}-{self.version}-{self.platform}"
        return f"{self.name}-{self.version}"

    def binFile(self, installDir: Path, executable: str) -> Path:
        """Path of one of this package's own executables inside its install directory."""
        return Path(installDir) / self.bindir / executable

    def withoutFiles(self) -> "PackageManifest":
        return self.model_copy(update={"files": ()})

    def addDependency(self, name: str, requirement: str = DEFAULT_REQUIREMENT) -> "PackageManifest":
        dependency = Dependency(name=name, requirement=requirement)
        return self.model_copy(update={"dependencies": (*self.dependencies, dependency)})
