# stowage/install/context.py
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from stowage.config.settings import InstallerSettings
from stowage.core.logging import setLogContext
from stowage.install.launchers import LauncherBackup
from stowage.manifest.manifest import PackageManifest
from stowage.manifest.store import InstalledPackageRecord, installDirFor

logger = logging.getLogger(__name__)

__all__ = ["InstallPhase", "InstallContext"]



class InstallPhase(str, Enum):
    INIT = "init"
    DEPENDENCY_CHECK = "dependency-check"
    EXTRACTING = "extracting"
    PRE_INSTALL_HOOK = "pre-install-hook"
    BUILDING = "building"
    POST_BUILD_HOOK = "post-build-hook"
    LAUNCHER_GENERATION = "launcher-generation"
    MANIFEST_PERSIST = "manifest-persist"
    POST_INSTALL_HOOK = "post-install-hook"
    DONE = "done"
    FAILED = "failed"



@dataclass
class InstallContext:
    """
    An install in progress. Hooks receive this object; it is discarded once
    the install finishes (see toRecord()).
    """
    manifest: PackageManifest
    home: Path
    installDir: Path
    launcherDir: Path
    settings: InstallerSettings
    phase: InstallPhase = InstallPhase.INIT
    extracted: list[Path] = field(default_factory=list)
    # Launcher paths as they were before this install touched them
    launcherBackups: list[LauncherBackup] = field(default_factory=list)
    # Manifest file written by this install, if it got that far
    specFile: Path | None = None

    @classmethod
    def fromManifest(cls, manifest: PackageManifest, settings: InstallerSettings) -> "InstallContext":
        home = settings.home
        return cls(
            manifest=manifest,
            home=home,
            installDir=installDirFor(home, manifest),
            launcherDir=settings.launcherDir,
            settings=settings,
        )

    def begin(self, phase: InstallPhase) -> None:
        self.phase = phase
        setLogContext(package=self.manifest.fullName, phase=phase.value)
        logger.debug("Entering phase %s", phase.value)

    @property
    def fullName(self) -> str:
        return self.manifest.fullName

    def toRecord(self, loadedFrom: Path | None = None) -> InstalledPackageRecord:
        source = loadedFrom or self.specFile
        if source is None:
            raise RuntimeError(f"{self.fullName} has no persisted manifest yet")
        return InstalledPackageRecord(manifest=self.manifest, installDir=self.installDir, loadedFrom=source)
