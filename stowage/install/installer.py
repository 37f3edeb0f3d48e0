# stowage/install/installer.py
from __future__ import annotations
import logging
import os
import shutil
from pathlib import Path

from stowage import __version__ as STOWAGE_VERSION
from stowage.archive.format import PACKAGE_SUFFIX, PackageFormat, TarPackageFormat
from stowage.config.settings import InstallerSettings, loadSettings
from stowage.core.errors import DependencyUnsatisfiedError, VersionIncompatibleError
from stowage.core.logging import clearLogContext
from stowage.install.context import InstallContext, InstallPhase
from stowage.install.extensions import ExtensionBuilder
from stowage.install.extraction import extractFiles
from stowage.install.hooks import HookKind, HookRegistry
from stowage.install.launchers import LauncherGenerator
from stowage.manifest.manifest import Dependency, PackageManifest
from stowage.manifest.store import (
    CACHE_DIR,
    GEMS_DIR,
    SPECIFICATIONS_DIR,
    InstalledPackageRecord,
    ManifestStore,
    installDirFor,
)
from stowage.semver.semver import parsePackageVersion, parseVersionRequirement, versionSatisfiesRequirement
from stowage.ui import StreamUI, UserInterface

logger = logging.getLogger(__name__)

__all__ = ["Installer"]



class Installer:
    """
    Installs one package into a package home.

    `source` is a path to a `.stow` archive or any object implementing
    PackageFormat. A path that cannot be read fails here, before anything
    on disk is touched.

    Callers must not run two installers against the same home at once;
    nothing here takes a lock.
    """

    def __init__(
        self,
        source: Path | str | PackageFormat | None,
        *,
        manifest: PackageManifest | None = None,
        settings: InstallerSettings | None = None,
        hooks: HookRegistry | None = None,
        ui: UserInterface | None = None,
    ):
        self.settings = settings if settings is not None else loadSettings()
        self.hooks = hooks if hooks is not None else HookRegistry()
        self.ui: UserInterface = ui if ui is not None else StreamUI()

        if isinstance(source, (str, os.PathLike)):
            self.format: PackageFormat | None = TarPackageFormat.open(source)
        else:
            self.format = source

        if manifest is None:
            if self.format is None:
                raise ValueError("a package source or a manifest is required")
            manifest = self.format.manifest
        self.manifest: PackageManifest = manifest

        self.launchers = LauncherGenerator.fromSettings(self.settings, self.ui)
        self.context: InstallContext | None = None
        self.record: InstalledPackageRecord | None = None

    # ----- Locations -----

    @property
    def home(self) -> Path:
        return self.settings.home

    @property
    def installDir(self) -> Path:
        return installDirFor(self.home, self.manifest)

    @property
    def buildLogPath(self) -> Path:
        return self.installDir / self.settings.buildLogName

    @property
    def cacheFile(self) -> Path:
        return self.home / CACHE_DIR / f"{self.manifest.fullName}{PACKAGE_SUFFIX}"

    # ----- Lifecycle -----

    def install(self) -> PackageManifest:
        """
        Runs the whole install. Returns the manifest object this installer
        was created with; the persisted record is left on `self.record`.

        Any failure before the post-install hooks removes the install
        directory and whatever manifest or cache file this call wrote, and
        puts launchers back the way they were.
        """
        manifest = self.manifest
        context = InstallContext.fromManifest(manifest, self.settings)
        self.context = context
        self.record = None

        touchedInstallDir = False
        writtenCache: Path | None = None

        logger.info("Installing %s into %s", manifest.fullName, context.home)
        try:
            context.begin(InstallPhase.DEPENDENCY_CHECK)
            if not self.settings.force:
                self.checkCompatibility()
                if not self.settings.ignoreDependencies:
                    for dependency in manifest.dependencies:
                        self.ensureDependency(manifest, dependency)

            context.begin(InstallPhase.EXTRACTING)
            for subdir in (GEMS_DIR, SPECIFICATIONS_DIR, CACHE_DIR):
                (context.home / subdir).mkdir(parents=True, exist_ok=True)
            touchedInstallDir = True
            if context.installDir.exists():
                shutil.rmtree(context.installDir)
            context.installDir.mkdir(parents=True)
            context.extracted = extractFiles(context.installDir, self.format)

            context.begin(InstallPhase.PRE_INSTALL_HOOK)
            self.hooks.run(HookKind.PRE_INSTALL, context)

            context.begin(InstallPhase.BUILDING)
            self.buildExtensions()

            context.begin(InstallPhase.POST_BUILD_HOOK)
            self.hooks.run(HookKind.POST_BUILD, context)

            context.begin(InstallPhase.LAUNCHER_GENERATION)
            self.launchers.generate(manifest, context.installDir, journal=context.launcherBackups)

            context.begin(InstallPhase.MANIFEST_PERSIST)
            context.specFile = self.writeSpec()
            writtenCache = self.cachePackage()
            self.record = context.toRecord()
        except Exception:
            context.begin(InstallPhase.FAILED)
            logger.info("Install of %s failed, rolling back", manifest.fullName)
            self._rollback(context, touchedInstallDir, writtenCache)
            clearLogContext()
            raise

        if manifest.postInstallMessage:
            self.ui.say(manifest.postInstallMessage)

        # The package is installed from here on; a raising hook does not undo it
        try:
            context.begin(InstallPhase.POST_INSTALL_HOOK)
            self.hooks.run(HookKind.POST_INSTALL, context)
            context.begin(InstallPhase.DONE)
            logger.info("Installed %s", manifest.fullName)
        except Exception:
            context.begin(InstallPhase.FAILED)
            logger.warning("Post-install hook raised for %s, package stays installed", manifest.fullName)
            raise
        finally:
            clearLogContext()

        return manifest

    def _rollback(self, context: InstallContext, touchedInstallDir: bool, writtenCache: Path | None) -> None:
        for backup in reversed(context.launcherBackups):
            try:
                backup.restore()
            except OSError as err:
                logger.warning("Could not restore launcher %s: %s", backup.path, err)

        if touchedInstallDir and context.installDir.exists():
            try:
                shutil.rmtree(context.installDir)
            except OSError as err:
                logger.warning("Could not remove %s: %s", context.installDir, err)

        for path in (context.specFile, writtenCache):
            if path is None:
                continue
            try:
                path.unlink()
            except FileNotFoundError:
                pass
            except OSError as err:
                logger.warning("Could not remove %s: %s", path, err)

    # ----- Dependency check -----

    def checkCompatibility(self) -> None:
        manifest = self.manifest

        runtimeRequirement = parseVersionRequirement(manifest.requiredRuntimeVersion)
        runtimeVersion = parsePackageVersion(self.settings.runtimeVersion)
        if not versionSatisfiesRequirement(runtimeVersion, runtimeRequirement):
            raise VersionIncompatibleError(
                f"{manifest.name} requires Python version {manifest.requiredRuntimeVersion}."
            )

        installerRequirement = parseVersionRequirement(manifest.requiredInstallerVersion)
        if not versionSatisfiesRequirement(parsePackageVersion(STOWAGE_VERSION), installerRequirement):
            raise VersionIncompatibleError(
                f"{manifest.name} requires Stowage version {manifest.requiredInstallerVersion}. "
                "Try 'stowage update --system' to update Stowage itself."
            )

    def ensureDependency(self, manifest: PackageManifest, dependency: Dependency) -> bool:
        if self.installationSatisfiesDependency(dependency):
            return True
        raise DependencyUnsatisfiedError(f"{manifest.name} requires {dependency}")

    def installationSatisfiesDependency(self, dependency: Dependency) -> bool:
        """True if some home we can see already has a matching version of `dependency`."""
        for home in self.settings.dependencyHomes():
            if ManifestStore(home).findByName(dependency.name, dependency.requirement):
                return True
        return False

    # ----- Steps -----

    def unpack(self, directory: Path | str) -> list[Path]:
        """Extracts the payload into `directory` without running any other install step."""
        target = Path(directory)
        target.mkdir(parents=True, exist_ok=True)
        return extractFiles(target, self.format)

    def buildExtensions(self) -> None:
        builder = ExtensionBuilder(
            self.ui,
            self.settings.interpreterPath,
            requirePaths=self.manifest.requirePaths,
        )
        builder.build(self.manifest.extensions, self.installDir, self.buildLogPath)

    def writeSpec(self) -> Path:
        return ManifestStore(self.home).write(self.manifest)

    def cachePackage(self) -> Path | None:
        """Copies the archive into the cache. Returns the new cache file, or None if nothing was copied."""
        sourcePath = getattr(self.format, "path", None)
        if sourcePath is None or not Path(sourcePath).is_file():
            return None

        target = self.cacheFile
        if target.exists():
            return None
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(sourcePath, target)
        return target

    # ----- Launcher helpers -----

    def formattedProgramFilename(self, name: str) -> str:
        return self.launchers.formattedProgramFilename(name)

    def shebang(self, executable: str) -> str:
        return self.launchers.shebang(self.manifest, self.installDir, executable)

    def appScriptText(self, executable: str) -> str:
        return self.launchers.appScriptText(self.manifest, self.installDir, executable)

    def generateLaunchers(self) -> list[Path]:
        return self.launchers.generate(self.manifest, self.installDir)
