# stowage/install/launchers.py
from __future__ import annotations
import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path

from stowage.config.settings import InstallerSettings
from stowage.core.errors import FilePermissionError
from stowage.install.shebang import readFirstLine, resolveDirective
from stowage.manifest.manifest import PackageManifest
from stowage.manifest.store import GEMS_DIR, ManifestStore
from stowage.semver.semver import PackageVersion, parsePackageVersion
from stowage.ui import UserInterface

logger = logging.getLogger(__name__)

__all__ = ["LauncherGenerator", "LauncherBackup", "supportsSymlinks", "isWindows", "SYMLINK_FALLBACK_WARNING"]



SYMLINK_FALLBACK_WARNING = "Unable to use symlinks on this platform, installing wrapper"

WRAPPER_TEMPLATE = '''{shebang}
#
# This file was generated by Stowage.
#
# The application '{name}' is installed as part of a package, and
# this file is here to facilitate running it.
#

import re
import sys

from stowage.runtime import isValidVersion, loadExecutable

version = ">= 0"

if len(sys.argv) > 1:
    match = re.match(r"^_(.*)_$", sys.argv[1])
    if match and isValidVersion(match.group(1)):
        version = match.group(1)
        del sys.argv[1]

loadExecutable({name!r}, {executable!r}, version, home={home!r})
'''

BATCH_TEMPLATE = '''@ECHO OFF
@"{interpreter}" "%~dpn0" %*
'''



def isWindows() -> bool:
    return os.name == "nt"



def supportsSymlinks() -> bool:
    return not isWindows() and hasattr(os, "symlink")



def _isWritable(path: Path) -> bool:
    return os.access(path, os.W_OK | os.X_OK)



def _versionFromFullName(fullName: str, name: str) -> PackageVersion | None:
    if not fullName.startswith(f"{name}-"):
        return None
    rest = fullName[len(name) + 1:]
    for candidate in (rest, rest.split("-", 1)[0]):
        try:
            return parsePackageVersion(candidate)
        except ValueError:
            continue
    return None



@dataclass(frozen=True)
class LauncherBackup:
    """What a launcher path held before an install replaced it."""
    path: Path
    linkTarget: str | None = None
    content: bytes | None = None
    mode: int | None = None

    @classmethod
    def capture(cls, path: Path) -> "LauncherBackup":
        if path.is_symlink():
            return cls(path, linkTarget=os.readlink(path))
        if path.is_file():
            return cls(path, content=path.read_bytes(), mode=stat.S_IMODE(path.stat().st_mode))
        return cls(path)

    def restore(self) -> None:
        """Puts back the previous entry, or removes the path if there was none."""
        if self.path.is_symlink() or self.path.exists():
            self.path.unlink()
        if self.linkTarget is not None:
            os.symlink(self.linkTarget, self.path)
        elif self.content is not None:
            self.path.write_bytes(self.content)
            if self.mode is not None:
                os.chmod(self.path, self.mode)



class LauncherGenerator:
    """
    Puts a runnable entry for each of a package's executables into the
    launcher directory: a wrapper script that re-enters the runtime, or a
    symlink straight to the installed file.
    """

    def __init__(
        self,
        ui: UserInterface,
        launcherDir: Path,
        *,
        home: Path,
        interpreterPath: str,
        wrappers: bool = True,
        formatExecutable: bool = False,
        execFormat: str = "%s",
        envShebang: bool = False,
        pathWarning: bool = True,
    ):
        self.ui = ui
        self.launcherDir = Path(launcherDir).absolute()
        self.home = Path(home).absolute()
        self.interpreterPath = interpreterPath
        self.wrappers = wrappers
        self.formatExecutable = formatExecutable
        self.execFormat = execFormat or "%s"
        self.envShebang = envShebang
        self.pathWarning = pathWarning
        self._pathChecked = False

    @classmethod
    def fromSettings(cls, settings: InstallerSettings, ui: UserInterface) -> "LauncherGenerator":
        return cls(
            ui,
            settings.launcherDir,
            home=settings.home,
            interpreterPath=settings.interpreterPath,
            wrappers=settings.wrappers,
            formatExecutable=settings.formatExecutable,
            execFormat=settings.execFormat,
            envShebang=settings.envShebang,
            pathWarning=settings.pathWarning,
        )

    # ----- Naming -----

    def formattedProgramFilename(self, name: str) -> str:
        if self.formatExecutable:
            return self.execFormat % name
        return name

    def shebang(self, manifest: PackageManifest, installDir: Path, executable: str) -> str:
        firstLine = readFirstLine(manifest.binFile(installDir, executable))
        return resolveDirective(firstLine, self.interpreterPath, envShebang=self.envShebang)

    def appScriptText(self, manifest: PackageManifest, installDir: Path, executable: str) -> str:
        return WRAPPER_TEMPLATE.format(
            shebang=self.shebang(manifest, installDir, executable),
            name=manifest.name,
            executable=executable,
            home=os.fspath(self.home),
        )

    # ----- Generation -----

    def generate(
        self,
        manifest: PackageManifest,
        installDir: Path | str,
        journal: list[LauncherBackup] | None = None,
    ) -> list[Path]:
        """
        Creates launchers for every executable of `manifest`. Returns the entries written.

        When `journal` is given, the previous state of every launcher path
        about to be touched is appended to it so a failed install can put it back.
        """
        if not manifest.executables:
            return []

        root = Path(installDir)
        self._ensureLauncherDir()

        useWrappers = self.wrappers
        if not useWrappers and not supportsSymlinks():
            self.ui.alertWarning(SYMLINK_FALLBACK_WARNING)
            useWrappers = True

        written: list[Path] = []
        for executable in manifest.executables:
            binPath = manifest.binFile(root, executable)
            if not binPath.exists():
                self.ui.alertWarning(f"{binPath} is missing, no launcher written for '{executable}'")
                continue

            if not isWindows():
                mode = binPath.stat().st_mode | 0o111
                os.chmod(binPath, stat.S_IMODE(mode))

            target = self.launcherDir / self.formattedProgramFilename(executable)
            try:
                before = [LauncherBackup.capture(target)]
                if useWrappers and isWindows():
                    before.append(LauncherBackup.capture(target.with_name(f"{target.name}.bat")))
                if journal is not None:
                    journal.extend(before)
                if useWrappers:
                    entry = self.writeWrapper(manifest, root, executable)
                else:
                    entry = self.writeSymlink(manifest, root, executable)
            except PermissionError as err:
                raise FilePermissionError(self.launcherDir) from err

            if entry is not None:
                written.append(entry)

        self.checkLauncherDirInPath()
        return written

    def writeWrapper(self, manifest: PackageManifest, installDir: Path, executable: str) -> Path:
        target = self.launcherDir / self.formattedProgramFilename(executable)
        text = self.appScriptText(manifest, installDir, executable)

        # Never write through a symlink into some other package's file
        if target.is_symlink() or target.exists():
            target.unlink()

        fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o755)
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as fh:
            fh.write(text)
        logger.debug("Wrote wrapper %s for %s", target, manifest.fullName)

        if isWindows():
            batch = target.with_name(f"{target.name}.bat")
            batch.write_text(BATCH_TEMPLATE.format(interpreter=self.interpreterPath), encoding="utf-8")

        return target

    def writeSymlink(self, manifest: PackageManifest, installDir: Path, executable: str) -> Path | None:
        """Links the launcher to the installed file. Returns None if a newer version keeps the link."""
        source = manifest.binFile(Path(installDir).absolute(), executable)
        target = self.launcherDir / self.formattedProgramFilename(executable)

        if target.is_symlink():
            current = self.linkedVersion(target, manifest.name)
            if current is not None and not manifest.semver > current:
                logger.info("Keeping %s, it points at %s", target, current)
                return None
            target.unlink()
        elif target.exists():
            target.unlink()

        os.symlink(source, target)
        logger.debug("Linked %s -> %s", target, source)
        return target

    def linkedVersion(self, link: Path, name: str) -> PackageVersion | None:
        """
        Version of the package an existing launcher link points into, read
        from that home's manifest store. Falls back to the install directory
        name; None if neither can be read.
        """
        pointee = Path(os.readlink(link))
        if not pointee.is_absolute():
            pointee = link.parent / pointee

        for candidate in pointee.parents:
            if candidate.parent.name != GEMS_DIR:
                continue
            fullName = candidate.name
            record = ManifestStore(candidate.parent.parent).find(fullName)
            if record is not None:
                return record.manifest.semver
            return _versionFromFullName(fullName, name)
        return None

    # ----- Environment checks -----

    def _ensureLauncherDir(self) -> None:
        try:
            self.launcherDir.mkdir(parents=True, exist_ok=True)
        except PermissionError as err:
            raise FilePermissionError(self.launcherDir) from err
        if not _isWritable(self.launcherDir):
            raise FilePermissionError(self.launcherDir)

    def checkLauncherDirInPath(self) -> None:
        """Warns once if the launcher directory is not on PATH."""
        if not self.pathWarning or self._pathChecked:
            return
        self._pathChecked = True

        entries = [
            os.path.normcase(os.path.abspath(entry))
            for entry in os.environ.get("PATH", "").split(os.pathsep)
            if entry
        ]
        if os.path.normcase(os.path.abspath(self.launcherDir)) not in entries:
            self.ui.alertWarning(
                f"You don't have {self.launcherDir} in your PATH,\n\t  package executables will not run."
            )
