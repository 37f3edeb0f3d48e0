# stowage/install/extensions.py
from __future__ import annotations
import logging
import os
import shlex
import subprocess
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Sequence

from stowage.core.errors import ExtensionBuildError, UnsupportedExtensionError
from stowage.core.logging import boundLogContext
from stowage.ui import UserInterface

logger = logging.getLogger(__name__)

__all__ = ["BuilderKind", "selectBuilder", "ExtensionBuilder", "BUILDING_MESSAGE"]



BUILDING_MESSAGE = "Building native extensions.  This could take a while..."



class BuilderKind(str, Enum):
    EXT_CONF = "extconf"
    CONFIGURE = "configure"
    SETUP_PY = "setup.py"
    MAKEFILE = "makefile"



def selectBuilder(extension: str | None) -> BuilderKind | None:
    """Picks a builder from the extension's file name, or None if nothing recognizes it."""
    if not extension:
        return None
    base = os.path.basename(extension)
    if "extconf" in base:
        return BuilderKind.EXT_CONF
    if "configure" in base:
        return BuilderKind.CONFIGURE
    if base == "setup.py":
        return BuilderKind.SETUP_PY
    if base in ("Makefile", "GNUmakefile", "makefile"):
        return BuilderKind.MAKEFILE
    return None



def _makeCommand() -> list[str]:
    return shlex.split(os.environ.get("MAKE") or "make")



class ExtensionBuilder:
    """
    Runs the native build for each declared extension inside the install
    directory. Everything the tools print ends up in one append-only log.
    """

    def __init__(self, ui: UserInterface, interpreterPath: str, *, requirePaths: Sequence[str] = ("lib",)):
        self.ui = ui
        self.interpreterPath = interpreterPath
        self.requirePaths = tuple(requirePaths) or ("lib",)

    def commandsFor(self, kind: BuilderKind, extension: str, installDir: Path, destPath: Path) -> list[list[str]]:
        base = os.path.basename(extension)
        if kind is BuilderKind.EXT_CONF:
            return [[self.interpreterPath, base], _makeCommand()]
        if kind is BuilderKind.CONFIGURE:
            make = _makeCommand()
            return [["sh", f"./{base}", f"--prefix={installDir}"], make, [*make, "install"]]
        if kind is BuilderKind.SETUP_PY:
            return [[self.interpreterPath, base, "build_ext", "--build-lib", os.fspath(destPath)]]
        return [_makeCommand()]

    def build(
        self,
        extensions: Sequence[str | None],
        installDir: Path | str,
        logPath: Path | str,
        destPath: Path | str | None = None,
    ) -> None:
        if not extensions:
            return

        root = Path(installDir)
        log = Path(logPath)
        dest = Path(destPath) if destPath is not None else root / self.requirePaths[0]

        self.ui.say(BUILDING_MESSAGE)
        log.parent.mkdir(parents=True, exist_ok=True)

        with open(log, "ab") as logFile:
            for extension in extensions:
                kind = selectBuilder(extension)
                if kind is None:
                    logFile.write(f"No builder for extension '{extension or ''}'\n".encode("utf-8"))
                    logFile.flush()
                    logger.warning("No builder for extension '%s'", extension or "")
                    raise UnsupportedExtensionError(self._readLog(log), log)

                cwd = root / os.path.dirname(extension or "")
                with boundLogContext(extension=extension):
                    logger.info("Building extension with %s builder", kind.value)
                    for command in self.commandsFor(kind, extension or "", root, dest):
                        if not self._run(command, cwd, logFile):
                            raise ExtensionBuildError(self._readLog(log), log)

    def _run(self, command: list[str], cwd: Path, logFile: BinaryIO) -> bool:
        logFile.write(f"{' '.join(command)}\n".encode("utf-8"))
        logFile.flush()
        try:
            result = subprocess.run(
                command,
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                check=False,
            )
        except OSError as err:
            # Missing tool or missing working directory
            logFile.write(f"{command[0]}: {err.strerror or err}\n".encode("utf-8"))
            logFile.flush()
            logger.debug("Could not start %r: %s", command, err)
            return False

        logFile.write(result.stdout or b"")
        logFile.flush()
        if result.returncode != 0:
            logger.debug("%r exited with status %d", command, result.returncode)
            return False
        return True

    @staticmethod
    def _readLog(log: Path) -> str:
        return log.read_bytes().decode("utf-8", errors="replace")
