import io
import sys
from pathlib import Path
from typing import Callable

import pytest

from stowage.archive.format import buildPackage
from stowage.config.settings import InstallerSettings
from stowage.core.logging import clearLogContext
from stowage.manifest.manifest import PackageManifest
from stowage.ui import StreamUI


EXECUTABLE_SOURCE = "#!/usr/bin/env python3\nprint('executable ran')\n"



def pytest_configure(config: pytest.Config) -> None:
    if sys.flags.optimize:
        raise RuntimeError("Assertions are disabled (optimize > 0)")



class RecordingUI(StreamUI):
    """StreamUI writing into StringIO buffers so tests can read what was said."""

    def __init__(self) -> None:
        super().__init__(io.StringIO(), io.StringIO())

    @property
    def output(self) -> str:
        return self.out.getvalue()  # type: ignore[attr-defined]

    @property
    def error(self) -> str:
        return self.err.getvalue()  # type: ignore[attr-defined]



def writeTree(root: Path, files: dict[str, str | bytes]) -> Path:
    for relPath, content in files.items():
        target = root / relPath
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_text(content, encoding="utf-8")
    return root



@pytest.fixture(autouse=True)
def _resetLogContext():
    yield
    clearLogContext()



@pytest.fixture
def packageHome(tmp_path: Path) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    return home



@pytest.fixture
def ui() -> RecordingUI:
    return RecordingUI()



@pytest.fixture
def settings(packageHome: Path) -> InstallerSettings:
    return InstallerSettings(
        packageHome=packageHome,
        interpreterPath=sys.executable,
        pathWarning=False,
    )



@pytest.fixture
def makeManifest() -> Callable[..., PackageManifest]:
    def _make(name: str = "a", version: str = "2", **fields) -> PackageManifest:
        fields.setdefault("summary", "this is a summary")
        return PackageManifest(name=name, version=version, **fields)
    return _make



@pytest.fixture
def makeArchive(tmp_path: Path) -> Callable[..., Path]:
    """Builds a .stow archive from {path: content} and returns its path."""
    counter = {"n": 0}

    def _make(manifest: PackageManifest, files: dict[str, str | bytes] | None = None) -> Path:
        counter["n"] += 1
        sourceDir = tmp_path / f"src-{counter['n']}"
        sourceDir.mkdir()
        payload = files if files is not None else {
            "lib/code.py": "VALUE = 1\n",
            f"{manifest.bindir}/executable": EXECUTABLE_SOURCE,
        }
        writeTree(sourceDir, payload)
        return buildPackage(manifest.model_copy(update={"files": tuple(payload)}), sourceDir, tmp_path / "built")

    return _make



@pytest.fixture
def writeFiles() -> Callable[[Path, dict[str, str | bytes]], Path]:
    return writeTree
