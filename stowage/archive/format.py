# stowage/archive/format.py
from __future__ import annotations
import io
import logging
import os
import tarfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping, Protocol, Sequence, Union

import json5
from pydantic import ValidationError

from stowage.core.errors import CorruptArchiveError
from stowage.manifest.manifest import PackageManifest

logger = logging.getLogger(__name__)

__all__ = [
    "FileMetadata",
    "FileEntry",
    "PackageFormat",
    "MemoryPackageFormat",
    "TarPackageFormat",
    "buildPackage",
    "PACKAGE_SUFFIX",
]

# ------------------------------------------------------------------ #
# Container layout (gzip'd tar)
# ------------------------------------------------------------------ #
# manifest.json5        # full manifest, including the file list
# data/<path>           # one regular file per payload entry
#

PACKAGE_SUFFIX = ".stow"
MANIFEST_MEMBER = "manifest.json5"
DATA_PREFIX = "data/"



@dataclass(frozen=True)
class FileMetadata:
    path: str
    mode: int = 0o644
    size: int = 0

    @classmethod
    def fromMapping(cls, raw: Mapping[str, Any]) -> "FileMetadata":
        if "path" not in raw:
            raise ValueError("File metadata requires a 'path'")
        return cls(
            path=str(raw["path"]),
            mode=int(raw.get("mode", 0o644)),
            size=int(raw.get("size", 0)),
        )


FileEntry = tuple[Union[FileMetadata, Mapping[str, Any]], Union[bytes, str]]



class PackageFormat(Protocol):
    """Anything that can hand the installer a manifest and its payload entries."""
    manifest: PackageManifest

    def fileEntries(self) -> Iterable[FileEntry]: ...



class MemoryPackageFormat:
    """
    A package assembled in memory. Useful when the payload does not come
    from an archive on disk (and in tests).
    """

    def __init__(self, manifest: PackageManifest, entries: Sequence[FileEntry] = ()):
        self.manifest = manifest
        self.path: Path | None = None
        self._entries: list[FileEntry] = list(entries)

    @classmethod
    def fromFiles(
        cls,
        manifest: PackageManifest,
        files: Mapping[str, bytes | str | tuple[bytes | str, int]],
    ) -> "MemoryPackageFormat":
        """
        Builds entries from {path: content} or {path: (content, mode)}.
        Size is taken from the encoded content.
        """
        entries: list[FileEntry] = []
        for path, value in files.items():
            if isinstance(value, tuple):
                content, mode = value
            else:
                content, mode = value, 0o644
            data = content.encode("utf-8") if isinstance(content, str) else content
            entries.append((FileMetadata(path=path, mode=mode, size=len(data)), data))
        return cls(manifest, entries)

    def addFile(self, path: str, content: bytes | str, mode: int = 0o644) -> None:
        data = content.encode("utf-8") if isinstance(content, str) else content
        self._entries.append((FileMetadata(path=path, mode=mode, size=len(data)), data))

    def fileEntries(self) -> Iterable[FileEntry]:
        return iter(self._entries)



class TarPackageFormat:
    """A `.stow` archive read eagerly into memory."""

    def __init__(self, path: Path, manifest: PackageManifest, entries: Sequence[tuple[FileMetadata, bytes]]):
        self.path = path
        self.manifest = manifest
        self._entries = list(entries)

    @classmethod
    def open(cls, path: Path | str) -> "TarPackageFormat":
        archivePath = Path(path)
        try:
            manifest, entries = cls._read(archivePath)
        except CorruptArchiveError:
            raise
        except (OSError, tarfile.TarError, EOFError, ValueError, ValidationError) as err:
            logger.debug("Failed to read archive %s: %s", archivePath, err)
            raise CorruptArchiveError(f"invalid package format for {archivePath}") from err
        return cls(archivePath, manifest, entries)

    @staticmethod
    def _read(archivePath: Path) -> tuple[PackageManifest, list[tuple[FileMetadata, bytes]]]:
        manifest: PackageManifest | None = None
        entries: list[tuple[FileMetadata, bytes]] = []

        with tarfile.open(archivePath, "r:gz") as tar:
            for member in tar.getmembers():
                name = member.name
                if name == MANIFEST_MEMBER:
                    fh = tar.extractfile(member)
                    if fh is None:
                        raise CorruptArchiveError(f"invalid package format for {archivePath}")
                    raw = json5.loads(fh.read().decode("utf-8"))
                    if not isinstance(raw, dict):
                        raise ValueError("manifest must be an object")
                    manifest = PackageManifest.model_validate(raw)
                    continue

                if not name.startswith(DATA_PREFIX):
                    raise ValueError(f"unexpected member {name!r}")
                if member.isdir():
                    continue
                if not member.isfile():
                    # Links and devices are never part of a payload
                    raise ValueError(f"unsupported member type for {name!r}")

                fh = tar.extractfile(member)
                data = fh.read() if fh is not None else b""
                entries.append((
                    FileMetadata(path=name[len(DATA_PREFIX):], mode=member.mode & 0o7777, size=member.size),
                    data,
                ))

        if manifest is None:
            raise ValueError(f"missing {MANIFEST_MEMBER}")
        return manifest, entries

    def fileEntries(self) -> Iterable[FileEntry]:
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"TarPackageFormat(path={str(self.path)!r}, package={self.manifest.fullName!r})"



def _listFiles(sourceDir: Path) -> list[str]:
    found: list[str] = []
    for filePath in sorted(sourceDir.rglob("*")):
        if filePath.is_file():
            found.append(filePath.relative_to(sourceDir).as_posix())
    return found



def buildPackage(manifest: PackageManifest, sourceDir: Path | str, outputDir: Path | str) -> Path:
    """
    Packs `sourceDir` into `<outputDir>/<fullName>.stow`.

    Only the manifest's files are packed; when the manifest lists none, every
    regular file under `sourceDir` is packed and recorded in the stored manifest.
    Returns the archive path.
    """
    root = Path(sourceDir)
    files = list(manifest.files) or _listFiles(root)
    stored = manifest.model_copy(update={"files": tuple(files)})

    outDir = Path(outputDir)
    outDir.mkdir(parents=True, exist_ok=True)
    archivePath = outDir / f"{manifest.fullName}{PACKAGE_SUFFIX}"

    manifestBytes = json5.dumps(stored.model_dump(mode="json"), ensure_ascii=False, indent=2).encode("utf-8")

    with tarfile.open(archivePath, "w:gz") as tar:
        info = tarfile.TarInfo(MANIFEST_MEMBER)
        info.size = len(manifestBytes)
        info.mode = 0o644
        tar.addfile(info, io.BytesIO(manifestBytes))

        for relPath in files:
            sourcePath = root / relPath
            if not sourcePath.is_file():
                raise FileNotFoundError(f"{relPath} listed in manifest but missing under {root}")
            tar.add(os.fspath(sourcePath), arcname=f"{DATA_PREFIX}{relPath}", recursive=False)

    logger.debug("Built %s with %d file(s)", archivePath, len(files))
    return archivePath
