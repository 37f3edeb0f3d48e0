# stowage/manifest/store.py
from __future__ import annotations
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import json5
from pydantic import ValidationError

from stowage.manifest.manifest import PackageManifest
from stowage.semver.semver import VersionResolver, parseVersionRequirement

logger = logging.getLogger(__name__)

__all__ = [
    "InstalledPackageRecord", "ManifestStore", "installDirFor",
    "GEMS_DIR", "SPECIFICATIONS_DIR", "CACHE_DIR", "MANIFEST_SUFFIX",
]

# ------------------------------------------------------------------ #
# Layout under a package home
# ------------------------------------------------------------------ #
# gems/<fullName>/                   # extracted payload + build artifacts
# specifications/<fullName>.json5    # persisted manifest (no file list)
# cache/<fullName>.stow              # copy of the archive it came from
# bin/                               # default launcher directory
#

GEMS_DIR = "gems"
SPECIFICATIONS_DIR = "specifications"
CACHE_DIR = "cache"
MANIFEST_SUFFIX = ".json5"



def installDirFor(home: Path, manifest: PackageManifest) -> Path:
    return Path(home) / GEMS_DIR / manifest.fullName



@dataclass(frozen=True)
class InstalledPackageRecord:
    """A manifest that has been made durable in a package home."""
    manifest: PackageManifest
    installDir: Path
    loadedFrom: Path

    @property
    def fullName(self) -> str:
        return self.manifest.fullName



class ManifestStore:
    """Reads and writes persisted manifests under `<home>/specifications`."""

    def __init__(self, home: Path | str):
        self.home = Path(home)

    @property
    def specificationsDir(self) -> Path:
        return self.home / SPECIFICATIONS_DIR

    def specPath(self, manifest: PackageManifest | str) -> Path:
        fullName = manifest if isinstance(manifest, str) else manifest.fullName
        return self.specificationsDir / f"{fullName}{MANIFEST_SUFFIX}"

    # ----- Write -----

    def write(self, manifest: PackageManifest) -> Path:
        """
        Persists `manifest` without its file list. The write goes to a temp
        file in the same directory and is renamed over the target, so a
        reader never sees a partial manifest.
        """
        target = self.specPath(manifest)
        target.parent.mkdir(parents=True, exist_ok=True)

        data = manifest.model_dump(mode="json", exclude={"files"})
        text = json5.dumps(data, ensure_ascii=False, indent=2)

        fd, tmpName = tempfile.mkstemp(prefix=f".{manifest.fullName}.", suffix=".tmp", dir=target.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(text)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmpName, target)
        except BaseException:
            try:
                os.unlink(tmpName)
            except FileNotFoundError:
                pass
            raise

        logger.debug("Wrote manifest for '%s' to %s", manifest.fullName, target)
        return target

    def remove(self, manifest: PackageManifest | str) -> bool:
        path = self.specPath(manifest)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True

    # ----- Read -----

    def load(self, path: Path | str) -> InstalledPackageRecord:
        """Loads one manifest file. Raises ValueError (or ValidationError) if it is not a valid manifest."""
        filePath = Path(path)
        raw: Any = json5.loads(filePath.read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise ValueError(f"Manifest at {filePath} must be an object")
        manifest = PackageManifest.model_validate(raw)
        return InstalledPackageRecord(
            manifest=manifest,
            installDir=installDirFor(self.home, manifest),
            loadedFrom=filePath,
        )

    def find(self, fullName: str) -> InstalledPackageRecord | None:
        path = self.specPath(fullName)
        if not path.is_file():
            return None
        try:
            return self.load(path)
        except (OSError, ValueError, ValidationError) as err:
            logger.warning("Ignoring unreadable manifest %s: %s", path, err)
            return None

    def installed(self) -> list[InstalledPackageRecord]:
        """Every valid manifest in this home, sorted by file name. Broken files are skipped."""
        if not self.specificationsDir.is_dir():
            return []

        records: list[InstalledPackageRecord] = []
        for path in sorted(self.specificationsDir.glob(f"*{MANIFEST_SUFFIX}")):
            if not path.is_file():
                continue
            try:
                records.append(self.load(path))
            except (OSError, ValueError, ValidationError) as err:
                logger.warning("Ignoring unreadable manifest %s: %s", path, err)
        return records

    def findByName(self, name: str, requirement: str | None = None) -> list[InstalledPackageRecord]:
        """Installed records named `name` whose version satisfies `requirement`, highest version first."""
        parsed = parseVersionRequirement(requirement)
        candidates = [
            (record.manifest.semver, record)
            for record in self.installed()
            if record.manifest.name == name
        ]
        result = VersionResolver.matchCandidates(candidates, parsed)
        ordered = sorted(result.matches, key=lambda item: item[0], reverse=True)
        return [record for _version, record in ordered]

    def __repr__(self) -> str:
        return f"ManifestStore(home={str(self.home)!r})"
