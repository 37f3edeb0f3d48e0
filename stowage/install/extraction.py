# stowage/install/extraction.py
from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import Any, Mapping

from stowage.archive.format import FileMetadata, PackageFormat
from stowage.core.errors import MissingFormatError
from stowage.core.paths import currentUmask, resolveSafe

logger = logging.getLogger(__name__)

__all__ = ["extractFiles", "coerceMetadata"]



def coerceMetadata(metadata: FileMetadata | Mapping[str, Any]) -> FileMetadata:
    if isinstance(metadata, FileMetadata):
        return metadata
    return FileMetadata.fromMapping(metadata)



def extractFiles(destination: Path | str, packageFormat: PackageFormat | None) -> list[Path]:
    """
    Writes every payload entry of `packageFormat` under `destination`.

    Each declared path goes through resolveSafe first; a violation is raised
    as is and files already written stay where they are (the caller owns
    cleanup). Existing files are replaced, even read-only ones.
    Returns the written paths in entry order.
    """
    if packageFormat is None:
        raise MissingFormatError("format required to extract from")

    root = Path(destination)
    umask = currentUmask()
    applyModes = os.name != "nt"
    written: list[Path] = []

    for rawMetadata, content in packageFormat.fileEntries():
        metadata = coerceMetadata(rawMetadata)
        target = resolveSafe(root, metadata.path)

        target.parent.mkdir(parents=True, exist_ok=True)
        # Unlinking first lets us replace a file we may not have write permission on
        if target.is_symlink() or target.is_file():
            target.unlink()

        data = content.encode("utf-8") if isinstance(content, str) else content
        with open(target, "wb") as fh:
            fh.write(data)

        if applyModes:
            os.chmod(target, metadata.mode & ~umask & 0o7777)

        written.append(target)

    logger.debug("Extracted %d file(s) into %s", len(written), root)
    return written
