# stowage/archive/__init__.py
from .format import (
    PACKAGE_SUFFIX,
    FileEntry,
    FileMetadata,
    MemoryPackageFormat,
    PackageFormat,
    TarPackageFormat,
    buildPackage,
)

__all__ = [
    "PACKAGE_SUFFIX",
    "FileEntry",
    "FileMetadata",
    "MemoryPackageFormat",
    "PackageFormat",
    "TarPackageFormat",
    "buildPackage",
]
