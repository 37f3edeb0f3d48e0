# stowage/manifest/__init__.py
from .manifest import DEFAULT_REQUIREMENT, Dependency, PackageManifest
from .store import InstalledPackageRecord, ManifestStore, installDirFor

__all__ = [
    "DEFAULT_REQUIREMENT",
    "Dependency",
    "PackageManifest",
    "InstalledPackageRecord",
    "ManifestStore",
    "installDirFor",
]
