# stowage/install/__init__.py
from .context import InstallContext, InstallPhase
from .extensions import BuilderKind, ExtensionBuilder, selectBuilder
from .extraction import extractFiles
from .hooks import HookKind, HookRegistry, RegisteredHook
from .installer import Installer
from .launchers import LauncherGenerator
from .shebang import resolveDirective

__all__ = [
    "InstallContext",
    "InstallPhase",
    "BuilderKind",
    "ExtensionBuilder",
    "selectBuilder",
    "extractFiles",
    "HookKind",
    "HookRegistry",
    "RegisteredHook",
    "Installer",
    "LauncherGenerator",
    "resolveDirective",
]
