# stowage/install/hooks.py
from __future__ import annotations
import logging
import sys
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

from stowage.core.errors import HookFailureError

if TYPE_CHECKING:
    from stowage.install.context import InstallContext

logger = logging.getLogger(__name__)

__all__ = ["HookKind", "HookCallback", "RegisteredHook", "HookRegistry"]


HookCallback = Callable[["InstallContext"], Any]



class HookKind(str, Enum):
    PRE_INSTALL = "pre-install"
    POST_BUILD = "post-build"
    POST_INSTALL = "post-install"

    @property
    def canAbort(self) -> bool:
        # The manifest is already durable once post-install hooks run
        return self is not HookKind.POST_INSTALL



@dataclass(frozen=True)
class RegisteredHook:
    kind: HookKind
    callback: HookCallback
    # "<file>:<line>" of the callback's definition, used in failure messages
    location: str



def _locationOf(callback: HookCallback, depth: int) -> str:
    code = getattr(callback, "__code__", None)
    if code is not None:
        return f"{code.co_filename}:{code.co_firstlineno}"
    try:
        frame = sys._getframe(depth + 1)
    except ValueError:
        return "<unknown>"
    return f"{frame.f_code.co_filename}:{frame.f_lineno}"



class HookRegistry:
    """
    Lifecycle callbacks for one installer (or a group of them). Registries
    are plain objects, so two installers never see each other's hooks
    unless they share one on purpose.
    """

    def __init__(self) -> None:
        self._hooks: dict[HookKind, list[RegisteredHook]] = {kind: [] for kind in HookKind}

    def register(self, kind: HookKind | str, callback: HookCallback, *, location: str | None = None) -> RegisteredHook:
        hookKind = HookKind(kind)
        hook = RegisteredHook(hookKind, callback, location or _locationOf(callback, 1))
        self._hooks[hookKind].append(hook)
        return hook

    # Decorator-friendly shortcuts
    def preInstall(self, callback: HookCallback) -> HookCallback:
        self.register(HookKind.PRE_INSTALL, callback, location=_locationOf(callback, 1))
        return callback

    def postBuild(self, callback: HookCallback) -> HookCallback:
        self.register(HookKind.POST_BUILD, callback, location=_locationOf(callback, 1))
        return callback

    def postInstall(self, callback: HookCallback) -> HookCallback:
        self.register(HookKind.POST_INSTALL, callback, location=_locationOf(callback, 1))
        return callback

    def hooksFor(self, kind: HookKind | str) -> tuple[RegisteredHook, ...]:
        return tuple(self._hooks[HookKind(kind)])

    def clear(self, kind: HookKind | str | None = None) -> None:
        if kind is None:
            for hooks in self._hooks.values():
                hooks.clear()
            return
        self._hooks[HookKind(kind)].clear()

    def run(self, kind: HookKind | str, context: "InstallContext") -> None:
        """
        Calls every hook of `kind` in registration order. A hook that returns
        exactly False aborts pre-install and post-build; None and any other
        value pass. Exceptions raised by a hook propagate unchanged.
        """
        hookKind = HookKind(kind)
        for hook in self._hooks[hookKind]:
            result = hook.callback(context)
            if result is False:
                if hookKind.canAbort:
                    raise HookFailureError(
                        f"{hookKind.value} hook at {hook.location} failed for {context.manifest.fullName}"
                    )
                logger.info(
                    "Ignoring False from %s hook at %s for %s",
                    hookKind.value, hook.location, context.manifest.fullName,
                )

    def __len__(self) -> int:
        return sum(len(hooks) for hooks in self._hooks.values())
