# tests/stowage/install/test_context.py
import pytest

from stowage.core.logging import getLogContext
from stowage.install.context import InstallContext, InstallPhase


def test_fromManifest_locations(makeManifest, settings, packageHome):
    ctx = InstallContext.fromManifest(makeManifest(), settings)

    assert ctx.home == packageHome
    assert ctx.installDir == packageHome / "gems" / "a-2"
    assert ctx.launcherDir == packageHome / "bin"
    assert ctx.phase is InstallPhase.INIT
    assert ctx.extracted == []


def test_begin_updates_phase_and_log_context(makeManifest, settings):
    ctx = InstallContext.fromManifest(makeManifest(), settings)
    ctx.begin(InstallPhase.BUILDING)

    assert ctx.phase is InstallPhase.BUILDING
    assert getLogContext() == {"package": "a-2", "phase": "building"}


def test_toRecord_requires_persisted_manifest(makeManifest, settings, packageHome):
    manifest = makeManifest()
    ctx = InstallContext.fromManifest(manifest, settings)

    with pytest.raises(RuntimeError):
        ctx.toRecord()

    specFile = packageHome / "specifications" / "a-2.json5"
    record = ctx.toRecord(specFile)
    assert record.manifest is manifest
    assert record.installDir == ctx.installDir
    assert record.loadedFrom == specFile
