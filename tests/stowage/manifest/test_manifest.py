# tests/stowage/manifest/test_manifest.py
import pytest
from pydantic import ValidationError

from stowage.manifest.manifest import Dependency, PackageManifest


def test_defaults(makeManifest):
    m = makeManifest()
    assert m.platform == "any"
    assert m.requirePaths == ("lib",)
    assert m.bindir == "bin"
    assert m.requiredRuntimeVersion == ">= 0"
    assert m.requiredInstallerVersion == ">= 0"
    assert m.files == ()
    assert m.postInstallMessage is None


def test_fullName_with_and_without_platform(makeManifest):
    assert makeManifest().fullName == "a-2"
    assert makeManifest(platform="linux-x86_64").fullName == "a-2-linux-x86_64"


def test_semver_is_parsed(makeManifest):
    assert str(makeManifest(version="1.2").semver) == "1.2.0"


def test_rejects_unknown_keys():
    with pytest.raises(ValidationError):
        PackageManifest(name="a", version="1", homepage="https://example.invalid")  # type: ignore[call-arg]


@pytest.mark.parametrize("version", ["", "x.y", "1.2.3.4"])
def test_rejects_invalid_versions(version):
    with pytest.raises(ValidationError):
        PackageManifest(name="a", version=version)


@pytest.mark.parametrize("name", ["", "   ", "a/b", "..\\evil"])
def test_rejects_bad_names(name):
    with pytest.raises(ValidationError):
        PackageManifest(name=name, version="1")


def test_rejects_invalid_constraints():
    with pytest.raises(ValidationError):
        PackageManifest(name="a", version="1", requiredRuntimeVersion=">= banana")


def test_null_extension_entries_are_kept(makeManifest):
    m = makeManifest(extensions=[None, "ext/extconf.py"])
    assert m.extensions == (None, "ext/extconf.py")


def test_manifest_is_frozen(makeManifest):
    m = makeManifest()
    with pytest.raises(ValidationError):
        m.version = "3"  # type: ignore[misc]


def test_withoutFiles_and_addDependency_return_new_objects(makeManifest):
    m = makeManifest(files=["lib/code.py"])
    stripped = m.withoutFiles()
    extended = m.addDependency("b", "> 5")

    assert m.files == ("lib/code.py",)
    assert stripped.files == ()
    assert stripped.name == m.name
    assert extended.dependencies == (Dependency(name="b", requirement="> 5"),)
    assert m.dependencies == ()


def test_dependency_str_and_requirement():
    dep = Dependency(name="b", requirement="> 2")
    assert str(dep) == "b (> 2)"
    assert dep.parsedRequirement is not None
    assert str(Dependency(name="c")) == "c (>= 0)"


def test_dependency_rejects_bad_requirement():
    with pytest.raises(ValidationError):
        Dependency(name="b", requirement="~~~")


def test_binFile(makeManifest, tmp_path):
    m = makeManifest(bindir="scripts")
    assert m.binFile(tmp_path, "tool") == tmp_path / "scripts" / "tool"
