# tests/stowage/semver/test_semver_version.py
import pytest

from stowage.semver.semver import PackageVersion, isValidVersion, parsePackageVersion


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1",        (1, 0, 0, (), ())),
        ("2",        (2, 0, 0, (), ())),
        ("1.2",      (1, 2, 0, (), ())),
        ("1.2.3",    (1, 2, 3, (), ())),
        ("0.0.1",    (0, 0, 1, (), ())),
        ("v1.2.3",   (1, 2, 3, (), ())),
        ("1.4.6",    (1, 4, 6, (), ())),
        ("1.2.3-alpha.1",         (1, 2, 3, ("alpha", "1"), ())),
        ("1.2.3+build.1",         (1, 2, 3, (), ("build", "1"))),
        ("1.2.3-alpha+exp.sha",   (1, 2, 3, ("alpha",), ("exp", "sha"))),
    ],
)
def test_parsePackageVersion_valid(raw, expected):
    v = parsePackageVersion(raw)
    assert (v.major, v.minor, v.patch, v.prerelease, v.build) == expected


@pytest.mark.parametrize(
    "raw",
    ["", "   ", ".1", "1.", "1..2", "1.2.3.4", "01.2.3", "1.2.3-", "1.2.3+", "v", "vv1.2.3", "abc"],
)
def test_parsePackageVersion_invalid(raw):
    with pytest.raises(ValueError):
        parsePackageVersion(raw)


def test_parsePackageVersion_rejects_non_strings():
    with pytest.raises(TypeError):
        parsePackageVersion(3)  # type: ignore[arg-type]


@pytest.mark.parametrize(
    "a, b",
    [
        ("1.0.0-alpha", "1.0.0-alpha.1"),
        ("1.0.0-alpha.beta", "1.0.0-beta"),
        ("1.0.0-beta.2", "1.0.0-beta.11"),
        ("1.0.0-rc.1", "1.0.0"),
        ("1", "2"),
        ("2", "3"),
        ("1.9.9", "1.10.0"),
    ],
)
def test_version_order(a, b):
    assert parsePackageVersion(a) < parsePackageVersion(b)


def test_build_metadata_ignored_in_comparison():
    a = parsePackageVersion("1.0.0+build.1")
    b = parsePackageVersion("1.0.0")
    assert a == b
    assert hash(a) == hash(b)


def test_str_roundtrip():
    assert str(parsePackageVersion("v1.2.3-rc.1+b5")) == "1.2.3-rc.1+b5"
    assert str(PackageVersion(2, 0, 0)) == "2.0.0"


@pytest.mark.parametrize("raw, expected", [("1.2.0", True), ("2", True), ("abc", False), ("", False), (None, False), (5, False)])
def test_isValidVersion(raw, expected):
    assert isValidVersion(raw) is expected
