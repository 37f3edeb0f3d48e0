# stowage/semver/semver.py
from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import total_ordering
from typing import Literal, Iterable, Generic, TypeVar

__all__ = [
    "PackageVersion",
    "VersionComparator",
    "VersionRequirement",
    "VersionMatchResult",
    "VersionResolver",
    "parsePackageVersion",
    "parseVersionRequirement",
    "versionSatisfiesRequirement",
    "isValidVersion",
]



SEMVER_PATTERN_RE = re.compile(
    r"^v?(?P<major>0|[1-9]\d*)"
    r"\.(?P<minor>0|[1-9]\d*)"
    r"\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>(?:0|[1-9]\d*|[0-9A-Za-z-]*[A-Za-z-][0-9A-Za-z-]*)"
    r"(?:\.(?:0|[1-9]\d*|[0-9A-Za-z-]*[A-Za-z-][0-9A-Za-z-]*))*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)

# "> 5" and ">5" mean the same thing; manifests use both spellings
_OPERATOR_SPACING_RE = re.compile(r"(<=|>=|==|!=|<|>|=|\^|~)\s+(?=\S)")
_HYPHEN_RANGE_RE = re.compile(r"^(?P<left>\S+)\s+-\s+(?P<right>\S+)$")

Operator = Literal["<", "<=", ">", ">=", "==", "!="]

T = TypeVar("T")


@total_ordering
@dataclass(frozen=True)
class PackageVersion:
    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()
    build: tuple[str, ...] = ()

    def __str__(self) -> str:
        base = f"{self.major}.{self.minor}.{self.patch}"
        prerelease = f"-{'.'.join(self.prerelease)}" if self.prerelease else ""
        build = f"+{'.'.join(self.build)}" if self.build else ""
        return f"{base}{prerelease}{build}"

    def _prereleaseCmpKey(self) -> tuple:
        # Numeric identifiers sort before alphanumeric ones
        parts: list[tuple[int, int | str]] = []
        for ident in self.prerelease:
            if ident.isdigit():
                parts.append((0, int(ident)))
            else:
                parts.append((1, ident))
        return tuple(parts)

    def _cmpKey(self) -> tuple:
        # Build metadata is ignored; a release outranks its prereleases
        releaseFlag = 1 if not self.prerelease else 0
        return (
            self.major,
            self.minor,
            self.patch,
            releaseFlag,
            self._prereleaseCmpKey()
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PackageVersion):
            return NotImplemented
        return self._cmpKey() == other._cmpKey()

    def __hash__(self) -> int:
        return hash(self._cmpKey())

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, PackageVersion):
            return NotImplemented
        return self._cmpKey() < other._cmpKey()



def parsePackageVersion(raw: str) -> PackageVersion:
    """
    Parse a version string into PackageVersion.

    Accepted forms (examples):
        "1"             -> 1.0.0
        "1.2"           -> 1.2.0
        "1.2.3"         -> 1.2.3
        "1.2.3-alpha.1"
        "1.2.3+build.1"
        "v1.2.3"

    Rejected:
        ".1", "1.", "1..3", "1.2.3.4", "01.2.3" (leading zeroes), etc.
    """
    if raw is None:
        raise ValueError("Version string cannot be None")

    if not isinstance(raw, str):
        raise TypeError(f"Version string must be a string type, got {type(raw).__name__}")

    raw = raw.strip()
    if not raw:
        raise ValueError("Version string cannot be empty or whitespace only")

    if raw.startswith("v") and len(raw) > 1 and "0" <= raw[1] <= "9":
        raw = raw[1:]

    # Split into core (numeric) and suffix (-prerelease +build)
    sepIndex = len(raw)
    for ch in ("-", "+"):
        idx = raw.find(ch)
        if idx != -1 and idx < sepIndex:
            sepIndex = idx

    core = raw[:sepIndex]
    suffix = raw[sepIndex:]

    coreParts = core.split(".")
    if not 1 <= len(coreParts) <= 3:
        raise ValueError(f"Invalid version core {core!r} in {raw!r}")

    if any(part == "" for part in coreParts):
        raise ValueError(f"Empty numeric component in version {raw!r}")

    numericParts: list[int] = []
    for part in coreParts:
        if not re.fullmatch(r"0|[1-9]\d*", part):
            raise ValueError(f"Invalid numeric component {part!r} in version {raw!r}")
        numericParts.append(int(part))

    while len(numericParts) < 3:
        numericParts.append(0)

    major, minor, patch = numericParts

    normalized = f"{major}.{minor}.{patch}{suffix}"

    mtch = SEMVER_PATTERN_RE.match(normalized)
    if not mtch:
        raise ValueError(f"Invalid version {raw!r} (normalized {normalized!r})")

    prereleaseGroup = mtch.group("prerelease")
    buildGroup = mtch.group("build")

    return PackageVersion(
        major=major,
        minor=minor,
        patch=patch,
        prerelease=tuple(prereleaseGroup.split(".")) if prereleaseGroup is not None else (),
        build=tuple(buildGroup.split(".")) if buildGroup is not None else (),
    )



def isValidVersion(raw: object) -> bool:
    """True if `raw` is a string that parses as a version."""
    if not isinstance(raw, str):
        return False
    try:
        parsePackageVersion(raw)
    except ValueError:
        return False
    return True



@dataclass(frozen=True)
class VersionComparator:
    operator: Operator
    version: PackageVersion

    def matches(self, version: PackageVersion) -> bool:
        if self.operator == "==":
            return version == self.version
        if self.operator == "!=":
            return version != self.version
        if self.operator == ">=":
            return version >= self.version
        if self.operator == "<=":
            return version <= self.version
        if self.operator == ">":
            return version > self.version
        if self.operator == "<":
            return version < self.version
        raise ValueError(f"Unknown operator {self.operator!r}")



@dataclass(frozen=True)
class VersionRequirement:
    # All comparators are AND-ed
    comparators: tuple[VersionComparator, ...] = ()
    isAny: bool = False
    # Requirement as written, used in user-facing messages
    raw: str = field(default="", compare=False)

    def __str__(self) -> str:
        return self.raw or " ".join(f"{comp.operator} {comp.version}" for comp in self.comparators)

    def isSatisfiedBy(self, version: PackageVersion) -> bool:
        return versionSatisfiesRequirement(version, self)



def _makeComparator(op: str, versionStr: str, rawRequirement: str) -> VersionComparator:
    if not versionStr:
        raise ValueError(f"Missing version after operator {op!r} in requirement {rawRequirement!r}")
    parsedVersion = parsePackageVersion(versionStr)
    canonOp = "==" if op == "=" else op
    if canonOp not in ("<", "<=", ">", ">=", "==", "!="):
        raise ValueError(f"Unsupported operator {op!r} in requirement {rawRequirement!r}")
    return VersionComparator(canonOp, parsedVersion)  # type: ignore[arg-type]



def _caretToComparators(version: PackageVersion) -> tuple[VersionComparator, VersionComparator]:
    """
    ^M.m.p:
      M > 0          -> >= M.m.p and < (M+1).0.0
      M == 0, m > 0  -> >= 0.m.p and < 0.(m+1).0
      M == 0, m == 0 -> >= 0.0.p and < 0.0.(p+1)
    """
    major, minor, patch = version.major, version.minor, version.patch
    if major > 0:
        upperVersion = PackageVersion(major + 1, 0, 0)
    elif minor > 0:
        upperVersion = PackageVersion(0, minor + 1, 0)
    else:
        upperVersion = PackageVersion(0, 0, patch + 1)
    return VersionComparator(">=", version), VersionComparator("<", upperVersion)



def _tildeToComparators(version: PackageVersion) -> tuple[VersionComparator, VersionComparator]:
    """
    ~M.m.p -> >= M.m.p and < M.(m+1).0
    ~M     -> >= M.0.0 and < (M+1).0.0
    """
    major, minor, patch = version.major, version.minor, version.patch
    if minor > 0 or patch > 0:
        upperVersion = PackageVersion(major, minor + 1, 0)
    else:
        upperVersion = PackageVersion(major + 1, 0, 0)
    return VersionComparator(">=", version), VersionComparator("<", upperVersion)



def parseVersionRequirement(rawRequirement: str | None) -> VersionRequirement | None:
    """
    Parse a requirement string into VersionRequirement.

    Accepted forms:

        None, "", or "*"        -> wildcard (returns None)
        "1.2.3"                 -> == 1.2.3
        "= 1.4.6", "> 5"        -> operators may be followed by a space
        ">=1.2.0 <2.0.0"        -> >=1.2.0 AND <2.0.0
        "!=1.3.0"               -> anything but 1.3.0
        "^1.2.3"                -> >=1.2.3 AND <2.0.0 (with 0.x semantics)
        "~1.2.3"                -> >=1.2.3 AND <1.3.0
        "1.2.3 - 2.0.0"         -> >=1.2.3 AND <=2.0.0
    """
    if rawRequirement is None:
        return None
    if not isinstance(rawRequirement, str):
        raise TypeError(f"Requirement must be a string or None, got {type(rawRequirement).__name__}")

    original = rawRequirement.strip()
    if not original or original == "*":
        return None

    mtch = _HYPHEN_RANGE_RE.match(original)
    if mtch:
        versionLeft = parsePackageVersion(mtch.group("left"))
        versionRight = parsePackageVersion(mtch.group("right"))
        if versionRight < versionLeft:
            raise ValueError(f"Invalid hyphen range {original!r}: upper < lower")
        return VersionRequirement(
            comparators=(VersionComparator(">=", versionLeft), VersionComparator("<=", versionRight)),
            raw=original,
        )

    comparators: list[VersionComparator] = []
    for token in _OPERATOR_SPACING_RE.sub(r"\1", original).split():
        if token[0] in ("^", "~"):
            if len(token) == 1:
                raise ValueError(f"Missing version after {token[0]!r} in requirement {original!r}")
            parsedVersion = parsePackageVersion(token[1:])
            if token[0] == "^":
                comparators.extend(_caretToComparators(parsedVersion))
            else:
                comparators.extend(_tildeToComparators(parsedVersion))
            continue

        op = None
        for candidate in ("<=", ">=", "==", "!=", "<", ">", "="):
            if token.startswith(candidate):
                op = candidate
                break
        if op is not None:
            comparators.append(_makeComparator(op, token[len(op):], original))
            continue

        comparators.append(VersionComparator("==", parsePackageVersion(token)))

    if not comparators:
        return None

    return VersionRequirement(comparators=tuple(comparators), raw=original)



def versionSatisfiesRequirement(
    version: PackageVersion,
    requirement: VersionRequirement | None,
) -> bool:
    """requirement None or isAny=True always matches."""
    if requirement is None or requirement.isAny:
        return True
    return all(comparator.matches(version) for comparator in requirement.comparators)



@dataclass(frozen=True)
class VersionMatchResult(Generic[T]):
    """
    Result of selecting among candidate versions.

    best is the highest matching version; ties keep input order.
    """
    requirement: VersionRequirement | None
    candidates: tuple[tuple[PackageVersion, T], ...]
    matches: tuple[tuple[PackageVersion, T], ...]
    best: tuple[PackageVersion, T] | None



class VersionResolver:
    @staticmethod
    def matchCandidates(
        candidates: Iterable[tuple[PackageVersion, T]],
        requirement: VersionRequirement | None,
    ) -> VersionMatchResult[T]:
        candidatesList: list[tuple[PackageVersion, T]] = list(candidates)

        matchList = [
            (version, payload)
            for version, payload in candidatesList
            if versionSatisfiesRequirement(version, requirement)
        ]

        best: tuple[PackageVersion, T] | None = None
        for version, payload in matchList:
            if best is None or version > best[0]:
                best = (version, payload)

        return VersionMatchResult(
            requirement=requirement,
            candidates=tuple(candidatesList),
            matches=tuple(matchList),
            best=best
        )
