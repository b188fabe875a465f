"""Version strings, prerelease labels and smart-tag aliases.

Canonical internal form of a version is the tag form ``v1.2.0``. Prerelease
tags are dotted (``v1.2.0-alpha.3``); the undotted label (``alpha3``) exists
only at the file-stamping boundary, because some package manifests reject
dots in prerelease identifiers.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

VERSION_MARKER = "v"

PrereleaseKind = Literal["alpha", "beta"]

_CORE_RE = re.compile(r"(\d+)\.(\d+)\.(\d+)")
_STABLE_TAG_RE = re.compile(r"^v(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)$")
_BARE_RE = re.compile(r"^v?(\d+)\.(\d+)\.(\d+)$")


@dataclass(frozen=True, slots=True, order=True)
class SemVer:
    major: int
    minor: int
    patch: int

    def to_tag(self) -> str:
        return f"{VERSION_MARKER}{self.major}.{self.minor}.{self.patch}"

    def bare(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def smart_tags(self) -> tuple[str, str]:
        """Movable aliases: ``vMAJOR`` and ``vMAJOR.MINOR``."""
        return (
            f"{VERSION_MARKER}{self.major}",
            f"{VERSION_MARKER}{self.major}.{self.minor}",
        )


@dataclass(frozen=True, slots=True)
class Prerelease:
    kind: PrereleaseKind
    number: int

    @property
    def tag_suffix(self) -> str:
        return f"{self.kind}.{self.number}"

    @property
    def stamp_label(self) -> str:
        return f"{self.kind}{self.number}"


def extract_version(text: str) -> str | None:
    """Find the first ``MAJOR.MINOR.PATCH`` in ``text`` and normalize it."""
    m = _CORE_RE.search(text)
    if m is None:
        return None
    return normalize_version(m.group(0))


def normalize_version(version: str) -> str:
    """Prefix the version marker if missing: ``1.2.0`` -> ``v1.2.0``."""
    v = version.strip()
    if v.startswith(VERSION_MARKER):
        return v
    return f"{VERSION_MARKER}{v}"


def bare_version(version: str) -> str:
    """Strip the version marker: ``v1.2.0`` -> ``1.2.0``."""
    v = version.strip()
    if v.startswith(VERSION_MARKER):
        return v[len(VERSION_MARKER) :]
    return v


def parse_version(version: str) -> SemVer | None:
    """Parse ``1.2.0`` or ``v1.2.0`` (nothing else) into a SemVer."""
    m = _BARE_RE.match(version.strip())
    if m is None:
        return None
    return SemVer(int(m.group(1)), int(m.group(2)), int(m.group(3)))


def parse_stable_tag(tag: str) -> SemVer | None:
    m = _STABLE_TAG_RE.match(tag)
    if m is None:
        return None
    return SemVer(int(m.group(1)), int(m.group(2)), int(m.group(3)))


def prerelease_tag(version: str, pre: Prerelease) -> str:
    return f"{normalize_version(version)}-{pre.tag_suffix}"


def prerelease_tag_glob(version: str, kind: PrereleaseKind) -> str:
    """Glob matching both ``-alpha.N`` and ``-alphaN`` tags of ``version``."""
    return f"{normalize_version(version)}-{kind}*"


def parse_prerelease_number(tag: str, *, version: str, kind: PrereleaseKind) -> int | None:
    """Return N for ``<version>-<kind>.N`` or ``<version>-<kind>N``, else None."""
    prefix = f"{normalize_version(version)}-{kind}"
    if not tag.startswith(prefix):
        return None
    rest = tag[len(prefix) :]
    if rest.startswith("."):
        rest = rest[1:]
    if not rest.isdigit():
        return None
    return int(rest)


def next_prerelease_number(tags: list[str], *, version: str, kind: PrereleaseKind) -> int:
    """Max existing prerelease number + 1, or 1 when there is none."""
    numbers = [
        n
        for n in (parse_prerelease_number(t, version=version, kind=kind) for t in tags)
        if n is not None
    ]
    return max(numbers, default=0) + 1


def stamp_version(version: str, label: str | None) -> str:
    """Version written into project files: ``1.2.0`` or ``1.2.0-alpha1``."""
    base = bare_version(version)
    if not label:
        return base
    return f"{base}-{label.replace('.', '')}"
