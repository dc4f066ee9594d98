"""Semantic version parsing in two strictness tiers.

``parse`` accepts the loose shapes chart authors commonly write: an optional
leading ``v`` and missing minor/patch components (``1``, ``v1.2``).
``parse_strict`` accepts only the semver.org 2.0.0 grammar.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering

_LOOSE_RE = re.compile(
    r"^v?(?P<major>[0-9]+)(?:\.(?P<minor>[0-9]+))?(?:\.(?P<patch>[0-9]+))?"
    r"(?:-(?P<prerelease>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)

_STRICT_RE = re.compile(
    r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+(?P<build>[0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)


@total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    major: int
    minor: int
    patch: int
    prerelease: str = ""
    build: str = ""

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.build:
            text += f"+{self.build}"
        return text

    def _key(self) -> tuple:
        # A version without prerelease sorts after all of its prereleases.
        if not self.prerelease:
            pre: tuple = ((2, 0, ""),)
        else:
            pre = tuple(
                (0, int(part), "") if part.isdigit() else (1, 0, part)
                for part in self.prerelease.split(".")
            )
        return (self.major, self.minor, self.patch, pre)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())


def _from_match(match: re.Match) -> Version:
    return Version(
        major=int(match.group("major")),
        minor=int(match.group("minor") or 0),
        patch=int(match.group("patch") or 0),
        prerelease=match.group("prerelease") or "",
        build=match.group("build") or "",
    )


def parse(text: str) -> Version | None:
    """Parse a loose SemVer string. Returns None if it does not parse."""
    match = _LOOSE_RE.fullmatch(text)
    return _from_match(match) if match else None


def parse_strict(text: str) -> Version | None:
    """Parse a strict SemVer 2.0.0 string. Returns None if it does not parse."""
    match = _STRICT_RE.fullmatch(text)
    return _from_match(match) if match else None


# Lowest version a chart may carry; versions at or below it are rejected.
MINIMUM_VERSION = Version(0, 0, 0, "0")
