"""Tests for chartlint.chart.semver."""

from __future__ import annotations

import pytest

from chartlint.chart import semver
from chartlint.chart.semver import Version


class TestParse:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("1.2.3", Version(1, 2, 3)),
            ("v1.2", Version(1, 2, 0)),
            ("1", Version(1, 0, 0)),
            ("0.0.1-beta", Version(0, 0, 1, "beta")),
            ("0.0.1+build", Version(0, 0, 1, "", "build")),
        ],
    )
    def test_loose(self, text: str, expected: Version) -> None:
        assert semver.parse(text) == expected

    @pytest.mark.parametrize("text", ["1.2.3.4", "waps", "-3", "", "1.2.3\n"])
    def test_loose_rejects(self, text: str) -> None:
        assert semver.parse(text) is None

    @pytest.mark.parametrize("text", ["1", "1.1", "v1.1.1", "01.1.1", ""])
    def test_strict_rejects(self, text: str) -> None:
        assert semver.parse_strict(text) is None

    def test_strict_accepts(self) -> None:
        assert semver.parse_strict("1.1.1-rc.1+build.5") == Version(1, 1, 1, "rc.1", "build.5")


class TestOrdering:
    def test_prerelease_sorts_before_release(self) -> None:
        assert Version(1, 0, 0, "alpha") < Version(1, 0, 0)

    def test_numeric_prerelease_parts(self) -> None:
        assert Version(1, 0, 0, "alpha.2") < Version(1, 0, 0, "alpha.10")
        assert Version(1, 0, 0, "1") < Version(1, 0, 0, "alpha")

    def test_build_is_ignored(self) -> None:
        assert Version(1, 0, 0, "", "a") == Version(1, 0, 0, "", "b")

    def test_minimum(self) -> None:
        assert Version(0, 0, 0) > semver.MINIMUM_VERSION
        assert not Version(0, 0, 0) <= semver.MINIMUM_VERSION
        assert Version(0, 0, 1) > semver.MINIMUM_VERSION

    def test_str(self) -> None:
        assert str(Version(1, 2, 3, "rc.1", "b")) == "1.2.3-rc.1+b"
