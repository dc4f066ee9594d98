"""Shared test fixtures and configuration."""

import os
import sys
from pathlib import Path

# Add chart_lint/ to Python path so `from chartlint.xxx` imports work
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "chart_lint"))

import pytest

os.environ["CHARTLINT_DEV_MODE"] = "true"

FIXTURES_DIR = Path(__file__).parent / "fixtures"
CHARTS_DIR = FIXTURES_DIR / "charts"


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def charts_dir() -> Path:
    return CHARTS_DIR


@pytest.fixture
def good_chart() -> Path:
    return CHARTS_DIR / "goodone"


@pytest.fixture
def make_chart(tmp_path: Path):
    """Write a chart directory from a mapping of relative path -> file content."""

    def _make(files: dict[str, str], name: str = "mychart") -> Path:
        root = tmp_path / name
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        root.mkdir(parents=True, exist_ok=True)
        return root

    return _make
