"""Exceptions raised by chartlint."""

from __future__ import annotations


class ChartLintError(Exception):
    """Base class for chartlint errors."""


class RuleViolation(ChartLintError):
    """A lint rule failed. Rules return these; they are never raised to callers."""


class ChartLoadError(ChartLintError):
    """A chart directory could not be loaded."""


class ValuesError(ChartLintError):
    """A values file or values schema could not be parsed or validated."""


class RenderError(ChartLintError):
    """A template failed to render."""


class ManifestDecodeError(ChartLintError):
    """Rendered output could not be decoded as YAML or JSON documents."""


class RenderTimeoutError(ChartLintError):
    """Template rendering did not finish within the allowed time."""

    def __init__(self, chart_dir: str, timeout: float) -> None:
        super().__init__(
            f"rendering templates for {chart_dir} did not finish within {timeout:g}s"
        )
        self.chart_dir = chart_dir
        self.timeout = timeout
