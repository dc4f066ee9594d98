"""Per-chart message accumulator."""

from __future__ import annotations

from chartlint.lint.models import LintMessage, Severity


class Linter:
    """Collects the messages produced by rule groups for one chart directory."""

    def __init__(self, chart_dir: str) -> None:
        self.chart_dir = chart_dir
        self.messages: list[LintMessage] = []
        self.highest_severity: Severity | None = None

    def run_rule(self, severity: Severity, path: str, err: Exception | None) -> bool:
        """Record ``err`` (if any) at ``severity``. Return True when the rule passed."""
        if err is None:
            return True
        self.messages.append(LintMessage(severity=severity, path=path, cause=err))
        if self.highest_severity is None or severity > self.highest_severity:
            self.highest_severity = severity
        return False

    def __repr__(self) -> str:
        return f"Linter(chart_dir={self.chart_dir!r}, messages={len(self.messages)})"
