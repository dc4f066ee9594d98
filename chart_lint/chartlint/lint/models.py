"""Lint data models."""

from __future__ import annotations

from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class Severity(IntEnum):
    """Severity level for lint messages. Higher is worse."""

    info = 1
    warning = 2
    error = 3

    @property
    def label(self) -> str:
        return self.name.upper()


class LintMessage(BaseModel):
    """A single lint finding.

    ``cause`` is the exception raised (or returned) by the rule; ``path`` is the
    chart-relative file the finding concerns and may be empty.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    severity: Severity
    path: str = ""
    cause: Exception = Field(serialization_alias="message")

    @property
    def text(self) -> str:
        return str(self.cause)

    def error(self) -> str:
        if self.path:
            return f"[{self.severity.label}] {self.path}: {self.cause}"
        return f"[{self.severity.label}] {self.cause}"

    def __str__(self) -> str:
        return self.error()

    @field_serializer("severity")
    def _serialize_severity(self, severity: Severity) -> str:
        return severity.name

    @field_serializer("cause")
    def _serialize_cause(self, cause: Exception) -> str:
        return str(cause)


class LintResult(BaseModel):
    """Aggregated messages for a chart and its subcharts."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    chart_dir: str
    messages: list[LintMessage] = Field(default_factory=list)

    @property
    def counts(self) -> dict[str, int]:
        counts = {severity.name: 0 for severity in Severity}
        for message in self.messages:
            counts[message.severity.name] += 1
        return counts

    @property
    def highest_severity(self) -> Severity | None:
        if not self.messages:
            return None
        return max(m.severity for m in self.messages)

    def failed(self, threshold: Severity = Severity.error) -> bool:
        """Return True if any message is at or above ``threshold``."""
        return any(m.severity >= threshold for m in self.messages)
