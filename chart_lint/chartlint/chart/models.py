"""Chart data models."""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

API_VERSION_V1 = "v1"
API_VERSION_V2 = "v2"

CHART_TYPES = {"application", "library"}


def scalar_text(value: Any) -> Any:
    """Render a YAML scalar the way it would appear in a string field.

    Numbers keep their YAML spelling where possible (``7.2445e+06`` stays in
    exponent form) so messages quote what the author wrote.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    return value


def _format_float(value: float) -> str:
    if not math.isfinite(value):
        return repr(value)
    number = Decimal(repr(value))
    exponent = number.adjusted()
    if exponent < -4 or exponent >= 6:
        digits = "".join(str(d) for d in number.normalize().as_tuple().digits)
        mantissa = digits[0] + ("." + digits[1:] if len(digits) > 1 else "")
        sign = "-" if value < 0 else ""
        exp_sign = "-" if exponent < 0 else "+"
        return f"{sign}{mantissa}e{exp_sign}{abs(exponent):02d}"
    return format(number.normalize(), "f")


class _ChartModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Maintainer(_ChartModel):
    name: str = ""
    email: str = ""
    url: str = ""

    @field_validator("name", "email", "url", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return scalar_text(value)


class ImportValue(_ChartModel):
    """A ``child``/``parent`` pair from a dependency's ``import-values``."""

    child: str
    parent: str


class Dependency(_ChartModel):
    name: str = ""
    version: str = ""
    repository: str = ""
    condition: str = ""
    tags: list[str] = Field(default_factory=list)
    enabled: bool = True
    import_values: list[str | ImportValue] = Field(default_factory=list, alias="import-values")
    alias: str = ""

    @field_validator("name", "version", "repository", "condition", "alias", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return scalar_text(value)

    @field_validator("tags", "import_values", mode="before")
    @classmethod
    def _null_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def key(self) -> str:
        """Name under which the dependency's values live in the parent."""
        return self.alias or self.name


class ChartMetadata(_ChartModel):
    """Contents of ``Chart.yaml``."""

    name: str = ""
    home: str = ""
    sources: list[str] = Field(default_factory=list)
    version: str = ""
    description: str = ""
    keywords: list[str] = Field(default_factory=list)
    maintainers: list[Maintainer | None] = Field(default_factory=list)
    icon: str = ""
    api_version: str = Field("", alias="apiVersion")
    condition: str = ""
    tags: str = ""
    app_version: str = Field("", alias="appVersion")
    deprecated: bool = False
    annotations: dict[str, str] = Field(default_factory=dict)
    kube_version: str = Field("", alias="kubeVersion")
    dependencies: list[Dependency] = Field(default_factory=list)
    type: str = ""

    @field_validator(
        "name", "home", "version", "description", "icon", "api_version",
        "condition", "tags", "app_version", "kube_version", "type",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return scalar_text(value)

    @field_validator("sources", "keywords", mode="before")
    @classmethod
    def _coerce_text_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [scalar_text(v) for v in value]
        return value

    @field_validator("maintainers", "dependencies", mode="before")
    @classmethod
    def _null_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("annotations", mode="before")
    @classmethod
    def _coerce_annotations(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {str(k): scalar_text(v) for k, v in value.items()}
        return value


class StrictChartMetadata(ChartMetadata):
    """``Chart.yaml`` contents that reject unknown fields."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class ChartLock(_ChartModel):
    """Contents of ``Chart.lock`` (or ``requirements.lock`` for v1 charts)."""

    generated: str = ""
    digest: str = ""
    dependencies: list[Dependency] = Field(default_factory=list)

    @field_validator("generated", "digest", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return scalar_text(value)

    @field_validator("dependencies", mode="before")
    @classmethod
    def _null_list(cls, value: Any) -> Any:
        return [] if value is None else value


class ChartFile(BaseModel):
    """A file inside a chart, named relative to the chart root."""

    name: str
    data: str


class Chart(BaseModel):
    """A loaded chart and its subcharts. Rules treat it as read-only."""

    chart_dir: str
    metadata: ChartMetadata
    lock: ChartLock | None = None
    values: dict[str, Any] = Field(default_factory=dict)
    values_schema: dict[str, Any] | None = None
    templates: list[ChartFile] = Field(default_factory=list)
    subcharts: list[Chart] = Field(default_factory=list)

    @property
    def name(self) -> str:
        return self.metadata.name

    def dependency_for(self, subchart: Chart) -> Dependency | None:
        """Return the metadata entry that declares ``subchart``, if any."""
        for dep in self.metadata.dependencies:
            if dep.name == subchart.name:
                return dep
        return None
