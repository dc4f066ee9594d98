"""Lint orchestration -- runs every rule group over a chart and its subcharts."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, field_validator

from chartlint.chart.loader import CHART_FILE_NAME, CHARTS_DIR, load_chart, load_chartfile, subchart_dirs
from chartlint.chart.values import coalesce_values
from chartlint.engine.timeout import DEFAULT_RENDER_TIMEOUT
from chartlint.errors import ChartLoadError, RuleViolation
from chartlint.kube.version import KubeVersion
from chartlint.lint.models import LintMessage, LintResult, Severity
from chartlint.lint.support import Linter
from chartlint.rules.chartfile import chartfile
from chartlint.rules.dependencies import dependencies
from chartlint.rules.templates import templates
from chartlint.rules.values import values as values_rules

logger = logging.getLogger(__name__)


class LintOptions(BaseModel):
    """Knobs for a lint run. ``kube_version`` of None means the default cluster version."""

    skip_schema_validation: bool = False
    namespace: str = "default"
    kube_version: KubeVersion | None = None
    with_subcharts: bool = True
    render_timeout: float = DEFAULT_RENDER_TIMEOUT

    @field_validator("kube_version", mode="before")
    @classmethod
    def _parse_kube_version(cls, value: Any) -> Any:
        if isinstance(value, str):
            return KubeVersion.parse(value) if value.strip() else None
        return value


def run_all(
    base_dir: str | Path,
    values: dict[str, Any] | None = None,
    namespace: str | None = None,
    options: LintOptions | None = None,
) -> LintResult:
    """Lint the chart at ``base_dir``.

    Rule groups run in order: chartfile, values, templates, dependencies.
    Subcharts under ``charts/`` follow, depth first, with their messages
    prefixed by ``charts/<name>/``. A top-level Chart.yaml that cannot be
    parsed yields a single message and nothing else runs.

    Raises RenderTimeoutError when template rendering does not finish in
    ``options.render_timeout`` seconds.
    """
    options = options or LintOptions()
    namespace = namespace or options.namespace
    chart_dir = str(Path(base_dir).resolve())
    result = LintResult(chart_dir=chart_dir)

    logger.info("Linting chart %s", chart_dir)
    parse_error = _chartfile_parse_error(chart_dir)
    if parse_error is not None:
        result.messages.append(parse_error)
    else:
        _lint_chart(chart_dir, values or {}, namespace, options, "", result.messages)

    logger.info(
        "Linted %s: %d errors, %d warnings, %d info",
        chart_dir,
        result.counts["error"],
        result.counts["warning"],
        result.counts["info"],
    )
    return result


def _chartfile_parse_error(chart_dir: str, prefix: str = "") -> LintMessage | None:
    path = Path(chart_dir) / CHART_FILE_NAME
    if not path.is_file():
        cause = RuleViolation(f"{CHART_FILE_NAME} file is missing")
    else:
        try:
            load_chartfile(path)
            return None
        except ChartLoadError as e:
            cause = RuleViolation(f"unable to parse YAML\n\t{e}")
    return LintMessage(severity=Severity.error, path=f"{prefix}{CHART_FILE_NAME}", cause=cause)


def _lint_chart(
    chart_dir: str,
    values: dict[str, Any],
    namespace: str,
    options: LintOptions,
    prefix: str,
    messages: list[LintMessage],
) -> None:
    linter = Linter(chart_dir)

    chartfile(linter)
    values_rules(linter, values, options.skip_schema_validation)
    templates(
        linter,
        values,
        namespace,
        options.kube_version,
        options.skip_schema_validation,
        options.render_timeout,
    )
    dependencies(linter)
    logger.debug("%r", linter)

    for message in linter.messages:
        messages.append(_prefixed(message, prefix))

    if not options.with_subcharts:
        return

    overlays = _subchart_overlays(chart_dir, values)
    for sub_dir in subchart_dirs(Path(chart_dir)):
        sub_prefix = f"{prefix}{CHARTS_DIR}/{sub_dir.name}/"
        parse_error = _chartfile_parse_error(str(sub_dir), sub_prefix)
        if parse_error is not None:
            messages.append(parse_error)
            continue
        logger.debug("Linting subchart %s", sub_prefix.rstrip("/"))
        _lint_chart(
            str(sub_dir),
            overlays.get(sub_dir.name, {}),
            namespace,
            options,
            sub_prefix,
            messages,
        )


def _subchart_overlays(chart_dir: str, values: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Map each subchart directory name to the values its parent hands it."""
    try:
        chart = load_chart(chart_dir)
    except ChartLoadError as e:
        # The dependencies group has already reported this.
        logger.debug("No parent values for subcharts of %s: %s", chart_dir, e)
        return {}
    coalesced = coalesce_values(chart, values)
    overlays: dict[str, dict[str, Any]] = {}
    for sub in chart.subcharts:
        dep = chart.dependency_for(sub)
        sub_values = coalesced.get(dep.key if dep else sub.name)
        overlays[Path(sub.chart_dir).name] = sub_values if isinstance(sub_values, dict) else {}
    return overlays


def _prefixed(message: LintMessage, prefix: str) -> LintMessage:
    if not prefix:
        return message
    path = f"{prefix}{message.path}" if message.path else prefix.rstrip("/")
    return message.model_copy(update={"path": path})
