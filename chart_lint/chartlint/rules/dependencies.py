"""Dependency rules -- declared dependencies against charts/ and the lock file."""

from __future__ import annotations

import logging
from collections import Counter

from chartlint.chart import semver
from chartlint.chart.loader import (
    CHART_FILE_NAME,
    LOCK_FILE_NAME,
    REQUIREMENTS_FILE_NAME,
    REQUIREMENTS_LOCK_FILE_NAME,
    load_chart,
)
from chartlint.chart.models import API_VERSION_V1, Chart, Dependency
from chartlint.errors import ChartLoadError, RuleViolation
from chartlint.lint.models import Severity
from chartlint.lint.support import Linter

logger = logging.getLogger(__name__)


def dependencies(linter: Linter) -> None:
    """Check that the chart's declared dependencies match what it ships."""
    try:
        chart = load_chart(linter.chart_dir)
    except ChartLoadError as e:
        linter.run_rule(Severity.error, "", RuleViolation(f"unable to load chart\n\t{e}"))
        return

    linter.run_rule(Severity.error, CHART_FILE_NAME, validate_dependencies_in_metadata(chart))
    linter.run_rule(Severity.error, CHART_FILE_NAME, validate_dependencies_unique(chart))
    linter.run_rule(Severity.warning, CHART_FILE_NAME, validate_dependency_in_charts_dir(chart))
    lock_name = _lock_file_name(chart)
    linter.run_rule(Severity.warning, lock_name, validate_dependencies_locked(chart))


def _lock_file_name(chart: Chart) -> str:
    if chart.metadata.api_version == API_VERSION_V1:
        return REQUIREMENTS_LOCK_FILE_NAME
    return LOCK_FILE_NAME


def _dependency_file_name(chart: Chart) -> str:
    if chart.metadata.api_version == API_VERSION_V1:
        return REQUIREMENTS_FILE_NAME
    return CHART_FILE_NAME


def validate_dependencies_in_metadata(chart: Chart) -> RuleViolation | None:
    declared = {dep.name for dep in chart.metadata.dependencies}
    missing = [sub.name for sub in chart.subcharts if sub.name not in declared]
    if missing:
        return RuleViolation(f"chart metadata is missing these dependencies: {','.join(missing)}")
    return None


def validate_dependencies_unique(chart: Chart) -> RuleViolation | None:
    seen = Counter(dep.key for dep in chart.metadata.dependencies)
    duplicates = sorted(key for key, count in seen.items() if count > 1)
    if duplicates:
        return RuleViolation(f"multiple dependencies with name or alias: {','.join(duplicates)}")
    return None


def validate_dependency_in_charts_dir(chart: Chart) -> RuleViolation | None:
    present = {sub.name for sub in chart.subcharts}
    missing = []
    for dep in chart.metadata.dependencies:
        if dep.name not in present and dep.name not in missing:
            missing.append(dep.name)
    if missing:
        return RuleViolation(f"chart directory is missing these dependencies: {','.join(missing)}")
    return None


def _same_dependency(declared: Dependency, locked: Dependency) -> bool:
    if declared.name != locked.name or declared.repository != locked.repository:
        return False
    # A declared range is satisfied by whatever the lock resolved; a pinned
    # version has to match exactly.
    if semver.parse(declared.version) is None:
        return True
    return semver.parse(declared.version) == semver.parse(locked.version)


def validate_dependencies_locked(chart: Chart) -> RuleViolation | None:
    if chart.lock is None:
        return None
    declared = sorted(chart.metadata.dependencies, key=lambda d: d.name)
    locked = sorted(chart.lock.dependencies, key=lambda d: d.name)
    if len(declared) == len(locked) and all(
        _same_dependency(d, lk) for d, lk in zip(declared, locked)
    ):
        return None
    logger.debug("Lock file for %s lists %d dependencies, metadata %d", chart.name, len(locked), len(declared))
    return RuleViolation(
        f"the lock file ({_lock_file_name(chart)}) is out of sync with the dependencies "
        f"file ({_dependency_file_name(chart)})"
    )
