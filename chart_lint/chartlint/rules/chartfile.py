"""Chart.yaml rules -- metadata fields, versions, URLs and apiVersion cross-checks."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from pydantic import AnyHttpUrl, AnyUrl, TypeAdapter, ValidationError

from chartlint.chart import semver
from chartlint.chart.loader import (
    CHART_FILE_NAME,
    load_chartfile,
    load_chartfile_for_type_check,
    strict_load_chartfile,
)
from chartlint.chart.models import API_VERSION_V1, API_VERSION_V2, ChartMetadata
from chartlint.errors import ChartLoadError, RuleViolation
from chartlint.lint.models import Severity
from chartlint.lint.support import Linter

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s.]+$")

_http_url = TypeAdapter(AnyHttpUrl)
_any_url = TypeAdapter(AnyUrl)


def chartfile(linter: Linter) -> None:
    """Run every Chart.yaml rule against ``linter.chart_dir``.

    Rules after the parse check all run, whatever earlier rules reported.
    """
    chart_path = Path(linter.chart_dir) / CHART_FILE_NAME

    linter.run_rule(Severity.error, CHART_FILE_NAME, validate_chart_yaml_not_directory(chart_path))

    load_error: ChartLoadError | None = None
    try:
        chart_file = load_chartfile(chart_path)
    except ChartLoadError as e:
        load_error = e
    if not linter.run_rule(Severity.error, CHART_FILE_NAME, validate_chart_yaml_format(load_error)):
        return

    strict_error: ChartLoadError | None = None
    try:
        strict_load_chartfile(chart_path)
    except ChartLoadError as e:
        strict_error = e
    linter.run_rule(Severity.warning, CHART_FILE_NAME, validate_chart_yaml_strict_format(strict_error))

    raw = load_chartfile_for_type_check(chart_path)

    linter.run_rule(Severity.error, CHART_FILE_NAME, validate_chart_name(chart_file, linter.chart_dir))
    linter.run_rule(Severity.error, CHART_FILE_NAME, validate_chart_api_version(chart_file))
    linter.run_rule(Severity.error, CHART_FILE_NAME, validate_chart_version_type(raw))
    linter.run_rule(Severity.error, CHART_FILE_NAME, validate_chart_version(chart_file))
    linter.run_rule(Severity.error, CHART_FILE_NAME, validate_chart_app_version_type(raw))
    for err in validate_chart_maintainer(chart_file):
        linter.run_rule(Severity.error, CHART_FILE_NAME, err)
    for err in validate_chart_sources(chart_file):
        linter.run_rule(Severity.error, CHART_FILE_NAME, err)
    linter.run_rule(Severity.info, CHART_FILE_NAME, validate_chart_icon_presence(chart_file))
    linter.run_rule(Severity.error, CHART_FILE_NAME, validate_chart_icon_url(chart_file))
    linter.run_rule(Severity.error, CHART_FILE_NAME, validate_chart_type(chart_file))
    linter.run_rule(Severity.error, CHART_FILE_NAME, validate_chart_dependencies(chart_file))
    linter.run_rule(Severity.warning, CHART_FILE_NAME, validate_chart_version_strict_semver_v2(chart_file))


def validate_chart_yaml_not_directory(chart_path: Path) -> RuleViolation | None:
    if chart_path.is_dir():
        return RuleViolation("should be a file, not a directory")
    return None


def validate_chart_yaml_format(load_error: Exception | None) -> RuleViolation | None:
    if load_error is not None:
        return RuleViolation(f"unable to parse YAML\n\t{load_error}")
    return None


def validate_chart_yaml_strict_format(load_error: Exception | None) -> RuleViolation | None:
    if load_error is not None:
        return RuleViolation(f"failed to strictly parse chart metadata file\n\t{load_error}")
    return None


def validate_chart_name(cf: ChartMetadata, chart_dir: str = "") -> RuleViolation | None:
    if not cf.name:
        return RuleViolation("name is required")
    if Path(cf.name).name != cf.name:
        return RuleViolation(f"chart name {cf.name!r} is invalid")
    dir_name = Path(chart_dir).name if chart_dir else ""
    if dir_name and dir_name != cf.name:
        return RuleViolation(f"chart name {cf.name!r} does not match directory name {dir_name!r}")
    return None


def validate_chart_api_version(cf: ChartMetadata) -> RuleViolation | None:
    if not cf.api_version:
        return RuleViolation('apiVersion is required. The value must be either "v1" or "v2"')
    if cf.api_version not in (API_VERSION_V1, API_VERSION_V2):
        return RuleViolation(
            f"apiVersion '{cf.api_version}' is not valid. The value must be either \"v1\" or \"v2\""
        )
    return None


def _is_string_value(data: dict[str, Any], key: str) -> RuleViolation | None:
    if key not in data:
        return None
    value = data[key]
    if not isinstance(value, str):
        return RuleViolation(
            f"{key} should be of type string but it's of type {type(value).__name__}"
        )
    return None


def validate_chart_version_type(data: dict[str, Any]) -> RuleViolation | None:
    return _is_string_value(data, "version")


def validate_chart_app_version_type(data: dict[str, Any]) -> RuleViolation | None:
    return _is_string_value(data, "appVersion")


def validate_chart_version(cf: ChartMetadata) -> RuleViolation | None:
    if not cf.version:
        return RuleViolation("version is required")
    version = semver.parse(cf.version)
    if version is None:
        return RuleViolation(f"version '{cf.version}' is not a valid SemVer")
    if version <= semver.MINIMUM_VERSION:
        return RuleViolation(
            f"version {cf.version} is less than or equal to {semver.MINIMUM_VERSION}"
        )
    return None


def validate_chart_version_strict_semver_v2(cf: ChartMetadata) -> RuleViolation | None:
    if semver.parse_strict(cf.version) is None:
        return RuleViolation(f"version '{cf.version}' is not a valid SemVerV2")
    return None


def is_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value))


def is_request_url(value: str) -> bool:
    """True for an absolute http(s) URL with a host."""
    if not value or value != value.strip():
        return False
    try:
        _http_url.validate_python(value)
    except ValidationError:
        return False
    return True


def is_url(value: str) -> bool:
    """True for any absolute URL, or a bare host that is valid with http:// in front."""
    try:
        _any_url.validate_python(value)
        return True
    except ValidationError:
        pass
    return "://" not in value and is_request_url(f"http://{value}")


def validate_chart_maintainer(cf: ChartMetadata) -> list[RuleViolation]:
    """Check each maintainer entry. Returns one violation per bad entry."""
    errors: list[RuleViolation] = []
    for maintainer in cf.maintainers:
        if maintainer is None:
            errors.append(RuleViolation("a maintainer entry is empty"))
        elif not maintainer.name:
            errors.append(RuleViolation("each maintainer requires a name"))
        elif maintainer.email and not is_email(maintainer.email):
            errors.append(RuleViolation(
                f"invalid email '{maintainer.email}' for maintainer '{maintainer.name}'"
            ))
        elif maintainer.url and not is_url(maintainer.url):
            errors.append(RuleViolation(
                f"invalid url '{maintainer.url}' for maintainer '{maintainer.name}'"
            ))
    return errors


def validate_chart_sources(cf: ChartMetadata) -> list[RuleViolation]:
    return [
        RuleViolation(f"invalid source URL '{source}'")
        for source in cf.sources
        if not is_request_url(source)
    ]


def validate_chart_icon_presence(cf: ChartMetadata) -> RuleViolation | None:
    if not cf.icon:
        return RuleViolation("icon is recommended")
    return None


def validate_chart_icon_url(cf: ChartMetadata) -> RuleViolation | None:
    if cf.icon and not is_request_url(cf.icon):
        return RuleViolation(f"invalid icon URL '{cf.icon}'")
    return None


def validate_chart_type(cf: ChartMetadata) -> RuleViolation | None:
    if cf.type and cf.api_version != API_VERSION_V2:
        return RuleViolation(
            f"chart type is not valid in apiVersion '{cf.api_version}'. "
            f"It is valid in apiVersion '{API_VERSION_V2}'"
        )
    return None


def validate_chart_dependencies(cf: ChartMetadata) -> RuleViolation | None:
    if cf.dependencies and cf.api_version != API_VERSION_V2:
        return RuleViolation(
            f"dependencies are not valid in the Chart file with apiVersion '{cf.api_version}'. "
            f"They are valid in apiVersion '{API_VERSION_V2}'"
        )
    return None
