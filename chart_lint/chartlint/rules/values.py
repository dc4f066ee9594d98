"""values.yaml rules -- strict parsing and schema validation of the merged values."""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any

from chartlint.chart.loader import (
    SCHEMA_FILE_NAME,
    VALUES_FILE_NAME,
    load_chart,
    read_values_file,
)
from chartlint.chart.values import (
    coalesce_tables,
    coalesce_values,
    process_import_values,
    validate_against_single_schema,
)
from chartlint.errors import ChartLoadError, RuleViolation, ValuesError
from chartlint.lint.models import Severity
from chartlint.lint.support import Linter

logger = logging.getLogger(__name__)


def values(
    linter: Linter,
    overrides: dict[str, Any] | None = None,
    skip_schema_validation: bool = False,
) -> None:
    """Lint values.yaml merged with ``overrides``."""
    values_path = Path(linter.chart_dir) / VALUES_FILE_NAME
    if not linter.run_rule(Severity.info, VALUES_FILE_NAME, validate_values_file_existence(values_path)):
        return
    linter.run_rule(
        Severity.error,
        VALUES_FILE_NAME,
        validate_values_file(values_path, overrides or {}, skip_schema_validation),
    )


def validate_values_file_existence(values_path: Path) -> RuleViolation | None:
    if not values_path.is_file():
        return RuleViolation("file does not exist")
    return None


def _imported_values(chart_dir: Path, coalesced: dict[str, Any]) -> dict[str, Any]:
    """Apply subchart import-values to ``coalesced`` when the chart loads."""
    try:
        chart = load_chart(chart_dir)
    except ChartLoadError as e:
        logger.debug("Skipping import-values for %s: %s", chart_dir, e)
        return coalesced
    if not chart.subcharts:
        return coalesced
    return process_import_values(chart, coalesce_values(chart, coalesced))


def validate_values_file(
    values_path: Path,
    overrides: dict[str, Any],
    skip_schema_validation: bool,
) -> Exception | None:
    try:
        defaults = read_values_file(values_path)
    except ValuesError as e:
        return RuleViolation(f"unable to parse YAML: {e}")

    # Only the top-level table is checked against the top-level schema;
    # subchart values are covered when their own chart is linted.
    coalesced = coalesce_tables(copy.deepcopy(overrides), defaults)
    coalesced = _imported_values(values_path.parent, coalesced)

    schema_path = values_path.with_name(SCHEMA_FILE_NAME)
    if not schema_path.is_file():
        return None
    try:
        schema_text = schema_path.read_text(encoding="utf-8")
    except OSError as e:
        return e
    if not schema_text.strip():
        return None
    try:
        schema = json.loads(schema_text)
    except json.JSONDecodeError as e:
        return RuleViolation(f"unable to parse schema: {e}")
    if not isinstance(schema, dict):
        return RuleViolation("unable to parse schema: schema must be a JSON object")
    if skip_schema_validation:
        return None
    try:
        validate_against_single_schema(coalesced, schema, values_path.parent.name)
    except ValuesError as e:
        return e
    return None
