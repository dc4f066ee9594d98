"""Values coalescing, import-values and schema validation."""

from __future__ import annotations

import copy
import logging
from typing import Any

import jsonschema
from jsonschema.exceptions import SchemaError

from chartlint.chart.models import Chart, ImportValue
from chartlint.errors import ValuesError

logger = logging.getLogger(__name__)

GLOBAL_KEY = "global"

_SCHEMA_FAILURE_HEADER = (
    "values don't meet the specifications of the schema(s) in the following chart(s):"
)


def coalesce_tables(dst: dict[str, Any], src: dict[str, Any]) -> dict[str, Any]:
    """Merge ``src`` into ``dst`` in place. Keys already in ``dst`` win.

    Nested tables merge recursively. A ``None`` in ``dst`` deletes the key so an
    overlay can remove a default.
    """
    for key, src_value in src.items():
        if key not in dst:
            dst[key] = copy.deepcopy(src_value)
            continue
        dst_value = dst[key]
        if dst_value is None:
            del dst[key]
        elif isinstance(dst_value, dict) and isinstance(src_value, dict):
            coalesce_tables(dst_value, src_value)
    return dst


def coalesce_values(chart: Chart, overlay: dict[str, Any] | None) -> dict[str, Any]:
    """Layer ``overlay`` over the chart defaults, recursing into subcharts."""
    result = copy.deepcopy(overlay or {})
    coalesce_tables(result, chart.values)
    parent_globals = result.get(GLOBAL_KEY)
    for sub in chart.subcharts:
        dep = chart.dependency_for(sub)
        key = dep.key if dep else sub.name
        sub_overlay = result.get(key)
        if not isinstance(sub_overlay, dict):
            sub_overlay = {}
        if isinstance(parent_globals, dict):
            sub_globals = sub_overlay.setdefault(GLOBAL_KEY, {})
            if isinstance(sub_globals, dict):
                for gkey, gvalue in parent_globals.items():
                    sub_globals[gkey] = copy.deepcopy(gvalue)
        result[key] = coalesce_values(sub, sub_overlay)
    return result


def _lookup(values: dict[str, Any], path: str) -> Any:
    current: Any = values
    for part in (p for p in path.split(".") if p):
        if not isinstance(current, dict) or part not in current:
            return None
        current = current[part]
    return current


def _place(path: str, value: Any) -> dict[str, Any]:
    parts = [p for p in path.split(".") if p]
    if not parts:
        return value if isinstance(value, dict) else {}
    table: dict[str, Any] = {parts[-1]: copy.deepcopy(value)}
    for part in reversed(parts[:-1]):
        table = {part: table}
    return table


def process_import_values(chart: Chart, values: dict[str, Any]) -> dict[str, Any]:
    """Pull values that subcharts export into the parent's table.

    ``values`` is the coalesced table for ``chart``. Values the parent already
    sets win over imported ones. A string entry ``x`` imports the child's
    ``exports.x`` table into the parent root.
    """
    result = copy.deepcopy(values)
    for sub in chart.subcharts:
        dep = chart.dependency_for(sub)
        key = dep.key if dep else sub.name
        sub_values = result.get(key)
        if isinstance(sub_values, dict):
            sub_values = process_import_values(sub, sub_values)
            result[key] = sub_values
        else:
            sub_values = {}
        if dep is None:
            continue
        for entry in dep.import_values:
            if isinstance(entry, ImportValue):
                child, parent = entry.child, entry.parent
            else:
                child, parent = f"exports.{entry}", ""
            imported = _lookup(sub_values, child)
            if imported is None:
                logger.debug("import-values %s not found in subchart %s", child, sub.name)
                continue
            coalesce_tables(result, _place(parent, imported))
    return result


def _format_errors(errors: list[jsonschema.ValidationError]) -> list[str]:
    lines = []
    for error in errors:
        location = ".".join(str(p) for p in error.absolute_path) or "(root)"
        lines.append(f"- {location}: {error.message}")
    return lines


def _schema_errors(values: dict[str, Any], schema: dict[str, Any]) -> list[str]:
    validator_cls = jsonschema.validators.validator_for(schema, default=jsonschema.Draft7Validator)
    try:
        validator_cls.check_schema(schema)
    except SchemaError as e:
        raise ValuesError(f"invalid values schema: {e.message}") from e
    errors = sorted(
        validator_cls(schema).iter_errors(values),
        key=lambda e: ([str(p) for p in e.absolute_path], e.message),
    )
    return _format_errors(errors)


def validate_against_single_schema(
    values: dict[str, Any], schema: dict[str, Any], chart_name: str,
) -> None:
    """Raise ValuesError listing every violation of one chart's schema."""
    lines = _schema_errors(values, schema)
    if lines:
        raise ValuesError(f"{_SCHEMA_FAILURE_HEADER}\n{chart_name}:\n" + "\n".join(lines))


def validate_against_schema(chart: Chart, values: dict[str, Any]) -> None:
    """Validate ``values`` against the schemas of ``chart`` and its subcharts."""
    failures: list[str] = []
    _collect_schema_failures(chart, values, failures)
    if failures:
        raise ValuesError(_SCHEMA_FAILURE_HEADER + "\n" + "\n".join(failures))


def _collect_schema_failures(chart: Chart, values: dict[str, Any], failures: list[str]) -> None:
    if chart.values_schema is not None:
        lines = _schema_errors(values, chart.values_schema)
        if lines:
            failures.append(f"{chart.name}:\n" + "\n".join(lines))
    for sub in chart.subcharts:
        dep = chart.dependency_for(sub)
        sub_values = values.get(dep.key if dep else sub.name)
        _collect_schema_failures(sub, sub_values if isinstance(sub_values, dict) else {}, failures)
