"""Tests for chartlint.chart.values -- coalescing, import-values and schemas."""

from __future__ import annotations

from pathlib import Path

import pytest

from chartlint.chart.loader import load_chart
from chartlint.chart.models import Chart, ChartMetadata, Dependency
from chartlint.chart.values import (
    coalesce_tables,
    coalesce_values,
    process_import_values,
    validate_against_schema,
    validate_against_single_schema,
)
from chartlint.errors import ValuesError


def _chart(name: str, values: dict, subcharts: list[Chart] | None = None, deps=None, schema=None) -> Chart:
    metadata = ChartMetadata(name=name, version="0.1.0", apiVersion="v2")
    if deps:
        metadata = metadata.model_copy(update={"dependencies": [Dependency.model_validate(d) for d in deps]})
    return Chart(
        chart_dir=f"/charts/{name}",
        metadata=metadata,
        values=values,
        values_schema=schema,
        subcharts=subcharts or [],
    )


class TestCoalesceTables:
    def test_dst_wins(self) -> None:
        dst = {"a": 1, "nested": {"x": 1}}
        coalesce_tables(dst, {"a": 2, "b": 3, "nested": {"x": 2, "y": 2}})
        assert dst == {"a": 1, "b": 3, "nested": {"x": 1, "y": 2}}

    def test_none_deletes(self) -> None:
        dst = {"a": None}
        coalesce_tables(dst, {"a": 1, "b": 2})
        assert dst == {"b": 2}

    def test_src_not_shared(self) -> None:
        src = {"nested": {"x": 1}}
        dst: dict = {}
        coalesce_tables(dst, src)
        dst["nested"]["x"] = 2
        assert src["nested"]["x"] == 1


class TestCoalesceValues:
    def test_subchart_defaults_and_globals(self) -> None:
        sub = _chart("sub", {"port": 80, "global": {"env": "dev"}})
        parent = _chart("parent", {"global": {"env": "prod"}, "sub": {"port": 8080}}, [sub])
        values = coalesce_values(parent, None)
        assert values["sub"]["port"] == 8080
        assert values["sub"]["global"]["env"] == "prod"

    def test_alias_key(self) -> None:
        sub = _chart("sub", {"port": 80})
        parent = _chart("parent", {}, [sub], deps=[{"name": "sub", "alias": "db"}])
        values = coalesce_values(parent, {"db": {"port": 5432}})
        assert values["db"] == {"port": 5432}
        assert "sub" not in values


class TestImportValues:
    def test_child_parent_pair(self, charts_dir: Path) -> None:
        chart = load_chart(charts_dir / "withsubchart")
        values = process_import_values(chart, coalesce_values(chart, {}))
        assert values["imported"] == {"foo": "bar"}

    def test_exports_shorthand(self) -> None:
        sub = _chart("sub", {"exports": {"data": {"myint": 99}}})
        parent = _chart("parent", {}, [sub], deps=[{"name": "sub", "import-values": ["data"]}])
        values = process_import_values(parent, coalesce_values(parent, {}))
        assert values["myint"] == 99

    def test_parent_values_win(self) -> None:
        sub = _chart("sub", {"exports": {"data": {"myint": 99}}})
        parent = _chart("parent", {"myint": 1}, [sub], deps=[{"name": "sub", "import-values": ["data"]}])
        values = process_import_values(parent, coalesce_values(parent, {}))
        assert values["myint"] == 1

    def test_missing_import_is_skipped(self) -> None:
        sub = _chart("sub", {})
        parent = _chart(
            "parent", {}, [sub],
            deps=[{"name": "sub", "import-values": [{"child": "nope", "parent": "here"}]}],
        )
        values = process_import_values(parent, coalesce_values(parent, {}))
        assert "here" not in values


SCHEMA = {"type": "object", "properties": {"port": {"type": "integer"}}, "required": ["port"]}


class TestSchemaValidation:
    def test_single_schema_passes(self) -> None:
        validate_against_single_schema({"port": 80}, SCHEMA, "mychart")

    def test_single_schema_lists_every_error(self) -> None:
        schema = {**SCHEMA, "properties": {"port": {"type": "integer"}, "host": {"type": "string"}}}
        with pytest.raises(ValuesError) as exc_info:
            validate_against_single_schema({"port": "x", "host": 1}, schema, "mychart")
        text = str(exc_info.value)
        assert "mychart:" in text
        assert "- host:" in text
        assert "- port:" in text

    def test_invalid_schema(self) -> None:
        with pytest.raises(ValuesError, match="invalid values schema"):
            validate_against_single_schema({}, {"type": 12}, "mychart")

    def test_subchart_schemas(self) -> None:
        sub = _chart("sub", {}, schema=SCHEMA)
        parent = _chart("parent", {}, [sub])
        validate_against_schema(parent, {"sub": {"port": 80}})
        with pytest.raises(ValuesError) as exc_info:
            validate_against_schema(parent, {"sub": {}})
        assert "sub:" in str(exc_info.value)
        assert "- (root): 'port' is a required property" in str(exc_info.value)
