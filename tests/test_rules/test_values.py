"""Tests for chartlint.rules.values."""

from __future__ import annotations

import json
from pathlib import Path

from chartlint.lint.models import Severity
from chartlint.lint.support import Linter
from chartlint.rules.values import validate_values_file, values

CHART_YAML = """\
apiVersion: v2
name: mychart
version: 0.1.0
icon: https://riverrun.io/icon.png
"""

SCHEMA = {
    "type": "object",
    "required": ["username"],
    "properties": {
        "username": {"type": "string"},
        "password": {"type": "string"},
    },
}


class TestValuesGroup:
    def test_missing_values_file_is_info(self, make_chart) -> None:
        chart = make_chart({"Chart.yaml": CHART_YAML})
        linter = Linter(str(chart))
        values(linter)
        assert len(linter.messages) == 1
        assert linter.messages[0].severity == Severity.info
        assert linter.messages[0].text == "file does not exist"

    def test_duplicate_key(self, charts_dir: Path) -> None:
        linter = Linter(str(charts_dir / "badvaluesfile"))
        values(linter)
        assert len(linter.messages) == 1
        message = linter.messages[0]
        assert message.severity == Severity.error
        assert message.path == "values.yaml"
        assert "unable to parse YAML" in message.text

    def test_good_values(self, good_chart: Path) -> None:
        linter = Linter(str(good_chart))
        values(linter)
        assert linter.messages == []

    def test_import_values_satisfy_schema(self, charts_dir: Path) -> None:
        linter = Linter(str(charts_dir / "withsubchart"))
        values(linter)
        assert linter.messages == []


class TestValidateValuesFile:
    def test_schema_violation(self, make_chart) -> None:
        chart = make_chart({
            "Chart.yaml": CHART_YAML,
            "values.yaml": "username: admin\npassword: 1234\n",
            "values.schema.json": json.dumps(SCHEMA),
        })
        err = validate_values_file(chart / "values.yaml", {}, False)
        assert err is not None
        text = str(err)
        assert "values don't meet the specifications of the schema(s)" in text
        assert "mychart:" in text
        assert "- password:" in text

    def test_overrides_fix_violation(self, make_chart) -> None:
        chart = make_chart({
            "Chart.yaml": CHART_YAML,
            "values.yaml": "password: 1234\n",
            "values.schema.json": json.dumps(SCHEMA),
        })
        overrides = {"username": "admin", "password": "secret"}
        assert validate_values_file(chart / "values.yaml", overrides, False) is None

    def test_overrides_are_not_mutated(self, make_chart) -> None:
        chart = make_chart({"Chart.yaml": CHART_YAML, "values.yaml": "a:\n  b: 1\n"})
        overrides = {"a": {"c": 2}}
        validate_values_file(chart / "values.yaml", overrides, False)
        assert overrides == {"a": {"c": 2}}

    def test_skip_schema_validation(self, make_chart) -> None:
        chart = make_chart({
            "Chart.yaml": CHART_YAML,
            "values.yaml": "password: 1234\n",
            "values.schema.json": json.dumps(SCHEMA),
        })
        assert validate_values_file(chart / "values.yaml", {}, True) is None

    def test_unparseable_schema(self, make_chart) -> None:
        chart = make_chart({
            "Chart.yaml": CHART_YAML,
            "values.yaml": "username: admin\n",
            "values.schema.json": "{not json",
        })
        err = validate_values_file(chart / "values.yaml", {}, False)
        assert "unable to parse schema" in str(err)

    def test_empty_schema_is_ignored(self, make_chart) -> None:
        chart = make_chart({
            "Chart.yaml": CHART_YAML,
            "values.yaml": "username: admin\n",
            "values.schema.json": "\n",
        })
        assert validate_values_file(chart / "values.yaml", {}, False) is None

    def test_null_override_removes_default(self, make_chart) -> None:
        chart = make_chart({
            "Chart.yaml": CHART_YAML,
            "values.yaml": "username: admin\npassword: 1234\n",
            "values.schema.json": json.dumps(SCHEMA),
        })
        assert validate_values_file(chart / "values.yaml", {"password": None}, False) is None
