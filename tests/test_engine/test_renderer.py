"""Tests for chartlint.engine.renderer."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from chartlint.chart.loader import load_chart
from chartlint.chart.models import Chart, ChartFile, ChartMetadata
from chartlint.engine.renderer import RELEASE_NAME, Renderer, to_render_values
from chartlint.errors import RenderError, ValuesError
from chartlint.kube.version import DEFAULT_KUBE_VERSION


def _chart(templates: dict[str, str], values: dict | None = None, schema: dict | None = None) -> Chart:
    return Chart(
        chart_dir="/charts/mychart",
        metadata=ChartMetadata(name="mychart", version="0.1.0", apiVersion="v2", appVersion="1.0"),
        values=values or {},
        values_schema=schema,
        templates=[ChartFile(name=name, data=data) for name, data in templates.items()],
    )


def _render(chart: Chart, overlay: dict | None = None, lint_mode: bool = True) -> dict[str, str]:
    render_values = to_render_values(chart, overlay, "team-a", DEFAULT_KUBE_VERSION)
    return Renderer(lint_mode=lint_mode).render(chart, render_values)


class TestRenderValues:
    def test_context(self) -> None:
        ctx = to_render_values(_chart({}, {"a": 1}), {"b": 2}, "team-a", DEFAULT_KUBE_VERSION)
        assert ctx["Values"] == {"a": 1, "b": 2}
        assert ctx["Release"]["Name"] == RELEASE_NAME
        assert ctx["Release"]["Namespace"] == "team-a"
        assert ctx["Chart"]["AppVersion"] == "1.0"
        assert ctx["Capabilities"]["KubeVersion"]["Version"] == "v1.20.0"

    def test_schema_violation(self) -> None:
        chart = _chart({}, {"port": "x"}, {"properties": {"port": {"type": "integer"}}})
        with pytest.raises(ValuesError):
            to_render_values(chart, None, "default", DEFAULT_KUBE_VERSION)

    def test_skip_schema_validation(self) -> None:
        chart = _chart({}, {"port": "x"}, {"properties": {"port": {"type": "integer"}}})
        ctx = to_render_values(chart, None, "default", DEFAULT_KUBE_VERSION, True)
        assert ctx["Values"]["port"] == "x"


class TestRenderer:
    def test_renders_release_and_values(self) -> None:
        chart = _chart({"templates/cm.yaml": "name: {{ Release.Name }}-{{ Values.suffix }}\n"})
        out = _render(chart, {"suffix": "web"})
        assert out["templates/cm.yaml"] == f"name: {RELEASE_NAME}-web\n"

    def test_partials_are_not_rendered(self) -> None:
        chart = _chart({
            "templates/_helpers.tpl": "{% macro name() %}x{% endmacro %}",
            "templates/cm.yaml": "{% from 'templates/_helpers.tpl' import name %}n: {{ name() }}\n",
        })
        out = _render(chart)
        assert list(out) == ["templates/cm.yaml"]
        assert out["templates/cm.yaml"] == "n: x\n"

    def test_filters(self) -> None:
        chart = _chart({
            "templates/cm.yaml": (
                "a: {{ Values.word | quote }}\n"
                "b: {{ Values.word | b64enc }}\n"
                "c: {{ Values.word | trunc(2) }}\n"
                "d:{{ Values.table | toYaml | nindent(2) }}\n"
            ),
        })
        out = _render(chart, {"word": "hello", "table": {"k": "v"}})
        assert out["templates/cm.yaml"] == 'a: "hello"\nb: aGVsbG8=\nc: he\nd:\n  k: v\n'

    def test_missing_values_render_empty_in_lint_mode(self) -> None:
        chart = _chart({"templates/cm.yaml": "a: {{ Values.nope.deeper }}\nb: {{ required('x', Values.nope) }}\n"})
        assert _render(chart)["templates/cm.yaml"] == "a: \nb: \n"

    def test_strict_mode_fails_on_missing_values(self) -> None:
        chart = _chart({"templates/cm.yaml": "a: {{ Values.nope.deeper }}\n"})
        with pytest.raises(RenderError, match="template: templates/cm.yaml"):
            _render(chart, lint_mode=False)

    def test_required_in_strict_mode(self) -> None:
        chart = _chart({"templates/cm.yaml": "b: {{ required('name is required', Values.name) }}\n"})
        with pytest.raises(RenderError, match="name is required"):
            _render(chart, {"name": ""}, lint_mode=False)

    def test_syntax_error(self) -> None:
        chart = _chart({"templates/cm.yaml": "a: {{ Values.x \n"})
        with pytest.raises(RenderError, match=r"parse error at \(templates/cm.yaml:\d+\)"):
            _render(chart)

    def test_runtime_error(self) -> None:
        chart = _chart({"templates/cm.yaml": "a: {{ 1 / Values.zero }}\n"})
        with pytest.raises(RenderError, match="template: templates/cm.yaml: "):
            _render(chart, {"zero": 0})

    def test_to_yaml_across_threads(self) -> None:
        chart = _chart({"templates/cm.yaml": "d:{{ Values.table | toYaml | nindent(2) }}\n"})
        table = {"k": "v", "items": [1, 2, 3], "nested": {"a": {"b": "c"}}}
        expected = _render(chart, {"table": table})

        with ThreadPoolExecutor(max_workers=16) as pool:
            outputs = list(pool.map(lambda _: _render(chart, {"table": table}), range(200)))
        assert all(out == expected for out in outputs)

    def test_template_context(self) -> None:
        chart = _chart({"templates/cm.yaml": "{{ Template.Name }}"})
        assert _render(chart)["templates/cm.yaml"] == "mychart/templates/cm.yaml"

    def test_fixture_chart(self, good_chart: Path) -> None:
        chart = load_chart(good_chart)
        render_values = to_render_values(chart, None, "default", DEFAULT_KUBE_VERSION)
        out = Renderer().render(chart, render_values)
        assert f"name: {RELEASE_NAME}-goodone" in out["templates/deployment.yaml"]
        assert "templates/_helpers.tpl" not in out
