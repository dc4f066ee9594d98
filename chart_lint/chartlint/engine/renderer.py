"""Template renderer -- Jinja2 with a Helm-style render context."""

from __future__ import annotations

import base64
import logging
from io import StringIO
from pathlib import PurePosixPath
from typing import Any

from jinja2 import (
    ChainableUndefined,
    DictLoader,
    Environment,
    StrictUndefined,
    TemplateSyntaxError,
    Undefined,
)
from ruamel.yaml import YAML

from chartlint.chart.models import Chart
from chartlint.chart.values import coalesce_values, process_import_values, validate_against_schema
from chartlint.errors import RenderError
from chartlint.kube.version import KubeVersion

logger = logging.getLogger(__name__)

RELEASE_NAME = "test-release"


def _dumper() -> YAML:
    # A YAML instance holds emitter state, so renders on different threads
    # must not share one.
    yaml = YAML(typ="safe", pure=True)
    yaml.default_flow_style = False
    return yaml


def _to_yaml(value: Any) -> str:
    if isinstance(value, Undefined) or value is None or value == {} or value == []:
        return ""
    buf = StringIO()
    _dumper().dump(value, buf)
    return buf.getvalue().rstrip("\n")


def _nindent(text: Any, width: int = 0) -> str:
    pad = " " * width
    return "\n" + "\n".join(pad + line for line in str(text).split("\n"))


def _quote(value: Any) -> str:
    if value is None:
        return '""'
    return '"' + str(value).replace("\\", "\\\\").replace('"', '\\"') + '"'


def _b64enc(value: Any) -> str:
    return base64.b64encode(str(value).encode("utf-8")).decode("ascii")


def _trunc(value: Any, length: int) -> str:
    return str(value)[:length]


def _is_partial(name: str) -> bool:
    return PurePosixPath(name).name.startswith("_")


def to_render_values(
    chart: Chart,
    values: dict[str, Any] | None,
    namespace: str,
    kube_version: KubeVersion,
    skip_schema_validation: bool = False,
) -> dict[str, Any]:
    """Build the top-level render context for ``chart``.

    Values are the overlay coalesced over chart defaults, with subchart
    ``import-values`` applied. Raises ValuesError on schema violations unless
    ``skip_schema_validation`` is set.
    """
    merged = process_import_values(chart, coalesce_values(chart, values))
    if not skip_schema_validation:
        validate_against_schema(chart, merged)

    metadata = chart.metadata
    return {
        "Values": merged,
        "Release": {
            "Name": RELEASE_NAME,
            "Namespace": namespace,
            "Service": "Helm",
            "Revision": 1,
            "IsInstall": True,
            "IsUpgrade": False,
        },
        "Chart": {
            "Name": metadata.name,
            "Version": metadata.version,
            "AppVersion": metadata.app_version,
            "ApiVersion": metadata.api_version,
            "Description": metadata.description,
            "Type": metadata.type,
            "Annotations": dict(metadata.annotations),
        },
        "Capabilities": {
            "KubeVersion": {
                "Major": str(kube_version.major),
                "Minor": str(kube_version.minor),
                "Version": kube_version.version,
                "GitVersion": kube_version.version,
            },
        },
    }


class Renderer:
    """Renders a chart's templates.

    In lint mode references to missing values render as empty strings and
    ``required`` never fails, so a chart can be checked without a complete
    value set.
    """

    def __init__(self, lint_mode: bool = True) -> None:
        self._lint_mode = lint_mode

    def _environment(self, chart: Chart) -> Environment:
        env = Environment(
            loader=DictLoader({t.name: t.data for t in chart.templates}),
            undefined=ChainableUndefined if self._lint_mode else StrictUndefined,
            keep_trailing_newline=True,
            autoescape=False,
        )
        env.filters["toYaml"] = _to_yaml
        env.filters["nindent"] = _nindent
        env.filters["quote"] = _quote
        env.filters["b64enc"] = _b64enc
        env.filters["trunc"] = _trunc
        env.globals["required"] = self._required
        return env

    def _required(self, message: str, value: Any) -> Any:
        if isinstance(value, Undefined) or value is None or value == "":
            if self._lint_mode:
                return ""
            raise RenderError(message)
        return value

    def render(self, chart: Chart, render_values: dict[str, Any]) -> dict[str, str]:
        """Render every non-partial template. Returns output keyed by template name."""
        env = self._environment(chart)
        rendered: dict[str, str] = {}
        for template in chart.templates:
            if _is_partial(template.name):
                continue
            context = dict(render_values)
            context["Template"] = {
                "Name": f"{chart.name}/{template.name}",
                "BasePath": f"{chart.name}/templates",
            }
            try:
                rendered[template.name] = env.get_template(template.name).render(context)
            except TemplateSyntaxError as e:
                raise RenderError(f"parse error at ({template.name}:{e.lineno}): {e.message}") from e
            except RenderError:
                raise
            # Template expressions are chart data and may fail in any way.
            except Exception as e:
                raise RenderError(f"template: {template.name}: {e}") from e
        logger.debug("Rendered %d templates for %s", len(rendered), chart.name)
        return rendered
