"""Template rules -- render the chart and check every rendered manifest."""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from typing import Any

from chartlint.chart.loader import TEMPLATES_DIR, load_chart
from chartlint.chart.models import Chart
from chartlint.engine.renderer import Renderer, to_render_values
from chartlint.engine.timeout import DEFAULT_RENDER_TIMEOUT, run_with_timeout
from chartlint.errors import (
    ChartLoadError,
    ManifestDecodeError,
    RenderError,
    RuleViolation,
    ValuesError,
)
from chartlint.kube import deprecations
from chartlint.kube.manifests import K8sObject, decode_documents, name_errors
from chartlint.kube.version import DEFAULT_KUBE_VERSION, KubeVersion
from chartlint.lint.models import Severity
from chartlint.lint.support import Linter

logger = logging.getLogger(__name__)

TEMPLATES_PATH = f"{TEMPLATES_DIR}/"

ALLOWED_EXTENSIONS = (".yaml", ".yml", ".tpl", ".txt")

SELECTOR_KINDS = {"Deployment", "ReplicaSet", "DaemonSet", "StatefulSet"}

RESOURCE_POLICY_ANNOTATION = "helm.sh/resource-policy"


def templates(
    linter: Linter,
    values: dict[str, Any] | None = None,
    namespace: str = "default",
    kube_version: KubeVersion | None = None,
    skip_schema_validation: bool = False,
    timeout: float = DEFAULT_RENDER_TIMEOUT,
) -> None:
    """Render the chart's templates and lint the output.

    Rendering and manifest parsing run under ``run_with_timeout``; a render
    that does not finish raises RenderTimeoutError to the caller.
    """
    templates_path = Path(linter.chart_dir) / TEMPLATES_DIR
    # The templates directory is optional.
    if not templates_path.exists():
        return
    if not linter.run_rule(Severity.error, TEMPLATES_PATH, validate_templates_dir(templates_path)):
        return

    try:
        chart = load_chart(linter.chart_dir)
    except ChartLoadError as e:
        linter.run_rule(Severity.error, TEMPLATES_PATH, e)
        return

    logger.debug("Rendering %d templates for %s", len(chart.templates), chart.name)
    # The guarded work writes to its own Linter so an abandoned render can
    # never append to the caller's.
    scratch = Linter(linter.chart_dir)
    run_with_timeout(
        lint_rendered_templates,
        timeout,
        scratch,
        chart,
        values or {},
        namespace,
        kube_version or DEFAULT_KUBE_VERSION,
        skip_schema_validation,
        chart_dir=linter.chart_dir,
    )
    for message in scratch.messages:
        linter.run_rule(message.severity, message.path, message.cause)


def lint_rendered_templates(
    linter: Linter,
    chart: Chart,
    values: dict[str, Any],
    namespace: str,
    kube_version: KubeVersion,
    skip_schema_validation: bool,
) -> None:
    try:
        render_values = to_render_values(
            chart, values, namespace, kube_version, skip_schema_validation
        )
    except ValuesError as e:
        linter.run_rule(Severity.error, TEMPLATES_PATH, e)
        return

    try:
        rendered = Renderer(lint_mode=True).render(chart, render_values)
    except RenderError as e:
        linter.run_rule(Severity.error, TEMPLATES_PATH, e)
        return

    for template in chart.templates:
        name = template.name
        linter.run_rule(Severity.error, name, validate_allowed_extension(name))

        # Only YAML manifests are decoded and checked.
        if PurePosixPath(name).suffix != ".yaml":
            continue

        content = rendered.get(name, "")
        if not content.strip():
            continue

        linter.run_rule(Severity.warning, name, validate_top_indent_level(content))

        try:
            for document in decode_documents(content):
                if document is None:
                    continue
                obj = K8sObject.from_document(document)
                # Warnings, so charts may still target older clusters.
                linter.run_rule(Severity.warning, name, validate_metadata_name(obj))
                linter.run_rule(Severity.warning, name, validate_no_deprecations(obj, kube_version))

                linter.run_rule(Severity.error, name, validate_match_selector(obj, content))
                linter.run_rule(Severity.error, name, validate_list_annotations(obj, document))
        except ManifestDecodeError as e:
            # A document that fails to decode fails every later check as well.
            linter.run_rule(Severity.error, name, validate_yaml_content(e))
            return


def validate_templates_dir(templates_path: Path) -> RuleViolation | None:
    if not templates_path.is_dir():
        return RuleViolation("not a directory")
    return None


def validate_allowed_extension(file_name: str) -> RuleViolation | None:
    ext = PurePosixPath(file_name).suffix
    if ext in ALLOWED_EXTENSIONS:
        return None
    return RuleViolation(
        f"file extension '{ext}' not valid. Valid extensions are .yaml, .yml, .tpl, or .txt"
    )


def validate_yaml_content(err: Exception | None) -> RuleViolation | None:
    if err is None:
        return None
    return RuleViolation(f"unable to parse YAML: {err}")


def validate_top_indent_level(content: str) -> RuleViolation | None:
    for line in content.splitlines():
        if not line.strip():
            continue
        if line.startswith((" ", "\t")):
            return RuleViolation(
                f"document starts with an illegal indent: {line!r}, which may cause parsing problems"
            )
        return None
    return None


def validate_metadata_name(obj: K8sObject) -> RuleViolation | None:
    name = obj.metadata.name
    # Objects without a name (List, generateName) have nothing to check.
    if not name:
        return None
    problems = name_errors(obj.kind, name)
    if problems:
        return RuleViolation(
            f"object name does not conform to Kubernetes naming requirements: {name!r}: "
            + "; ".join(problems)
        )
    return None


def validate_no_deprecations(obj: K8sObject, kube_version: KubeVersion) -> RuleViolation | None:
    if not obj.api_version or not obj.kind:
        return None
    if not deprecations.is_deprecated(obj.api_version, obj.kind, kube_version):
        return None
    return RuleViolation(deprecations.warning_message(obj.api_version, obj.kind))


def validate_match_selector(obj: K8sObject, manifest: str) -> RuleViolation | None:
    if obj.kind in SELECTOR_KINDS:
        if "matchLabels" not in manifest and "matchExpressions" not in manifest:
            return RuleViolation(
                f"a {obj.kind} must contain matchLabels or matchExpressions, "
                f"and {obj.metadata.name!r} does not"
            )
    return None


def validate_list_annotations(obj: K8sObject, document: dict[str, Any]) -> RuleViolation | None:
    if obj.kind != "List":
        return None
    items = document.get("items")
    for item in items if isinstance(items, list) else []:
        metadata = item.get("metadata") if isinstance(item, dict) else None
        annotations = metadata.get("annotations") if isinstance(metadata, dict) else None
        if not isinstance(annotations, dict):
            continue
        if RESOURCE_POLICY_ANNOTATION in annotations:
            return RuleViolation(
                f"Annotation '{RESOURCE_POLICY_ANNOTATION}' within List objects are ignored"
            )
    return None
