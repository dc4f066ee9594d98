"""Chart directory loader -- Chart.yaml, values, schema, templates and subcharts."""

from __future__ import annotations

import json
import logging
from io import StringIO
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from ruamel.yaml import YAML, YAMLError

from chartlint.chart import semver
from chartlint.chart.models import (
    API_VERSION_V1,
    API_VERSION_V2,
    CHART_TYPES,
    Chart,
    ChartFile,
    ChartLock,
    ChartMetadata,
    Dependency,
    StrictChartMetadata,
)
from chartlint.errors import ChartLoadError, ValuesError

logger = logging.getLogger(__name__)

CHART_FILE_NAME = "Chart.yaml"
VALUES_FILE_NAME = "values.yaml"
SCHEMA_FILE_NAME = "values.schema.json"
TEMPLATES_DIR = "templates"
CHARTS_DIR = "charts"
LOCK_FILE_NAME = "Chart.lock"
REQUIREMENTS_FILE_NAME = "requirements.yaml"
REQUIREMENTS_LOCK_FILE_NAME = "requirements.lock"

# Never loaded as templates.
_IGNORED_NAMES = {".helmignore", ".git", ".DS_Store"}


def _yaml(allow_duplicate_keys: bool) -> YAML:
    yaml = YAML(typ="safe", pure=True)
    yaml.allow_duplicate_keys = allow_duplicate_keys
    return yaml


def parse_yaml(text: str, allow_duplicate_keys: bool = False) -> Any:
    """Parse a single YAML document. Raises ruamel's YAMLError on bad input."""
    return _yaml(allow_duplicate_keys).load(StringIO(text))


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ChartLoadError(str(e)) from e


def _load_mapping(path: Path, allow_duplicate_keys: bool) -> dict[str, Any]:
    text = _read_text(path)
    try:
        parsed = parse_yaml(text, allow_duplicate_keys=allow_duplicate_keys)
    except YAMLError as e:
        raise ChartLoadError(f"{path.name}: {e}") from e
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ChartLoadError(
            f"{path.name}: expected a mapping at the top level, got {type(parsed).__name__}"
        )
    return parsed


def _validation_message(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item["loc"])
        parts.append(f"{location}: {item['msg']}" if location else item["msg"])
    return "; ".join(parts)


def load_chartfile(path: Path) -> ChartMetadata:
    """Load Chart.yaml leniently: duplicate keys and unknown fields are tolerated."""
    data = _load_mapping(path, allow_duplicate_keys=True)
    try:
        return ChartMetadata.model_validate(data)
    except ValidationError as e:
        raise ChartLoadError(f"{path.name}: {_validation_message(e)}") from e


def strict_load_chartfile(path: Path) -> ChartMetadata:
    """Load Chart.yaml rejecting duplicate keys and unknown fields."""
    data = _load_mapping(path, allow_duplicate_keys=False)
    try:
        return StrictChartMetadata.model_validate(data)
    except ValidationError as e:
        raise ChartLoadError(f"{path.name}: {_validation_message(e)}") from e


def load_chartfile_for_type_check(path: Path) -> dict[str, Any]:
    """Return the raw Chart.yaml mapping so rules can inspect scalar types."""
    try:
        return _load_mapping(path, allow_duplicate_keys=True)
    except ChartLoadError:
        return {}


def read_values_file(path: Path, allow_duplicate_keys: bool = False) -> dict[str, Any]:
    """Parse a values file. Unless allowed, duplicate keys are an error, not an overwrite."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ValuesError(str(e)) from e
    return parse_values(text, allow_duplicate_keys)


def parse_values(text: str, allow_duplicate_keys: bool = False) -> dict[str, Any]:
    try:
        parsed = parse_yaml(text, allow_duplicate_keys=allow_duplicate_keys)
    except YAMLError as e:
        raise ValuesError(str(e)) from e
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValuesError(
            f"expected a mapping at the top level, got {type(parsed).__name__}"
        )
    return parsed


def validate_metadata(metadata: ChartMetadata) -> None:
    """Reject metadata a chart cannot be built from.

    These are the checks a chart must pass to be loaded at all; the Chartfile
    rules report the same problems individually with more context.
    """
    if not metadata.api_version:
        raise ChartLoadError("validation: chart.metadata.apiVersion is required")
    if metadata.api_version not in (API_VERSION_V1, API_VERSION_V2):
        raise ChartLoadError(
            f"validation: chart.metadata.apiVersion {metadata.api_version!r} is invalid"
        )
    if not metadata.name:
        raise ChartLoadError("validation: chart.metadata.name is required")
    if Path(metadata.name).name != metadata.name:
        raise ChartLoadError(f"validation: chart.metadata.name {metadata.name!r} is invalid")
    if not metadata.version:
        raise ChartLoadError("validation: chart.metadata.version is required")
    if semver.parse(metadata.version) is None:
        raise ChartLoadError(f"validation: chart.metadata.version {metadata.version!r} is invalid")
    if metadata.type and metadata.type not in CHART_TYPES:
        raise ChartLoadError("validation: chart.metadata.type must be application or library")
    for maintainer in metadata.maintainers:
        if maintainer is None:
            raise ChartLoadError("validation: a maintainer entry is empty")
    for dep in metadata.dependencies:
        if not dep.name:
            raise ChartLoadError("validation: dependency name is required")
        if dep.alias and Path(dep.alias).name != dep.alias:
            raise ChartLoadError(f"validation: dependency alias {dep.alias!r} is invalid")


def _load_dependency_file(path: Path, key: str) -> list[Dependency]:
    data = _load_mapping(path, allow_duplicate_keys=True)
    try:
        return [Dependency.model_validate(d) for d in (data.get(key) or [])]
    except ValidationError as e:
        raise ChartLoadError(f"{path.name}: {_validation_message(e)}") from e


def _load_lock(path: Path) -> ChartLock:
    data = _load_mapping(path, allow_duplicate_keys=True)
    try:
        return ChartLock.model_validate(data)
    except ValidationError as e:
        raise ChartLoadError(f"{path.name}: {_validation_message(e)}") from e


def _load_schema(path: Path) -> dict[str, Any] | None:
    text = _read_text(path)
    if not text.strip():
        return None
    try:
        schema = json.loads(text)
    except json.JSONDecodeError as e:
        raise ChartLoadError(f"{path.name}: {e}") from e
    if not isinstance(schema, dict):
        raise ChartLoadError(f"{path.name}: schema must be a JSON object")
    return schema


def _load_templates(root: Path, base: Path) -> list[ChartFile]:
    templates: list[ChartFile] = []
    for path in sorted(root.rglob("*")):
        if not path.is_file() or any(part in _IGNORED_NAMES for part in path.parts):
            continue
        name = path.relative_to(base).as_posix()
        try:
            data = path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            logger.debug("Skipping binary file %s", name)
            continue
        except OSError as e:
            raise ChartLoadError(f"{name}: {e}") from e
        templates.append(ChartFile(name=name, data=data))
    return templates


def subchart_dirs(chart_dir: Path) -> list[Path]:
    """Return the unpacked subchart directories under ``charts/`` in name order."""
    charts = chart_dir / CHARTS_DIR
    if not charts.is_dir():
        return []
    return sorted(p for p in charts.iterdir() if p.is_dir() and (p / CHART_FILE_NAME).exists())


def load_chart(chart_dir: str | Path) -> Chart:
    """Load a chart directory and, recursively, its unpacked subcharts."""
    root = Path(chart_dir)
    if not root.is_dir():
        raise ChartLoadError(f"{root} is not a directory")

    chart_file = root / CHART_FILE_NAME
    if not chart_file.is_file():
        raise ChartLoadError(f"{CHART_FILE_NAME} file is missing")
    metadata = load_chartfile(chart_file)

    lock: ChartLock | None = None
    if metadata.api_version == API_VERSION_V1:
        requirements = root / REQUIREMENTS_FILE_NAME
        if requirements.is_file():
            metadata = metadata.model_copy(
                update={"dependencies": _load_dependency_file(requirements, "dependencies")}
            )
        requirements_lock = root / REQUIREMENTS_LOCK_FILE_NAME
        if requirements_lock.is_file():
            lock = _load_lock(requirements_lock)
    elif (root / LOCK_FILE_NAME).is_file():
        lock = _load_lock(root / LOCK_FILE_NAME)

    validate_metadata(metadata)

    values: dict[str, Any] = {}
    values_file = root / VALUES_FILE_NAME
    # Duplicate keys are reported by the values rules, not here.
    if values_file.is_file():
        try:
            values = read_values_file(values_file, allow_duplicate_keys=True)
        except ValuesError as e:
            raise ChartLoadError(f"cannot load {VALUES_FILE_NAME}: {e}") from e

    schema = None
    schema_file = root / SCHEMA_FILE_NAME
    if schema_file.is_file():
        schema = _load_schema(schema_file)

    templates: list[ChartFile] = []
    templates_dir = root / TEMPLATES_DIR
    if templates_dir.is_dir():
        templates = _load_templates(templates_dir, root)

    subcharts: list[Chart] = []
    for sub_dir in subchart_dirs(root):
        try:
            subcharts.append(load_chart(sub_dir))
        except ChartLoadError as e:
            raise ChartLoadError(
                f"error unpacking subchart {sub_dir.name} in {metadata.name}: {e}"
            ) from e

    logger.debug(
        "Loaded chart %s (%d templates, %d subcharts)",
        metadata.name, len(templates), len(subcharts),
    )
    return Chart(
        chart_dir=str(root),
        metadata=metadata,
        lock=lock,
        values=values,
        values_schema=schema,
        templates=templates,
        subcharts=subcharts,
    )
