"""Service settings, read from an options file or the environment."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic import BaseModel

from chartlint.engine.timeout import DEFAULT_RENDER_TIMEOUT
from chartlint.kube.version import DEFAULT_KUBE_VERSION, KubeVersion

logger = logging.getLogger(__name__)

DEFAULT_OPTIONS_PATH = "/data/options.json"

_TRUE_VALUES = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    namespace: str = "default"
    kube_version: str = f"{DEFAULT_KUBE_VERSION.major}.{DEFAULT_KUBE_VERSION.minor}"
    render_timeout: float = DEFAULT_RENDER_TIMEOUT
    skip_schema_validation: bool = False

    def parsed_kube_version(self) -> KubeVersion:
        return KubeVersion.parse(self.kube_version)


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in _TRUE_VALUES


def dev_mode() -> bool:
    return _env_flag("CHARTLINT_DEV_MODE")


def load_settings() -> Settings:
    """Load settings from CHARTLINT_OPTIONS_PATH, else from CHARTLINT_* variables."""
    opts_path = os.environ.get("CHARTLINT_OPTIONS_PATH", DEFAULT_OPTIONS_PATH)
    if Path(opts_path).exists():
        logger.debug("Reading options from %s", opts_path)
        return Settings.model_validate(json.loads(Path(opts_path).read_text()))
    return Settings(
        namespace=os.environ.get("CHARTLINT_NAMESPACE", "default"),
        kube_version=os.environ.get("CHARTLINT_KUBE_VERSION", Settings().kube_version),
        render_timeout=float(os.environ.get("CHARTLINT_RENDER_TIMEOUT", str(DEFAULT_RENDER_TIMEOUT))),
        skip_schema_validation=_env_flag("CHARTLINT_SKIP_SCHEMA_VALIDATION"),
    )
