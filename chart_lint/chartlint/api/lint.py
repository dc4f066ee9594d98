"""Lint API endpoint."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from chartlint.config import Settings
from chartlint.deps import get_settings
from chartlint.errors import RenderTimeoutError
from chartlint.lint.engine import LintOptions, run_all

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["lint"])


class LintRequest(BaseModel):
    path: str = Field(..., description="Chart directory to lint")
    values: dict[str, Any] = Field(
        default_factory=dict, description="Values layered over the chart's values.yaml"
    )
    namespace: str | None = Field(None, description="Release namespace (service default if omitted)")
    skip_schema_validation: bool | None = None
    kube_version: str | None = Field(None, description="Target cluster version, e.g. '1.28'")
    with_subcharts: bool = True


class LintMessageResponse(BaseModel):
    severity: str
    path: str = ""
    message: str
    rendered: str


class LintResponse(BaseModel):
    chart_dir: str
    passed: bool
    counts: dict[str, int] = Field(default_factory=dict)
    messages: list[LintMessageResponse] = Field(default_factory=list)


def _options(body: LintRequest, settings: Settings) -> LintOptions:
    skip = body.skip_schema_validation
    return LintOptions(
        skip_schema_validation=settings.skip_schema_validation if skip is None else skip,
        namespace=body.namespace or settings.namespace,
        kube_version=body.kube_version or settings.parsed_kube_version(),
        with_subcharts=body.with_subcharts,
        render_timeout=settings.render_timeout,
    )


@router.post("/lint", response_model=LintResponse)
async def lint_chart(
    body: LintRequest,
    settings: Settings = Depends(get_settings),
) -> LintResponse:
    """Lint a chart directory and return every message found."""
    chart_dir = Path(body.path)
    if not chart_dir.is_dir():
        raise HTTPException(status_code=404, detail=f"chart directory not found: {body.path}")

    try:
        options = _options(body, settings)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    try:
        result = await asyncio.to_thread(run_all, chart_dir, body.values, None, options)
    except RenderTimeoutError as e:
        logger.warning("Lint of %s timed out", chart_dir)
        raise HTTPException(status_code=504, detail=str(e))

    return LintResponse(
        chart_dir=result.chart_dir,
        passed=not result.failed(),
        counts=result.counts,
        messages=[
            LintMessageResponse(
                severity=m.severity.name,
                path=m.path,
                message=m.text,
                rendered=m.error(),
            )
            for m in result.messages
        ],
    )


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
