from __future__ import annotations

import argparse

from ..core.context import RunContext
from ..pipeline.config import load_pipeline
from ..pipeline.model import PipelineConfig

SubParsers = argparse._SubParsersAction


def as_json(ctx: RunContext) -> bool:
    return ctx.output_format == "json"


def pipeline_config(ctx: RunContext) -> PipelineConfig:
    return load_pipeline(ctx.repo_root, ctx.config_path)


def envelope(ctx: RunContext, status: str = "ok") -> dict[str, object]:
    return {"schema_version": 1, "tool": "eipctl", "status": status, "run_id": ctx.run_id}
