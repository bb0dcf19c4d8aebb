"""CI gating pipeline: configuration, tool adapters and the job runner."""

from .config import exemptions_from_config, load_pipeline, parse_pipeline
from .model import JobDef, JobResult, PipelineConfig, RunRecord, StepDef, StepResult, StepStatus
from .runner import render_job, run_job, run_pipeline

__all__ = [
    "JobDef",
    "JobResult",
    "PipelineConfig",
    "RunRecord",
    "StepDef",
    "StepResult",
    "StepStatus",
    "exemptions_from_config",
    "load_pipeline",
    "parse_pipeline",
    "render_job",
    "run_job",
    "run_pipeline",
]
