from __future__ import annotations

import json
from pathlib import Path

from ..core.context import RunContext
from ..core.fs import ensure_evidence_path
from ..core.schema import validate_payload
from .model import RunRecord, StepStatus


def write_run_record(ctx: RunContext, record: RunRecord) -> Path:
    payload = record.as_dict()
    validate_payload(payload, "run-record.schema.json")
    out = ensure_evidence_path(ctx, ctx.run_dir / "pipeline" / "report.json")
    out.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    return out


def render_text(record: RunRecord, verbose: bool = False) -> str:
    failed = sum(1 for job in record.jobs if job.status == StepStatus.FAIL)
    lines = [f"pipeline run: status={record.status.value} total={len(record.jobs)} failed={failed} run_id={record.run_id}"]
    for job in record.jobs:
        lines.append(f"- {job.status.value.upper()} {job.job_id} ({job.name})")
        for step in job.steps:
            show_output = verbose or step.status == StepStatus.FAIL
            lines.append(f"    {step.status.value:<4} {step.name} [code={step.code}]")
            if show_output:
                lines.extend(f"      {line}" for line in step.output)
    return "\n".join(lines)
