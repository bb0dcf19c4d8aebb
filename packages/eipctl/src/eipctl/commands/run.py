from __future__ import annotations

import argparse
import json

from ..core.context import RunContext
from ..core.env import getenv
from ..core.exit_codes import ERR_JOB_FAILED
from ..pipeline.model import StepStatus
from ..pipeline.report import render_text, write_run_record
from ..pipeline.runner import render_job, run_pipeline, select_jobs
from ._shared import SubParsers, as_json, envelope, pipeline_config

HANDOFF_ENV_KEYS = ("PR_NUMBER", "PR_SHA", "MERGE_SHA", "GITHUB_SHA", "GITHUB_EVENT_PATH")


def _job_env() -> dict[str, str]:
    out: dict[str, str] = {}
    for key in HANDOFF_ENV_KEYS:
        value = getenv(key)
        if value:
            out[key] = value
    return out


def run_run_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    config = pipeline_config(ctx)
    if ns.dry_run:
        jobs = select_jobs(config, ns.job_ids or None)
        payload = {**envelope(ctx, "ok"), "dry_run": True, "jobs": {job.job_id: render_job(job) for job in jobs}}
        print(json.dumps(payload, sort_keys=True, indent=None if as_json(ctx) else 2))
        return 0
    record = run_pipeline(ctx, config, ns.job_ids or None, parallel=not ns.serial, max_workers=ns.jobs, env=_job_env())
    payload = record.as_dict()
    if not ns.no_report:
        out = write_run_record(ctx, record)
        payload["report_path"] = out.relative_to(ctx.repo_root).as_posix() if ctx.repo_root in out.parents else str(out)
    if as_json(ctx):
        print(json.dumps(payload, sort_keys=True))
    else:
        print(render_text(record, verbose=ctx.verbose))
    return 0 if record.status == StepStatus.PASS else ERR_JOB_FAILED


def configure_parser(sub: SubParsers) -> None:
    p = sub.add_parser("run", help="run pipeline jobs and gate on their exit codes")
    p.add_argument("job_ids", nargs="*", help="job ids to run (default: all)")
    p.add_argument("--serial", action="store_true", help="run jobs one after another")
    p.add_argument("--jobs", type=int, default=4, help="maximum parallel jobs")
    p.add_argument("--dry-run", action="store_true", help="print the resolved steps and exit")
    p.add_argument("--no-report", action="store_true", help="do not write the run record under the evidence root")
    p.set_defaults(handler=run_run_command)
