from __future__ import annotations

import argparse
import json
import shlex

from ..core.context import RunContext
from ..pipeline.runner import render_job, select_jobs
from ._shared import SubParsers, as_json, envelope, pipeline_config


def run_jobs_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    config = pipeline_config(ctx)
    if ns.jobs_cmd == "list":
        rows = [{"id": job.job_id, "name": job.name, "steps": len(job.steps)} for job in config.jobs]
        if as_json(ctx):
            print(json.dumps({**envelope(ctx, "ok"), "source": config.source, "jobs": rows}, sort_keys=True))
        else:
            for row in rows:
                print(f"{row['id']}: {row['name']} ({row['steps']} steps)")
        return 0

    jobs = select_jobs(config, [ns.job] if ns.job else None)
    rendered = {job.job_id: render_job(job) for job in jobs}
    if as_json(ctx):
        print(json.dumps({**envelope(ctx, "ok"), "jobs": rendered}, sort_keys=True))
        return 0
    for job in jobs:
        print(f"{job.job_id}: {job.name}")
        for row in rendered[job.job_id]:
            argv = row["argv"]
            shown = shlex.join(argv) if isinstance(argv, list) and argv else f"<native {row['uses']}>"
            print(f"  {row['name']}: {shown}")
    return 0


def configure_parser(sub: SubParsers) -> None:
    p = sub.add_parser("jobs", help="inspect configured pipeline jobs")
    jobs_sub = p.add_subparsers(dest="jobs_cmd", required=True)
    jobs_sub.add_parser("list", help="list configured jobs")
    render = jobs_sub.add_parser("render", help="print the commands each step would run")
    render.add_argument("job", nargs="?", default="", help="optional job id")
    p.set_defaults(handler=run_jobs_command)
