from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Mapping

from ..core.context import RunContext
from ..core.errors import ScriptError
from ..core.exit_codes import ERR_ARTIFACT, ERR_INTERNAL, ERR_PREREQ, ERR_USER
from ..core.logging import log_event
from ..core.process import run_command, which
from .adapters import StepContext, get_adapter
from .model import JobDef, JobResult, PipelineConfig, RunRecord, StepDef, StepResult, StepStatus


def step_argv(step: StepDef) -> list[str]:
    if not step.uses:
        return list(step.run)
    adapter = get_adapter(step.uses)
    if adapter.native:
        return []
    return adapter.argv(step.options, step.command)


def render_job(job: JobDef) -> list[dict[str, object]]:
    rows: list[dict[str, object]] = []
    for step in job.steps:
        argv = step_argv(step)
        rows.append(
            {
                "name": step.name,
                "kind": step.kind,
                "uses": step.uses or None,
                "native": bool(step.uses) and not argv,
                "argv": argv,
            }
        )
    return rows


def _run_external(ctx: RunContext, step: StepDef, argv: list[str]) -> StepResult:
    if not argv:
        return StepResult(step.name, step.kind, StepStatus.FAIL, ERR_PREREQ, output=("empty command",))
    if which(argv[0]) is None:
        return StepResult(
            step.name,
            step.kind,
            StepStatus.FAIL,
            ERR_PREREQ,
            argv=tuple(argv),
            output=(f"required tool `{argv[0]}` is not installed",),
        )
    result = run_command(argv, ctx.repo_root, timeout_seconds=step.timeout_seconds, ctx=ctx)
    return StepResult(
        step.name,
        step.kind,
        StepStatus.PASS if result.code == 0 else StepStatus.FAIL,
        result.code,
        duration_ms=result.duration_ms,
        argv=tuple(argv),
        output=tuple(result.combined_output.splitlines()),
    )


def _run_native(ctx: RunContext, config: PipelineConfig, job: JobDef, step: StepDef, env: Mapping[str, str]) -> StepResult:
    adapter = get_adapter(step.uses)
    started = time.monotonic()
    try:
        outcome = adapter.run(StepContext(ctx=ctx, config=config, job_id=job.job_id, env=env), step.options)
    except ScriptError as exc:
        return StepResult(
            step.name,
            step.kind,
            StepStatus.FAIL,
            exc.code,
            duration_ms=int((time.monotonic() - started) * 1000),
            output=(str(exc),),
        )
    except OSError as exc:
        return StepResult(
            step.name,
            step.kind,
            StepStatus.FAIL,
            ERR_ARTIFACT,
            duration_ms=int((time.monotonic() - started) * 1000),
            output=(f"{step.uses}: {exc}",),
        )
    if outcome.skipped:
        status = StepStatus.SKIP
    else:
        status = StepStatus.PASS if outcome.code == 0 else StepStatus.FAIL
    return StepResult(
        step.name,
        step.kind,
        status,
        outcome.code,
        duration_ms=int((time.monotonic() - started) * 1000),
        output=outcome.lines,
    )


def run_job(ctx: RunContext, config: PipelineConfig, job: JobDef, env: Mapping[str, str]) -> JobResult:
    log_event(ctx, "info", "pipeline", "job-start", job=job.job_id, steps=len(job.steps))
    results: list[StepResult] = []
    failed = False
    for step in job.steps:
        if failed:
            results.append(StepResult(step.name, step.kind, StepStatus.SKIP, 0, output=("not run: an earlier step failed",)))
            continue
        if step.uses and get_adapter(step.uses).native:
            result = _run_native(ctx, config, job, step, env)
        else:
            result = _run_external(ctx, step, step_argv(step))
        log_event(ctx, "info", "pipeline", "step-finish", job=job.job_id, step=step.name, status=result.status.value, code=result.code)
        results.append(result)
        failed = result.status == StepStatus.FAIL
    job_result = JobResult(job_id=job.job_id, name=job.name, steps=tuple(results))
    log_event(ctx, "info", "pipeline", "job-finish", job=job.job_id, status=job_result.status.value)
    return job_result


def _run_job_isolated(ctx: RunContext, config: PipelineConfig, job: JobDef, env: Mapping[str, str]) -> JobResult:
    """Run one job; an unexpected error fails that job instead of the whole run."""
    try:
        return run_job(ctx, config, job, env)
    except Exception as exc:
        log_event(ctx, "error", "pipeline", "job-crash", job=job.job_id, error=str(exc))
        step = StepResult("internal error", "job", StepStatus.FAIL, ERR_INTERNAL, output=(f"internal error: {exc}",))
        return JobResult(job_id=job.job_id, name=job.name, steps=(step,))


def select_jobs(config: PipelineConfig, job_ids: list[str] | None) -> list[JobDef]:
    if not job_ids:
        return list(config.jobs)
    missing = [job_id for job_id in job_ids if config.get_job(job_id) is None]
    if missing:
        raise ScriptError(
            f"unknown job id(s): {', '.join(sorted(missing))}; known: {', '.join(config.job_ids())}",
            ERR_USER,
            kind="unknown_job",
        )
    return [job for job in config.jobs if job.job_id in set(job_ids)]


def run_pipeline(
    ctx: RunContext,
    config: PipelineConfig,
    job_ids: list[str] | None = None,
    *,
    parallel: bool = True,
    max_workers: int = 4,
    env: Mapping[str, str] | None = None,
) -> RunRecord:
    jobs = select_jobs(config, job_ids)
    job_env: Mapping[str, str] = dict(env or {})
    results: list[JobResult] = []
    if parallel and len(jobs) > 1:
        with ThreadPoolExecutor(max_workers=max(1, int(max_workers))) as pool:
            fut = {pool.submit(_run_job_isolated, ctx, config, job, job_env): job for job in jobs}
            for done in as_completed(fut):
                results.append(done.result())
    else:
        for job in jobs:
            results.append(_run_job_isolated(ctx, config, job, job_env))
    return RunRecord(run_id=ctx.run_id, jobs=tuple(results))
