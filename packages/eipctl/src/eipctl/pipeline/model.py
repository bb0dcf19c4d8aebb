from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class StepStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    SKIP = "skip"


@dataclass(frozen=True)
class StepDef:
    name: str
    run: tuple[str, ...] = ()
    uses: str = ""
    options: Mapping[str, Any] = field(default_factory=dict)
    command: tuple[str, ...] = ()
    timeout_seconds: int = 0

    @property
    def kind(self) -> str:
        return "uses" if self.uses else "run"


@dataclass(frozen=True)
class JobDef:
    job_id: str
    name: str
    steps: tuple[StepDef, ...]


@dataclass(frozen=True)
class CorpusSettings:
    root: str = "EIPS"
    pattern: str = "eip-*.md"
    allowlist: str = ".codespell-whitelist"


@dataclass(frozen=True)
class PipelineConfig:
    schema_version: int
    corpus: CorpusSettings
    jobs: tuple[JobDef, ...]
    source: str = "<default>"

    def job_ids(self) -> list[str]:
        return [job.job_id for job in self.jobs]

    def get_job(self, job_id: str) -> JobDef | None:
        for job in self.jobs:
            if job.job_id == job_id:
                return job
        return None

    def steps_using(self, adapter_id: str) -> list[StepDef]:
        return [step for job in self.jobs for step in job.steps if step.uses == adapter_id]


@dataclass(frozen=True)
class StepResult:
    name: str
    kind: str
    status: StepStatus
    code: int
    duration_ms: int = 0
    argv: tuple[str, ...] = ()
    output: tuple[str, ...] = ()

    def as_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "kind": self.kind,
            "status": self.status.value,
            "code": self.code,
            "duration_ms": self.duration_ms,
            "argv": list(self.argv),
            "output": list(self.output),
        }


@dataclass(frozen=True)
class JobResult:
    job_id: str
    name: str
    steps: tuple[StepResult, ...]

    @property
    def status(self) -> StepStatus:
        return StepStatus.FAIL if any(s.status == StepStatus.FAIL for s in self.steps) else StepStatus.PASS

    @property
    def failed_step(self) -> StepResult | None:
        for step in self.steps:
            if step.status == StepStatus.FAIL:
                return step
        return None

    @property
    def duration_ms(self) -> int:
        return sum(step.duration_ms for step in self.steps)

    def as_dict(self) -> dict[str, object]:
        failed = self.failed_step
        return {
            "id": self.job_id,
            "name": self.name,
            "status": self.status.value,
            "duration_ms": self.duration_ms,
            "failed_step": failed.name if failed else None,
            "steps": [step.as_dict() for step in self.steps],
        }


@dataclass(frozen=True)
class RunRecord:
    run_id: str
    jobs: tuple[JobResult, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "jobs", tuple(sorted(self.jobs, key=lambda job: job.job_id)))

    @property
    def status(self) -> StepStatus:
        return StepStatus.FAIL if any(job.status == StepStatus.FAIL for job in self.jobs) else StepStatus.PASS

    @property
    def outcomes(self) -> dict[str, str]:
        return {job.job_id: job.status.value for job in self.jobs}

    def as_dict(self) -> dict[str, object]:
        failed = [job for job in self.jobs if job.status == StepStatus.FAIL]
        return {
            "schema_name": "eipctl.run-record.v1",
            "schema_version": 1,
            "tool": "eipctl",
            "run_id": self.run_id,
            "status": self.status.value,
            "total_count": len(self.jobs),
            "failed_count": len(failed),
            "jobs": [job.as_dict() for job in self.jobs],
        }
