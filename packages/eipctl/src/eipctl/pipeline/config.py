from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from ..core.errors import ScriptError
from ..core.exit_codes import ERR_CONFIG
from ..core.repo_root import CONFIG_FILE
from ..core.schema import validate_payload
from ..corpus.loader import Exemptions
from ..corpus.ranges import NumberRanges
from ..corpus.rules import unknown_rules
from .adapters import get_adapter
from .model import CorpusSettings, JobDef, PipelineConfig, StepDef

DEFAULT_CONFIG = Path(__file__).resolve().parents[1] / "contracts" / "pipeline.yaml"
PIPELINE_SCHEMA = "pipeline.schema.json"


def resolve_config_path(repo_root: Path, explicit: Path | None = None) -> Path:
    if explicit is not None:
        if not explicit.is_file():
            raise ScriptError(f"pipeline config not found: {explicit}", ERR_CONFIG, kind="config_missing")
        return explicit
    local = repo_root / CONFIG_FILE
    return local if local.is_file() else DEFAULT_CONFIG


def load_yaml(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ScriptError(f"{path}: invalid YAML: {exc}", ERR_CONFIG, kind="config_yaml") from exc


def _step(raw: dict[str, Any], job_id: str, index: int) -> StepDef:
    name = str(raw.get("name") or raw.get("uses") or f"{job_id} step {index + 1}")
    uses = str(raw.get("uses", "") or "")
    options = dict(raw.get("with") or {})
    if uses:
        options = get_adapter(uses).normalize(options)
    elif options:
        raise ScriptError(f"{job_id}/{name}: `with` is only valid on `uses` steps", ERR_CONFIG, kind="invalid_step")
    return StepDef(
        name=name,
        run=tuple(str(arg) for arg in raw.get("run") or ()),
        uses=uses,
        options=options,
        command=tuple(str(arg) for arg in raw.get("command") or ()),
        timeout_seconds=int(raw.get("timeout_seconds", 0) or 0),
    )


def parse_pipeline(payload: Any, source: str = "<memory>") -> PipelineConfig:
    validate_payload(payload, PIPELINE_SCHEMA, code=ERR_CONFIG)
    corpus_raw = dict(payload.get("corpus") or {})
    corpus = CorpusSettings(**{k.replace("-", "_"): str(v) for k, v in corpus_raw.items()})
    jobs: list[JobDef] = []
    for job_id, job_raw in dict(payload["jobs"]).items():
        steps = tuple(_step(dict(step), str(job_id), idx) for idx, step in enumerate(job_raw["steps"]))
        jobs.append(JobDef(job_id=str(job_id), name=str(job_raw.get("name") or job_id), steps=steps))
    config = PipelineConfig(schema_version=int(payload["schema_version"]), corpus=corpus, jobs=tuple(jobs), source=source)
    bad_rules = unknown_rules(set(exemptions_from_config(config).ignore))
    if bad_rules:
        raise ScriptError(f"{source}: unknown lint rule(s) in ignore list: {', '.join(bad_rules)}", ERR_CONFIG, kind="unknown_rule")
    return config


def load_pipeline(repo_root: Path, explicit: Path | None = None) -> PipelineConfig:
    path = resolve_config_path(repo_root, explicit)
    payload = load_yaml(path)
    if not isinstance(payload, dict):
        raise ScriptError(f"{path}: pipeline config root must be a mapping", ERR_CONFIG, kind="config_shape")
    return parse_pipeline(payload, source=str(path))


def exemptions_from_config(config: PipelineConfig) -> Exemptions:
    skip: set[str] = set()
    ignore: set[str] = set()
    spans: list[tuple[int, int]] = []
    for step in config.steps_using("eipv"):
        skip.update(step.options.get("skip", ()))
        ignore.update(step.options.get("ignore", ()))
    for step in config.steps_using("eipw"):
        ranges = step.options.get("unchecked")
        if ranges:
            spans.extend(ranges.spans)
    return Exemptions(skip=frozenset(skip), unchecked=NumberRanges(spans=tuple(sorted(spans))), ignore=frozenset(ignore))


def allowlist_path(config: PipelineConfig) -> str:
    for step in config.steps_using("codespell"):
        if "ignore_words_file" in step.options:
            return str(step.options["ignore_words_file"])
    return config.corpus.allowlist


def config_as_dict(config: PipelineConfig) -> dict[str, Any]:
    def _opt(value: Any) -> Any:
        if isinstance(value, NumberRanges):
            return value.render()
        if isinstance(value, tuple):
            return list(value)
        return value

    return {
        "schema_version": config.schema_version,
        "source": config.source,
        "corpus": {"root": config.corpus.root, "pattern": config.corpus.pattern, "allowlist": config.corpus.allowlist},
        "jobs": {
            job.job_id: {
                "name": job.name,
                "steps": [
                    {
                        "name": step.name,
                        **({"uses": step.uses, "with": {k: _opt(v) for k, v in step.options.items()}} if step.uses else {"run": list(step.run)}),
                        **({"command": list(step.command)} if step.command else {}),
                    }
                    for step in job.steps
                ],
            }
            for job in config.jobs
        },
    }
