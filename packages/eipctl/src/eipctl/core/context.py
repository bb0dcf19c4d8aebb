from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from .clock import utc_now
from .env import getenv
from .errors import ScriptError
from .exit_codes import ERR_CONTEXT
from .git import read_git_context
from .paths import evidence_root_path
from .repo_root import find_repo_root

OutputFormat = Literal["text", "json"]


@dataclass(frozen=True)
class RunContext:
    run_id: str
    profile: str
    repo_root: Path
    evidence_root: Path
    output_format: OutputFormat
    verbose: bool
    quiet: bool
    log_json: bool
    git_sha: str
    git_dirty: bool
    config_path: Path | None = None

    @property
    def run_dir(self) -> Path:
        return self.evidence_root / self.run_id

    @classmethod
    def from_args(
        cls,
        run_id: str | None,
        evidence_root: str | None,
        profile: str | None,
        output_format: OutputFormat = "text",
        verbose: bool = False,
        quiet: bool = False,
        log_json: bool = False,
        config_path: str | None = None,
        start: Path | None = None,
    ) -> "RunContext":
        try:
            root = find_repo_root(start)
        except RuntimeError as exc:
            raise ScriptError(f"{exc}; run from inside a proposal repository or pass --cwd", ERR_CONTEXT, kind="repo_root") from exc
        git_ctx = read_git_context(root)
        default_run = f"eipctl-{utc_now().strftime('%Y%m%d-%H%M%S')}-{git_ctx.sha}"
        resolved_run_id = run_id or getenv("RUN_ID", default_run) or default_run
        resolved_profile = profile or getenv("PROFILE", "local") or "local"
        resolved_config = None
        if config_path:
            raw = Path(config_path)
            resolved_config = raw.resolve() if raw.is_absolute() else (root / raw).resolve()
        return cls(
            run_id=resolved_run_id,
            profile=resolved_profile,
            repo_root=root,
            evidence_root=evidence_root_path(root, evidence_root or getenv("EVIDENCE_ROOT")),
            output_format=output_format,
            verbose=verbose,
            quiet=quiet,
            log_json=log_json,
            git_sha=git_ctx.sha,
            git_dirty=git_ctx.is_dirty,
            config_path=resolved_config,
        )
