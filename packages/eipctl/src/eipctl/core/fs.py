from __future__ import annotations

import json
from pathlib import Path

from .context import RunContext
from .errors import ScriptError
from .exit_codes import ERR_ARTIFACT
from .repo_root import CORPUS_DIR


def _refuse_corpus(ctx: RunContext, resolved: Path) -> None:
    forbidden = (ctx.repo_root / CORPUS_DIR).resolve()
    if resolved == forbidden or forbidden in resolved.parents:
        raise ScriptError(f"forbidden write path under {CORPUS_DIR}/: {resolved}", ERR_ARTIFACT, kind="forbidden_write_path")


def ensure_evidence_path(ctx: RunContext, path: Path) -> Path:
    resolved = path.resolve() if path.is_absolute() else (ctx.repo_root / path).resolve()
    _refuse_corpus(ctx, resolved)
    root = ctx.evidence_root.resolve()
    if resolved == root or root in resolved.parents:
        resolved.parent.mkdir(parents=True, exist_ok=True)
        return resolved
    raise ScriptError(f"forbidden write path outside evidence root: {resolved}", ERR_ARTIFACT, kind="forbidden_write_path")


def ensure_output_dir(ctx: RunContext, path: Path) -> Path:
    """Resolve an explicitly requested output directory; only the corpus is off limits."""
    resolved = path.resolve() if path.is_absolute() else (ctx.repo_root / path).resolve()
    _refuse_corpus(ctx, resolved)
    resolved.mkdir(parents=True, exist_ok=True)
    return resolved


def write_json(ctx: RunContext, path: Path, payload: dict[str, object]) -> Path:
    out = ensure_evidence_path(ctx, path)
    out.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    return out
