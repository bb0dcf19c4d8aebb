from __future__ import annotations

from pathlib import Path


def evidence_root_path(repo_root: Path, configured: str | None) -> Path:
    raw = Path(configured or "artifacts/evidence")
    return (repo_root / raw).resolve() if not raw.is_absolute() else raw.resolve()
