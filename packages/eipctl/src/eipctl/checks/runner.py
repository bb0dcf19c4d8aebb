from __future__ import annotations

import time
from pathlib import Path

from ..core.exit_codes import ERR_USER
from ..pipeline.model import PipelineConfig
from .registry import CHECKS


def run_domain(repo_root: Path, config: PipelineConfig, domain: str) -> tuple[int, dict[str, object]]:
    selected = [c for c in CHECKS if domain == "all" or c.domain == domain or c.check_id == domain]
    if not selected:
        return ERR_USER, {"schema_version": 1, "tool": "eipctl", "status": "fail", "error": f"unknown domain `{domain}`"}

    rows: list[dict[str, object]] = []
    failed = 0
    for chk in selected:
        start = time.perf_counter()
        try:
            code, errors = chk.fn(repo_root, config)
        except FileNotFoundError as exc:
            code, errors = 1, [str(exc)]
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        if code != 0:
            failed += 1
        rows.append(
            {
                "id": chk.check_id,
                "domain": chk.domain,
                "description": chk.description,
                "status": "pass" if code == 0 else "fail",
                "duration_ms": elapsed_ms,
                "budget_ms": chk.budget_ms,
                "budget_status": "pass" if elapsed_ms <= chk.budget_ms else "warn",
                "errors": errors,
            }
        )
    payload = {
        "schema_version": 1,
        "tool": "eipctl",
        "kind": "checks-runner",
        "domain": domain,
        "status": "pass" if failed == 0 else "fail",
        "failed_count": failed,
        "total_count": len(rows),
        "checks": rows,
    }
    return (0 if failed == 0 else 1), payload
