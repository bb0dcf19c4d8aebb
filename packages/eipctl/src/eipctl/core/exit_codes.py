from __future__ import annotations

import json
from pathlib import Path

ERROR_REGISTRY = Path(__file__).resolve().parents[1] / "contracts" / "error-registry.json"


def _load_registry() -> dict[str, int]:
    payload = json.loads(ERROR_REGISTRY.read_text(encoding="utf-8"))
    mapping: dict[str, int] = {}
    for row in payload.get("codes", []):
        mapping[str(row["name"])] = int(row["code"])
    return mapping


_REG = _load_registry()

OK = 0
ERR_JOB_FAILED = _REG["EIPCTL_ERR_JOB_FAILED"]
ERR_USER = _REG["EIPCTL_ERR_USER"]
ERR_CONFIG = _REG["EIPCTL_ERR_CONFIG"]
ERR_CONTEXT = _REG["EIPCTL_ERR_CONTEXT"]
ERR_PREREQ = _REG["EIPCTL_ERR_PREREQ"]
ERR_VALIDATION = _REG["EIPCTL_ERR_VALIDATION"]
ERR_ARTIFACT = _REG["EIPCTL_ERR_ARTIFACT"]
ERR_INTERNAL = _REG["EIPCTL_ERR_INTERNAL"]
