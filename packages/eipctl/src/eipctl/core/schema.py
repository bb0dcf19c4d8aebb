from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

import jsonschema

from .errors import ScriptError
from .exit_codes import ERR_VALIDATION

SCHEMAS_ROOT = Path(__file__).resolve().parents[1] / "contracts" / "schemas"


@lru_cache(maxsize=None)
def load_schema(name: str) -> dict[str, Any]:
    return json.loads((SCHEMAS_ROOT / name).read_text(encoding="utf-8"))


def validate_payload(payload: Any, schema_name: str, code: int = ERR_VALIDATION) -> None:
    schema = load_schema(schema_name)
    try:
        jsonschema.validate(payload, schema)
    except jsonschema.ValidationError as exc:
        pointer = "/".join(str(p) for p in exc.absolute_path)
        loc = pointer or "<root>"
        raise ScriptError(f"schema validation failed at {loc}: {exc.message}", code, kind="schema_validation") from exc
