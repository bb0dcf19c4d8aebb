"""eipctl core package."""
from .context import RunContext
from .errors import ScriptError
from .fs import ensure_evidence_path
from .logging import log_event
from .repo_root import find_repo_root, try_find_repo_root
from .schema import validate_payload
from .serialize import dumps_json

__all__ = [
    "RunContext",
    "ScriptError",
    "dumps_json",
    "ensure_evidence_path",
    "find_repo_root",
    "log_event",
    "try_find_repo_root",
    "validate_payload",
]
