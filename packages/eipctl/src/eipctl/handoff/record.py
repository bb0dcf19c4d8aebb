from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from ..core.errors import ScriptError
from ..core.exit_codes import ERR_ARTIFACT, ERR_VALIDATION
from ..core.schema import validate_payload

FILE_NAMES = ("pr_number", "pr_sha", "merge_sha")
MANIFEST_NAME = "handoff.json"
SCHEMA_NAME = "eipctl.handoff.v1"
_NUMBER_RE = re.compile(r"[1-9][0-9]*")
_SHA_RE = re.compile(r"[0-9a-f]{7,40}|[0-9a-f]{64}")


@dataclass(frozen=True)
class HandoffRecord:
    pr_number: str
    pr_sha: str
    merge_sha: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "pr_number", str(self.pr_number))
        object.__setattr__(self, "pr_sha", str(self.pr_sha))
        object.__setattr__(self, "merge_sha", str(self.merge_sha))
        if not _NUMBER_RE.fullmatch(self.pr_number):
            raise ScriptError(
                f"invalid pr_number `{self.pr_number}`: expected a positive integer without padding",
                ERR_VALIDATION,
                kind="handoff_value",
            )
        for key in ("pr_sha", "merge_sha"):
            value = getattr(self, key)
            if not _SHA_RE.fullmatch(value):
                raise ScriptError(
                    f"invalid {key} `{value}`: expected a lowercase hex commit hash",
                    ERR_VALIDATION,
                    kind="handoff_value",
                )

    def as_manifest(self) -> dict[str, object]:
        return {
            "schema_name": SCHEMA_NAME,
            "schema_version": 1,
            "pr_number": self.pr_number,
            "pr_sha": self.pr_sha,
            "merge_sha": self.merge_sha,
        }

    def values(self) -> dict[str, str]:
        return {"pr_number": self.pr_number, "pr_sha": self.pr_sha, "merge_sha": self.merge_sha}


def record_from_event(event: Mapping[str, Any], merge_sha: str | None) -> HandoffRecord | None:
    number = event.get("number")
    pull_request = event.get("pull_request") or {}
    head = pull_request.get("head") or {} if isinstance(pull_request, dict) else {}
    head_sha = head.get("sha") if isinstance(head, dict) else None
    if number in (None, "") or not head_sha or not merge_sha:
        return None
    return HandoffRecord(pr_number=str(number), pr_sha=str(head_sha), merge_sha=str(merge_sha))


def _load_event(path: str) -> dict[str, Any]:
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ScriptError(f"unable to read CI event payload {path}: {exc}", ERR_ARTIFACT, kind="event_payload") from exc
    return payload if isinstance(payload, dict) else {}


def resolve_record(
    env: Mapping[str, str],
    *,
    pr_number: str | None = None,
    pr_sha: str | None = None,
    merge_sha: str | None = None,
) -> HandoffRecord | None:
    """Resolve PR metadata from explicit values, then ``PR_*`` variables, then the CI event payload.

    Returns ``None`` when the triggering event is not a pull request.
    """
    number = pr_number or env.get("PR_NUMBER") or ""
    head = pr_sha or env.get("PR_SHA") or ""
    merge = merge_sha or env.get("MERGE_SHA") or env.get("GITHUB_SHA") or ""
    if number and head and merge:
        return HandoffRecord(pr_number=number, pr_sha=head, merge_sha=merge)
    event_path = env.get("GITHUB_EVENT_PATH")
    if event_path:
        event = _load_event(event_path)
        record = record_from_event(event, merge or None)
        if record is not None:
            return record
    if number or head:
        missing = [name for name, value in (("pr_number", number), ("pr_sha", head), ("merge_sha", merge)) if not value]
        raise ScriptError(f"incomplete pull request metadata: missing {', '.join(missing)}", ERR_VALIDATION, kind="handoff_incomplete")
    return None


def write_handoff(out_dir: Path, record: HandoffRecord, manifest_path: Path | None = None) -> list[Path]:
    """Write the three single-line files into ``out_dir``.

    The manifest is written only when ``manifest_path`` is given and must live
    outside ``out_dir`` so that uploading the directory ships exactly three files.
    """
    manifest = record.as_manifest()
    validate_payload(manifest, "handoff.schema.json")
    if manifest_path is not None and out_dir.resolve() in manifest_path.resolve().parents:
        raise ScriptError(
            f"{manifest_path.name} must not be written into the hand-off directory {out_dir}",
            ERR_ARTIFACT,
            kind="handoff_manifest",
        )
    out_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for name, value in record.values().items():
        path = out_dir / name
        path.write_text(value + "\n", encoding="utf-8")
        written.append(path)
    if manifest_path is not None:
        manifest_path.parent.mkdir(parents=True, exist_ok=True)
        manifest_path.write_text(json.dumps(manifest, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    return written


def _read_single_line(path: Path) -> str:
    if not path.is_file():
        raise ScriptError(f"missing hand-off file: {path.name}", ERR_ARTIFACT, kind="handoff_missing")
    text = path.read_text(encoding="utf-8")
    if text.endswith("\n"):
        text = text[:-1]
    if "\n" in text or "\r" in text:
        raise ScriptError(f"hand-off file {path.name} must contain a single line", ERR_VALIDATION, kind="handoff_multiline")
    if not text.strip():
        raise ScriptError(f"hand-off file {path.name} is empty", ERR_VALIDATION, kind="handoff_empty")
    return text


def read_handoff(in_dir: Path, manifest_path: Path | None = None) -> HandoffRecord:
    values = {name: _read_single_line(in_dir / name) for name in FILE_NAMES}
    record = HandoffRecord(**values)
    if manifest_path is not None:
        if not manifest_path.is_file():
            raise ScriptError(f"missing hand-off manifest: {manifest_path}", ERR_ARTIFACT, kind="handoff_missing")
        try:
            manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ScriptError(f"{MANIFEST_NAME} is not valid JSON: {exc}", ERR_VALIDATION, kind="handoff_manifest") from exc
        validate_payload(manifest, "handoff.schema.json")
        drift = [name for name in FILE_NAMES if manifest.get(name) != getattr(record, name)]
        if drift:
            raise ScriptError(
                f"{MANIFEST_NAME} disagrees with hand-off files for: {', '.join(drift)}",
                ERR_VALIDATION,
                kind="handoff_drift",
            )
    return record


def verify_handoff(in_dir: Path, expected: HandoffRecord, manifest_path: Path | None = None) -> list[str]:
    actual = read_handoff(in_dir, manifest_path)
    return [
        f"{name}: expected `{getattr(expected, name)}`, found `{getattr(actual, name)}`"
        for name in FILE_NAMES
        if getattr(expected, name) != getattr(actual, name)
    ]
