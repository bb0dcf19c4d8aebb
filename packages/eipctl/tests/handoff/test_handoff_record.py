from __future__ import annotations

import json
import tempfile
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from eipctl.core.errors import ScriptError
from eipctl.core.exit_codes import ERR_ARTIFACT, ERR_VALIDATION
from eipctl.handoff import HandoffRecord, read_handoff, resolve_record, verify_handoff, write_handoff

HEAD = "a" * 40
MERGE = "b" * 40


def test_write_handoff_emits_three_single_line_files(tmp_path: Path) -> None:
    written = write_handoff(tmp_path / "pr", HandoffRecord("42", HEAD, MERGE))
    assert [p.name for p in written] == ["pr_number", "pr_sha", "merge_sha"]
    assert sorted(p.name for p in (tmp_path / "pr").iterdir()) == ["merge_sha", "pr_number", "pr_sha"]
    assert (tmp_path / "pr/pr_number").read_text(encoding="utf-8") == "42\n"
    assert read_handoff(tmp_path / "pr") == HandoffRecord("42", HEAD, MERGE)


def test_manifest_is_written_outside_the_handoff_directory(tmp_path: Path) -> None:
    manifest = tmp_path / "evidence/handoff.json"
    write_handoff(tmp_path / "pr", HandoffRecord("42", HEAD, MERGE), manifest)
    assert sorted(p.name for p in (tmp_path / "pr").iterdir()) == ["merge_sha", "pr_number", "pr_sha"]
    payload = json.loads(manifest.read_text(encoding="utf-8"))
    assert payload["schema_name"] == "eipctl.handoff.v1"
    assert read_handoff(tmp_path / "pr", manifest) == HandoffRecord("42", HEAD, MERGE)
    with pytest.raises(ScriptError) as exc:
        write_handoff(tmp_path / "pr", HandoffRecord("42", HEAD, MERGE), tmp_path / "pr/meta/handoff.json")
    assert exc.value.kind == "handoff_manifest"
    assert not (tmp_path / "pr/meta").exists()


def test_record_rejects_non_canonical_values() -> None:
    assert HandoffRecord(7, HEAD, MERGE).pr_number == "7"  # type: ignore[arg-type]
    for bad in (
        (" 7 ", HEAD, MERGE),
        ("07", HEAD, MERGE),
        ("7", HEAD.upper(), MERGE),
        ("7", HEAD, f"{MERGE}\n"),
        ("0", HEAD, MERGE),
        ("7", "not-a-sha", MERGE),
        ("7", HEAD, ""),
    ):
        with pytest.raises(ScriptError) as exc:
            HandoffRecord(*bad)
        assert exc.value.code == ERR_VALIDATION


def test_resolve_record_prefers_explicit_values() -> None:
    env = {"PR_NUMBER": "1", "PR_SHA": "c" * 40, "MERGE_SHA": "d" * 40}
    record = resolve_record(env, pr_number="9", pr_sha=HEAD, merge_sha=MERGE)
    assert record == HandoffRecord("9", HEAD, MERGE)
    assert resolve_record(env) == HandoffRecord("1", "c" * 40, "d" * 40)


def test_resolve_record_reads_pull_request_event(tmp_path: Path) -> None:
    event = tmp_path / "event.json"
    event.write_text(json.dumps({"number": 5069, "pull_request": {"head": {"sha": HEAD}}}), encoding="utf-8")
    record = resolve_record({"GITHUB_EVENT_PATH": str(event), "GITHUB_SHA": MERGE})
    assert record == HandoffRecord("5069", HEAD, MERGE)


def test_push_event_resolves_to_nothing(tmp_path: Path) -> None:
    event = tmp_path / "event.json"
    event.write_text(json.dumps({"ref": "refs/heads/master", "after": HEAD}), encoding="utf-8")
    assert resolve_record({"GITHUB_EVENT_PATH": str(event), "GITHUB_SHA": MERGE}) is None
    assert resolve_record({}) is None


def test_partial_metadata_is_rejected() -> None:
    with pytest.raises(ScriptError) as exc:
        resolve_record({"PR_NUMBER": "3"})
    assert exc.value.kind == "handoff_incomplete"
    assert "pr_sha" in str(exc.value)


def test_unreadable_event_payload(tmp_path: Path) -> None:
    with pytest.raises(ScriptError) as exc:
        resolve_record({"GITHUB_EVENT_PATH": str(tmp_path / "missing.json")})
    assert exc.value.code == ERR_ARTIFACT


def test_read_handoff_rejects_multiline_and_missing(tmp_path: Path) -> None:
    out = tmp_path / "pr"
    write_handoff(out, HandoffRecord("42", HEAD, MERGE))
    (out / "pr_sha").write_text(f"{HEAD}\nextra\n", encoding="utf-8")
    with pytest.raises(ScriptError) as exc:
        read_handoff(out)
    assert exc.value.kind == "handoff_multiline"
    (out / "pr_sha").unlink()
    with pytest.raises(ScriptError) as exc:
        read_handoff(out)
    assert exc.value.kind == "handoff_missing"


def test_manifest_drift_is_detected(tmp_path: Path) -> None:
    out = tmp_path / "pr"
    manifest = tmp_path / "handoff.json"
    write_handoff(out, HandoffRecord("42", HEAD, MERGE), manifest)
    (out / "pr_number").write_text("43\n", encoding="utf-8")
    assert read_handoff(out).pr_number == "43"
    with pytest.raises(ScriptError) as exc:
        read_handoff(out, manifest)
    assert exc.value.kind == "handoff_drift"
    with pytest.raises(ScriptError) as exc:
        read_handoff(out, tmp_path / "absent.json")
    assert exc.value.kind == "handoff_missing"


def test_verify_handoff_lists_mismatches(tmp_path: Path) -> None:
    out = tmp_path / "pr"
    write_handoff(out, HandoffRecord("42", HEAD, MERGE))
    assert verify_handoff(out, HandoffRecord("42", HEAD, MERGE)) == []
    mismatches = verify_handoff(out, HandoffRecord("41", HEAD, MERGE))
    assert mismatches == ["pr_number: expected `41`, found `42`"]


_SHAS = st.from_regex(r"[0-9a-f]{40}|[0-9a-f]{64}", fullmatch=True)


@pytest.mark.unit
@settings(deadline=None)
@given(st.integers(1, 10**6), _SHAS, _SHAS)
def test_written_handoff_reads_back_unchanged(number: int, head: str, merge: str) -> None:
    record = HandoffRecord(str(number), head, merge)
    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp)
        write_handoff(root / "pr", record, root / "handoff.json")
        assert read_handoff(root / "pr") == record
        assert read_handoff(root / "pr", root / "handoff.json") == record
        assert (root / "pr/pr_number").read_bytes() == f"{number}\n".encode()
