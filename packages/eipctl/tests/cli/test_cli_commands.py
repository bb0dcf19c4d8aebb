from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

from eipctl import __version__
from eipctl.cli.main import main
from eipctl.core.exit_codes import ERR_ARTIFACT, ERR_CONFIG, ERR_CONTEXT, ERR_JOB_FAILED, ERR_USER, ERR_VALIDATION

HEAD = "a" * 40
MERGE = "b" * 40


def _run(repo: Path, capsys: pytest.CaptureFixture[str], *args: str) -> tuple[int, str, str]:
    rc = main(["--cwd", str(repo), "--run-id", "cli-test", *args])
    out = capsys.readouterr()
    return rc, out.out, out.err


def _json(repo: Path, capsys: pytest.CaptureFixture[str], *args: str) -> tuple[int, dict[str, object]]:
    rc, out, _ = _run(repo, capsys, "--json", *args)
    return rc, json.loads(out)


def test_version_works_outside_a_repository(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc = main(["--cwd", str(tmp_path), "version"])
    assert rc == 0
    assert capsys.readouterr().out.strip() == f"eipctl {__version__}+unknown"


def test_commands_outside_a_repository_fail_with_context_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc, _, err = _run(tmp_path, capsys, "check")
    assert rc == ERR_CONTEXT
    assert err.startswith("eipctl: error: unable to resolve repository root")


def test_jobs_list_and_render(proposal_repo: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc, payload = _json(proposal_repo, capsys, "jobs", "list")
    assert rc == 0
    assert payload["jobs"] == [{"id": "corpus", "name": "Corpus Invariants", "steps": 1}]
    rc, out, _ = _run(proposal_repo, capsys, "jobs", "render")
    assert rc == 0
    assert "Corpus checks: <native checks>" in out


def test_jobs_render_default_pipeline(proposal_repo: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (proposal_repo / "eipctl.yaml").unlink()
    rc, out, _ = _run(proposal_repo, capsys, "jobs", "render", "eip-validator")
    assert rc == 0
    assert "eipv EIPS/ --ignore=title_max_length,missing_discussions_to --skip=eip-20-token-standard.md" in out


def test_check_command_passes_on_valid_corpus(proposal_repo: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc, payload = _json(proposal_repo, capsys, "check", "--domain", "corpus")
    assert rc == 0
    assert payload["status"] == "pass"
    rc, out, _ = _run(proposal_repo, capsys, "check", "--domain", "bogus")
    assert rc == ERR_USER
    assert "known domains: config, corpus, site" in out


def test_check_list(proposal_repo: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc, payload = _json(proposal_repo, capsys, "check", "--list")
    assert rc == 0
    assert "corpus/requires-resolve" in [row["id"] for row in payload["checks"]]  # type: ignore[union-attr]


def test_run_writes_record_and_gates_on_failure(proposal_repo: Path, capsys: pytest.CaptureFixture[str], write_proposal) -> None:
    rc, payload = _json(proposal_repo, capsys, "run")
    assert rc == 0
    assert payload["status"] == "pass"
    assert (proposal_repo / "artifacts/evidence/cli-test/pipeline/report.json").is_file()
    write_proposal(proposal_repo, 3, requires="404")
    rc, out, _ = _run(proposal_repo, capsys, "run", "--serial", "--no-report")
    assert rc == ERR_JOB_FAILED
    assert "FAIL corpus (Corpus Invariants)" in out
    assert "required proposal 404 does not exist" in out


def test_run_dry_run_and_unknown_job(proposal_repo: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc, payload = _json(proposal_repo, capsys, "run", "--dry-run")
    assert rc == 0
    assert list(payload["jobs"]) == ["corpus"]  # type: ignore[arg-type]
    rc, _, err = _run(proposal_repo, capsys, "run", "nope")
    assert rc == ERR_USER
    assert "unknown job id(s): nope" in err


def test_run_with_failing_external_job(proposal_repo: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config = proposal_repo / "ci.yaml"
    config.write_text(
        "schema_version: 1\n"
        "jobs:\n"
        "  broken:\n"
        "    steps:\n"
        f"      - run: [{json.dumps(sys.executable)}, -c, 'raise SystemExit(2)']\n"
        "  corpus:\n"
        "    steps:\n"
        "      - uses: checks\n",
        encoding="utf-8",
    )
    rc, payload = _json(proposal_repo, capsys, "--config", "ci.yaml", "run", "--no-report")
    assert rc == ERR_JOB_FAILED
    assert {job["id"]: job["status"] for job in payload["jobs"]} == {"broken": "fail", "corpus": "pass"}  # type: ignore[union-attr]


def test_corpus_list_show_and_lint(proposal_repo: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc, payload = _json(proposal_repo, capsys, "corpus", "list")
    assert rc == 0
    assert [row["eip"] for row in payload["proposals"]] == [1, 2]  # type: ignore[union-attr]
    rc, payload = _json(proposal_repo, capsys, "corpus", "show", "2")
    assert payload["proposal"]["requires"] == [1]  # type: ignore[index]
    rc, _, err = _run(proposal_repo, capsys, "corpus", "show", "9")
    assert rc == ERR_USER
    assert "no proposal numbered 9" in err
    rc, out, _ = _run(proposal_repo, capsys, "corpus", "lint")
    assert rc == 0
    assert "corpus lint: 0 problem(s) in 2 document(s)" in out


def test_handoff_write_read_verify(proposal_repo: Path, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch) -> None:
    rc, out, _ = _run(proposal_repo, capsys, "handoff", "write")
    assert rc == 0
    assert "nothing written" in out
    assert not (proposal_repo / "pr").exists()

    event = proposal_repo / "event.json"
    event.write_text(json.dumps({"number": 42, "pull_request": {"head": {"sha": HEAD}}}), encoding="utf-8")
    monkeypatch.setenv("GITHUB_EVENT_PATH", str(event))
    monkeypatch.setenv("GITHUB_SHA", MERGE)
    rc, payload = _json(proposal_repo, capsys, "handoff", "write", "--manifest", "artifacts/handoff.json")
    assert rc == 0
    assert payload["written"] == ["pr_number", "pr_sha", "merge_sha"]
    assert payload["manifest"] == str(proposal_repo.resolve() / "artifacts/handoff.json")
    assert sorted(p.name for p in (proposal_repo / "pr").iterdir()) == ["merge_sha", "pr_number", "pr_sha"]
    assert (proposal_repo / "pr/pr_number").read_text(encoding="utf-8") == "42\n"
    rc, _, _ = _run(proposal_repo, capsys, "handoff", "read", "--manifest", "artifacts/handoff.json")
    assert rc == 0

    rc, out, _ = _run(proposal_repo, capsys, "handoff", "read")
    assert out.splitlines() == ["pr_number=42", f"pr_sha={HEAD}", f"merge_sha={MERGE}"]
    rc, _, _ = _run(proposal_repo, capsys, "handoff", "verify", "--pr-number", "42", "--pr-sha", HEAD, "--merge-sha", MERGE)
    assert rc == 0
    rc, out, _ = _run(proposal_repo, capsys, "handoff", "verify", "--pr-number", "43", "--pr-sha", HEAD, "--merge-sha", MERGE)
    assert rc == ERR_VALIDATION
    assert "pr_number: expected `43`, found `42`" in out


def test_handoff_refuses_corpus_directory(proposal_repo: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc, _, err = _run(
        proposal_repo, capsys, "--json", "handoff", "write", "--out", "EIPS/pr", "--pr-number", "1", "--pr-sha", HEAD, "--merge-sha", MERGE
    )
    assert rc == ERR_ARTIFACT
    assert json.loads(err)["errors"][0]["kind"] == "forbidden_write_path"
    assert not (proposal_repo / "EIPS/pr").exists()


def test_allowlist_check_and_suggest(proposal_repo: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc, out, _ = _run(proposal_repo, capsys, "allowlist", "check")
    assert rc == 0
    (proposal_repo / "codespell.txt").write_text("./EIPS/eip-1.md:3: Sampel ==> sample\n", encoding="utf-8")
    rc, payload = _json(proposal_repo, capsys, "allowlist", "suggest", "--from", "codespell.txt", "--write")
    assert rc == 0
    assert payload["suggestions"] == ["sampel"]
    assert (proposal_repo / ".codespell-whitelist").read_text(encoding="utf-8") == "abstract\nnormative\nsampel\n"


def test_site_audit(proposal_repo: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc, _, err = _run(proposal_repo, capsys, "site", "audit")
    assert rc == ERR_USER
    assert "build the site first" in err
    site = proposal_repo / "_site"
    site.mkdir()
    (site / "index.html").write_text('<a href="/EIPS/eip-1">one</a>', encoding="utf-8")
    rc, out, _ = _run(proposal_repo, capsys, "site", "audit")
    assert rc == ERR_JOB_FAILED
    assert "broken internal link" in out
    (site / "EIPS").mkdir()
    (site / "EIPS/eip-1.html").write_text("ok", encoding="utf-8")
    rc, _, _ = _run(proposal_repo, capsys, "site", "audit", "--assume-extension")
    assert rc == 0


def test_config_dump_and_validate(proposal_repo: Path, capsys: pytest.CaptureFixture[str]) -> None:
    rc, payload = _json(proposal_repo, capsys, "config", "dump")
    assert rc == 0
    assert list(payload["jobs"]) == ["corpus"]  # type: ignore[arg-type]
    rc, out, _ = _run(proposal_repo, capsys, "config", "validate")
    assert rc == 0
    assert "valid (1 jobs)" in out
    (proposal_repo / "eipctl.yaml").write_text("schema_version: 1\njobs: {}\n", encoding="utf-8")
    rc, _, err = _run(proposal_repo, capsys, "--json", "config", "validate")
    assert rc == ERR_CONFIG
    assert json.loads(err)["errors"][0]["kind"] == "schema_validation"
