from __future__ import annotations

from pathlib import Path
from typing import Callable

from eipctl.checks import get_check, list_checks, run_domain
from eipctl.checks.config import check_allowlist_normalized, check_allowlist_used, check_exemptions_resolve
from eipctl.checks.corpus import (
    check_filename_matches_id,
    check_preamble_well_formed,
    check_required_fields,
    check_requires_resolve,
    check_unique_ids,
)
from eipctl.checks.site import check_site_internal_links
from eipctl.core.exit_codes import ERR_USER
from eipctl.pipeline.config import load_pipeline, parse_pipeline


def _exempting_config(skip: list[str], unchecked: str):
    return parse_pipeline(
        {
            "schema_version": 1,
            "jobs": {
                "eip-validator": {"steps": [{"uses": "eipv", "with": {"skip": skip, "ignore": ["title_max_length"]}}]},
                "eipw-validator": {"steps": [{"uses": "eipw", "with": {"unchecked": unchecked}}]},
            },
        }
    )


def test_all_checks_pass_on_valid_corpus(proposal_repo: Path) -> None:
    code, payload = run_domain(proposal_repo, load_pipeline(proposal_repo), "all")
    assert code == 0, payload
    assert payload["total_count"] == len(list_checks())


def test_unknown_domain_is_user_error(proposal_repo: Path) -> None:
    code, payload = run_domain(proposal_repo, load_pipeline(proposal_repo), "nope")
    assert code == ERR_USER
    assert "unknown domain" in str(payload["error"])


def test_single_check_id_selects_one_row(proposal_repo: Path) -> None:
    code, payload = run_domain(proposal_repo, load_pipeline(proposal_repo), "corpus/unique-ids")
    assert code == 0
    assert payload["total_count"] == 1
    assert get_check("corpus/unique-ids") is not None
    assert get_check("corpus/nope") is None


def test_missing_corpus_directory_fails_rows(tmp_path: Path) -> None:
    code, payload = run_domain(tmp_path, load_pipeline(tmp_path), "corpus")
    assert code == 1
    assert all(row["status"] == "fail" for row in payload["checks"])  # type: ignore[union-attr]


def test_preamble_errors_are_reported_with_location(proposal_repo: Path, write_proposal: Callable[..., Path]) -> None:
    write_proposal(proposal_repo, 3, text="---\neip: 3\nbroken line\n---\n")
    code, errors = check_preamble_well_formed(proposal_repo, load_pipeline(proposal_repo))
    assert code == 1
    assert errors[0].startswith("EIPS/eip-3.md:3: malformed preamble line")


def test_duplicate_numbers_are_reported(proposal_repo: Path, write_proposal: Callable[..., Path]) -> None:
    write_proposal(proposal_repo, 2, name="eip-2-copy.md")
    config = load_pipeline(proposal_repo)
    code, errors = check_unique_ids(proposal_repo, config)
    assert code == 1
    assert errors == ["proposal number 2 is used by more than one document: eip-2-copy.md, eip-2.md"]
    code, errors = check_filename_matches_id(proposal_repo, config)
    assert errors == ["EIPS/eip-2-copy.md:2: [filename_mismatch] file name should be `eip-2.md`"]


def test_required_fields_and_requires(proposal_repo: Path, write_proposal: Callable[..., Path], make_proposal_text: Callable[..., str]) -> None:
    text = make_proposal_text(4, requires="77").replace("status: Draft", "status: Unknown")
    write_proposal(proposal_repo, 4, text=text)
    config = load_pipeline(proposal_repo)
    code, errors = check_required_fields(proposal_repo, config)
    assert code == 1
    assert errors == ["EIPS/eip-4.md:7: [invalid_status] unknown status `Unknown` (expected one of Draft, Review, Last Call, Final, Stagnant, Withdrawn, Living)"]
    code, errors = check_requires_resolve(proposal_repo, config)
    assert code == 1
    assert "required proposal 77 does not exist" in errors[0]


def test_exemptions_silence_skipped_documents(proposal_repo: Path, write_proposal: Callable[..., Path]) -> None:
    write_proposal(proposal_repo, 5, requires="77")
    write_proposal(proposal_repo, 6, title="A title that is definitely longer than forty four characters", requires="78")
    config = _exempting_config(["eip-5.md"], "6")
    assert check_requires_resolve(proposal_repo, config) == (0, [])
    assert check_required_fields(proposal_repo, config) == (0, [])
    assert check_exemptions_resolve(proposal_repo, config) == (0, [])


def test_stale_exemptions_are_reported(proposal_repo: Path) -> None:
    code, errors = check_exemptions_resolve(proposal_repo, _exempting_config(["eip-999.md"], "5069"))
    assert code == 1
    assert errors == [
        "skip list names a missing document: EIPS/eip-999.md",
        "unchecked range `5069` matches no proposal in EIPS/",
    ]


def test_allowlist_checks(proposal_repo: Path) -> None:
    config = load_pipeline(proposal_repo)
    assert check_allowlist_normalized(proposal_repo, config) == (0, [])
    assert check_allowlist_used(proposal_repo, config) == (0, [])
    (proposal_repo / ".codespell-whitelist").write_text("abstract\nnormative\nzzyzx\n", encoding="utf-8")
    code, errors = check_allowlist_used(proposal_repo, config)
    assert code == 1
    assert errors == [".codespell-whitelist: stale entry `zzyzx` does not occur in any spell-checked file"]


def test_allowlist_usage_follows_the_spell_checked_file_set(proposal_repo: Path) -> None:
    config = parse_pipeline(
        {
            "schema_version": 1,
            "jobs": {
                "codespell": {
                    "steps": [
                        {
                            "uses": "codespell",
                            "with": {
                                "check_filenames": True,
                                "ignore_words_file": ".codespell-whitelist",
                                "skip": [".codespell-whitelist", "vendor", "**/*.png"],
                            },
                        }
                    ]
                }
            },
        }
    )
    (proposal_repo / ".codespell-whitelist").write_text("abstract\nfrobnicatr\nnormative\nqwertyx\nzyxwv\n", encoding="utf-8")
    (proposal_repo / "README.md").write_text("The frobnicatr lives outside the corpus.\n", encoding="utf-8")
    (proposal_repo / "vendor").mkdir()
    (proposal_repo / "vendor/notes.md").write_text("qwertyx\n", encoding="utf-8")
    (proposal_repo / "assets").mkdir()
    (proposal_repo / "assets/qwertyx.png").write_bytes(b"\x89PNG\x00qwertyx")
    (proposal_repo / "assets/zyxwv-diagram.txt").write_text("nothing to see\n", encoding="utf-8")
    code, errors = check_allowlist_used(proposal_repo, config)
    assert code == 1
    assert errors == [".codespell-whitelist: stale entry `qwertyx` does not occur in any spell-checked file"]


def test_site_check_uses_htmlproofer_options(tmp_path: Path) -> None:
    config = load_pipeline(tmp_path)
    assert check_site_internal_links(tmp_path, config) == (0, [])
    site = tmp_path / "_site"
    site.mkdir()
    (site / "index.html").write_text('<a href="/EIPS/eip-1">x</a><a href="/missing.html">y</a>', encoding="utf-8")
    (site / "EIPS").mkdir()
    (site / "EIPS/eip-1.html").write_text("ok", encoding="utf-8")
    code, errors = check_site_internal_links(tmp_path, config)
    assert code == 1
    assert errors == ["index.html: broken internal link (a) -> /missing.html"]
