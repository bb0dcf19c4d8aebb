from __future__ import annotations

import socket
from pathlib import Path
from typing import Callable

import pytest
from hypothesis import settings
from hypothesis.database import DirectoryBasedExampleDatabase

_ALLOWED_MARKERS = {"unit", "integration", "slow"}

_ROOT = Path(__file__).resolve().parents[3]
_HYPOTHESIS_DB = _ROOT / "artifacts/eipctl/.hypothesis/examples"
_HYPOTHESIS_DB.parent.mkdir(parents=True, exist_ok=True)
settings.register_profile("eipctl", database=DirectoryBasedExampleDatabase(_HYPOTHESIS_DB))
settings.load_profile("eipctl")

_CI_ENV = ("CI", "PR_NUMBER", "PR_SHA", "MERGE_SHA", "GITHUB_SHA", "GITHUB_EVENT_PATH", "RUN_ID", "PROFILE", "EVIDENCE_ROOT")

SECTIONS_BODY = """
## Abstract

A short abstract.

## Specification

The normative part.

## Security Considerations

None known.

## Copyright

Copyright and related rights waived via CC0.
"""

MINIMAL_CONFIG = """schema_version: 1
jobs:
  corpus:
    name: Corpus Invariants
    steps:
      - name: Corpus checks
        uses: checks
        with:
          domain: all
"""


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        names = {mark.name for mark in item.iter_markers()}
        if not names.intersection(_ALLOWED_MARKERS):
            item.add_marker("unit")


@pytest.fixture(autouse=True)
def no_network_for_unit(request: pytest.FixtureRequest, monkeypatch: pytest.MonkeyPatch) -> None:
    if request.node.get_closest_marker("integration") or request.node.get_closest_marker("slow"):
        return

    def _blocked(*_args: object, **_kwargs: object) -> socket.socket:
        raise RuntimeError("network disabled in unit tests")

    def _blocked_connect(*_args: object, **_kwargs: object) -> None:
        raise RuntimeError("network disabled in unit tests")

    monkeypatch.setattr(socket, "create_connection", _blocked)
    monkeypatch.setattr(socket.socket, "connect", _blocked_connect)


@pytest.fixture(autouse=True)
def clean_ci_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _CI_ENV:
        monkeypatch.delenv(key, raising=False)


def proposal_text(
    number: int,
    *,
    title: str | None = None,
    type_: str = "Meta",
    category: str | None = None,
    requires: str | None = None,
    status: str = "Draft",
    extra: str = "",
    body: str = SECTIONS_BODY,
) -> str:
    lines = [
        "---",
        f"eip: {number}",
        f"title: {title or f'Sample proposal {number}'}",
        "description: A sample proposal used by the test suite",
        "author: Alice Example (@alice), Bob Example <bob@example.org>",
        f"discussions-to: https://ethereum-magicians.org/t/sample/{number}",
        f"status: {status}",
        f"type: {type_}",
    ]
    if category:
        lines.append(f"category: {category}")
    lines.append("created: 2020-01-01")
    if requires:
        lines.append(f"requires: {requires}")
    if extra:
        lines.append(extra)
    lines.append("---")
    return "\n".join(lines) + "\n" + body


@pytest.fixture
def write_proposal() -> Callable[..., Path]:
    def _write(repo: Path, number: int, name: str | None = None, text: str | None = None, **kwargs: object) -> Path:
        path = repo / "EIPS" / (name or f"eip-{number}.md")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text if text is not None else proposal_text(number, **kwargs), encoding="utf-8")  # type: ignore[arg-type]
        return path

    return _write


@pytest.fixture
def proposal_repo(tmp_path: Path, write_proposal: Callable[..., Path]) -> Path:
    repo = tmp_path / "repo"
    (repo / ".git").mkdir(parents=True)
    write_proposal(repo, 1)
    write_proposal(repo, 2, type_="Standards Track", category="ERC", requires="1")
    (repo / ".codespell-whitelist").write_text("abstract\nnormative\n", encoding="utf-8")
    (repo / "eipctl.yaml").write_text(MINIMAL_CONFIG, encoding="utf-8")
    return repo


@pytest.fixture
def make_proposal_text() -> Callable[..., str]:
    return proposal_text
