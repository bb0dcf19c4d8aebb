from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .model import Proposal, parse_proposal
from .preamble import PreambleError
from .ranges import NumberRanges

DEFAULT_PATTERN = "eip-*.md"


@dataclass(frozen=True)
class CorpusError:
    path: Path
    message: str
    line: int = 0

    def render(self, root: Path) -> str:
        rel = _rel(self.path, root)
        return f"{rel}:{self.line}: {self.message}" if self.line else f"{rel}: {self.message}"


@dataclass(frozen=True)
class Exemptions:
    skip: frozenset[str] = frozenset()
    unchecked: NumberRanges = field(default_factory=NumberRanges)
    ignore: frozenset[str] = frozenset()

    def is_skipped(self, file_name: str, number: int | None = None) -> bool:
        if file_name in self.skip:
            return True
        return number is not None and self.unchecked.contains(number)


@dataclass(frozen=True)
class Corpus:
    root: Path
    proposals: tuple[Proposal, ...]
    errors: tuple[CorpusError, ...] = ()

    @property
    def files(self) -> tuple[Path, ...]:
        return tuple(sorted([p.path for p in self.proposals] + [e.path for e in self.errors]))

    def numbers(self) -> set[int]:
        return {p.number for p in self.proposals if p.number is not None}

    def by_number(self) -> dict[int, list[Proposal]]:
        out: dict[int, list[Proposal]] = {}
        for proposal in self.proposals:
            if proposal.number is not None:
                out.setdefault(proposal.number, []).append(proposal)
        return out

    def get(self, number: int) -> Proposal | None:
        rows = self.by_number().get(number, [])
        return rows[0] if rows else None


def _rel(path: Path, root: Path) -> str:
    try:
        return path.resolve().relative_to(root.resolve()).as_posix()
    except ValueError:
        return path.as_posix()


def _sort_key(proposal: Proposal) -> tuple[int, str]:
    return (proposal.number if proposal.number is not None else -1, proposal.path.name)


def load_corpus(root: Path, pattern: str = DEFAULT_PATTERN) -> Corpus:
    if not root.is_dir():
        raise FileNotFoundError(f"corpus directory missing: {root}")
    proposals: list[Proposal] = []
    errors: list[CorpusError] = []
    for path in sorted(root.glob(pattern)):
        if not path.is_file():
            continue
        try:
            proposals.append(parse_proposal(path))
        except PreambleError as exc:
            errors.append(CorpusError(path=path, message=exc.message, line=exc.line))
        except UnicodeDecodeError as exc:
            errors.append(CorpusError(path=path, message=f"not valid utf-8: {exc.reason}"))
    return Corpus(root=root, proposals=tuple(sorted(proposals, key=_sort_key)), errors=tuple(errors))
