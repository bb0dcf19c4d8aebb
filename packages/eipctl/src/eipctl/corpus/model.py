from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from .preamble import Preamble, split_document

STATUSES = ("Draft", "Review", "Last Call", "Final", "Stagnant", "Withdrawn", "Living")
TYPES = ("Standards Track", "Meta", "Informational")
CATEGORIES = ("Core", "Networking", "Interface", "ERC")
PREAMBLE_ORDER = (
    "eip",
    "title",
    "description",
    "author",
    "discussions-to",
    "status",
    "last-call-deadline",
    "type",
    "category",
    "created",
    "requires",
    "withdrawal-reason",
)

_FILENAME_RE = re.compile(r"^eip-(\d+)\.md$")
_HEADING_RE = re.compile(r"^##\s+(.+?)\s*#*\s*$")


@dataclass(frozen=True)
class Proposal:
    path: Path
    preamble: Preamble
    number: int | None
    title: str
    description: str
    authors: tuple[str, ...]
    discussions_to: str
    status: str
    type: str
    category: str
    created: date | None
    requires: tuple[int, ...]
    last_call_deadline: date | None = None
    withdrawal_reason: str = ""
    sections: tuple[str, ...] = ()
    value_errors: tuple[str, ...] = field(default_factory=tuple)

    @property
    def file_name(self) -> str:
        return self.path.name

    @property
    def file_number(self) -> int | None:
        match = _FILENAME_RE.match(self.path.name)
        return int(match.group(1)) if match else None


def split_authors(raw: str) -> tuple[str, ...]:
    out: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in raw:
        if ch in "<(":
            depth += 1
        elif ch in ">)" and depth:
            depth -= 1
        if ch == "," and depth == 0:
            out.append("".join(current).strip())
            current = []
            continue
        current.append(ch)
    out.append("".join(current).strip())
    return tuple(a for a in out if a)


def parse_requires(raw: str) -> tuple[int, ...]:
    numbers: list[int] = []
    for piece in raw.split(","):
        token = piece.strip()
        if not token:
            continue
        numbers.append(int(token))
    return tuple(numbers)


def parse_sections(body: str) -> tuple[str, ...]:
    sections: list[str] = []
    in_fence = False
    for line in body.splitlines():
        if line.lstrip().startswith("```"):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        match = _HEADING_RE.match(line)
        if match:
            sections.append(match.group(1).strip())
    return tuple(sections)


def _parse_date(raw: str | None, key: str, errors: list[str]) -> date | None:
    if raw is None:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        errors.append(f"`{key}` must be an ISO date (YYYY-MM-DD), got `{raw}`")
        return None


def parse_proposal_text(path: Path, text: str) -> Proposal:
    preamble, body = split_document(text)
    errors: list[str] = []
    number: int | None = None
    raw_number = preamble.get("eip")
    if raw_number is not None:
        try:
            number = int(raw_number)
        except ValueError:
            errors.append(f"`eip` must be an integer, got `{raw_number}`")
    requires: tuple[int, ...] = ()
    raw_requires = preamble.get("requires")
    if raw_requires is not None:
        try:
            requires = parse_requires(raw_requires)
        except ValueError:
            errors.append(f"`requires` must be a comma separated list of integers, got `{raw_requires}`")
    return Proposal(
        path=path,
        preamble=preamble,
        number=number,
        title=preamble.get("title", "") or "",
        description=preamble.get("description", "") or "",
        authors=split_authors(preamble.get("author", "") or ""),
        discussions_to=preamble.get("discussions-to", "") or "",
        status=preamble.get("status", "") or "",
        type=preamble.get("type", "") or "",
        category=preamble.get("category", "") or "",
        created=_parse_date(preamble.get("created"), "created", errors),
        requires=requires,
        last_call_deadline=_parse_date(preamble.get("last-call-deadline"), "last-call-deadline", errors),
        withdrawal_reason=preamble.get("withdrawal-reason", "") or "",
        sections=parse_sections(body),
        value_errors=tuple(errors),
    )


def parse_proposal(path: Path) -> Proposal:
    return parse_proposal_text(path, path.read_text(encoding="utf-8"))
