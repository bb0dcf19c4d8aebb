"""Proposal preamble parsing.

A preamble is the block of ``key: value`` lines fenced by ``---`` at the top
of a proposal. Values are kept as raw strings; typing happens in
:mod:`eipctl.corpus.model`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

FENCE = "---"
_KEY_RE = re.compile(r"^([a-z][a-z0-9-]*):(.*)$")


class PreambleError(ValueError):
    def __init__(self, message: str, line: int = 0) -> None:
        super().__init__(message)
        self.message = message
        self.line = line

    def __str__(self) -> str:
        return f"line {self.line}: {self.message}" if self.line else self.message


@dataclass(frozen=True)
class PreambleField:
    key: str
    value: str
    line: int


@dataclass(frozen=True)
class Preamble:
    fields: tuple[PreambleField, ...]
    body_line: int

    @property
    def keys(self) -> tuple[str, ...]:
        return tuple(f.key for f in self.fields)

    def get(self, key: str, default: str | None = None) -> str | None:
        for f in self.fields:
            if f.key == key:
                return f.value
        return default

    def line_of(self, key: str) -> int:
        for f in self.fields:
            if f.key == key:
                return f.line
        return 0

    def as_dict(self) -> dict[str, str]:
        return {f.key: f.value for f in self.fields}


def split_document(text: str) -> tuple[Preamble, str]:
    lines = text.splitlines()
    if not lines or lines[0].strip() != FENCE:
        raise PreambleError("document must start with a `---` preamble fence", 1)
    fields: list[PreambleField] = []
    seen: set[str] = set()
    for idx, raw in enumerate(lines[1:], start=2):
        if raw.strip() == FENCE:
            if not fields:
                raise PreambleError("preamble is empty", idx)
            body = "\n".join(lines[idx:])
            return Preamble(fields=tuple(fields), body_line=idx + 1), body
        match = _KEY_RE.match(raw)
        if not match:
            raise PreambleError(f"malformed preamble line `{raw.strip()}` (expected `key: value`)", idx)
        key, value = match.group(1), match.group(2).strip()
        if key in seen:
            raise PreambleError(f"duplicate preamble key `{key}`", idx)
        if not value:
            raise PreambleError(f"preamble key `{key}` has an empty value", idx)
        seen.add(key)
        fields.append(PreambleField(key=key, value=value, line=idx))
    raise PreambleError("preamble fence is never closed", len(lines))


def parse_preamble(text: str) -> Preamble:
    preamble, _ = split_document(text)
    return preamble
