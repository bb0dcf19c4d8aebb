from __future__ import annotations

import re
from dataclasses import dataclass

_LINE_RE = re.compile(r"^(?P<path>.+?):(?P<line>\d+):\s*(?P<word>\S+)\s+==>\s+(?P<fix>.+?)\s*$")
_FILENAME_RE = re.compile(r"^(?P<path>.+?):\s*(?P<word>\S+)\s+==>\s+(?P<fix>.+?)\s*$")


@dataclass(frozen=True)
class Finding:
    path: str
    line: int
    word: str
    suggestions: tuple[str, ...]


def _split_fix(raw: str) -> tuple[str, ...]:
    text = raw.split("|", 1)[0]
    return tuple(part.strip() for part in text.split(",") if part.strip())


def parse_codespell_output(text: str) -> list[Finding]:
    """Parse ``path:line: word ==> fix`` lines; filename findings carry line 0."""
    findings: list[Finding] = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line or "==>" not in line:
            continue
        match = _LINE_RE.match(line)
        if match:
            findings.append(Finding(match.group("path"), int(match.group("line")), match.group("word"), _split_fix(match.group("fix"))))
            continue
        match = _FILENAME_RE.match(line)
        if match:
            findings.append(Finding(match.group("path"), 0, match.group("word"), _split_fix(match.group("fix"))))
    return findings


def suggest_allowlist(findings: list[Finding], allowlist: list[str] | set[str]) -> list[str]:
    allowed = {w.lower() for w in allowlist}
    return sorted({f.word.lower() for f in findings} - allowed)
