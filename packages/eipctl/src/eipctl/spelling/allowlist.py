from __future__ import annotations

from pathlib import Path


def _entries(text: str) -> list[str]:
    out: list[str] = []
    for raw in text.splitlines():
        line = raw.split("#", 1)[0].strip()
        if line:
            out.append(line)
    return out


def load_allowlist(path: Path) -> list[str]:
    if not path.is_file():
        return []
    return sorted({entry.lower() for entry in _entries(path.read_text(encoding="utf-8"))})


def normalize_allowlist(path: Path) -> list[str]:
    """Return problems that keep the allow-list from being in canonical form."""
    if not path.is_file():
        return [f"allow-list missing: {path.name}"]
    problems: list[str] = []
    lines = path.read_text(encoding="utf-8").splitlines()
    seen: set[str] = set()
    previous = ""
    for lineno, raw in enumerate(lines, start=1):
        if not raw.strip():
            problems.append(f"{path.name}:{lineno}: blank line")
            continue
        if raw.lstrip().startswith("#"):
            continue
        word = raw.strip()
        if word != raw:
            problems.append(f"{path.name}:{lineno}: surrounding whitespace in `{word}`")
        if word != word.lower():
            problems.append(f"{path.name}:{lineno}: `{word}` must be lowercase")
        key = word.lower()
        if key in seen:
            problems.append(f"{path.name}:{lineno}: duplicate entry `{word}`")
        elif previous and key < previous:
            problems.append(f"{path.name}:{lineno}: `{word}` is out of order")
        seen.add(key)
        previous = max(previous, key)
    return problems


def render_allowlist(words: list[str] | set[str]) -> str:
    ordered = sorted({w.strip().lower() for w in words if w.strip()})
    return "".join(f"{w}\n" for w in ordered)


def write_allowlist(path: Path, words: list[str] | set[str]) -> Path:
    path.write_text(render_allowlist(words), encoding="utf-8")
    return path
