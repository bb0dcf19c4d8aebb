from __future__ import annotations

import os
import re
from fnmatch import fnmatch
from pathlib import Path
from typing import Iterator

from ..corpus.loader import load_corpus
from ..pipeline.config import allowlist_path, exemptions_from_config
from ..pipeline.model import PipelineConfig
from ..spelling.allowlist import load_allowlist, normalize_allowlist

_WORD_RE = re.compile(r"[A-Za-z][A-Za-z']*")


def check_allowlist_normalized(repo_root: Path, config: PipelineConfig) -> tuple[int, list[str]]:
    path = repo_root / allowlist_path(config)
    if not path.exists():
        return 0, []
    errors = normalize_allowlist(path)
    return (0 if not errors else 1), errors


def _spellchecked_files(repo_root: Path, skip: tuple[str, ...], exclude: Path) -> Iterator[Path]:
    """Yield the files a ``codespell`` run from the repository root would read."""

    def skipped(rel: str, name: str) -> bool:
        return any(fnmatch(name, pat) or fnmatch(rel, pat) or fnmatch(f"./{rel}", pat) for pat in skip)

    for current, dirs, files in os.walk(repo_root):
        base = Path(current)
        dirs[:] = sorted(d for d in dirs if d != ".git" and not skipped((base / d).relative_to(repo_root).as_posix(), d))
        for name in sorted(files):
            path = base / name
            if path == exclude or skipped(path.relative_to(repo_root).as_posix(), name):
                continue
            yield path


def check_allowlist_used(repo_root: Path, config: PipelineConfig) -> tuple[int, list[str]]:
    path = repo_root / allowlist_path(config)
    words = load_allowlist(path)
    if not words:
        return 0, []
    steps = config.steps_using("codespell")
    skip = tuple(pat for step in steps for pat in step.options.get("skip", ()))
    check_filenames = any(step.options.get("check_filenames") for step in steps)
    seen: set[str] = set()
    for file in _spellchecked_files(repo_root, skip, path):
        if check_filenames:
            seen.add(file.name.lower())
            seen.update(token.lower() for token in _WORD_RE.findall(file.name))
        data = file.read_bytes()
        if b"\x00" in data[:1024]:
            continue
        seen.update(token.lower() for token in _WORD_RE.findall(data.decode("utf-8", errors="ignore")))
    errors = [f"{path.name}: stale entry `{word}` does not occur in any spell-checked file" for word in words if word not in seen]
    return (0 if not errors else 1), errors


def check_exemptions_resolve(repo_root: Path, config: PipelineConfig) -> tuple[int, list[str]]:
    exemptions = exemptions_from_config(config)
    corpus_root = repo_root / config.corpus.root
    errors: list[str] = []
    for name in sorted(exemptions.skip):
        if not (corpus_root / name).is_file():
            errors.append(f"skip list names a missing document: {config.corpus.root}/{name}")
    if exemptions.unchecked:
        known = load_corpus(corpus_root, config.corpus.pattern).numbers()
        for lo, hi in exemptions.unchecked.spans:
            if not any(lo <= n <= hi for n in known):
                label = str(lo) if lo == hi else f"{lo}-{hi}"
                errors.append(f"unchecked range `{label}` matches no proposal in {config.corpus.root}/")
    return (0 if not errors else 1), errors
