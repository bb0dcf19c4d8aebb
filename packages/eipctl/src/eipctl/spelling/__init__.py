"""Spell-check allow-list maintenance and codespell output parsing."""

from .allowlist import load_allowlist, normalize_allowlist, render_allowlist, write_allowlist
from .findings import Finding, parse_codespell_output, suggest_allowlist

__all__ = [
    "Finding",
    "load_allowlist",
    "normalize_allowlist",
    "parse_codespell_output",
    "render_allowlist",
    "suggest_allowlist",
    "write_allowlist",
]
