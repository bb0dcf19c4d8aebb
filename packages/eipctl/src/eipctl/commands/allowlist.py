from __future__ import annotations

import argparse
import json
from pathlib import Path

from ..core.context import RunContext
from ..core.errors import ScriptError
from ..core.exit_codes import ERR_JOB_FAILED, ERR_USER
from ..pipeline.config import allowlist_path
from ..spelling import load_allowlist, normalize_allowlist, parse_codespell_output, suggest_allowlist, write_allowlist
from ._shared import SubParsers, as_json, envelope, pipeline_config


def _check(ctx: RunContext, path: Path) -> int:
    problems = normalize_allowlist(path)
    if as_json(ctx):
        status = "fail" if problems else "ok"
        print(json.dumps({**envelope(ctx, status), "path": path.name, "problems": problems}, sort_keys=True))
    elif problems:
        for line in problems:
            print(f"- {line}")
    else:
        print(f"{path.name}: ok")
    return ERR_JOB_FAILED if problems else 0


def _suggest(ctx: RunContext, ns: argparse.Namespace, path: Path) -> int:
    source = Path(ns.from_file)
    if not source.is_absolute():
        source = ctx.repo_root / source
    if not source.is_file():
        raise ScriptError(f"codespell output not found: {ns.from_file}", ERR_USER, kind="missing_input")
    current = load_allowlist(path)
    findings = parse_codespell_output(source.read_text(encoding="utf-8"))
    words = suggest_allowlist(findings, current)
    if ns.write and words:
        write_allowlist(path, set(current) | set(words))
    if as_json(ctx):
        payload = {
            **envelope(ctx, "ok"),
            "findings": len(findings),
            "suggestions": words,
            "written": bool(ns.write and words),
        }
        print(json.dumps(payload, sort_keys=True))
    else:
        for word in words:
            print(word)
        if ns.write and words:
            print(f"added {len(words)} word(s) to {path.name}")
    return 0


def run_allowlist_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    path = ctx.repo_root / allowlist_path(pipeline_config(ctx))
    if ns.allowlist_cmd == "check":
        return _check(ctx, path)
    return _suggest(ctx, ns, path)


def configure_parser(sub: SubParsers) -> None:
    p = sub.add_parser("allowlist", help="maintain the spelling allow-list")
    allow_sub = p.add_subparsers(dest="allowlist_cmd", required=True)
    allow_sub.add_parser("check", help="verify the allow-list is in canonical form")
    suggest = allow_sub.add_parser("suggest", help="propose allow-list entries from codespell output")
    suggest.add_argument("--from", dest="from_file", required=True, help="file holding codespell output")
    suggest.add_argument("--write", action="store_true", help="merge the suggestions into the allow-list")
    p.set_defaults(handler=run_allowlist_command)
