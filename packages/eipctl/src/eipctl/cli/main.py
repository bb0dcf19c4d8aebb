from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .. import __version__
from ..commands import COMMAND_MODULES
from ..core.context import RunContext
from ..core.env import getenv
from ..core.errors import ScriptError
from ..core.exit_codes import ERR_INTERNAL
from ..core.logging import log_event
from .output import render_error, resolve_output_format


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="eipctl", description="proposal corpus CI gating pipeline")
    p.add_argument("--version", action="version", version=f"eipctl {__version__}")
    p.add_argument("--json", action="store_true", help="emit JSON output")
    p.add_argument("--format", choices=["text", "json"], default=None, help="output format")
    p.add_argument("--run-id", help="run identifier for artifacts")
    p.add_argument("--evidence-root", help="evidence root path")
    p.add_argument("--profile", help="profile id")
    p.add_argument("--cwd", help="resolve the repository root from this directory")
    p.add_argument("--config", help="pipeline config path (default: eipctl.yaml or the packaged default)")
    p.add_argument("--log-json", action="store_true", help="emit structured log events as JSON lines")
    vg = p.add_mutually_exclusive_group()
    vg.add_argument("--verbose", action="store_true", help="enable verbose diagnostics")
    vg.add_argument("--quiet", action="store_true", help="only emit errors")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("version", help="print version and git context")
    for module in COMMAND_MODULES:
        module.configure_parser(sub)
    return p


def _version_payload(ctx: RunContext | None) -> dict[str, object]:
    return {
        "schema_version": 1,
        "tool": "eipctl",
        "status": "ok",
        "eipctl_version": __version__,
        "git_sha": ctx.git_sha if ctx else "unknown",
    }


def main(argv: list[str] | None = None) -> int:
    raw_argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    ns = parser.parse_args(raw_argv)
    fmt = resolve_output_format(cli_json=ns.json, cli_format=ns.format, ci_present=bool(getenv("CI")))
    start = Path(ns.cwd) if ns.cwd else None
    if ns.cmd == "version":
        try:
            ctx = RunContext.from_args(ns.run_id, ns.evidence_root, ns.profile, fmt, start=start)  # type: ignore[arg-type]
        except ScriptError:
            ctx = None
        payload = _version_payload(ctx)
        print(json.dumps(payload, sort_keys=True) if fmt == "json" else f"eipctl {__version__}+{payload['git_sha']}")
        return 0

    ctx = None
    try:
        ctx = RunContext.from_args(
            ns.run_id,
            ns.evidence_root,
            ns.profile,
            fmt,  # type: ignore[arg-type]
            ns.verbose,
            ns.quiet,
            ns.log_json,
            ns.config,
            start=start,
        )
        if ctx.verbose:
            log_event(ctx, "info", "cli", "start", cmd=ns.cmd, fmt=ctx.output_format, repo_root=str(ctx.repo_root))
        rc = ns.handler(ctx, ns)
        if ctx.verbose:
            log_event(ctx, "info", "cli", "finish", cmd=ns.cmd, rc=rc)
        return rc
    except ScriptError as exc:
        print(
            render_error(
                as_json=(fmt == "json"),
                message=str(exc),
                code=exc.code,
                kind=exc.kind,
                run_id=(ctx.run_id if ctx else ""),
            ),
            file=sys.stderr,
        )
        return exc.code
    except Exception as exc:  # pragma: no cover
        print(
            render_error(
                as_json=(fmt == "json"),
                message=f"internal error: {exc}",
                code=ERR_INTERNAL,
                kind="internal_error",
                run_id=(ctx.run_id if ctx else ""),
            ),
            file=sys.stderr,
        )
        return ERR_INTERNAL
