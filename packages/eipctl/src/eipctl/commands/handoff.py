from __future__ import annotations

import argparse
import json
from pathlib import Path

from ..core.context import RunContext
from ..core.env import environ
from ..core.exit_codes import ERR_VALIDATION
from ..core.fs import ensure_output_dir
from ..handoff import HandoffRecord, read_handoff, resolve_record, verify_handoff, write_handoff
from ._shared import SubParsers, as_json, envelope


def _write(ctx: RunContext, ns: argparse.Namespace) -> int:
    record = resolve_record(environ(), pr_number=ns.pr_number, pr_sha=ns.pr_sha, merge_sha=ns.merge_sha)
    if record is None:
        if as_json(ctx):
            print(json.dumps({**envelope(ctx, "skip"), "written": []}, sort_keys=True))
        else:
            print("handoff: not a pull request event; nothing written")
        return 0
    out_dir = ensure_output_dir(ctx, Path(ns.out))
    manifest = _manifest_arg(ctx, ns)
    if manifest is not None:
        manifest = ensure_output_dir(ctx, manifest.parent) / manifest.name
    written = write_handoff(out_dir, record, manifest)
    if as_json(ctx):
        payload = {
            **envelope(ctx, "ok"),
            "record": record.as_manifest(),
            "written": [p.name for p in written],
            "manifest": str(manifest) if manifest else None,
        }
        print(json.dumps(payload, sort_keys=True))
    else:
        print(f"handoff: wrote {', '.join(p.name for p in written)} to {out_dir}")
    return 0


def _resolve_dir(ctx: RunContext, raw: str) -> Path:
    path = Path(raw)
    return path if path.is_absolute() else ctx.repo_root / path


def _manifest_arg(ctx: RunContext, ns: argparse.Namespace) -> Path | None:
    return _resolve_dir(ctx, ns.manifest) if ns.manifest else None


def _read(ctx: RunContext, ns: argparse.Namespace) -> int:
    record = read_handoff(_resolve_dir(ctx, ns.dir), _manifest_arg(ctx, ns))
    if as_json(ctx):
        print(json.dumps({**envelope(ctx, "ok"), "record": record.as_manifest()}, sort_keys=True))
    else:
        for key, value in record.values().items():
            print(f"{key}={value}")
    return 0


def _verify(ctx: RunContext, ns: argparse.Namespace) -> int:
    expected = HandoffRecord(pr_number=ns.pr_number, pr_sha=ns.pr_sha, merge_sha=ns.merge_sha)
    mismatches = verify_handoff(_resolve_dir(ctx, ns.dir), expected, _manifest_arg(ctx, ns))
    if as_json(ctx):
        status = "fail" if mismatches else "ok"
        print(json.dumps({**envelope(ctx, status), "mismatches": mismatches}, sort_keys=True))
    elif mismatches:
        for line in mismatches:
            print(f"- {line}")
    else:
        print("handoff: matches expected metadata")
    return ERR_VALIDATION if mismatches else 0


def run_handoff_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    if ns.handoff_cmd == "write":
        return _write(ctx, ns)
    if ns.handoff_cmd == "read":
        return _read(ctx, ns)
    return _verify(ctx, ns)


def configure_parser(sub: SubParsers) -> None:
    p = sub.add_parser("handoff", help="write or inspect the pull-request hand-off artifact")
    handoff_sub = p.add_subparsers(dest="handoff_cmd", required=True)
    write = handoff_sub.add_parser("write", help="resolve PR metadata and write pr_number, pr_sha and merge_sha")
    write.add_argument("--out", default="pr", help="output directory (default: pr)")
    write.add_argument("--pr-number")
    write.add_argument("--pr-sha")
    write.add_argument("--merge-sha")
    write.add_argument("--manifest", help="also record handoff.json at this path, outside the output directory")
    read = handoff_sub.add_parser("read", help="read and validate a hand-off directory")
    read.add_argument("dir", nargs="?", default="pr")
    read.add_argument("--manifest", help="cross-check the files against this handoff.json")
    verify = handoff_sub.add_parser("verify", help="compare a hand-off directory to expected values")
    verify.add_argument("dir", nargs="?", default="pr")
    verify.add_argument("--manifest", help="cross-check the files against this handoff.json")
    verify.add_argument("--pr-number", required=True)
    verify.add_argument("--pr-sha", required=True)
    verify.add_argument("--merge-sha", required=True)
    p.set_defaults(handler=run_handoff_command)
