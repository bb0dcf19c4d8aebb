from __future__ import annotations

import argparse
import json
from pathlib import Path

from ..core.context import RunContext
from ..core.errors import ScriptError
from ..core.exit_codes import ERR_JOB_FAILED, ERR_USER
from ..site import AuditOptions, audit_site
from ._shared import SubParsers, as_json, envelope


def run_site_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    site = Path(ns.site_dir)
    if not site.is_absolute():
        site = ctx.repo_root / site
    if not site.is_dir():
        raise ScriptError(f"site directory not found: {ns.site_dir}; build the site first", ERR_USER, kind="missing_site")
    problems = audit_site(site, AuditOptions(assume_extension=ns.assume_extension, empty_alt_ignore=ns.empty_alt_ignore))
    lines = [p.render(site) for p in problems]
    if as_json(ctx):
        status = "fail" if lines else "ok"
        print(json.dumps({**envelope(ctx, status), "problems": lines}, sort_keys=True))
    else:
        for line in lines:
            print(line)
        print(f"site audit: {len(lines)} problem(s)")
    return ERR_JOB_FAILED if lines else 0


def configure_parser(sub: SubParsers) -> None:
    p = sub.add_parser("site", help="audit the generated static site")
    site_sub = p.add_subparsers(dest="site_cmd", required=True)
    audit = site_sub.add_parser("audit", help="check internal links and image alt text")
    audit.add_argument("site_dir", nargs="?", default="_site")
    audit.add_argument("--assume-extension", action="store_true", help="resolve extensionless links to .html files")
    audit.add_argument("--empty-alt-ignore", action="store_true", help="accept images with an empty alt attribute")
    p.set_defaults(handler=run_site_command)
