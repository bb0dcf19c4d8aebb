from __future__ import annotations

import argparse
import json

from ..checks.registry import domains, list_checks
from ..checks.runner import run_domain
from ..core.context import RunContext
from ..core.exit_codes import ERR_USER
from ..core.fs import write_json
from ._shared import SubParsers, as_json, envelope, pipeline_config


def run_check_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    if ns.list:
        rows = [{"id": c.check_id, "domain": c.domain, "description": c.description, "budget_ms": c.budget_ms} for c in list_checks()]
        if as_json(ctx):
            print(json.dumps({**envelope(ctx, "ok"), "checks": rows}, sort_keys=True))
        else:
            for row in rows:
                print(f"{row['id']}: {row['description']}")
        return 0
    config = pipeline_config(ctx)
    code, payload = run_domain(ctx.repo_root, config, ns.domain)
    if code != ERR_USER and ns.report_file:
        write_json(ctx, ctx.run_dir / "checks" / ns.report_file, payload)
    if as_json(ctx):
        print(json.dumps({**payload, "run_id": ctx.run_id}, sort_keys=True))
        return code
    if code == ERR_USER:
        print(f"{payload['error']}; known domains: {', '.join(domains())}")
        return code
    print(f"check {ns.domain}: {payload['status']} ({payload['failed_count']}/{payload['total_count']} failed)")
    for row in payload["checks"]:  # type: ignore[union-attr]
        if row["status"] == "fail" or ctx.verbose:
            print(f"- {str(row['status']).upper()} {row['id']}")
            for err in row["errors"]:
                print(f"    {err}")
    return code


def configure_parser(sub: SubParsers) -> None:
    p = sub.add_parser("check", help="run native corpus and configuration checks")
    p.add_argument("--domain", default="all", help=f"check domain or id ({', '.join(domains())})")
    p.add_argument("--list", action="store_true", help="list registered checks")
    p.add_argument("--report-file", help="also write the JSON payload under <evidence>/<run_id>/checks/")
    p.set_defaults(handler=run_check_command)
