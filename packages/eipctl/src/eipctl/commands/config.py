from __future__ import annotations

import argparse
import json

import yaml

from ..core.context import RunContext
from ..pipeline.config import config_as_dict, exemptions_from_config
from ._shared import SubParsers, as_json, envelope, pipeline_config


def run_config_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    config = pipeline_config(ctx)
    if ns.config_cmd == "dump":
        payload = config_as_dict(config)
        if as_json(ctx):
            print(json.dumps({**envelope(ctx, "ok"), **payload}, sort_keys=True))
        else:
            print(yaml.safe_dump(payload, sort_keys=False), end="")
        return 0
    exemptions = exemptions_from_config(config)
    summary = {
        **envelope(ctx, "ok"),
        "source": config.source,
        "jobs": config.job_ids(),
        "skip": sorted(exemptions.skip),
        "ignore": sorted(exemptions.ignore),
        "unchecked": exemptions.unchecked.render(),
    }
    if as_json(ctx):
        print(json.dumps(summary, sort_keys=True))
    else:
        print(f"{config.source}: valid ({len(config.jobs)} jobs)")
    return 0


def configure_parser(sub: SubParsers) -> None:
    p = sub.add_parser("config", help="inspect the pipeline configuration")
    config_sub = p.add_subparsers(dest="config_cmd", required=True)
    config_sub.add_parser("dump", help="print the resolved pipeline configuration")
    config_sub.add_parser("validate", help="validate the pipeline configuration and exit")
    p.set_defaults(handler=run_config_command)
