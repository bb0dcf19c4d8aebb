from __future__ import annotations

import argparse
import json

from ..core.context import RunContext
from ..core.errors import ScriptError
from ..core.exit_codes import ERR_JOB_FAILED, ERR_USER
from ..corpus.loader import load_corpus
from ..corpus.model import Proposal
from ..corpus.rules import RULE_NAMES, lint_proposal, unknown_rules
from ..pipeline.config import exemptions_from_config
from ._shared import SubParsers, as_json, envelope, pipeline_config


def _row(proposal: Proposal) -> dict[str, object]:
    return {
        "eip": proposal.number,
        "file": proposal.file_name,
        "title": proposal.title,
        "status": proposal.status,
        "type": proposal.type,
        "category": proposal.category or None,
        "created": proposal.created.isoformat() if proposal.created else None,
        "requires": list(proposal.requires),
        "authors": list(proposal.authors),
    }


def _list(ctx: RunContext, ns: argparse.Namespace) -> int:
    config = pipeline_config(ctx)
    corpus = load_corpus(ctx.repo_root / config.corpus.root, config.corpus.pattern)
    rows = [_row(p) for p in corpus.proposals if not ns.status or p.status == ns.status]
    if as_json(ctx):
        payload = {
            **envelope(ctx, "ok"),
            "proposals": rows,
            "errors": [err.render(ctx.repo_root) for err in corpus.errors],
        }
        print(json.dumps(payload, sort_keys=True))
        return 0
    for row in rows:
        print(f"{row['eip']:>5}  {row['status']:<10} {row['title']}")
    for err in corpus.errors:
        print(f"unparsed: {err.render(ctx.repo_root)}")
    return 0


def _show(ctx: RunContext, ns: argparse.Namespace) -> int:
    config = pipeline_config(ctx)
    corpus = load_corpus(ctx.repo_root / config.corpus.root, config.corpus.pattern)
    proposal = corpus.get(ns.number)
    if proposal is None:
        raise ScriptError(f"no proposal numbered {ns.number} in {config.corpus.root}/", ERR_USER, kind="unknown_proposal")
    row = _row(proposal)
    row["description"] = proposal.description
    row["discussions_to"] = proposal.discussions_to
    row["sections"] = list(proposal.sections)
    if as_json(ctx):
        print(json.dumps({**envelope(ctx, "ok"), "proposal": row}, sort_keys=True))
        return 0
    for key in ("eip", "file", "title", "description", "status", "type", "category", "created", "discussions_to"):
        if row.get(key) is not None:
            print(f"{key}: {row[key]}")
    print(f"authors: {', '.join(proposal.authors)}")
    if proposal.requires:
        print(f"requires: {', '.join(str(n) for n in proposal.requires)}")
    print(f"sections: {', '.join(proposal.sections)}")
    return 0


def _lint(ctx: RunContext, ns: argparse.Namespace) -> int:
    config = pipeline_config(ctx)
    only = frozenset(ns.rule) if ns.rule else None
    if only is not None:
        bad = unknown_rules(set(only))
        if bad:
            raise ScriptError(f"unknown rule(s): {', '.join(bad)}; known: {', '.join(sorted(RULE_NAMES))}", ERR_USER, kind="unknown_rule")
    exemptions = exemptions_from_config(config)
    corpus = load_corpus(ctx.repo_root / config.corpus.root, config.corpus.pattern)
    problems = [err.render(ctx.repo_root) for err in corpus.errors]
    for proposal in corpus.proposals:
        if exemptions.is_skipped(proposal.file_name, proposal.number):
            continue
        for violation in lint_proposal(proposal, corpus, ignore=exemptions.ignore, only=only):
            problems.append(f"{config.corpus.root}/{violation.render()}")
    if as_json(ctx):
        status = "fail" if problems else "ok"
        print(json.dumps({**envelope(ctx, status), "problems": problems}, sort_keys=True))
    else:
        for line in problems:
            print(line)
        print(f"corpus lint: {len(problems)} problem(s) in {len(corpus.files)} document(s)")
    return ERR_JOB_FAILED if problems else 0


def run_corpus_command(ctx: RunContext, ns: argparse.Namespace) -> int:
    if ns.corpus_cmd == "list":
        return _list(ctx, ns)
    if ns.corpus_cmd == "show":
        return _show(ctx, ns)
    return _lint(ctx, ns)


def configure_parser(sub: SubParsers) -> None:
    p = sub.add_parser("corpus", help="inspect and lint proposal documents")
    corpus_sub = p.add_subparsers(dest="corpus_cmd", required=True)
    listing = corpus_sub.add_parser("list", help="list proposals with their preamble summary")
    listing.add_argument("--status", help="only list proposals with this status")
    show = corpus_sub.add_parser("show", help="show one proposal's parsed preamble")
    show.add_argument("number", type=int)
    lint = corpus_sub.add_parser("lint", help="apply structural rules honoring configured exemptions")
    lint.add_argument("--rule", action="append", default=[], help="restrict to this rule (repeatable)")
    p.set_defaults(handler=run_corpus_command)
