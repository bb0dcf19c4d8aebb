"""Structural rules for proposal documents.

Each rule has a stable name so pipeline configuration can disable it through
an ``ignore`` list, the same way the upstream format linters are configured.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from .loader import Corpus
from .model import CATEGORIES, PREAMBLE_ORDER, STATUSES, TYPES, Proposal

TITLE_MAX_LENGTH = 44
DESCRIPTION_MAX_LENGTH = 140
REQUIRED_CORE_FIELDS = ("eip", "title", "author", "status", "type", "created")
REQUIRED_SECTIONS = ("Abstract", "Specification", "Security Considerations", "Copyright")

_AUTHOR_RE = re.compile(r"^[^<>()@,]+?(?:\s+<[^<>\s]+@[^<>\s]+>|\s+\(@[A-Za-z0-9-]+\))?$")
_HANDLE_RE = re.compile(r"\(@[A-Za-z0-9-]+\)")
_URL_RE = re.compile(r"^https?://\S+$")

Finding = tuple[int, str]
RuleFn = Callable[[Proposal, Corpus], list[Finding]]


@dataclass(frozen=True)
class Rule:
    name: str
    description: str
    fn: RuleFn


@dataclass(frozen=True)
class RuleViolation:
    rule: str
    file_name: str
    line: int
    message: str

    def render(self) -> str:
        loc = f"{self.file_name}:{self.line}" if self.line else self.file_name
        return f"{loc}: [{self.rule}] {self.message}"


def _required_fields(p: Proposal, _corpus: Corpus) -> list[Finding]:
    return [(0, f"missing required preamble field `{key}`") for key in REQUIRED_CORE_FIELDS if p.preamble.get(key) is None]


def _missing_description(p: Proposal, _corpus: Corpus) -> list[Finding]:
    return [] if p.preamble.get("description") is not None else [(0, "missing preamble field `description`")]


def _missing_discussions_to(p: Proposal, _corpus: Corpus) -> list[Finding]:
    return [] if p.preamble.get("discussions-to") is not None else [(0, "missing preamble field `discussions-to`")]


def _discussions_to_url(p: Proposal, _corpus: Corpus) -> list[Finding]:
    if not p.discussions_to or _URL_RE.match(p.discussions_to):
        return []
    return [(p.preamble.line_of("discussions-to"), f"`discussions-to` must be an http(s) URL, got `{p.discussions_to}`")]


def _title_max_length(p: Proposal, _corpus: Corpus) -> list[Finding]:
    if len(p.title) <= TITLE_MAX_LENGTH:
        return []
    return [(p.preamble.line_of("title"), f"title is {len(p.title)} characters (max {TITLE_MAX_LENGTH})")]


def _description_max_length(p: Proposal, _corpus: Corpus) -> list[Finding]:
    if len(p.description) <= DESCRIPTION_MAX_LENGTH:
        return []
    return [(p.preamble.line_of("description"), f"description is {len(p.description)} characters (max {DESCRIPTION_MAX_LENGTH})")]


def _malformed_value(p: Proposal, _corpus: Corpus) -> list[Finding]:
    return [(0, msg) for msg in p.value_errors]


def _preamble_order(p: Proposal, _corpus: Corpus) -> list[Finding]:
    findings: list[Finding] = []
    known = [key for key in p.preamble.keys if key in PREAMBLE_ORDER]
    for key in p.preamble.keys:
        if key not in PREAMBLE_ORDER:
            findings.append((p.preamble.line_of(key), f"unknown preamble field `{key}`"))
    expected = sorted(known, key=PREAMBLE_ORDER.index)
    if known != expected:
        findings.append((0, f"preamble fields out of order: expected {', '.join(expected)}"))
    return findings


def _invalid_status(p: Proposal, _corpus: Corpus) -> list[Finding]:
    if not p.status or p.status in STATUSES:
        return []
    return [(p.preamble.line_of("status"), f"unknown status `{p.status}` (expected one of {', '.join(STATUSES)})")]


def _invalid_type(p: Proposal, _corpus: Corpus) -> list[Finding]:
    if not p.type or p.type in TYPES:
        return []
    return [(p.preamble.line_of("type"), f"unknown type `{p.type}` (expected one of {', '.join(TYPES)})")]


def _category(p: Proposal, _corpus: Corpus) -> list[Finding]:
    line = p.preamble.line_of("category")
    if p.type == "Standards Track":
        if not p.category:
            return [(p.preamble.line_of("type"), "`category` is required for Standards Track proposals")]
        if p.category not in CATEGORIES:
            return [(line, f"unknown category `{p.category}` (expected one of {', '.join(CATEGORIES)})")]
        return []
    if p.category:
        return [(line, f"`category` is only allowed for Standards Track proposals, got type `{p.type}`")]
    return []


def _author_format(p: Proposal, _corpus: Corpus) -> list[Finding]:
    if not p.authors:
        return []
    line = p.preamble.line_of("author")
    findings = [(line, f"malformed author `{author}`") for author in p.authors if not _AUTHOR_RE.match(author)]
    if not any(_HANDLE_RE.search(author) for author in p.authors):
        findings.append((line, "at least one author must list a GitHub handle as `Name (@handle)`"))
    return findings


def _status_fields(p: Proposal, _corpus: Corpus) -> list[Finding]:
    findings: list[Finding] = []
    if p.status == "Last Call" and p.preamble.get("last-call-deadline") is None:
        findings.append((p.preamble.line_of("status"), "`last-call-deadline` is required while in Last Call"))
    if p.status == "Withdrawn" and not p.withdrawal_reason:
        findings.append((p.preamble.line_of("status"), "`withdrawal-reason` is required for Withdrawn proposals"))
    return findings


def _requires_resolve(p: Proposal, corpus: Corpus) -> list[Finding]:
    line = p.preamble.line_of("requires")
    known = corpus.numbers()
    findings: list[Finding] = []
    for number in p.requires:
        if number == p.number:
            findings.append((line, f"proposal requires itself ({number})"))
        elif number not in known:
            findings.append((line, f"required proposal {number} does not exist in the corpus"))
    return findings


def _requires_order(p: Proposal, _corpus: Corpus) -> list[Finding]:
    if list(p.requires) == sorted(set(p.requires)):
        return []
    return [(p.preamble.line_of("requires"), "`requires` must be ascending without duplicates")]


def _filename_mismatch(p: Proposal, _corpus: Corpus) -> list[Finding]:
    if p.number is None:
        return []
    expected = f"eip-{p.number}.md"
    if p.file_name == expected:
        return []
    return [(p.preamble.line_of("eip"), f"file name should be `{expected}`")]


def _required_sections(p: Proposal, _corpus: Corpus) -> list[Finding]:
    return [(0, f"missing section `## {name}`") for name in REQUIRED_SECTIONS if name not in p.sections]


RULES: tuple[Rule, ...] = (
    Rule("required_fields", "core preamble fields are present", _required_fields),
    Rule("missing_description", "`description` preamble field is present", _missing_description),
    Rule("missing_discussions_to", "`discussions-to` preamble field is present", _missing_discussions_to),
    Rule("discussions_to_url", "`discussions-to` is an http(s) URL", _discussions_to_url),
    Rule("title_max_length", f"title is at most {TITLE_MAX_LENGTH} characters", _title_max_length),
    Rule("description_max_length", f"description is at most {DESCRIPTION_MAX_LENGTH} characters", _description_max_length),
    Rule("malformed_value", "typed preamble values parse", _malformed_value),
    Rule("preamble_order", "preamble fields are known and in canonical order", _preamble_order),
    Rule("invalid_status", "status is a known value", _invalid_status),
    Rule("invalid_type", "type is a known value", _invalid_type),
    Rule("category", "category is present exactly for Standards Track", _category),
    Rule("author_format", "authors are well formed and include a GitHub handle", _author_format),
    Rule("status_fields", "status-dependent fields are present", _status_fields),
    Rule("requires_resolve", "every required proposal exists", _requires_resolve),
    Rule("requires_order", "`requires` is ascending", _requires_order),
    Rule("filename_mismatch", "file name matches the proposal number", _filename_mismatch),
    Rule("required_sections", "mandatory prose sections exist", _required_sections),
)

RULE_NAMES: frozenset[str] = frozenset(rule.name for rule in RULES)


def unknown_rules(names: frozenset[str] | set[str]) -> list[str]:
    return sorted(set(names) - RULE_NAMES)


def lint_proposal(
    proposal: Proposal,
    corpus: Corpus,
    ignore: frozenset[str] = frozenset(),
    only: frozenset[str] | None = None,
) -> list[RuleViolation]:
    out: list[RuleViolation] = []
    for rule in RULES:
        if rule.name in ignore:
            continue
        if only is not None and rule.name not in only:
            continue
        for line, message in rule.fn(proposal, corpus):
            out.append(RuleViolation(rule=rule.name, file_name=proposal.file_name, line=line, message=message))
    return sorted(out, key=lambda v: (v.file_name, v.line, v.rule, v.message))
