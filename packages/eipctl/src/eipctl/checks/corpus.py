from __future__ import annotations

from pathlib import Path

from ..corpus.loader import Corpus, Exemptions, load_corpus
from ..corpus.rules import lint_proposal
from ..pipeline.config import exemptions_from_config
from ..pipeline.model import PipelineConfig

FIELD_RULES = frozenset(
    {
        "required_fields",
        "missing_description",
        "missing_discussions_to",
        "discussions_to_url",
        "title_max_length",
        "description_max_length",
        "malformed_value",
        "preamble_order",
        "invalid_status",
        "invalid_type",
        "category",
        "author_format",
        "status_fields",
    }
)
REQUIRES_RULES = frozenset({"requires_resolve", "requires_order"})


def _load(repo_root: Path, config: PipelineConfig) -> tuple[Corpus, Exemptions]:
    corpus = load_corpus(repo_root / config.corpus.root, config.corpus.pattern)
    return corpus, exemptions_from_config(config)


def _rel(repo_root: Path, path: Path) -> str:
    try:
        return path.resolve().relative_to(repo_root.resolve()).as_posix()
    except ValueError:
        return path.as_posix()


def check_preamble_well_formed(repo_root: Path, config: PipelineConfig) -> tuple[int, list[str]]:
    corpus, exemptions = _load(repo_root, config)
    errors = [err.render(repo_root) for err in corpus.errors if not exemptions.is_skipped(err.path.name)]
    return (0 if not errors else 1), errors


def _rule_check(repo_root: Path, config: PipelineConfig, rules: frozenset[str]) -> tuple[int, list[str]]:
    corpus, exemptions = _load(repo_root, config)
    errors: list[str] = []
    for proposal in corpus.proposals:
        if exemptions.is_skipped(proposal.file_name, proposal.number):
            continue
        for violation in lint_proposal(proposal, corpus, ignore=exemptions.ignore, only=rules):
            errors.append(f"{_rel(repo_root, proposal.path.parent)}/{violation.render()}")
    return (0 if not errors else 1), errors


def check_required_fields(repo_root: Path, config: PipelineConfig) -> tuple[int, list[str]]:
    return _rule_check(repo_root, config, FIELD_RULES)


def check_requires_resolve(repo_root: Path, config: PipelineConfig) -> tuple[int, list[str]]:
    return _rule_check(repo_root, config, REQUIRES_RULES)


def check_filename_matches_id(repo_root: Path, config: PipelineConfig) -> tuple[int, list[str]]:
    return _rule_check(repo_root, config, frozenset({"filename_mismatch"}))


def check_unique_ids(repo_root: Path, config: PipelineConfig) -> tuple[int, list[str]]:
    corpus, _ = _load(repo_root, config)
    errors: list[str] = []
    for number, rows in sorted(corpus.by_number().items()):
        if len(rows) > 1:
            names = ", ".join(sorted(p.file_name for p in rows))
            errors.append(f"proposal number {number} is used by more than one document: {names}")
    return (0 if not errors else 1), errors
