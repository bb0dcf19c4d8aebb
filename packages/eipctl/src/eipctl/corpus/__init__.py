"""Proposal document corpus: preamble parsing, loading and structural rules."""

from .loader import Corpus, CorpusError, Exemptions, load_corpus
from .model import Proposal, parse_proposal, parse_proposal_text
from .preamble import Preamble, PreambleError, parse_preamble
from .ranges import NumberRanges, parse_number_ranges
from .rules import RULES, RuleViolation, lint_proposal

__all__ = [
    "Corpus",
    "CorpusError",
    "Exemptions",
    "NumberRanges",
    "Preamble",
    "PreambleError",
    "Proposal",
    "RULES",
    "RuleViolation",
    "lint_proposal",
    "load_corpus",
    "parse_number_ranges",
    "parse_preamble",
    "parse_proposal",
    "parse_proposal_text",
]
