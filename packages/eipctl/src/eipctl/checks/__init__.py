"""Native corpus and configuration invariant checks."""

from .base import CheckDef
from .registry import CHECKS, domains, get_check, list_checks
from .runner import run_domain

__all__ = ["CHECKS", "CheckDef", "domains", "get_check", "list_checks", "run_domain"]
