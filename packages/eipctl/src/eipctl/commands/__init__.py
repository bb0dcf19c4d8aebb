"""Subcommand modules; each exposes ``configure_parser(sub)``."""

from . import allowlist, check, config, corpus, handoff, jobs, run, site

COMMAND_MODULES = (jobs, run, check, corpus, handoff, allowlist, site, config)

__all__ = ["COMMAND_MODULES"]
