from __future__ import annotations

from .base import CheckDef
from .config import check_allowlist_normalized, check_allowlist_used, check_exemptions_resolve
from .corpus import (
    check_filename_matches_id,
    check_preamble_well_formed,
    check_required_fields,
    check_requires_resolve,
    check_unique_ids,
)
from .site import check_site_internal_links

CHECKS: tuple[CheckDef, ...] = (
    CheckDef("corpus/preamble-well-formed", "corpus", "every document opens with a parseable preamble", 1500, check_preamble_well_formed),
    CheckDef("corpus/required-fields", "corpus", "required preamble fields are present with valid values", 2000, check_required_fields),
    CheckDef("corpus/unique-ids", "corpus", "proposal numbers are unique", 1000, check_unique_ids),
    CheckDef("corpus/filename-matches-id", "corpus", "file names match proposal numbers", 1000, check_filename_matches_id),
    CheckDef("corpus/requires-resolve", "corpus", "every `requires` entry names an existing proposal", 1500, check_requires_resolve),
    CheckDef("config/allowlist-normalized", "config", "spelling allow-list is lowercase, sorted and unique", 300, check_allowlist_normalized),
    CheckDef("config/allowlist-used", "config", "every allow-list entry still occurs in a spell-checked file", 2000, check_allowlist_used),
    CheckDef("config/exemptions-resolve", "config", "skip lists and unchecked ranges name real documents", 1000, check_exemptions_resolve),
    CheckDef("site/internal-links", "site", "internal links in the generated site resolve", 5000, check_site_internal_links),
)


def list_checks() -> list[CheckDef]:
    return sorted(CHECKS, key=lambda c: c.check_id)


def get_check(check_id: str) -> CheckDef | None:
    for chk in CHECKS:
        if chk.check_id == check_id:
            return chk
    return None


def domains() -> list[str]:
    return sorted({"all", *{c.domain for c in CHECKS}})
