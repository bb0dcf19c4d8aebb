"""Pull-request metadata hand-off.

A gating job persists the PR number, head sha and merge sha so a deferred,
externally triggered validator can map its results back to the pull
request. The three single-line files are the compatibility surface and the
only content of the hand-off directory. ``handoff.json`` carries the same
values as a versioned record and is kept outside that directory.
"""

from .record import (
    FILE_NAMES,
    MANIFEST_NAME,
    HandoffRecord,
    read_handoff,
    record_from_event,
    resolve_record,
    verify_handoff,
    write_handoff,
)

__all__ = [
    "FILE_NAMES",
    "MANIFEST_NAME",
    "HandoffRecord",
    "read_handoff",
    "record_from_event",
    "resolve_record",
    "verify_handoff",
    "write_handoff",
]
