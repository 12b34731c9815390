"""
solar_os/audit.py

Audit trail helpers for store mutations.

Goals:
- Capture WHAT happened to WHICH record, with BEFORE/AFTER snapshots.
- One AuditLog row per record touched (a workflow touching two collections writes two rows).

IMPORTANT:
- This helper ADDS AuditLog entries to the current SQLAlchemy session.
  The state slot write (SqlStateSlot.write) commits them together with the snapshot.
- The store calls the hook after applying a mutation in memory and before persisting.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from .extensions import db
from .models import AuditLog


def _safe_json(snapshot: Optional[Dict[str, Any]]) -> Optional[str]:
    """
    Serialize a record snapshot for storage.

    - None / empty -> None.
    - Non-JSON values (should not occur in store records) fall back to str().
    """
    if not snapshot:
        return None
    return json.dumps(snapshot, ensure_ascii=False, default=str)


def log_action(
    collection: str,
    entity_id: Any,
    action: str,
    *,
    before: Optional[Dict[str, Any]] = None,
    after: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Add an AuditLog entry to the current db session.

    Parameters:
        collection: store collection key (e.g. "quotations")
        entity_id: record id (string ids; stage ids are small ints)
        action: CREATE / UPDATE / DELETE or a workflow name (e.g. APPROVE, RECEIVE)
        before: record snapshot before the change (optional)
        after: record snapshot after the change (optional)
    """
    if not collection or entity_id is None or not action:
        raise ValueError("log_action requires collection, entity_id and action.")

    entry = AuditLog(
        entity_type=str(collection),
        entity_id=str(entity_id),
        action=str(action).upper(),
        before_data=_safe_json(before),
        after_data=_safe_json(after),
    )
    db.session.add(entry)
