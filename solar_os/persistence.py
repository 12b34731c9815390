"""
solar_os/persistence.py

Persistence adapter for the domain store.

Strategy:
- Full snapshot: the entire state tree is serialized to JSON and written to ONE durable
  key-value slot after every mutation (no batching, no incremental writes).
- Load at startup: missing slot -> canonical initial state; malformed blob -> canonical initial
  state; otherwise the loaded blob is merged over the canonical state key by key so that
  collections/settings added in later versions are backfilled from defaults.

IMPORTANT:
- Backfill is top-level only (plus settings fields). Individual records are NOT migrated or
  validated; a record missing a field stays that way.
- Two processes sharing one slot race with last-writer-wins semantics. This is accepted and
  not coordinated here.
"""

from __future__ import annotations

import copy
import json
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from .extensions import db
from .models import StateSlot
from .schemas import DEFAULT_SETTINGS, SETTINGS_KEY, STATE_KEYS
from .seed import build_initial_state

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "solar_os_data"
FIXED_COLLECTION = "productionLineStages"


# ---------------------------------------------------------------------
# Slot backends
# ---------------------------------------------------------------------
class MemoryStateSlot:
    """Process-local slot (tests, scripts, embedding without a database)."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(initial or {})

    def read(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def write(self, key: str, blob: str) -> None:
        self._values[key] = blob

    def clear(self, key: str) -> None:
        self._values.pop(key, None)


class SqlStateSlot:
    """
    Slot stored as one StateSlot row (Flask-SQLAlchemy).

    NOTE:
    - Requires an application context.
    - write() commits the current session, so pending AuditLog rows added for the same
      mutation are committed together with the snapshot.
    """

    def read(self, key: str) -> Optional[str]:
        row = StateSlot.query.filter_by(key=key).first()
        return row.value if row else None

    def write(self, key: str, blob: str) -> None:
        row = StateSlot.query.filter_by(key=key).first()
        if row is None:
            row = StateSlot(key=key)
            db.session.add(row)
        row.value = blob
        db.session.commit()

    def clear(self, key: str) -> None:
        StateSlot.query.filter_by(key=key).delete()
        db.session.commit()


# ---------------------------------------------------------------------
# Merge helpers
# ---------------------------------------------------------------------
def backfill_state(loaded: Dict[str, Any], canonical: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge a loaded snapshot over the canonical state.

    - Every top-level key the loaded blob lacks (or holds as null) falls back to canonical.
    - settings: missing fields fall back to canonical settings field by field.
    - Unknown top-level keys from newer/older versions are preserved as-is.
    """
    merged = dict(loaded)
    for key in STATE_KEYS:
        if merged.get(key) is None:
            logger.info("Backfilling missing state key %r from defaults", key)
            merged[key] = copy.deepcopy(canonical[key])

    settings = merged.get(SETTINGS_KEY)
    if isinstance(settings, dict):
        defaults = canonical.get(SETTINGS_KEY) or DEFAULT_SETTINGS
        for field, value in defaults.items():
            settings.setdefault(field, copy.deepcopy(value))
    else:
        merged[SETTINGS_KEY] = copy.deepcopy(canonical[SETTINGS_KEY])

    return merged


# ---------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------
class StateRepository:
    """Loads and saves the persisted state tree through a slot backend."""

    def __init__(
        self,
        slot,
        key: str = DEFAULT_STORAGE_KEY,
        *,
        seed_on_empty: bool = True,
        now: Callable[[], datetime] | None = None,
    ):
        self.slot = slot
        self.key = key
        self.seed_on_empty = seed_on_empty
        self._now = now

    def canonical_state(self) -> Dict[str, Any]:
        state = build_initial_state(self._now() if self._now else None)
        if not self.seed_on_empty:
            # Same layout, no illustrative records; the fixed production line stays
            for key in STATE_KEYS:
                if key != FIXED_COLLECTION and isinstance(state[key], list):
                    state[key] = []
        return state

    def load(self) -> Dict[str, Any]:
        """Return the persisted state (persisted layout), defaults when absent or unreadable."""
        blob = self.slot.read(self.key)
        canonical = self.canonical_state()
        if blob is None:
            logger.info("No persisted state under %r; starting from initial state", self.key)
            return canonical

        try:
            loaded = json.loads(blob)
        except (TypeError, ValueError) as exc:
            logger.warning("Persisted state under %r is malformed (%s); using initial state", self.key, exc)
            return canonical

        if not isinstance(loaded, dict):
            logger.warning("Persisted state under %r is not an object; using initial state", self.key)
            return canonical

        return backfill_state(loaded, canonical)

    def save(self, state: Dict[str, Any]) -> None:
        """Serialize the full snapshot and write it to the slot."""
        self.slot.write(self.key, json.dumps(state, ensure_ascii=False))

    def reset(self) -> Dict[str, Any]:
        """Overwrite the slot with a fresh canonical state and return it."""
        state = self.canonical_state()
        self.save(state)
        return state
