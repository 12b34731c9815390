"""
solar_os/models.py

SQLAlchemy tables backing the domain store.

The business entities themselves are NOT tables: the whole state tree is kept as one
JSON snapshot (see persistence.py). The database only provides:
- StateSlot: the durable key-value slot that holds that snapshot.
- AuditLog: who-changed-what trail for store mutations.

IMPORTANT:
- The snapshot layout is the persisted format (one key per collection, camelCase records).
  Do not split it into per-entity tables without a data migration.
"""

from __future__ import annotations

from datetime import datetime

from .extensions import db


# ---------------------------------------------------------------------
# Durable key-value slot
# ---------------------------------------------------------------------
class StateSlot(db.Model):
    """One serialized state blob per storage key (e.g. 'solar_os_data')."""

    __tablename__ = "state_slots"

    id = db.Column(db.Integer, primary_key=True)

    key = db.Column(db.String(120), unique=True, nullable=False, index=True)
    value = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        size = len(self.value) if self.value else 0
        return f"<StateSlot {self.key} ({size} bytes)>"


# ---------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------
class AuditLog(db.Model):
    """Audit trail of store mutations (one row per create/update/delete/workflow step)."""

    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)

    # Store collection key, e.g. "quotations", "purchaseOrders"
    entity_type = db.Column(db.String(50), nullable=False, index=True)
    # Generated string ids (e.g. "QUO-1718000000000-ab12cd34e"); stages use small ints
    entity_id = db.Column(db.String(80), nullable=False, index=True)

    action = db.Column(db.String(30), nullable=False, index=True)

    before_data = db.Column(db.Text, nullable=True)
    after_data = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def __repr__(self):
        return f"<AuditLog {self.action} {self.entity_type}:{self.entity_id}>"
