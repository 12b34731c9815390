"""
solar_os/derivations.py

Derived fields, as pure functions.

Every value here is recomputed by the store from source fields; caller-supplied values for
derived fields are never trusted:
- Inventory: available, status
- Production line stage: status
- Installation: progress, status
- Compliance record: status (re-derived on every read, not only at creation)
- Service ticket: SLA deadline (never persisted)
- Forward-only status progressions (projects, logistics, service tickets)
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, Optional, Sequence

from .utils import parse_iso

BOTTLENECK_DELAY_MINUTES = 30
CRITICAL_STOCK_FACTOR = Decimal("0.5")
EXPIRING_SOON_DAYS = 30
DELAY_RECOVERED_PER_WORKER = 10

SLA_HOURS = {
    "High": 4,
    "Medium": 8,
    "Low": 24,
}


def _num(value: Any) -> Decimal:
    """
    Convert a stored number (int/float/numeric str/None) to Decimal.

    None and "" count as 0. Non-numeric text raises decimal.InvalidOperation.
    """
    if value is None or value == "":
        return Decimal("0")
    return Decimal(str(value))


def _plain(value: Decimal):
    """Decimal back to a JSON-friendly int when integral, float otherwise."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


# ---------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------
def inventory_status(available: Any, min_stock: Any) -> str:
    """
    critical: available < minStock * 0.5
    warning:  available < minStock
    good:     otherwise

    Boundary: available == minStock * 0.5 is 'warning', not 'critical'.
    """
    avail = _num(available)
    minimum = _num(min_stock)
    if avail < minimum * CRITICAL_STOCK_FACTOR:
        return "critical"
    if avail < minimum:
        return "warning"
    return "good"


def add_stock(total_stock: Any, quantity: Any):
    return _plain(_num(total_stock) + _num(quantity))


def recompute_inventory(item: Dict[str, Any]) -> Dict[str, Any]:
    """Set available = totalStock - reserved and re-derive status (mutates and returns item)."""
    available = _num(item.get("totalStock")) - _num(item.get("reserved"))
    item["available"] = _plain(available)
    item["status"] = inventory_status(available, item.get("minStock"))
    return item


# ---------------------------------------------------------------------
# Production line
# ---------------------------------------------------------------------
def stage_status(delay: Any, current: Optional[str] = None) -> str:
    """'completed' is terminal; otherwise bottleneck / delayed / on-track by delay minutes."""
    if current == "completed":
        return "completed"
    minutes = _num(delay)
    if minutes >= BOTTLENECK_DELAY_MINUTES:
        return "bottleneck"
    if minutes > 0:
        return "delayed"
    return "on-track"


def recompute_stage(stage: Dict[str, Any]) -> Dict[str, Any]:
    stage["status"] = stage_status(stage.get("delay"), stage.get("status"))
    return stage


def reduced_delay(delay: Any, moved_workers: int) -> Any:
    """Each moved worker recovers 10 minutes of delay; never below zero."""
    remaining = _num(delay) - DELAY_RECOVERED_PER_WORKER * moved_workers
    return _plain(max(remaining, Decimal("0")))


# ---------------------------------------------------------------------
# Installation checklist
# ---------------------------------------------------------------------
def installation_progress(tasks: Sequence[Dict[str, Any]] | None) -> int:
    """round(100 * completed / total), halves rounded up; 0 for an empty checklist."""
    tasks = list(tasks or [])
    if not tasks:
        return 0
    done = sum(1 for task in tasks if task.get("completed"))
    ratio = Decimal(100 * done) / Decimal(len(tasks))
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def installation_status(progress: int) -> str:
    if progress >= 100:
        return "Completed"
    if progress > 0:
        return "In Progress"
    return "Scheduled"


def recompute_installation(installation: Dict[str, Any]) -> Dict[str, Any]:
    progress = installation_progress(installation.get("tasks"))
    installation["progress"] = progress
    installation["status"] = installation_status(progress)
    return installation


# ---------------------------------------------------------------------
# Compliance
# ---------------------------------------------------------------------
def days_until(date_value: str | None, now: datetime) -> Optional[int]:
    """Whole days from now until the given date (floored, negative when past)."""
    target = parse_iso(date_value)
    if target is None:
        return None
    return math.floor((target - now).total_seconds() / 86400)


def compliance_status(expiry_date: str | None, now: datetime, fallback: str = "Valid") -> str:
    """
    Expired if the expiry is past, Expiring Soon if fewer than 30 days remain, else Valid.

    An unparseable expiry date keeps the fallback (the stored status).
    """
    remaining = days_until(expiry_date, now)
    if remaining is None:
        return fallback
    if remaining < 0:
        return "Expired"
    if remaining < EXPIRING_SOON_DAYS:
        return "Expiring Soon"
    return "Valid"


def recompute_compliance(record: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    record["status"] = compliance_status(record.get("expiryDate"), now, record.get("status") or "Valid")
    return record


# ---------------------------------------------------------------------
# Service tickets
# ---------------------------------------------------------------------
def sla_deadline(ticket: Dict[str, Any]) -> Optional[datetime]:
    """createdAt + SLA window for the ticket priority (Medium window for unknown priorities)."""
    created = parse_iso(ticket.get("createdAt"))
    if created is None:
        return None
    hours = SLA_HOURS.get(ticket.get("priority"), SLA_HOURS["Medium"])
    return created + timedelta(hours=hours)


# ---------------------------------------------------------------------
# Status progressions
# ---------------------------------------------------------------------
def next_status(progression: Sequence[str], current: str | None) -> Optional[str]:
    """Next status in a forward-only progression, or None at the end / for unknown statuses."""
    if current not in progression:
        return None
    index = progression.index(current)
    if index + 1 >= len(progression):
        return None
    return progression[index + 1]


def is_backward(progression: Sequence[str], current: str | None, proposed: str | None) -> bool:
    """True if proposed sits earlier than current in the progression."""
    if current not in progression or proposed not in progression:
        return False
    return progression.index(proposed) < progression.index(current)


def count_by(records: Iterable[Dict[str, Any]], field: str, variants: Sequence[str]) -> Dict[str, int]:
    """Count records per variant of a field, keeping the declared variant order."""
    counts = {variant: 0 for variant in variants}
    for record in records:
        value = record.get(field)
        if value in counts:
            counts[value] += 1
    return counts
