"""
solar_os/reports.py

Dashboard summary built from a state snapshot.

Used by:
- DomainStore.summary() (read-only query)
- DomainStore.generate_report() (stores the summary as a Report record)

NOTE:
- Works on the persisted layout (collections as lists) so it can run on any snapshot,
  including one exported with `flask export-state`.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List

from .derivations import count_by, sla_deadline
from .schemas import LEAD_STATUSES, PROJECT_STATUSES
from .utils import to_iso

CLOSED_TICKET_STATUSES = {"Resolved", "Closed"}


def _to_decimal(value) -> Decimal:
    """Convert a stored number/None to Decimal safely."""
    if value is None or value == "":
        return Decimal("0")
    return Decimal(str(value))


def _number(value: Decimal):
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def invoice_totals(invoices: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    total: sum of all invoice amounts
    paid: sum of amounts of fully Paid invoices
    outstanding: unpaid remainder (amount - paidAmount) of every invoice not Paid
    """
    total = Decimal("0")
    paid = Decimal("0")
    outstanding = Decimal("0")
    for invoice in invoices:
        amount = _to_decimal(invoice.get("amount"))
        total += amount
        if invoice.get("status") == "Paid":
            paid += amount
        else:
            remainder = amount - _to_decimal(invoice.get("paidAmount"))
            if remainder > 0:
                outstanding += remainder
    return {"total": _number(total), "paid": _number(paid), "outstanding": _number(outstanding)}


def open_ticket_breaches(tickets: List[Dict[str, Any]], now: datetime) -> List[str]:
    """Ids of unresolved tickets whose SLA deadline has passed."""
    breached = []
    for ticket in tickets:
        if ticket.get("status") in CLOSED_TICKET_STATUSES:
            continue
        deadline = sla_deadline(ticket)
        if deadline is not None and now > deadline:
            breached.append(ticket.get("id"))
    return breached


def build_summary(state: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    projects = state.get("projects") or []
    leads = state.get("leads") or []
    tickets = state.get("serviceTickets") or []

    pipeline = sum(
        (_to_decimal(p.get("totalValue")) for p in projects if p.get("status") != "Completed"),
        Decimal("0"),
    )

    return {
        "generatedAt": to_iso(now),
        "projectsByStatus": count_by(projects, "status", PROJECT_STATUSES),
        "leadsByStatus": count_by(leads, "status", LEAD_STATUSES),
        "totalProjects": len(projects),
        "totalLeads": len(leads),
        "pipelineValue": _number(pipeline),
        "invoices": invoice_totals(state.get("invoices") or []),
        "lowStock": [
            {
                "id": item.get("id"),
                "name": item.get("name"),
                "available": item.get("available"),
                "minStock": item.get("minStock"),
                "status": item.get("status"),
            }
            for item in state.get("inventory") or []
            if item.get("status") in ("warning", "critical")
        ],
        "openTickets": sum(1 for t in tickets if t.get("status") not in CLOSED_TICKET_STATUSES),
        "slaBreaches": open_ticket_breaches(tickets, now),
        "bottlenecks": [
            stage.get("name")
            for stage in state.get("productionLineStages") or []
            if stage.get("status") == "bottleneck"
        ],
    }
