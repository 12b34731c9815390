"""
solar_os/seed.py

Canonical initial state.

Rules:
- Returned in the persisted layout (one key per collection, each a list of records).
- Used both for first start (empty slot) and as the backfill source when an older snapshot
  lacks a collection or setting added later.
- Contains illustrative seed records for leads, surveys, quotations, projects, inventory,
  production line stages, invoices and service tickets.

NOTE:
- Derived fields of seed records are computed here with the same functions the store uses,
  so seed data never violates the inventory/stage invariants.
"""

from __future__ import annotations

import copy
from datetime import datetime, timedelta
from typing import Any, Dict, List

from .derivations import recompute_inventory, recompute_stage
from .schemas import (
    COLLECTION_KEYS,
    CURRENT_MODULE_KEY,
    DEFAULT_MODULE,
    DEFAULT_SETTINGS,
    SCHEMAS_BY_COLLECTION,
    SETTINGS_KEY,
)
from .utils import to_iso, utc_now


# (id, name, batches, capacity, delay, machine, shift, status, workers)
DEFAULT_PRODUCTION_STAGES = [
    (1, "Glass Cleaning", 8, "40 KW", 0, "GC-01", "Day", "on-track", 2),
    (2, "Cell Stringing", 7, "35 KW", 0, "CS-02", "Day", "on-track", 3),
    (3, "Layup", 6, "30 KW", 15, "LY-01", "Day", "delayed", 2),
    (4, "Lamination", 4, "20 KW", 45, "LM-03", "Night", "bottleneck", 4),
    (5, "Framing", 5, "25 KW", 0, "FR-02", "Day", "on-track", 3),
    (6, "EL Testing", 5, "25 KW", 0, "EL-01", "Day", "on-track", 2),
    (7, "Sun Simulator", 5, "25 KW", 0, "SS-01", "Day", "completed", 2),
]

# (id, name, unit, totalStock, reserved, minStock)
DEFAULT_INVENTORY = [
    ("INV-001", "Solar Cells", "Units", 1200, 950, 500),
    ("INV-002", "Tempered Glass", "Sheets", 850, 400, 300),
    ("INV-003", "Aluminium Frames", "Units", 600, 520, 200),
    ("INV-004", "EVA Sheets", "Rolls", 140, 20, 100),
]

DEFAULT_INSTALLATION_TASKS = [
    "Site Preparation",
    "Structure Installation",
    "Panel Mounting",
    "Wiring & Connections",
    "Inverter Setup",
    "Testing",
]


def _record(collection: str, fields: Dict[str, Any], stamp: str) -> Dict[str, Any]:
    record = SCHEMAS_BY_COLLECTION[collection].new_record(fields)
    record["createdAt"] = stamp
    record["updatedAt"] = stamp
    return record


def _seed_leads(stamp: str) -> List[Dict[str, Any]]:
    return [
        _record(
            "leads",
            {
                "id": "LD-1001",
                "name": "Ramesh Industries",
                "mobile": "+91 98250 11223",
                "email": "procurement@rameshind.example",
                "source": "Website",
                "location": "Ahmedabad",
                "capacity": "50 KW",
                "status": "Qualified",
                "aiScore": 86,
                "electricityBill": "₹45,000/month",
                "assignedTo": "Priya Shah",
            },
            stamp,
        ),
        _record(
            "leads",
            {
                "id": "LD-1002",
                "name": "Sunshine Developers",
                "mobile": "+91 99090 44556",
                "source": "Referral",
                "location": "Surat",
                "capacity": "100 KW",
                "status": "Contacted",
                "aiScore": 72,
                "electricityBill": "₹90,000/month",
                "assignedTo": "Amit Patel",
            },
            stamp,
        ),
    ]


def _seed_surveys(stamp: str) -> List[Dict[str, Any]]:
    return [
        _record(
            "surveys",
            {
                "id": "SUR-1001",
                "leadId": "LD-1001",
                "roofArea": "5200 sq ft",
                "shadowPercentage": 8,
                "direction": "South",
                "roofType": "RCC",
                "gpsLocation": "23.0225, 72.5714",
                "status": "Completed",
            },
            stamp,
        ),
    ]


def _seed_quotations(stamp: str) -> List[Dict[str, Any]]:
    return [
        _record(
            "quotations",
            {
                "id": "QUO-1001",
                "leadId": "LD-1001",
                "customer": "Ramesh Industries",
                "capacity": "50 KW",
                "perWattPrice": 50,
                "totalAmount": 2500000,
                "status": "Approved",
            },
            stamp,
        ),
        _record(
            "quotations",
            {
                "id": "QUO-1002",
                "leadId": "LD-1002",
                "customer": "Sunshine Developers",
                "capacity": "100 KW",
                "perWattPrice": 52,
                "totalAmount": 5200000,
                "status": "Sent",
            },
            stamp,
        ),
    ]


def _seed_projects(stamp: str, now: datetime) -> List[Dict[str, Any]]:
    return [
        _record(
            "projects",
            {
                "id": "PRJ-1001",
                "quotationId": "QUO-1001",
                "customer": "Ramesh Industries",
                "capacity": "50 KW",
                "location": "Ahmedabad",
                "status": "Production",
                "progress": 45,
                "startDate": stamp,
                "expectedCompletion": to_iso(now + timedelta(days=30)),
                "projectManager": "Rahul Mehta",
                "totalValue": 2500000,
            },
            stamp,
        ),
    ]


def _seed_inventory(stamp: str) -> List[Dict[str, Any]]:
    items = []
    for item_id, name, unit, total, reserved, minimum in DEFAULT_INVENTORY:
        item = _record(
            "inventory",
            {
                "id": item_id,
                "name": name,
                "unit": unit,
                "totalStock": total,
                "reserved": reserved,
                "minStock": minimum,
            },
            stamp,
        )
        items.append(recompute_inventory(item))
    return items


def _seed_stages(stamp: str) -> List[Dict[str, Any]]:
    stages = []
    for stage_id, name, batches, capacity, delay, machine, shift, status, workers in DEFAULT_PRODUCTION_STAGES:
        stage = _record(
            "productionLineStages",
            {
                "id": stage_id,
                "name": name,
                "batches": batches,
                "capacity": capacity,
                "delay": delay,
                "machine": machine,
                "shift": shift,
                "status": status,
                "workers": workers,
            },
            stamp,
        )
        stages.append(recompute_stage(stage))
    return stages


def _seed_invoices(stamp: str, now: datetime) -> List[Dict[str, Any]]:
    return [
        _record(
            "invoices",
            {
                "id": "INV-1001",
                "projectId": "PRJ-1001",
                "amount": 1875000,
                "dueDate": to_iso(now + timedelta(days=5)),
                "status": "Partial",
                "paidAmount": 1250000,
            },
            stamp,
        ),
    ]


def _seed_service_tickets(stamp: str) -> List[Dict[str, Any]]:
    return [
        _record(
            "serviceTickets",
            {
                "id": "TKT-1001",
                "projectId": "PRJ-1001",
                "customer": "Ramesh Industries",
                "issue": "Inverter showing grid fault alarm",
                "priority": "High",
                "status": "Open",
                "assignedTo": "Service Team A",
            },
            stamp,
        ),
    ]


def build_initial_state(now: datetime | None = None) -> Dict[str, Any]:
    """
    Return a fresh canonical initial state in the persisted layout.

    Every call returns new objects; callers may mutate the result freely.
    """
    now = now or utc_now()
    stamp = to_iso(now)

    state: Dict[str, Any] = {key: [] for key in COLLECTION_KEYS}
    state["leads"] = _seed_leads(stamp)
    state["surveys"] = _seed_surveys(stamp)
    state["quotations"] = _seed_quotations(stamp)
    state["projects"] = _seed_projects(stamp, now)
    state["inventory"] = _seed_inventory(stamp)
    state["productionLineStages"] = _seed_stages(stamp)
    state["invoices"] = _seed_invoices(stamp, now)
    state["serviceTickets"] = _seed_service_tickets(stamp)
    state[SETTINGS_KEY] = copy.deepcopy(DEFAULT_SETTINGS)
    state[CURRENT_MODULE_KEY] = DEFAULT_MODULE
    return state


def default_installation_tasks() -> List[Dict[str, Any]]:
    """Standard rooftop checklist, all tasks open."""
    return [{"name": name, "completed": False} for name in DEFAULT_INSTALLATION_TASKS]
