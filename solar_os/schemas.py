"""
solar_os/schemas.py

Entity schema registry for the domain store.

Each entity type declares:
- the top-level collection key it lives under in the state tree (persisted layout),
- the human-readable id prefix (LD-, QUO-, PRJ-, ...),
- its status variants,
- the defaults merged into a record on create.

NOTE:
- The store does not validate caller input against these schemas. Statuses and defaults
  are used for creation, derivations and forward-only progressions only.
- Production line stages are a fixed set seeded at startup (no create/delete).
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Optional, Tuple


# ---------------------------------------------------------------------
# Status variants
# ---------------------------------------------------------------------
LEAD_STATUSES = ("New", "Contacted", "Survey Scheduled", "Qualified", "Lost")
SURVEY_STATUSES = ("Planned", "In Progress", "Completed")
QUOTATION_STATUSES = ("Draft", "Sent", "Approved", "Rejected")

# Ordered: forward-only progression
PROJECT_STATUSES = (
    "Survey",
    "Design",
    "Production",
    "Logistics",
    "Installation",
    "Commissioning",
    "Completed",
)

INVENTORY_STATUSES = ("good", "warning", "critical")
PURCHASE_ORDER_STATUSES = ("Open", "Ordered", "Received", "Cancelled")
PRODUCTION_ORDER_STATUSES = ("Pending", "In Progress", "Completed")
STAGE_STATUSES = ("on-track", "delayed", "bottleneck", "completed")
QUALITY_STATUSES = ("Pass", "Fail", "Hold")

# Ordered: forward-only progression
LOGISTICS_STATUSES = ("Planned", "Dispatched", "In Transit", "Delivered")

INSTALLATION_STATUSES = ("Scheduled", "In Progress", "Completed")
INVOICE_STATUSES = ("Draft", "Sent", "Paid", "Partial", "Overdue")
PAYMENT_STATUSES = ("Pending", "Completed", "Failed")
TICKET_PRIORITIES = ("Low", "Medium", "High")

# Ordered: forward-only progression
SERVICE_TICKET_STATUSES = ("Open", "In Progress", "Scheduled", "Resolved", "Closed")

EMPLOYEE_STATUSES = ("Active", "Inactive")
COMPLIANCE_STATUSES = ("Valid", "Expiring Soon", "Expired")

# Collections whose status may only move forward through the tuple order
FORWARD_PROGRESSIONS: Dict[str, Tuple[str, ...]] = {
    "projects": PROJECT_STATUSES,
    "logistics": LOGISTICS_STATUSES,
    "serviceTickets": SERVICE_TICKET_STATUSES,
}

FIRST_PRODUCTION_STAGE = "Glass Cleaning"


# ---------------------------------------------------------------------
# Entity schemas
# ---------------------------------------------------------------------
class EntitySchema:
    """Declarative description of one entity type."""

    def __init__(
        self,
        name: str,
        collection: str,
        prefix: Optional[str],
        defaults: Dict[str, Any],
        statuses: Tuple[str, ...] = (),
        deletable: bool = False,
    ):
        self.name = name
        self.collection = collection
        self.prefix = prefix
        self.defaults = defaults
        self.statuses = statuses
        self.deletable = deletable

    def new_record(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Defaults (deep-copied, so list defaults are never shared) overlaid with caller fields."""
        record = copy.deepcopy(self.defaults)
        record.update(copy.deepcopy(fields))
        return record

    def __repr__(self):
        return f"<EntitySchema {self.name} -> {self.collection}>"


LEAD = EntitySchema(
    "Lead",
    "leads",
    "LD",
    {
        "name": "",
        "mobile": "",
        "source": "",
        "location": "",
        "capacity": "",
        "status": "New",
        "aiScore": 0,
        "electricityBill": "",
        "assignedTo": "",
    },
    LEAD_STATUSES,
    deletable=True,
)

SURVEY = EntitySchema(
    "Survey",
    "surveys",
    "SUR",
    {
        "leadId": "",
        "roofArea": "",
        "shadowPercentage": 0,
        "direction": "",
        "roofType": "",
        "photos": [],
        "gpsLocation": "",
        "status": "Planned",
    },
    SURVEY_STATUSES,
)

QUOTATION = EntitySchema(
    "Quotation",
    "quotations",
    "QUO",
    {
        "leadId": "",
        "customer": "",
        "capacity": "",
        "perWattPrice": 0,
        "totalAmount": 0,
        "status": "Draft",
    },
    QUOTATION_STATUSES,
)

PROJECT = EntitySchema(
    "Project",
    "projects",
    "PRJ",
    {
        "quotationId": "",
        "customer": "",
        "capacity": "",
        "location": "",
        "status": "Survey",
        "progress": 0,
        "startDate": "",
        "expectedCompletion": "",
        "projectManager": "",
        "totalValue": 0,
        # Owned collections: populated only through update_project
        "documents": [],
        "timeline": [],
        "team": [],
    },
    PROJECT_STATUSES,
)

INVENTORY_ITEM = EntitySchema(
    "InventoryItem",
    "inventory",
    "INV",
    {
        "name": "",
        "unit": "Units",
        "totalStock": 0,
        "reserved": 0,
        "available": 0,
        "minStock": 0,
        "status": "good",
    },
    INVENTORY_STATUSES,
)

PURCHASE_ORDER = EntitySchema(
    "PurchaseOrder",
    "purchaseOrders",
    "PO",
    {
        "itemId": "",
        "itemName": "",
        "quantity": 0,
        "unit": "Units",
        "supplier": "",
        "expectedDate": "",
        "status": "Open",
    },
    PURCHASE_ORDER_STATUSES,
)

PRODUCTION_ORDER = EntitySchema(
    "ProductionOrder",
    "productionOrders",
    "BATCH",
    {
        "projectId": "",
        "batchId": "",
        "capacity": "",
        "stage": FIRST_PRODUCTION_STAGE,
        "status": "Pending",
        "progress": 0,
    },
    PRODUCTION_ORDER_STATUSES,
)

PRODUCTION_LINE_STAGE = EntitySchema(
    "ProductionLineStage",
    "productionLineStages",
    None,
    {
        "name": "",
        "batches": 0,
        "capacity": "",
        "delay": 0,
        "machine": "",
        "shift": "Day",
        "status": "on-track",
        "workers": 0,
    },
    STAGE_STATUSES,
)

QUALITY_RECORD = EntitySchema(
    "QualityRecord",
    "qualityRecords",
    "QC",
    {
        "projectId": None,
        "productionOrderId": None,
        "batchId": None,
        "inspector": "",
        "status": "Hold",
        "remarks": "",
    },
    QUALITY_STATUSES,
    deletable=True,
)

LOGISTICS_ORDER = EntitySchema(
    "LogisticsOrder",
    "logistics",
    "LOG",
    {
        "projectId": "",
        "fromLocation": "",
        "toLocation": "",
        "transporter": "",
        "vehicleNumber": "",
        "dispatchDate": "",
        "expectedDelivery": "",
        "status": "Planned",
    },
    LOGISTICS_STATUSES,
)

INSTALLATION = EntitySchema(
    "Installation",
    "installations",
    "INST",
    {
        "projectId": "",
        "technician": "",
        "startDate": "",
        "status": "Scheduled",
        "progress": 0,
        "tasks": [],
    },
    INSTALLATION_STATUSES,
)

INVOICE = EntitySchema(
    "Invoice",
    "invoices",
    "INV",
    {
        "projectId": "",
        "amount": 0,
        "dueDate": "",
        "status": "Draft",
        "paidAmount": 0,
    },
    INVOICE_STATUSES,
)

PAYMENT = EntitySchema(
    "Payment",
    "payments",
    "PAY",
    {
        "invoiceId": "",
        "amount": 0,
        "method": "",
        "status": "Pending",
    },
    PAYMENT_STATUSES,
)

SERVICE_TICKET = EntitySchema(
    "ServiceTicket",
    "serviceTickets",
    "TKT",
    {
        "projectId": "",
        "customer": "",
        "issue": "",
        "priority": "Medium",
        "status": "Open",
        "assignedTo": "",
    },
    SERVICE_TICKET_STATUSES,
)

EMPLOYEE = EntitySchema(
    "Employee",
    "employees",
    "EMP",
    {
        "name": "",
        "role": "",
        "email": "",
        "phone": "",
        "status": "Active",
    },
    EMPLOYEE_STATUSES,
    deletable=True,
)

COMPLIANCE_RECORD = EntitySchema(
    "ComplianceRecord",
    "complianceRecords",
    "COMP",
    {
        "title": "",
        "category": "",
        "certificateNumber": "",
        "issueDate": "",
        "expiryDate": "",
        "status": "Valid",
    },
    COMPLIANCE_STATUSES,
)

COMMUNITY_POST = EntitySchema(
    "CommunityPost",
    "communityPosts",
    "POST",
    {
        "author": "",
        "title": "",
        "content": "",
        "category": "",
        "likes": 0,
        "comments": 0,
    },
)

REPORT = EntitySchema(
    "Report",
    "reports",
    "RPT",
    {
        "title": "",
        "kind": "summary",
        "data": {},
    },
)


ENTITY_SCHEMAS: Tuple[EntitySchema, ...] = (
    LEAD,
    SURVEY,
    QUOTATION,
    PROJECT,
    INVENTORY_ITEM,
    PURCHASE_ORDER,
    PRODUCTION_ORDER,
    PRODUCTION_LINE_STAGE,
    QUALITY_RECORD,
    LOGISTICS_ORDER,
    INSTALLATION,
    INVOICE,
    PAYMENT,
    SERVICE_TICKET,
    EMPLOYEE,
    COMPLIANCE_RECORD,
    COMMUNITY_POST,
    REPORT,
)

SCHEMAS_BY_COLLECTION: Dict[str, EntitySchema] = {s.collection: s for s in ENTITY_SCHEMAS}

COLLECTION_KEYS: Tuple[str, ...] = tuple(s.collection for s in ENTITY_SCHEMAS)

# Persisted top-level layout: every collection plus the two singletons
SETTINGS_KEY = "settings"
CURRENT_MODULE_KEY = "currentModule"
STATE_KEYS: Tuple[str, ...] = COLLECTION_KEYS + (SETTINGS_KEY, CURRENT_MODULE_KEY)

DEFAULT_SETTINGS: Dict[str, Any] = {
    "companyName": "Solar OS",
    "currency": "INR",
    "timezone": "Asia/Kolkata",
    "defaultMargin": 12,
    "gstRate": 18,
    "monitoringLive": True,
}

DEFAULT_MODULE = "dashboard"
