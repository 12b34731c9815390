"""
solar_os/store.py

DomainStore: the single owner of the application state tree.

Contract:
- Commands: create/update (every entity), delete (leads, employees, quality records only),
  plus the cross-entity workflows (quotation approval, PO receipt, worker reassignment,
  batch start, installation task toggle, status advances).
- Queries: get_state(), list(), get(), recent(), service_ticket_sla(), summary().
- subscribe(): listeners are called after every committed mutation.

Rules:
- Every mutation runs to completion synchronously, then the full snapshot is saved, then
  listeners are notified.
- Missing ids are silent no-ops (None return, DEBUG log only). Nothing raises for bad ids.
- Derived fields (inventory available/status, stage status, installation progress/status,
  compliance status) are recomputed here; values passed by callers for them are overwritten.
- Returned records are copies. Callers never hold references into the live state.

IMPORTANT:
- No validation of caller input. Presentation code validates before calling.
- No cascading deletes: surveys/quotations keep dangling leadId references by design.
"""

from __future__ import annotations

import copy
import logging
import random
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple

from . import reports
from .derivations import (
    add_stock,
    is_backward,
    next_status,
    recompute_compliance,
    recompute_installation,
    recompute_inventory,
    recompute_stage,
    reduced_delay,
    sla_deadline,
)
from .schemas import (
    COLLECTION_KEYS,
    CURRENT_MODULE_KEY,
    DEFAULT_MODULE,
    FIRST_PRODUCTION_STAGE,
    FORWARD_PROGRESSIONS,
    SCHEMAS_BY_COLLECTION,
    SETTINGS_KEY,
    STATE_KEYS,
)
from .seed import default_installation_tasks
from .utils import generate_id, to_iso, utc_now

logger = logging.getLogger(__name__)

PROJECT_LEAD_TIME = timedelta(days=30)
AUTO_PROJECT_MANAGER = "Auto Assigned"
AUTO_PROJECT_LOCATION = "TBD"
NEW_BATCH_PROGRESS = 5

Record = Dict[str, Any]
Listener = Callable[[FrozenSet[str]], None]
AuditHook = Callable[..., None]


class UnknownCollectionError(KeyError):
    """Raised when a query names a collection that is not part of the state tree."""


class DomainStore:
    """Explicit state container; inject it into consumers instead of looking it up globally."""

    def __init__(
        self,
        repository,
        *,
        now: Callable[[], datetime] | None = None,
        rng: random.Random | None = None,
        audit: AuditHook | None = None,
    ):
        self.repository = repository
        self._now = now or utc_now
        self._rng = rng
        self._audit = audit
        self._listeners: List[Tuple[Listener, Optional[FrozenSet[str]]]] = []
        self._collections: Dict[str, Dict[Any, Record]] = {}
        self._settings: Dict[str, Any] = {}
        self._current_module: str = DEFAULT_MODULE
        self._extra: Dict[str, Any] = {}
        self._hydrate(repository.load())

    # -----------------------------------------------------------------
    # Snapshot <-> live state
    # -----------------------------------------------------------------
    def _hydrate(self, snapshot: Dict[str, Any]) -> None:
        """Index the persisted layout (lists) into id-keyed dicts, keeping insertion order."""
        self._collections = {}
        for key in COLLECTION_KEYS:
            raw = snapshot.get(key)
            if not isinstance(raw, list):
                logger.warning("State key %r is not a list; starting it empty", key)
                raw = []
            indexed: Dict[Any, Record] = {}
            for record in raw:
                if not isinstance(record, dict) or "id" not in record:
                    logger.warning("Skipping %s record without an id: %r", key, record)
                    continue
                indexed[record["id"]] = record
            self._collections[key] = indexed

        self._settings = dict(snapshot.get(SETTINGS_KEY) or {})
        self._current_module = snapshot.get(CURRENT_MODULE_KEY) or DEFAULT_MODULE
        self._extra = {k: v for k, v in snapshot.items() if k not in STATE_KEYS}

    def _snapshot(self) -> Dict[str, Any]:
        """Live state in the persisted layout (shares record objects; copy before handing out)."""
        state: Dict[str, Any] = dict(self._extra)
        for key in COLLECTION_KEYS:
            state[key] = list(self._collections[key].values())
        state[SETTINGS_KEY] = self._settings
        state[CURRENT_MODULE_KEY] = self._current_module
        return state

    def reload(self) -> None:
        """Re-read the slot (e.g. after another process wrote it) and notify everyone."""
        self._hydrate(self.repository.load())
        self._notify(frozenset(STATE_KEYS))

    def reset(self) -> None:
        """Replace everything with the canonical initial state and persist it."""
        self._hydrate(self.repository.reset())
        self._notify(frozenset(STATE_KEYS))

    # -----------------------------------------------------------------
    # Subscriptions / commit
    # -----------------------------------------------------------------
    def subscribe(self, listener: Listener, collections: Iterable[str] | None = None) -> Callable[[], None]:
        """
        Register a listener called with the frozenset of changed top-level keys.

        With `collections`, the listener only fires when one of them changed.
        Returns an unsubscribe callable.
        """
        keys = frozenset(collections) if collections is not None else None
        entry = (listener, keys)
        self._listeners.append(entry)

        def unsubscribe() -> None:
            if entry in self._listeners:
                self._listeners.remove(entry)

        return unsubscribe

    def _notify(self, changed: FrozenSet[str]) -> None:
        for listener, keys in list(self._listeners):
            if keys is None or keys & changed:
                listener(changed)

    def _commit(self, *changed: str) -> None:
        self.repository.save(self._snapshot())
        self._notify(frozenset(changed))

    def _record_audit(self, collection: str, entity_id: Any, action: str, before=None, after=None) -> None:
        if self._audit is not None:
            self._audit(collection, entity_id, action, before=before, after=after)

    # -----------------------------------------------------------------
    # Primitives
    # -----------------------------------------------------------------
    def _stamp(self) -> str:
        return to_iso(self._now())

    def _records(self, collection: str) -> Dict[Any, Record]:
        try:
            return self._collections[collection]
        except KeyError:
            raise UnknownCollectionError(collection) from None

    def _derive(self, collection: str, record: Record) -> Record:
        if collection == "inventory":
            return recompute_inventory(record)
        if collection == "productionLineStages":
            return recompute_stage(record)
        if collection == "installations":
            return recompute_installation(record)
        if collection == "complianceRecords":
            return recompute_compliance(record, self._now())
        return record

    def _present(self, collection: str, record: Record) -> Record:
        """Copy for callers; compliance status is always re-derived against the current time."""
        out = copy.deepcopy(record)
        if collection == "complianceRecords":
            recompute_compliance(out, self._now())
        return out

    def _insert(self, collection: str, fields: Dict[str, Any]) -> Record:
        schema = SCHEMAS_BY_COLLECTION[collection]
        stamp = self._stamp()
        record = schema.new_record(fields)
        record["id"] = generate_id(schema.prefix, now=self._now, rng=self._rng)
        record["createdAt"] = stamp
        record["updatedAt"] = stamp
        if collection == "productionOrders" and not record.get("batchId"):
            record["batchId"] = record["id"]
        self._derive(collection, record)
        self._records(collection)[record["id"]] = record
        self._record_audit(collection, record["id"], "CREATE", after=record)
        return record

    def _guard_changes(self, collection: str, record: Record, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Drop status changes that would break forward-only progressions or bypass approval."""
        if "status" not in changes:
            return changes
        proposed = changes["status"]
        current = record.get("status")

        if collection == "quotations" and current == "Approved" and proposed != "Approved":
            logger.warning("Quotation %s is approved; status change to %r ignored", record["id"], proposed)
            return {k: v for k, v in changes.items() if k != "status"}

        if collection == "quotations" and proposed == "Approved" and current != "Approved":
            logger.warning("Quotation %s: use approve_quotation() to approve; status left at %r", record["id"], current)
            return {k: v for k, v in changes.items() if k != "status"}

        progression = FORWARD_PROGRESSIONS.get(collection)
        if progression and is_backward(progression, current, proposed):
            logger.warning(
                "%s %s: backward status change %r -> %r ignored", collection, record["id"], current, proposed
            )
            return {k: v for k, v in changes.items() if k != "status"}

        return changes

    def _apply(self, collection: str, record: Record, changes: Dict[str, Any], action: str = "UPDATE") -> Record:
        """Merge changes into the live record; the record is left untouched if derivation fails."""
        before = copy.deepcopy(record)
        changes = self._guard_changes(collection, record, copy.deepcopy(changes))
        changes.pop("id", None)
        changes.pop("createdAt", None)
        merged = dict(record)
        merged.update(changes)
        merged["updatedAt"] = self._stamp()
        self._derive(collection, merged)
        record.clear()
        record.update(merged)
        self._record_audit(collection, record["id"], action, before=before, after=record)
        return record

    def _create(self, collection: str, fields: Dict[str, Any]) -> Record:
        record = self._insert(collection, fields)
        self._commit(collection)
        return self._present(collection, record)

    def _update(self, collection: str, record_id: Any, changes: Dict[str, Any]) -> Optional[Record]:
        record = self._records(collection).get(record_id)
        if record is None:
            logger.debug("update %s: %r not found (no-op)", collection, record_id)
            return None
        self._apply(collection, record, changes)
        self._commit(collection)
        return self._present(collection, record)

    def _delete(self, collection: str, record_id: Any) -> bool:
        records = self._records(collection)
        record = records.pop(record_id, None)
        if record is None:
            logger.debug("delete %s: %r not found (no-op)", collection, record_id)
            return False
        self._record_audit(collection, record_id, "DELETE", before=record)
        self._commit(collection)
        return True

    def _advance(self, collection: str, record_id: Any) -> Optional[Record]:
        record = self._records(collection).get(record_id)
        if record is None:
            logger.debug("advance %s: %r not found (no-op)", collection, record_id)
            return None
        following = next_status(FORWARD_PROGRESSIONS[collection], record.get("status"))
        if following is None:
            return None
        self._apply(collection, record, {"status": following}, action="ADVANCE")
        self._commit(collection)
        return self._present(collection, record)

    # -----------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------
    def get_state(self) -> Dict[str, Any]:
        """Deep copy of the whole state tree in the persisted layout."""
        state = copy.deepcopy(self._snapshot())
        now = self._now()
        for record in state["complianceRecords"]:
            recompute_compliance(record, now)
        return state

    def list(self, collection: str) -> List[Record]:
        return [self._present(collection, r) for r in self._records(collection).values()]

    def get(self, collection: str, record_id: Any) -> Optional[Record]:
        record = self._records(collection).get(record_id)
        return self._present(collection, record) if record is not None else None

    def recent(self, collection: str, limit: int = 5) -> List[Record]:
        """Most recent records by createdAt (explicit sort; insertion order is not relied on)."""
        ordered = sorted(
            self._records(collection).values(),
            key=lambda r: r.get("createdAt") or "",
            reverse=True,
        )
        return [self._present(collection, r) for r in ordered[:limit]]

    @property
    def settings(self) -> Dict[str, Any]:
        return copy.deepcopy(self._settings)

    @property
    def current_module(self) -> str:
        return self._current_module

    def service_ticket_sla(self, ticket_id: str) -> Optional[Dict[str, Any]]:
        """SLA deadline computed at read time from priority and createdAt (never persisted)."""
        ticket = self._records("serviceTickets").get(ticket_id)
        if ticket is None:
            return None
        deadline = sla_deadline(ticket)
        if deadline is None:
            return None
        now = self._now()
        open_ticket = ticket.get("status") not in reports.CLOSED_TICKET_STATUSES
        return {
            "deadline": to_iso(deadline),
            "breached": open_ticket and now > deadline,
            "remainingSeconds": int((deadline - now).total_seconds()),
        }

    def summary(self) -> Dict[str, Any]:
        return reports.build_summary(self.get_state(), self._now())

    # -----------------------------------------------------------------
    # Leads
    # -----------------------------------------------------------------
    def create_lead(self, fields: Dict[str, Any]) -> Record:
        return self._create("leads", fields)

    def update_lead(self, lead_id: str, changes: Dict[str, Any]) -> Optional[Record]:
        return self._update("leads", lead_id, changes)

    def delete_lead(self, lead_id: str) -> bool:
        return self._delete("leads", lead_id)

    # -----------------------------------------------------------------
    # Surveys
    # -----------------------------------------------------------------
    def create_survey(self, fields: Dict[str, Any]) -> Record:
        return self._create("surveys", fields)

    def update_survey(self, survey_id: str, changes: Dict[str, Any]) -> Optional[Record]:
        return self._update("surveys", survey_id, changes)

    # -----------------------------------------------------------------
    # Quotations
    # -----------------------------------------------------------------
    def create_quotation(self, fields: Dict[str, Any]) -> Record:
        return self._create("quotations", fields)

    def update_quotation(self, quotation_id: str, changes: Dict[str, Any]) -> Optional[Record]:
        return self._update("quotations", quotation_id, changes)

    def approve_quotation(self, quotation_id: str) -> Optional[Record]:
        """
        Sent -> Approved, and synthesize exactly one Project linked by quotationId.

        No-op (None) when the quotation is unknown or not in 'Sent'. Approved is final
        (updates cannot move it back to Sent), so approving twice never creates a second project.
        """
        quotation = self._records("quotations").get(quotation_id)
        if quotation is None:
            logger.debug("approve_quotation: %r not found (no-op)", quotation_id)
            return None
        if quotation.get("status") != "Sent":
            logger.info("approve_quotation: %s is %r, only 'Sent' can be approved", quotation_id, quotation.get("status"))
            return None

        before = copy.deepcopy(quotation)
        quotation["status"] = "Approved"
        quotation["updatedAt"] = self._stamp()
        self._record_audit("quotations", quotation_id, "APPROVE", before=before, after=quotation)

        now = self._now()
        project = self._insert(
            "projects",
            {
                "quotationId": quotation_id,
                "customer": quotation.get("customer", ""),
                "capacity": quotation.get("capacity", ""),
                "location": AUTO_PROJECT_LOCATION,
                "status": "Survey",
                "progress": 0,
                "startDate": to_iso(now),
                "expectedCompletion": to_iso(now + PROJECT_LEAD_TIME),
                "projectManager": AUTO_PROJECT_MANAGER,
                "totalValue": quotation.get("totalAmount", 0),
            },
        )
        logger.info("Quotation %s approved; project %s created", quotation_id, project["id"])
        self._commit("quotations", "projects")
        return self._present("projects", project)

    # -----------------------------------------------------------------
    # Projects
    # -----------------------------------------------------------------
    def create_project(self, fields: Dict[str, Any]) -> Record:
        return self._create("projects", fields)

    def update_project(self, project_id: str, changes: Dict[str, Any]) -> Optional[Record]:
        """Also the only writer of the owned documents / timeline / team lists."""
        return self._update("projects", project_id, changes)

    def advance_project(self, project_id: str) -> Optional[Record]:
        return self._advance("projects", project_id)

    # -----------------------------------------------------------------
    # Inventory & purchase orders
    # -----------------------------------------------------------------
    def create_inventory_item(self, fields: Dict[str, Any]) -> Record:
        return self._create("inventory", fields)

    def update_inventory_item(self, item_id: str, changes: Dict[str, Any]) -> Optional[Record]:
        return self._update("inventory", item_id, changes)

    def create_purchase_order(self, fields: Dict[str, Any]) -> Record:
        return self._create("purchaseOrders", fields)

    def update_purchase_order(self, order_id: str, changes: Dict[str, Any]) -> Optional[Record]:
        return self._update("purchaseOrders", order_id, changes)

    def receive_purchase_order(self, order_id: str) -> Optional[Record]:
        """
        Credit the PO quantity to its inventory item and mark the PO Received.

        Guarded: unknown PO, a PO already Received/Cancelled, or a PO whose item no longer
        exists is a no-op, so repeated calls never double-credit stock.
        """
        order = self._records("purchaseOrders").get(order_id)
        if order is None:
            logger.debug("receive_purchase_order: %r not found (no-op)", order_id)
            return None
        if order.get("status") in ("Received", "Cancelled"):
            logger.info("receive_purchase_order: %s already %s (no-op)", order_id, order.get("status"))
            return None

        item = self._records("inventory").get(order.get("itemId"))
        if item is None:
            logger.warning("receive_purchase_order: %s references missing item %r", order_id, order.get("itemId"))
            return None

        self._apply(
            "inventory",
            item,
            {"totalStock": add_stock(item.get("totalStock"), order.get("quantity"))},
            action="RECEIVE",
        )
        self._apply("purchaseOrders", order, {"status": "Received"}, action="RECEIVE")
        logger.info("PO %s received: +%s %s", order_id, order.get("quantity"), item.get("name"))
        self._commit("purchaseOrders", "inventory")
        return self._present("inventory", item)

    def cancel_purchase_order(self, order_id: str) -> Optional[Record]:
        order = self._records("purchaseOrders").get(order_id)
        if order is None or order.get("status") in ("Received", "Cancelled"):
            return None
        self._apply("purchaseOrders", order, {"status": "Cancelled"}, action="CANCEL")
        self._commit("purchaseOrders")
        return self._present("purchaseOrders", order)

    # -----------------------------------------------------------------
    # Production
    # -----------------------------------------------------------------
    def create_production_order(self, fields: Dict[str, Any]) -> Record:
        return self._create("productionOrders", fields)

    def update_production_order(self, order_id: str, changes: Dict[str, Any]) -> Optional[Record]:
        return self._update("productionOrders", order_id, changes)

    def update_production_stage(self, stage_id: Any, changes: Dict[str, Any]) -> Optional[Record]:
        return self._update("productionLineStages", stage_id, changes)

    def start_production_batch(self, project_id: str, capacity: str) -> Record:
        """
        New batch at the first stage (In Progress, 5%) and one more batch on that stage.

        project_id is not checked against existing projects.
        """
        order = self._insert(
            "productionOrders",
            {
                "projectId": project_id,
                "capacity": capacity,
                "stage": FIRST_PRODUCTION_STAGE,
                "status": "In Progress",
                "progress": NEW_BATCH_PROGRESS,
            },
        )
        stages = self._records("productionLineStages")
        first = next(
            (s for s in stages.values() if s.get("name") == FIRST_PRODUCTION_STAGE),
            next(iter(stages.values()), None),
        )
        if first is not None:
            self._apply(
                "productionLineStages",
                first,
                {"batches": int(first.get("batches") or 0) + 1},
                action="START_BATCH",
            )
        self._commit("productionOrders", "productionLineStages")
        return self._present("productionOrders", order)

    def reassign_workers(self, from_stage_id: Any, to_stage_id: Any, count: int) -> Optional[int]:
        """
        Move up to `count` workers between stages; returns how many actually moved.

        - Clamped to the source's worker count (never negative).
        - Target delay drops 10 minutes per moved worker (floor 0) and its status is re-derived.
        - Source status is left as it was.
        """
        stages = self._records("productionLineStages")
        source = stages.get(from_stage_id)
        target = stages.get(to_stage_id)
        if source is None or target is None or from_stage_id == to_stage_id:
            logger.debug("reassign_workers: %r -> %r not applicable (no-op)", from_stage_id, to_stage_id)
            return None

        available = int(source.get("workers") or 0)
        moved = max(0, min(int(count), available))
        if moved == 0:
            return 0

        new_delay = reduced_delay(target.get("delay"), moved)
        stamp = self._stamp()
        source_before = copy.deepcopy(source)
        target_before = copy.deepcopy(target)

        source["workers"] = available - moved
        source["updatedAt"] = stamp

        target["workers"] = int(target.get("workers") or 0) + moved
        target["delay"] = new_delay
        target["updatedAt"] = stamp
        recompute_stage(target)

        self._record_audit("productionLineStages", from_stage_id, "REASSIGN", before=source_before, after=source)
        self._record_audit("productionLineStages", to_stage_id, "REASSIGN", before=target_before, after=target)
        logger.info("Moved %d workers from %s to %s", moved, source.get("name"), target.get("name"))
        self._commit("productionLineStages")
        return moved

    # -----------------------------------------------------------------
    # Quality
    # -----------------------------------------------------------------
    def create_quality_record(self, fields: Dict[str, Any]) -> Record:
        return self._create("qualityRecords", fields)

    def update_quality_record(self, record_id: str, changes: Dict[str, Any]) -> Optional[Record]:
        return self._update("qualityRecords", record_id, changes)

    def delete_quality_record(self, record_id: str) -> bool:
        return self._delete("qualityRecords", record_id)

    # -----------------------------------------------------------------
    # Logistics
    # -----------------------------------------------------------------
    def create_logistics_order(self, fields: Dict[str, Any]) -> Record:
        return self._create("logistics", fields)

    def update_logistics_order(self, order_id: str, changes: Dict[str, Any]) -> Optional[Record]:
        return self._update("logistics", order_id, changes)

    def advance_logistics(self, order_id: str) -> Optional[Record]:
        """Planned -> Dispatched -> In Transit -> Delivered; Delivered is terminal."""
        return self._advance("logistics", order_id)

    # -----------------------------------------------------------------
    # Installations
    # -----------------------------------------------------------------
    def create_installation(self, fields: Dict[str, Any]) -> Record:
        """Without an explicit checklist the standard rooftop tasks are used."""
        if "tasks" not in fields:
            fields = dict(fields, tasks=default_installation_tasks())
        return self._create("installations", fields)

    def update_installation(self, installation_id: str, changes: Dict[str, Any]) -> Optional[Record]:
        return self._update("installations", installation_id, changes)

    def toggle_installation_task(self, installation_id: str, task_index: int) -> Optional[Record]:
        """Flip one checklist task; progress and status are re-derived by the store."""
        installation = self._records("installations").get(installation_id)
        if installation is None:
            logger.debug("toggle_installation_task: %r not found (no-op)", installation_id)
            return None
        tasks = copy.deepcopy(installation.get("tasks") or [])
        if not 0 <= task_index < len(tasks):
            return None
        tasks[task_index]["completed"] = not tasks[task_index].get("completed", False)
        self._apply("installations", installation, {"tasks": tasks}, action="TOGGLE_TASK")
        self._commit("installations")
        return self._present("installations", installation)

    # -----------------------------------------------------------------
    # Finance
    # -----------------------------------------------------------------
    def create_invoice(self, fields: Dict[str, Any]) -> Record:
        return self._create("invoices", fields)

    def update_invoice(self, invoice_id: str, changes: Dict[str, Any]) -> Optional[Record]:
        return self._update("invoices", invoice_id, changes)

    def create_payment(self, fields: Dict[str, Any]) -> Record:
        return self._create("payments", fields)

    def update_payment(self, payment_id: str, changes: Dict[str, Any]) -> Optional[Record]:
        return self._update("payments", payment_id, changes)

    # -----------------------------------------------------------------
    # Service
    # -----------------------------------------------------------------
    def create_service_ticket(self, fields: Dict[str, Any]) -> Record:
        return self._create("serviceTickets", fields)

    def update_service_ticket(self, ticket_id: str, changes: Dict[str, Any]) -> Optional[Record]:
        return self._update("serviceTickets", ticket_id, changes)

    def advance_service_ticket(self, ticket_id: str) -> Optional[Record]:
        """Open -> In Progress -> Scheduled -> Resolved -> Closed; Closed is terminal."""
        return self._advance("serviceTickets", ticket_id)

    # -----------------------------------------------------------------
    # Employees
    # -----------------------------------------------------------------
    def create_employee(self, fields: Dict[str, Any]) -> Record:
        return self._create("employees", fields)

    def update_employee(self, employee_id: str, changes: Dict[str, Any]) -> Optional[Record]:
        return self._update("employees", employee_id, changes)

    def delete_employee(self, employee_id: str) -> bool:
        return self._delete("employees", employee_id)

    def toggle_employee_status(self, employee_id: str) -> Optional[Record]:
        employee = self._records("employees").get(employee_id)
        if employee is None:
            return None
        status = "Inactive" if employee.get("status") == "Active" else "Active"
        return self._update("employees", employee_id, {"status": status})

    # -----------------------------------------------------------------
    # Compliance
    # -----------------------------------------------------------------
    def create_compliance_record(self, fields: Dict[str, Any]) -> Record:
        return self._create("complianceRecords", fields)

    def update_compliance_record(self, record_id: str, changes: Dict[str, Any]) -> Optional[Record]:
        return self._update("complianceRecords", record_id, changes)

    # -----------------------------------------------------------------
    # Community
    # -----------------------------------------------------------------
    def create_community_post(self, fields: Dict[str, Any]) -> Record:
        return self._create("communityPosts", fields)

    def update_community_post(self, post_id: str, changes: Dict[str, Any]) -> Optional[Record]:
        return self._update("communityPosts", post_id, changes)

    def like_community_post(self, post_id: str) -> Optional[Record]:
        post = self._records("communityPosts").get(post_id)
        if post is None:
            return None
        return self._update("communityPosts", post_id, {"likes": int(post.get("likes") or 0) + 1})

    def comment_on_community_post(self, post_id: str) -> Optional[Record]:
        post = self._records("communityPosts").get(post_id)
        if post is None:
            return None
        return self._update("communityPosts", post_id, {"comments": int(post.get("comments") or 0) + 1})

    # -----------------------------------------------------------------
    # Reports
    # -----------------------------------------------------------------
    def create_report(self, fields: Dict[str, Any]) -> Record:
        return self._create("reports", fields)

    def update_report(self, report_id: str, changes: Dict[str, Any]) -> Optional[Record]:
        return self._update("reports", report_id, changes)

    def generate_report(self, title: str, kind: str = "summary") -> Record:
        """Store the current dashboard summary as a Report record."""
        return self._create("reports", {"title": title, "kind": kind, "data": self.summary()})

    # -----------------------------------------------------------------
    # Singletons
    # -----------------------------------------------------------------
    def update_settings(self, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Partial merge; settings are never replaced wholesale or deleted."""
        before = copy.deepcopy(self._settings)
        self._settings.update(copy.deepcopy(changes))
        self._record_audit(SETTINGS_KEY, SETTINGS_KEY, "UPDATE", before=before, after=self._settings)
        self._commit(SETTINGS_KEY)
        return self.settings

    def set_current_module(self, module: str) -> None:
        self._current_module = module
        self._commit(CURRENT_MODULE_KEY)
