import json
from decimal import InvalidOperation

import pytest

from solar_os.persistence import MemoryStateSlot
from solar_os.seed import build_initial_state
from solar_os.store import UnknownCollectionError

from conftest import START, make_store

LEAD_FIELDS = {
    "name": "Test Co",
    "mobile": "+91 90000 00000",
    "source": "Website",
    "location": "Pune",
    "capacity": "10 KW",
    "status": "New",
    "aiScore": 64,
    "electricityBill": "₹8,000/month",
    "assignedTo": "Priya Shah",
}


class TestCreate:
    def test_create_assigns_prefixed_id_and_timestamps(self, empty_store, clock):
        lead = empty_store.create_lead(LEAD_FIELDS)
        assert lead["id"].startswith("LD-")
        assert lead["createdAt"] == lead["updatedAt"] == "2026-10-19T09:30:00.000Z"
        assert empty_store.get("leads", lead["id"])["name"] == "Test Co"

    def test_create_ignores_caller_id(self, empty_store):
        lead = empty_store.create_lead(dict(LEAD_FIELDS, id="LD-fixed"))
        assert lead["id"] != "LD-fixed"

    def test_each_collection_uses_its_prefix(self, empty_store):
        assert empty_store.create_survey({"leadId": "LD-x"})["id"].startswith("SUR-")
        assert empty_store.create_quotation({"leadId": "LD-x"})["id"].startswith("QUO-")
        assert empty_store.create_project({"customer": "X"})["id"].startswith("PRJ-")
        assert empty_store.create_inventory_item({"name": "Cables"})["id"].startswith("INV-")
        assert empty_store.create_purchase_order({"itemId": "INV-1"})["id"].startswith("PO-")
        assert empty_store.create_production_order({"projectId": "PRJ-1"})["id"].startswith("BATCH-")
        assert empty_store.create_quality_record({"status": "Pass"})["id"].startswith("QC-")
        assert empty_store.create_logistics_order({"projectId": "PRJ-1"})["id"].startswith("LOG-")
        assert empty_store.create_installation({"projectId": "PRJ-1"})["id"].startswith("INST-")
        assert empty_store.create_invoice({"projectId": "PRJ-1"})["id"].startswith("INV-")
        assert empty_store.create_payment({"invoiceId": "INV-1"})["id"].startswith("PAY-")
        assert empty_store.create_service_ticket({"projectId": "PRJ-1"})["id"].startswith("TKT-")
        assert empty_store.create_employee({"name": "A"})["id"].startswith("EMP-")
        assert empty_store.create_compliance_record({"title": "ISO"})["id"].startswith("COMP-")
        assert empty_store.create_community_post({"title": "Hi"})["id"].startswith("POST-")
        assert empty_store.create_report({"title": "Q3"})["id"].startswith("RPT-")

    def test_project_owned_collections_start_empty(self, empty_store):
        project = empty_store.create_project({"customer": "X"})
        assert project["documents"] == [] and project["timeline"] == [] and project["team"] == []

    def test_list_defaults_are_not_shared(self, empty_store):
        first = empty_store.create_project({"customer": "A"})
        empty_store.update_project(first["id"], {"team": [{"id": "T1", "name": "Ravi", "role": "Engineer"}]})
        second = empty_store.create_project({"customer": "B"})
        assert second["team"] == []

    def test_inventory_derived_fields_ignore_caller_values(self, empty_store):
        item = empty_store.create_inventory_item(
            {"name": "Cells", "totalStock": 1200, "reserved": 950, "minStock": 500, "available": 9999, "status": "good"}
        )
        assert item["available"] == 250
        assert item["status"] == "warning"

    def test_installation_gets_standard_checklist(self, empty_store):
        installation = empty_store.create_installation({"projectId": "PRJ-1", "technician": "Suresh"})
        assert len(installation["tasks"]) == 6
        assert installation["status"] == "Scheduled"
        assert installation["progress"] == 0

    def test_production_order_batch_id_defaults_to_id(self, empty_store):
        order = empty_store.create_production_order({"projectId": "PRJ-1", "capacity": "10 KW"})
        assert order["batchId"] == order["id"]

    def test_compliance_status_derived_at_create(self, empty_store):
        record = empty_store.create_compliance_record({"title": "BIS", "expiryDate": "2026-10-01", "status": "Valid"})
        assert record["status"] == "Expired"


class TestUpdate:
    def test_update_merges_and_refreshes_updated_at(self, empty_store, clock):
        lead = empty_store.create_lead(LEAD_FIELDS)
        clock.advance(minutes=5)
        updated = empty_store.update_lead(lead["id"], {"status": "Qualified"})
        assert updated["status"] == "Qualified"
        assert updated["name"] == "Test Co"
        assert updated["createdAt"] == lead["createdAt"]
        assert updated["updatedAt"] == "2026-10-19T09:35:00.000Z"

    def test_update_cannot_change_id_or_created_at(self, empty_store):
        lead = empty_store.create_lead(LEAD_FIELDS)
        updated = empty_store.update_lead(lead["id"], {"id": "LD-other", "createdAt": "1999-01-01"})
        assert updated["id"] == lead["id"]
        assert updated["createdAt"] == lead["createdAt"]

    def test_update_missing_id_is_silent_noop(self, empty_store, slot):
        before = slot.read("solar_os_data")
        assert empty_store.update_lead("LD-missing", {"status": "Lost"}) is None
        assert slot.read("solar_os_data") == before

    def test_inventory_update_recomputes_derived_fields(self, store):
        updated = store.update_inventory_item("INV-001", {"reserved": 1000})
        assert updated["available"] == 200
        assert updated["status"] == "critical"

    def test_failed_derivation_leaves_record_unchanged(self, clock):
        state = build_initial_state(START)
        state["inventory"][0]["totalStock"] = "12a"
        slot = MemoryStateSlot({"solar_os_data": json.dumps(state)})
        store = make_store(slot, clock)

        with pytest.raises(InvalidOperation):
            store.update_inventory_item("INV-001", {"reserved": 10, "unit": "Pieces"})
        item = store.get("inventory", "INV-001")
        assert item["reserved"] == 950
        assert item["unit"] == "Units"
        assert item["totalStock"] == "12a"

    def test_installation_update_recomputes_progress(self, empty_store):
        installation = empty_store.create_installation({"projectId": "PRJ-1"})
        tasks = installation["tasks"]
        for task in tasks[:3]:
            task["completed"] = True
        updated = empty_store.update_installation(installation["id"], {"tasks": tasks, "progress": 0, "status": "Scheduled"})
        assert updated["progress"] == 50
        assert updated["status"] == "In Progress"

    def test_stage_update_rederives_status(self, store):
        stage = store.update_production_stage(3, {"delay": 35})
        assert stage["status"] == "bottleneck"
        stage = store.update_production_stage(3, {"delay": 0})
        assert stage["status"] == "on-track"

    def test_backward_project_status_is_ignored(self, store):
        project = store.update_project("PRJ-1001", {"status": "Design", "progress": 50})
        assert project["status"] == "Production"
        assert project["progress"] == 50

    def test_forward_jump_is_allowed(self, store):
        assert store.update_project("PRJ-1001", {"status": "Installation"})["status"] == "Installation"

    def test_update_cannot_approve_quotation(self, store):
        quotation = store.update_quotation("QUO-1002", {"status": "Approved"})
        assert quotation["status"] == "Sent"
        assert [p for p in store.list("projects") if p["quotationId"] == "QUO-1002"] == []

    def test_project_documents_written_through_update(self, store):
        document = {"id": "DOC-1", "name": "Single line diagram.pdf", "uploadedAt": "2026-10-19T09:30:00.000Z"}
        store.update_project("PRJ-1001", {"documents": [document]})
        assert store.get("projects", "PRJ-1001")["documents"] == [document]


class TestDelete:
    def test_delete_lead_keeps_dependents(self, store):
        assert store.delete_lead("LD-1001") is True
        assert store.get("leads", "LD-1001") is None
        # Dangling references are expected
        assert store.get("surveys", "SUR-1001")["leadId"] == "LD-1001"
        assert store.get("quotations", "QUO-1001")["leadId"] == "LD-1001"

    def test_delete_employee_and_quality_record(self, empty_store):
        employee = empty_store.create_employee({"name": "Kiran", "role": "Technician"})
        record = empty_store.create_quality_record({"status": "Fail", "remarks": "Micro-cracks"})
        assert empty_store.delete_employee(employee["id"])
        assert empty_store.delete_quality_record(record["id"])
        assert empty_store.list("employees") == []
        assert empty_store.list("qualityRecords") == []

    def test_delete_missing_is_noop(self, empty_store):
        assert empty_store.delete_lead("LD-missing") is False

    def test_only_three_entities_are_deletable(self, empty_store):
        assert not hasattr(empty_store, "delete_project")
        assert not hasattr(empty_store, "delete_quotation")


class TestQueries:
    def test_returned_records_are_copies(self, empty_store):
        lead = empty_store.create_lead(LEAD_FIELDS)
        lead["name"] = "Mutated"
        empty_store.get("leads", lead["id"])["name"] = "Mutated again"
        assert empty_store.get("leads", lead["id"])["name"] == "Test Co"

    def test_get_state_is_a_deep_copy(self, store):
        state = store.get_state()
        state["inventory"][0]["totalStock"] = 0
        assert store.get("inventory", "INV-001")["totalStock"] == 1200

    def test_recent_sorts_by_created_at(self, empty_store, clock):
        first = empty_store.create_lead(dict(LEAD_FIELDS, name="First"))
        clock.advance(minutes=1)
        second = empty_store.create_lead(dict(LEAD_FIELDS, name="Second"))
        assert [r["id"] for r in empty_store.recent("leads", 2)] == [second["id"], first["id"]]

    def test_unknown_collection_raises(self, empty_store):
        with pytest.raises(UnknownCollectionError):
            empty_store.list("widgets")

    def test_compliance_status_rederived_on_read(self, empty_store, clock):
        record = empty_store.create_compliance_record({"title": "ISO 9001", "expiryDate": "2026-12-31"})
        assert record["status"] == "Valid"
        clock.advance(days=60)
        assert empty_store.get("complianceRecords", record["id"])["status"] == "Expiring Soon"
        clock.advance(days=30)
        assert empty_store.get_state()["complianceRecords"][0]["status"] == "Expired"

    def test_settings_and_module(self, empty_store):
        settings = empty_store.update_settings({"gstRate": 12})
        assert settings["gstRate"] == 12
        assert settings["companyName"] == "Solar OS"
        empty_store.set_current_module("inventory")
        assert empty_store.current_module == "inventory"
        assert empty_store.get_state()["currentModule"] == "inventory"


class TestSubscriptions:
    def test_listener_receives_changed_keys(self, empty_store):
        seen = []
        empty_store.subscribe(seen.append)
        empty_store.create_lead(LEAD_FIELDS)
        assert seen == [frozenset({"leads"})]

    def test_filtered_listener(self, empty_store):
        seen = []
        empty_store.subscribe(seen.append, collections=["projects"])
        empty_store.create_lead(LEAD_FIELDS)
        assert seen == []
        empty_store.create_project({"customer": "X"})
        assert seen == [frozenset({"projects"})]

    def test_unsubscribe(self, empty_store):
        seen = []
        unsubscribe = empty_store.subscribe(seen.append)
        unsubscribe()
        empty_store.create_lead(LEAD_FIELDS)
        assert seen == []

    def test_noop_does_not_notify(self, empty_store):
        seen = []
        empty_store.subscribe(seen.append)
        empty_store.update_lead("LD-missing", {"status": "Lost"})
        assert seen == []
