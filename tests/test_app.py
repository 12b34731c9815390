import json

from solar_os import build_store
from solar_os.models import AuditLog, StateSlot
from solar_os.store import DomainStore


def test_app_builds_store(app, app_store):
    assert isinstance(app_store, DomainStore)
    assert app.extensions["domain_store"] is app_store
    assert app_store.repository.key == "solar_os_test"


def test_snapshot_is_stored_in_state_slot_row(app, app_store):
    assert StateSlot.query.count() == 0
    lead = app_store.create_lead({"name": "Test Co", "status": "New"})

    row = StateSlot.query.filter_by(key="solar_os_test").one()
    saved = json.loads(row.value)
    assert lead["id"] in [record["id"] for record in saved["leads"]]


def test_new_store_reads_persisted_state(app, app_store):
    lead = app_store.create_lead({"name": "Test Co"})
    again = build_store(app)
    assert again.get("leads", lead["id"])["name"] == "Test Co"


def test_workflow_writes_audit_rows(app, app_store):
    project = app_store.approve_quotation("QUO-1002")

    approve = AuditLog.query.filter_by(action="APPROVE").one()
    assert approve.entity_type == "quotations"
    assert approve.entity_id == "QUO-1002"
    assert json.loads(approve.before_data)["status"] == "Sent"
    assert json.loads(approve.after_data)["status"] == "Approved"

    create = AuditLog.query.filter_by(action="CREATE", entity_type="projects").one()
    assert create.entity_id == project["id"]
    assert create.before_data is None


def test_noop_writes_no_audit_row(app, app_store):
    app_store.update_lead("LD-missing", {"status": "Lost"})
    assert AuditLog.query.count() == 0


def test_audit_can_be_disabled(app):
    app.config["AUDIT_ENABLED"] = False
    store = build_store(app)
    store.create_employee({"name": "Kiran"})
    assert AuditLog.query.count() == 0


def test_export_state_command(app):
    result = app.test_cli_runner().invoke(args=["export-state", "--indent", "0"])
    assert result.exit_code == 0
    state = json.loads(result.output)
    assert state["currentModule"] == "dashboard"
    assert len(state["productionLineStages"]) == 7


def test_reset_state_command(app, app_store):
    app_store.delete_lead("LD-1001")
    result = app.test_cli_runner().invoke(args=["reset-state"])
    assert result.exit_code == 0
    assert "reset to initial data" in result.output
    assert app_store.get("leads", "LD-1001") is not None


def test_init_db_command(app):
    result = app.test_cli_runner().invoke(args=["init-db"])
    assert result.exit_code == 0
    assert "Tables created." in result.output


def test_config_lives_in_package(app):
    from solar_os.config import BASE_DIR, Config, TestConfig

    assert issubclass(TestConfig, Config)
    assert app.config["APP_NAME"] == "Solar OS"
    assert (BASE_DIR / "solar_os" / "config.py").exists()
