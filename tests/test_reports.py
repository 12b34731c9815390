from solar_os.reports import build_summary, invoice_totals

from conftest import START


def test_seed_summary(store):
    summary = store.summary()
    assert summary["generatedAt"] == "2026-10-19T09:30:00.000Z"
    assert summary["totalProjects"] == 1
    assert summary["totalLeads"] == 2
    assert summary["projectsByStatus"]["Production"] == 1
    assert summary["leadsByStatus"]["Qualified"] == 1
    assert summary["pipelineValue"] == 2500000
    assert summary["bottlenecks"] == ["Lamination"]
    assert summary["openTickets"] == 1
    assert summary["slaBreaches"] == []


def test_invoice_totals_with_seed_invoice(store):
    totals = store.summary()["invoices"]
    assert totals == {"total": 1875000, "paid": 0, "outstanding": 625000}


def test_invoice_totals_paid_and_overdue():
    totals = invoice_totals(
        [
            {"amount": 1000, "status": "Paid", "paidAmount": 1000},
            {"amount": 500.5, "status": "Overdue"},
        ]
    )
    assert totals == {"total": 1500.5, "paid": 1000, "outstanding": 500.5}


def test_low_stock_lists_warning_and_critical(store):
    store.update_inventory_item("INV-004", {"reserved": 100})
    low = {item["id"]: item["status"] for item in store.summary()["lowStock"]}
    # INV-001: 250 of 500 -> warning; INV-003: 80 of 200 -> critical; INV-004: 40 of 100 -> critical
    assert low == {"INV-001": "warning", "INV-003": "critical", "INV-004": "critical"}


def test_sla_breach_after_deadline(store, clock):
    clock.advance(hours=4, minutes=1)
    assert store.summary()["slaBreaches"] == ["TKT-1001"]
    store.advance_service_ticket("TKT-1001")
    store.advance_service_ticket("TKT-1001")
    store.advance_service_ticket("TKT-1001")
    summary = store.summary()
    assert summary["slaBreaches"] == []
    assert summary["openTickets"] == 0


def test_completed_projects_leave_the_pipeline():
    state = {
        "projects": [
            {"status": "Completed", "totalValue": 100},
            {"status": "Installation", "totalValue": 250},
        ]
    }
    summary = build_summary(state, START)
    assert summary["pipelineValue"] == 250
    assert summary["projectsByStatus"]["Completed"] == 1


def test_generate_report_stores_summary(store):
    report = store.generate_report("October review")
    assert report["id"].startswith("RPT-")
    assert report["kind"] == "summary"
    assert report["data"]["bottlenecks"] == ["Lamination"]
    assert store.get("reports", report["id"])["title"] == "October review"
