import json

import pytest

import finance
import reports
from conftest import make_event, make_member, make_transaction
from models import FEMALE, MALE


@pytest.fixture
def data(store):
    moustapha = store.create_member(make_member(None, MALE, 45))
    fatou = store.create_member(make_member(None, FEMALE, 32, first_name="Fatou", last_name="Ndiaye"))
    awa = store.create_member(make_member(None, FEMALE, 27, first_name="Awa", last_name="Sarr"))
    store.create_member(make_member(None, MALE, 10, first_name="Ibrahima", last_name="Fall"))
    gamou = store.create_event(make_event(None, event_date="2024-09-15"))
    magal = store.create_event(make_event(None, name="Magal 2024", homme=5000, femme=3000,
                                          event_date="2024-08-20", status="completed"))
    old = store.create_event(make_event(None, name="Gamou 2023", event_date="2023-09-27"))

    finance.record_payment(store, moustapha, gamou, 3000)
    finance.record_payment(store, fatou, gamou, 500)
    finance.record_payment(store, awa, magal, 3000)
    store.create_transaction(make_transaction(gamou.id, "income", 10000))
    store.create_transaction(make_transaction(gamou.id, "expense", 4000, category="Alimentation"))
    store.create_transaction(make_transaction(old.id, "expense", 7000))
    return store, gamou


def _collections(store):
    return store.list_members(), store.list_events(), store.list_cotisations(), store.list_transactions()


def test_event_report_lists_every_adult(data):
    store, gamou = data
    members, _, cotisations, transactions = _collections(store)
    report = reports.build_event_report(gamou, members, cotisations, transactions)

    by_name = {line.name: line for line in report.dues}
    assert set(by_name) == {"Moustapha Diop", "Fatou Ndiaye", "Awa Sarr"}
    assert by_name["Moustapha Diop"].status == "paid"
    assert by_name["Fatou Ndiaye"].status == "partial"
    assert by_name["Fatou Ndiaye"].remaining == 1500
    assert by_name["Awa Sarr"].status == "unpaid"
    assert by_name["Awa Sarr"].due == 2000

    s = report.summary
    assert (s.dues_collected, s.other_income, s.expenses, s.balance) == (3500, 10000, 4000, 9500)
    assert (s.members_paid_count, s.eligible_member_count, s.payment_rate) == (1, 3, 33)
    assert len(report.transactions) == 2


def test_annual_report_only_covers_the_year(data):
    store, _ = data
    members, events, cotisations, transactions = _collections(store)
    report = reports.build_annual_report(2024, events, members, cotisations, transactions)

    assert {e.name for e in report.events} == {"Gamou 2024", "Magal 2024"}
    t = report.summary.totals
    assert (t.dues_collected, t.other_income, t.expenses, t.balance) == (6500, 10000, 4000, 12500)

    frame = reports.annual_summary_frame(report)
    assert frame["balance"].sum() == t.balance


def test_renderers_produce_documents(data):
    store, gamou = data
    members, events, cotisations, transactions = _collections(store)
    report = reports.build_event_report(gamou, members, cotisations, transactions)

    assert reports.event_report_to_pdf(report).startswith(b"%PDF")
    annual = reports.build_annual_report(2024, events, members, cotisations, transactions)
    assert reports.annual_report_to_pdf(annual).startswith(b"%PDF")

    empty = reports.build_annual_report(1999, events, members, cotisations, transactions)
    assert reports.annual_report_to_pdf(empty).startswith(b"%PDF")

    csv = reports.dues_detail_to_csv(report).decode("utf-8").splitlines()
    assert csv[0] == ",".join(reports.DUES_COLUMNS)
    assert len(csv) == 4

    payload = json.loads(reports.event_report_to_json(report))
    assert payload["event"] == "Gamou 2024"
    assert payload["balance"] == 9500
    assert payload["payment_rate"] == 33


def test_archive_payload_contains_every_collection(data):
    store, _ = data
    payload = json.loads(reports.archive_payload(store))
    assert {"export_date", "members", "commissions", "events", "cotisations", "transactions"} <= set(payload)
    assert len(payload["members"]) == 4
    assert len(payload["cotisations"]) == 3
    assert reports.archive_file_name().startswith("dahira-archive-")
