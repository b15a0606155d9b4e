import pytest

import finance
import utils
from conftest import make_member
from models import FEMALE, MALE


@pytest.mark.parametrize(
    "raw, expected",
    [("2500", 2500.0), ("2 500", 2500.0), ("12,5", 12.5), (3000, 3000.0), ("abc", None), (None, None)],
)
def test_parse_amount(raw, expected):
    assert utils.parse_amount(raw) == expected


def test_format_amount_groups_thousands():
    assert utils.format_amount(1234567) == "1 234 567"


@pytest.mark.parametrize("value, expected", [(1500.5, "1500.5"), (3000, "3000"), (0, "0"), (1250.25, "1250.25")])
def test_amount_text_keeps_fractions(value, expected):
    assert utils.amount_text(value) == expected
    assert utils.parse_amount(utils.amount_text(value)) == value


def test_validate_member_inputs():
    assert utils.validate_member_inputs("Fatou", "Ndiaye", FEMALE, 30) == []
    errors = utils.validate_member_inputs(" ", "", "Other", "x", None, "president")
    assert "First name is required." in errors
    assert "Last name is required." in errors
    assert "Gender must be Male or Female." in errors
    assert "Age must be a whole number." in errors
    assert "A commission role needs a commission." in errors


def test_validate_event_inputs():
    assert utils.validate_event_inputs("Gamou", "2024-09-15", "3000", "2000", "upcoming") == []
    errors = utils.validate_event_inputs("", "15/09/2024", "-1", "abc", "cancelled")
    assert errors == [
        "Event name is required.",
        "Event date must be a valid ISO date (YYYY-MM-DD).",
        "Male dues amount cannot be negative.",
        "Female dues amount must be numeric.",
        "Unknown event status.",
    ]


def test_validate_payment_inputs():
    assert utils.validate_payment_inputs(1, 1, "500") == []
    assert utils.validate_payment_inputs(None, 1, "0") == ["Select a member.", "Amount must be > 0."]
    assert utils.validate_payment_inputs(1, None, "x") == ["Select an event.", "Amount must be numeric."]


def test_validate_transaction_inputs():
    assert utils.validate_transaction_inputs(1, "income", "Dons", "1000") == []
    errors = utils.validate_transaction_inputs(1, "refund", " ", "-5")
    assert errors == ["Type must be income or expense.", "Category is required.", "Amount must be > 0."]


def test_search_members_by_name_or_function():
    members = [
        make_member(1, MALE, 40, first_name="Moustapha", last_name="Diop", function="Trader"),
        make_member(2, FEMALE, 30, first_name="Fatou", last_name="Ndiaye", function="Tailor"),
    ]
    assert [m.id for m in utils.search_members(members, "diop")] == [1]
    assert [m.id for m in utils.search_members(members, "TAIL")] == [2]
    assert len(utils.search_members(members, "  ")) == 2


def test_members_frame_and_csv():
    members = [make_member(1, MALE, 40), make_member(2, FEMALE, 12, first_name="Awa")]
    df = utils.members_frame(members, [])
    assert list(df["adult"]) == [True, False]
    csv = utils.to_csv_bytes(df).decode("utf-8")
    assert csv.splitlines()[0].startswith("id,name,gender,age,adult")


def test_empty_frame_keeps_columns():
    df = utils.records_to_frame([], ["a", "b"])
    assert df.empty
    assert list(df.columns) == ["a", "b"]


def test_sample_data(store):
    utils.insert_sample_data(store)
    members = store.list_members()
    assert len(members) == 4
    assert sum(1 for m in members if not m.is_adult) == 1

    events = store.list_events()
    cotisations = store.list_cotisations()
    gamou = next(e for e in events if e.name.startswith("Gamou"))
    summary = finance.aggregate_event(gamou.id, cotisations, store.list_transactions(), members)
    assert summary.dues_collected == 4500
    assert summary.members_paid_count == 1
    assert summary.expenses == 10000
