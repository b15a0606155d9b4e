import pytest

import db
import finance
from conftest import make_cotisation, make_event, make_member, make_transaction
from errors import DuplicateCotisationError, NotFoundError, PersistenceError, ValidationError
from models import FEMALE, MALE, Commission, Cotisation


@pytest.fixture
def seeded(store):
    moustapha = store.create_member(make_member(None, MALE, 45))
    fatou = store.create_member(make_member(None, FEMALE, 32, first_name="Fatou", last_name="Ndiaye"))
    event = store.create_event(make_event(None))
    return store, moustapha, fatou, event


def test_members_round_trip_and_is_adult_derived_from_age(store):
    created = store.create_member(make_member(None, FEMALE, 17, phone="770000000"))
    assert created.id is not None
    assert created.is_adult is False

    store.update_member(created.id, age=18)
    reloaded = store.get_member(created.id)
    assert reloaded.age == 18
    assert reloaded.is_adult is True
    assert reloaded.phone == "770000000"


def test_update_unknown_record_raises_not_found(store):
    with pytest.raises(NotFoundError):
        store.update_member(12345, age=20)


def test_update_rejects_unknown_fields(store):
    member = store.create_member(make_member(None))
    with pytest.raises(ValueError):
        store.update_member(member.id, is_adult=True)


def test_check_constraint_surfaces_as_persistence_error(store):
    with pytest.raises(PersistenceError):
        store.create_event(make_event(None, status="cancelled"))


def test_record_payment_creates_then_accumulates(seeded):
    store, moustapha, _, event = seeded

    record, result = finance.record_payment(store, moustapha, event, 1000)
    assert result.accepted == 1000
    assert record.amount == 3000
    assert record.is_paid is False

    record, result = finance.record_payment(store, moustapha, event, 5000)
    assert result.accepted == 2000
    stored = store.find_cotisation(moustapha.id, event.id)
    assert stored.paid_amount == 3000
    assert stored.is_paid is True
    assert len(store.list_cotisations()) == 1


def test_due_amount_is_snapshotted_at_creation(seeded):
    store, _, fatou, event = seeded
    finance.record_payment(store, fatou, event, 500)

    store.update_event(event.id, cotisation_femme=10000)
    new_event = store.get_event(event.id)

    _, result = finance.record_payment(store, fatou, new_event, 5000)
    assert result.accepted == 1500
    assert store.find_cotisation(fatou.id, event.id).amount == 2000


def test_fatou_pays_twice(seeded):
    store, _, fatou, event = seeded
    _, first = finance.record_payment(store, fatou, event, 2500)
    assert (first.accepted, first.new_paid_amount, first.is_paid) == (2000, 2000, True)

    _, second = finance.record_payment(store, fatou, event, 500)
    assert second.accepted == 0
    assert store.find_cotisation(fatou.id, event.id).paid_amount == 2000


@pytest.mark.parametrize("amount", [0, -100])
def test_non_positive_payment_is_rejected(seeded, amount):
    store, moustapha, _, event = seeded
    with pytest.raises(ValidationError):
        finance.record_payment(store, moustapha, event, amount)
    assert store.list_cotisations() == []


def test_minor_cannot_pay_dues(store):
    child = store.create_member(make_member(None, MALE, 12))
    event = store.create_event(make_event(None))
    with pytest.raises(ValidationError) as exc:
        finance.record_payment(store, child, event, 1000)
    assert "minor" in exc.value.errors[0]


def test_unique_member_event_pair(seeded):
    store, moustapha, _, event = seeded
    store.create_cotisation(make_cotisation(moustapha.id, event.id, 3000, 0))
    with pytest.raises(DuplicateCotisationError):
        store.create_cotisation(make_cotisation(moustapha.id, event.id, 3000, 1000))


def test_concurrent_insert_falls_back_to_update(seeded):
    store, moustapha, _, event = seeded

    class StaleLookup:
        """First lookup misses, as if another writer inserted in between."""

        def __init__(self, inner):
            self.inner = inner
            self.calls = 0

        def find_cotisation(self, member_id, event_id):
            self.calls += 1
            if self.calls == 1:
                return None
            return self.inner.find_cotisation(member_id, event_id)

        def __getattr__(self, name):
            return getattr(self.inner, name)

    store.create_cotisation(make_cotisation(moustapha.id, event.id, 3000, 1000))
    record, result = finance.record_payment(StaleLookup(store), moustapha, event, 2500)
    assert result.accepted == 2000
    assert record.paid_amount == 3000
    assert len(store.list_cotisations()) == 1


def test_deleting_event_cascades_to_dues_and_transactions(seeded):
    store, moustapha, _, event = seeded
    other = store.create_event(make_event(None, name="Magal"))
    finance.record_payment(store, moustapha, event, 1000)
    finance.record_payment(store, moustapha, other, 1000)
    store.create_transaction(make_transaction(event.id, "expense", 300))

    store.delete_event(event.id)

    assert [c.event_id for c in store.list_cotisations()] == [other.id]
    assert store.list_transactions() == []


def test_deleting_member_keeps_dues_history(seeded):
    store, moustapha, _, event = seeded
    finance.record_payment(store, moustapha, event, 3000)
    store.delete_member(moustapha.id)

    assert store.get_member(moustapha.id) is None
    summary = finance.aggregate_event(event.id, store.list_cotisations(), [], store.list_members())
    assert summary.dues_collected == 3000


def test_deleting_commission_detaches_members(store):
    commission = store.create_commission(Commission(None, "Organisation"))
    member = store.create_member(make_member(None, commission_id=commission.id, commission_role="president"))

    store.delete_commission(commission.id)

    reloaded = store.get_member(member.id)
    assert reloaded.commission_id is None
    assert reloaded.commission_role is None
    assert store.list_commissions() == []


def test_transactions_are_listed_newest_first(seeded):
    store, _, _, event = seeded
    store.create_transaction(make_transaction(event.id, "income", 100, tx_date="2024-01-01"))
    store.create_transaction(make_transaction(event.id, "expense", 50, tx_date="2024-06-01"))
    assert [t.amount for t in store.list_transactions()] == [50, 100]


def test_listeners_get_touched_collections(store):
    seen = []
    store.subscribe(seen.append)
    event = store.create_event(make_event(None))
    store.delete_event(event.id)
    assert seen == [{"events"}, {"events", "cotisations", "transactions"}]


def test_failed_write_does_not_notify(store):
    seen = []
    store.subscribe(seen.append)
    with pytest.raises(PersistenceError):
        store.create_cotisation(Cotisation(None, 1, 999, 100))  # no such event
    assert seen == []


def test_report_history_keeps_latest_twenty(store):
    for i in range(25):
        store.add_report_history("annual", f"Annual report {2000 + i}", year=str(2000 + i))
    history = store.list_report_history()
    assert len(history) == 20
    assert history[0].name == "Annual report 2024"


def test_archive_keeps_members_and_commissions(seeded):
    store, moustapha, _, event = seeded
    store.create_commission(Commission(None, "Culture"))
    finance.record_payment(store, moustapha, event, 1000)
    store.create_transaction(make_transaction(event.id))
    store.add_report_history("event", "Report - Gamou 2024", event_id=event.id)

    store.archive_and_clear()

    assert store.list_events() == []
    assert store.list_cotisations() == []
    assert store.list_transactions() == []
    assert store.list_report_history() == []
    assert len(store.list_members()) == 2
    assert len(store.list_commissions()) == 1


def test_reset_removes_everything_but_users(seeded):
    store, moustapha, _, event = seeded
    finance.record_payment(store, moustapha, event, 1000)

    store.reset_all()

    assert store.list_members() == []
    assert store.list_events() == []
    assert store.list_cotisations() == []
    assert db.fetch_one("SELECT COUNT(*) AS c FROM users")["c"] == 2


def test_security_codes_default_and_update():
    assert db.get_security_codes() == {"archive_code": "ARCHIVE2024", "reset_code": "DAHIRA2024"}
    db.update_security_codes(reset_code="NEWCODE")
    assert db.get_security_codes()["reset_code"] == "NEWCODE"
    assert db.get_security_codes()["archive_code"] == "ARCHIVE2024"
