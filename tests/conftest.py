"""
Shared fixtures: a fresh SQLite file per test and small record factories.
"""

import pytest

import auth
import db
from models import FEMALE, MALE, Cotisation, Event, Member, Transaction
from store import Store


@pytest.fixture(autouse=True)
def temp_db(tmp_path, monkeypatch):
    path = tmp_path / "dahira-test.db"
    monkeypatch.setattr(db, "DB_FILE", path)
    # low bcrypt cost keeps the suite fast
    db.init_db(auth.hash_password("admin123", rounds=4), auth.hash_password("user123", rounds=4))
    return path


@pytest.fixture
def store():
    return Store()


def make_member(member_id=1, gender=MALE, age=30, first_name="Moustapha", last_name="Diop", **kw):
    return Member(id=member_id, first_name=first_name, last_name=last_name, gender=gender, age=age, **kw)


def make_event(event_id=1, homme=3000, femme=2000, status="upcoming", event_date="2024-09-15",
               name="Gamou 2024"):
    return Event(id=event_id, name=name, date=event_date, cotisation_homme=homme,
                 cotisation_femme=femme, status=status)


def make_cotisation(member_id=1, event_id=1, amount=3000, paid=0, cotisation_id=None, is_paid=None):
    return Cotisation(
        id=cotisation_id,
        member_id=member_id,
        event_id=event_id,
        amount=amount,
        paid_amount=paid,
        is_paid=(paid >= amount) if is_paid is None else is_paid,
        paid_at="2024-09-01T10:00:00" if paid else None,
    )


def make_transaction(event_id=1, tx_type="income", amount=1000, category="Dons", tx_date="2024-09-15"):
    return Transaction(id=None, event_id=event_id, type=tx_type, category=category, amount=amount,
                       description="", date=tx_date)


@pytest.fixture
def fatou():
    return make_member(member_id=2, gender=FEMALE, age=32, first_name="Fatou", last_name="Ndiaye")


@pytest.fixture
def gamou():
    return make_event()
