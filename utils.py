"""
utils.py
Validation, dates, exports, sample data.
"""

from __future__ import annotations

from dataclasses import asdict, is_dataclass
from datetime import date, timedelta
import pandas as pd

from finance import record_payment
from models import (
    COMMISSION_ROLES,
    EVENT_STATUSES,
    FEMALE,
    GENDERS,
    MALE,
    TRANSACTION_TYPES,
    Commission,
    Event,
    Member,
    Transaction,
)


def today_iso() -> str:
    return date.today().isoformat()


def parse_iso(d: str) -> date:
    return date.fromisoformat(d[:10])


def parse_amount(value) -> float | None:
    """
    Form amounts come in as text; returns None when not numeric.
    """
    try:
        return float(str(value).replace(" ", "").replace(",", "."))
    except (TypeError, ValueError):
        return None


def format_amount(value: float) -> str:
    return f"{value:,.0f}".replace(",", " ")


def amount_text(value: float) -> str:
    """
    Plain editable text for a form default (no grouping, no float noise).
    """
    return f"{value:.2f}".rstrip("0").rstrip(".")


def validate_member_inputs(first_name: str, last_name: str, gender: str, age,
                           commission_id=None, commission_role: str | None = None) -> list[str]:
    errors: list[str] = []
    if not first_name.strip():
        errors.append("First name is required.")
    if not last_name.strip():
        errors.append("Last name is required.")
    if gender not in GENDERS:
        errors.append("Gender must be Male or Female.")
    try:
        if int(age) < 0:
            errors.append("Age cannot be negative.")
    except (TypeError, ValueError):
        errors.append("Age must be a whole number.")
    if commission_role and commission_role not in COMMISSION_ROLES:
        errors.append("Unknown commission role.")
    if commission_role and commission_id is None:
        errors.append("A commission role needs a commission.")
    return errors


def validate_event_inputs(name: str, event_date: str, cotisation_homme, cotisation_femme,
                          status: str) -> list[str]:
    errors: list[str] = []
    if not name.strip():
        errors.append("Event name is required.")
    try:
        parse_iso(event_date)
    except (TypeError, ValueError):
        errors.append("Event date must be a valid ISO date (YYYY-MM-DD).")
    for label, value in (("Male", cotisation_homme), ("Female", cotisation_femme)):
        amount = parse_amount(value)
        if amount is None:
            errors.append(f"{label} dues amount must be numeric.")
        elif amount < 0:
            errors.append(f"{label} dues amount cannot be negative.")
    if status not in EVENT_STATUSES:
        errors.append("Unknown event status.")
    return errors


def validate_payment_inputs(member_id, event_id, amount) -> list[str]:
    errors: list[str] = []
    if member_id is None:
        errors.append("Select a member.")
    if event_id is None:
        errors.append("Select an event.")
    value = parse_amount(amount)
    if value is None:
        errors.append("Amount must be numeric.")
    elif value <= 0:
        errors.append("Amount must be > 0.")
    return errors


def validate_transaction_inputs(event_id, tx_type: str, category: str, amount) -> list[str]:
    errors: list[str] = []
    if event_id is None:
        errors.append("Select an event.")
    if tx_type not in TRANSACTION_TYPES:
        errors.append("Type must be income or expense.")
    if not category.strip():
        errors.append("Category is required.")
    value = parse_amount(amount)
    if value is None:
        errors.append("Amount must be numeric.")
    elif value <= 0:
        errors.append("Amount must be > 0.")
    return errors


def records_to_frame(records, columns: list[str] | None = None) -> pd.DataFrame:
    rows = [asdict(r) if is_dataclass(r) else dict(r) for r in records]
    if not rows:
        return pd.DataFrame(columns=columns or [])
    df = pd.DataFrame(rows)
    return df[columns] if columns else df


def members_frame(members: list[Member], commissions: list[Commission]) -> pd.DataFrame:
    names = {c.id: c.name for c in commissions}
    rows = [
        {
            "id": m.id,
            "name": m.full_name,
            "gender": m.gender,
            "age": m.age,
            "adult": m.is_adult,
            "phone": m.phone,
            "function": m.function,
            "position": m.position,
            "commission": names.get(m.commission_id, ""),
            "commission_role": m.commission_role or "",
        }
        for m in members
    ]
    return records_to_frame(rows, ["id", "name", "gender", "age", "adult", "phone", "function",
                                   "position", "commission", "commission_role"])


def to_csv_bytes(df: pd.DataFrame) -> bytes:
    return df.to_csv(index=False).encode("utf-8")


def search_members(members: list[Member], query: str) -> list[Member]:
    q = query.strip().lower()
    if not q:
        return list(members)
    return [
        m for m in members
        if q in m.first_name.lower() or q in m.last_name.lower() or q in m.function.lower()
    ]


def insert_sample_data(store) -> None:
    """
    Insert a commission, a few members, two events and some finance rows
    (adds new rows each time it runs).
    """
    today = date.today()

    commission = store.create_commission(Commission(id=None, name="Organisation", description="Logistics"))

    samples = [
        Member(None, "Moustapha", "Diop", MALE, 45, "770000001", "Dakar", "Trader", "Jeuwrigne",
               commission.id, "president"),
        Member(None, "Fatou", "Ndiaye", FEMALE, 32, "770000002", "Pikine", "Tailor", "Secretary",
               commission.id, "vice-president"),
        Member(None, "Awa", "Sarr", FEMALE, 27, "770000003", "Rufisque", "Nurse", "Member"),
        Member(None, "Ibrahima", "Fall", MALE, 15, "770000004", "Dakar", "Student", "Member"),
    ]
    members = [store.create_member(m) for m in samples]

    gamou = store.create_event(
        Event(None, f"Gamou {today.year}", (today + timedelta(days=30)).isoformat(), 3000, 2000,
              "upcoming", "Annual Gamou")
    )
    magal = store.create_event(
        Event(None, f"Magal {today.year}", (today - timedelta(days=30)).isoformat(), 5000, 3000,
              "completed", "Grand Magal")
    )

    record_payment(store, members[0], gamou, 3000)
    record_payment(store, members[1], gamou, 1500)
    record_payment(store, members[0], magal, 5000)
    record_payment(store, members[2], magal, 3000)

    store.create_transaction(
        Transaction(None, magal.id, "income", "Dons", 25000, "Donations", magal.date)
    )
    store.create_transaction(
        Transaction(None, magal.id, "expense", "Alimentation", 18000, "Meals", magal.date)
    )
    store.create_transaction(
        Transaction(None, gamou.id, "expense", "Location", 10000, "Tent rental", today.isoformat())
    )
