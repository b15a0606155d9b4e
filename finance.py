"""
finance.py
Dues and finance reconciliation: due amounts, payment capping, eligibility,
per-event and annual aggregates.

Everything except record_payment() is pure and works on plain lists of records.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from errors import DuplicateCotisationError, ValidationError
from models import (
    EXPENSE,
    FEMALE,
    INCOME,
    MALE,
    Cotisation,
    Event,
    Member,
    Transaction,
    now_iso,
)

logger = logging.getLogger(__name__)


def resolve_due_amount(gender: str, event: Event) -> float:
    """
    Amount an adult member of the given gender owes for the event.
    An unset rate counts as 0.
    """
    if gender == MALE:
        return float(event.cotisation_homme or 0)
    return float(event.cotisation_femme or 0)


@dataclass(frozen=True)
class PaymentResult:
    new_paid_amount: float
    accepted: float
    is_paid: bool
    paid_at: str | None


def apply_payment(existing: Cotisation | None, due_amount: float, proposed: float,
                  now: str | None = None) -> PaymentResult:
    """
    Accumulate a payment against a dues record, capped at the due amount.

    Any excess over what remains is dropped (no error, no credit). Already paid
    records get accepted=0 and keep their paid amount and paid_at.
    """
    already_paid = existing.paid_amount if existing else 0.0
    remaining = max(due_amount - already_paid, 0.0)
    accepted = min(proposed, remaining)
    new_paid_amount = already_paid + accepted

    if accepted > 0:
        paid_at = now or now_iso()
    else:
        paid_at = existing.paid_at if existing else None

    return PaymentResult(
        new_paid_amount=new_paid_amount,
        accepted=accepted,
        is_paid=new_paid_amount >= due_amount,
        paid_at=paid_at,
    )


def _find(cotisations: Iterable[Cotisation], member_id, event_id) -> Cotisation | None:
    return next(
        (c for c in cotisations if c.member_id == member_id and c.event_id == event_id),
        None,
    )


def eligible_events(member: Member, events: Sequence[Event],
                    cotisations: Sequence[Cotisation]) -> list[Event]:
    """
    Events still open for this member's payment: not completed, and not already
    fully paid. Partially paid events stay in so the remainder can be settled.
    """
    result = []
    for event in events:
        if event.is_completed:
            continue
        existing = _find(cotisations, member.id, event.id)
        if existing and existing.paid_amount >= resolve_due_amount(member.gender, event):
            continue
        result.append(event)
    return result


def record_payment(store, member: Member, event: Event, proposed: float,
                   now: str | None = None) -> tuple[Cotisation, PaymentResult]:
    """
    Validate and apply a payment for (member, event), then persist it.

    The due amount is resolved only when the dues record is first created; later
    payments accumulate against the stored snapshot.
    """
    errors = []
    if proposed is None or proposed <= 0:
        errors.append("Payment amount must be greater than 0.")
    if not member.is_adult:
        errors.append(f"{member.full_name} is a minor and owes no dues.")
    if errors:
        raise ValidationError(errors)

    existing = store.find_cotisation(member.id, event.id)
    try:
        return _persist_payment(store, member, event, existing, proposed, now)
    except DuplicateCotisationError:
        # another writer created the record between lookup and insert
        existing = store.find_cotisation(member.id, event.id)
        if existing is None:
            raise
        return _persist_payment(store, member, event, existing, proposed, now)


def _persist_payment(store, member: Member, event: Event, existing: Cotisation | None,
                     proposed: float, now: str | None) -> tuple[Cotisation, PaymentResult]:
    due = existing.amount if existing else resolve_due_amount(member.gender, event)
    result = apply_payment(existing, due, proposed, now=now)

    if result.accepted < proposed:
        logger.warning(
            "Payment of %.0f for member #%s / event #%s capped to %.0f (due %.0f)",
            proposed, member.id, event.id, result.accepted, due,
        )

    if existing is None:
        record = store.create_cotisation(
            Cotisation(
                id=None,
                member_id=member.id,
                event_id=event.id,
                amount=due,
                paid_amount=result.new_paid_amount,
                is_paid=result.is_paid,
                paid_at=result.paid_at,
            )
        )
    else:
        store.update_cotisation(
            existing.id,
            paid_amount=result.new_paid_amount,
            is_paid=result.is_paid,
            paid_at=result.paid_at,
        )
        record = Cotisation(
            id=existing.id,
            member_id=existing.member_id,
            event_id=existing.event_id,
            amount=existing.amount,
            paid_amount=result.new_paid_amount,
            is_paid=result.is_paid,
            paid_at=result.paid_at,
        )

    logger.info(
        "Dues payment member #%s / event #%s: +%.0f, paid %.0f of %.0f",
        member.id, event.id, result.accepted, result.new_paid_amount, due,
    )
    return record, result


def payment_message(result: PaymentResult, proposed: float, fmt=lambda v: f"{v:,.0f}") -> tuple[str, str]:
    """
    (kind, text) describing a recorded payment; a capped payment is a warning.
    """
    if result.accepted < proposed:
        return (
            "warning",
            f"Payment recorded: {fmt(result.accepted)} accepted, "
            f"{fmt(proposed - result.accepted)} over the remaining due was not recorded.",
        )
    return "success", f"Payment recorded: {fmt(result.accepted)}."


# ---------- Aggregates ----------

@dataclass(frozen=True)
class EventSummary:
    event_id: int
    dues_collected: float
    other_income: float
    expenses: float
    balance: float
    members_paid_count: int
    eligible_member_count: int

    @property
    def payment_rate(self) -> int:
        """Percent of adult members fully paid; 0 when there are no adults."""
        if self.eligible_member_count == 0:
            return 0
        return round(self.members_paid_count / self.eligible_member_count * 100)


def count_adults(members: Iterable[Member]) -> int:
    return sum(1 for m in members if m.is_adult)


def aggregate_event(event_id: int, cotisations: Iterable[Cotisation],
                    transactions: Iterable[Transaction], members: Iterable[Member]) -> EventSummary:
    """
    Dues collected + other income - expenses for one event.

    Duplicate dues records are summed as they are. The eligible count is the
    current adult membership, not membership at the time of the event.
    """
    event_dues = [c for c in cotisations if c.event_id == event_id]
    event_tx = [t for t in transactions if t.event_id == event_id]

    dues_collected = sum(c.paid_amount for c in event_dues)
    other_income = sum(t.amount for t in event_tx if t.type == INCOME)
    expenses = sum(t.amount for t in event_tx if t.type == EXPENSE)

    return EventSummary(
        event_id=event_id,
        dues_collected=dues_collected,
        other_income=other_income,
        expenses=expenses,
        balance=dues_collected + other_income - expenses,
        members_paid_count=sum(1 for c in event_dues if c.is_paid),
        eligible_member_count=count_adults(members),
    )


@dataclass(frozen=True)
class Totals:
    dues_collected: float = 0.0
    other_income: float = 0.0
    expenses: float = 0.0
    balance: float = 0.0


@dataclass(frozen=True)
class YearSummary:
    year: int
    per_event: list[EventSummary] = field(default_factory=list)
    totals: Totals = field(default_factory=Totals)


def events_in_year(year: int, events: Iterable[Event]) -> list[Event]:
    return [e for e in events if e.year == year]


def aggregate_year(year: int, events: Sequence[Event], cotisations: Sequence[Cotisation],
                   transactions: Sequence[Transaction], members: Sequence[Member]) -> YearSummary:
    per_event = [
        aggregate_event(e.id, cotisations, transactions, members)
        for e in events_in_year(year, events)
    ]
    totals = Totals(
        dues_collected=sum(s.dues_collected for s in per_event),
        other_income=sum(s.other_income for s in per_event),
        expenses=sum(s.expenses for s in per_event),
        balance=sum(s.balance for s in per_event),
    )
    return YearSummary(year=year, per_event=per_event, totals=totals)


def event_years(events: Iterable[Event]) -> list[int]:
    return sorted({e.year for e in events}, reverse=True)


# ---------- Dashboard / member statements ----------

@dataclass(frozen=True)
class DashboardStats:
    member_count: int
    adult_count: int
    minor_count: int
    male_count: int
    female_count: int
    commission_count: int
    event_count: int
    upcoming_event_count: int
    total_income: float
    total_expenses: float
    total_dues: float

    @property
    def balance(self) -> float:
        return self.total_dues + self.total_income - self.total_expenses


def dashboard_stats(members: Sequence[Member], commissions: Sequence, events: Sequence[Event],
                    cotisations: Sequence[Cotisation], transactions: Sequence[Transaction]) -> DashboardStats:
    adults = count_adults(members)
    return DashboardStats(
        member_count=len(members),
        adult_count=adults,
        minor_count=len(members) - adults,
        male_count=sum(1 for m in members if m.gender == MALE),
        female_count=sum(1 for m in members if m.gender == FEMALE),
        commission_count=len(commissions),
        event_count=len(events),
        upcoming_event_count=sum(1 for e in events if e.status == "upcoming"),
        total_income=sum(t.amount for t in transactions if t.type == INCOME),
        total_expenses=sum(t.amount for t in transactions if t.type == EXPENSE),
        total_dues=sum(c.paid_amount for c in cotisations),
    )


def member_dues(member: Member, cotisations: Iterable[Cotisation],
                events: Iterable[Event]) -> list[dict]:
    """
    One row per dues record of the member (event name, due, paid, remaining, paid_at).
    """
    names = {e.id: e.name for e in events}
    rows = []
    for c in cotisations:
        if c.member_id != member.id:
            continue
        rows.append(
            {
                "event": names.get(c.event_id, f"#{c.event_id}"),
                "due": c.amount,
                "paid": c.paid_amount,
                "remaining": c.remaining,
                "status": "paid" if c.is_paid else "pending",
                "paid_at": c.paid_at,
            }
        )
    return rows