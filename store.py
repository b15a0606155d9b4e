"""
store.py
Repository over the SQLite tables: typed reads, writes, archive/reset.

Every write is its own connection + commit. A failed write raises PersistenceError
and listeners are not notified, so cached reads stay as they were.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import asdict
from typing import Callable, Iterable

import db
from errors import DuplicateCotisationError, NotFoundError, PersistenceError
from models import (
    Commission,
    Cotisation,
    Event,
    Member,
    ReportHistory,
    Transaction,
    now_iso,
)
from config import REPORT_HISTORY_LIMIT

logger = logging.getLogger(__name__)

MEMBERS = "members"
COMMISSIONS = "commissions"
EVENTS = "events"
COTISATIONS = "cotisations"
TRANSACTIONS = "transactions"
REPORT_HISTORY = "report_history"
COLLECTIONS = (MEMBERS, COMMISSIONS, EVENTS, COTISATIONS, TRANSACTIONS, REPORT_HISTORY)

_MEMBER_FIELDS = (
    "first_name", "last_name", "gender", "age", "phone", "address",
    "function", "position", "commission_id", "commission_role",
)
_COMMISSION_FIELDS = ("name", "description")
_EVENT_FIELDS = ("name", "date", "cotisation_homme", "cotisation_femme", "status", "description")
_COTISATION_FIELDS = ("amount", "paid_amount", "is_paid", "paid_at")


# ---------- Row mapping ----------

def _member(row) -> Member:
    return Member(
        id=row["id"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        gender=row["gender"],
        age=int(row["age"]),
        phone=row["phone"],
        address=row["address"],
        function=row["function"],
        position=row["position"],
        commission_id=row["commission_id"],
        commission_role=row["commission_role"],
        created_at=row["created_at"],
    )


def _commission(row) -> Commission:
    return Commission(id=row["id"], name=row["name"], description=row["description"])


def _event(row) -> Event:
    return Event(
        id=row["id"],
        name=row["name"],
        date=row["date"],
        cotisation_homme=float(row["cotisation_homme"] or 0),
        cotisation_femme=float(row["cotisation_femme"] or 0),
        status=row["status"],
        description=row["description"],
    )


def _cotisation(row) -> Cotisation:
    return Cotisation(
        id=row["id"],
        member_id=row["member_id"],
        event_id=row["event_id"],
        amount=float(row["amount"]),
        paid_amount=float(row["paid_amount"]),
        is_paid=bool(row["is_paid"]),
        paid_at=row["paid_at"],
    )


def _transaction(row) -> Transaction:
    return Transaction(
        id=row["id"],
        event_id=row["event_id"],
        type=row["type"],
        category=row["category"],
        amount=float(row["amount"]),
        description=row["description"],
        date=row["date"],
    )


def _report(row) -> ReportHistory:
    return ReportHistory(
        id=row["id"],
        type=row["type"],
        name=row["name"],
        event_id=row["event_id"],
        year=row["year"],
        created_at=row["created_at"],
    )


def _pick(fields: dict, allowed: tuple[str, ...]) -> dict:
    unknown = set(fields) - set(allowed)
    if unknown:
        raise ValueError(f"Unknown fields: {', '.join(sorted(unknown))}")
    return fields


class Store:
    """
    Persisted collections keyed by record id.

    Listeners registered with subscribe() receive the names of the collections a
    successful write touched (used by the app to drop cached reads).
    """

    def __init__(self) -> None:
        self._listeners: list[Callable[[set[str]], None]] = []

    def subscribe(self, listener: Callable[[set[str]], None]) -> None:
        self._listeners.append(listener)

    def _notify(self, *collections: str) -> None:
        touched = set(collections)
        for listener in self._listeners:
            listener(touched)

    @contextmanager
    def _guard(self, action: str):
        try:
            yield
        except sqlite3.IntegrityError as exc:
            logger.error("%s rejected: %s", action, exc)
            if "cotisations.member_id" in str(exc):
                raise DuplicateCotisationError(f"{action}: dues record already exists") from exc
            raise PersistenceError(f"{action}: {exc}") from exc
        except sqlite3.Error as exc:
            logger.exception("%s failed", action)
            raise PersistenceError(f"{action}: {exc}") from exc

    def _insert(self, table: str, values: dict) -> int:
        cols = ", ".join(values)
        marks = ",".join("?" for _ in values)
        return db.execute(f"INSERT INTO {table}({cols}) VALUES({marks})", tuple(values.values()))

    def _update(self, table: str, record_id: int, values: dict) -> None:
        if not values:
            return
        assignments = ", ".join(f"{k}=?" for k in values)
        count = db.execute_rowcount(
            f"UPDATE {table} SET {assignments} WHERE id=?", (*values.values(), record_id)
        )
        if count == 0:
            raise NotFoundError(f"{table} #{record_id} not found")

    def _read(self, action: str, sql: str, params: tuple = ()):
        with self._guard(action):
            return db.fetch_all(sql, params)

    # ---------- Reads ----------

    def list_members(self) -> list[Member]:
        rows = self._read("list members", "SELECT * FROM members ORDER BY last_name, first_name, id")
        return [_member(r) for r in rows]

    def list_commissions(self) -> list[Commission]:
        rows = self._read("list commissions", "SELECT * FROM commissions ORDER BY name, id")
        return [_commission(r) for r in rows]

    def list_events(self) -> list[Event]:
        rows = self._read("list events", "SELECT * FROM events ORDER BY date DESC, id DESC")
        return [_event(r) for r in rows]

    def list_cotisations(self) -> list[Cotisation]:
        rows = self._read("list cotisations", "SELECT * FROM cotisations ORDER BY id")
        return [_cotisation(r) for r in rows]

    def list_transactions(self) -> list[Transaction]:
        rows = self._read("list transactions", "SELECT * FROM transactions ORDER BY date DESC, id DESC")
        return [_transaction(r) for r in rows]

    def list_report_history(self, limit: int = REPORT_HISTORY_LIMIT) -> list[ReportHistory]:
        rows = self._read(
            "list report history",
            "SELECT * FROM report_history ORDER BY created_at DESC, id DESC LIMIT ?",
            (limit,),
        )
        return [_report(r) for r in rows]

    def get_member(self, member_id: int) -> Member | None:
        rows = self._read("get member", "SELECT * FROM members WHERE id = ?", (member_id,))
        return _member(rows[0]) if rows else None

    def get_event(self, event_id: int) -> Event | None:
        rows = self._read("get event", "SELECT * FROM events WHERE id = ?", (event_id,))
        return _event(rows[0]) if rows else None

    def find_cotisation(self, member_id: int, event_id: int) -> Cotisation | None:
        rows = self._read(
            "find cotisation",
            "SELECT * FROM cotisations WHERE member_id = ? AND event_id = ?",
            (member_id, event_id),
        )
        return _cotisation(rows[0]) if rows else None

    # ---------- Members ----------

    def create_member(self, member: Member) -> Member:
        values = {k: getattr(member, k) for k in _MEMBER_FIELDS}
        values["created_at"] = member.created_at or now_iso()
        with self._guard("create member"):
            new_id = self._insert("members", values)
        logger.info("Member #%s created (%s %s)", new_id, member.first_name, member.last_name)
        self._notify(MEMBERS, COMMISSIONS)
        return Member(id=new_id, **values)

    def update_member(self, member_id: int, **fields) -> None:
        with self._guard("update member"):
            self._update("members", member_id, _pick(fields, _MEMBER_FIELDS))
        logger.info("Member #%s updated", member_id)
        self._notify(MEMBERS, COMMISSIONS)

    def delete_member(self, member_id: int) -> None:
        with self._guard("delete member"):
            db.execute("DELETE FROM members WHERE id = ?", (member_id,))
        logger.info("Member #%s deleted (dues records kept)", member_id)
        self._notify(MEMBERS, COMMISSIONS)

    # ---------- Commissions ----------

    def create_commission(self, commission: Commission) -> Commission:
        values = {k: getattr(commission, k) for k in _COMMISSION_FIELDS}
        with self._guard("create commission"):
            new_id = self._insert("commissions", values)
        logger.info("Commission #%s created (%s)", new_id, commission.name)
        self._notify(COMMISSIONS)
        return Commission(id=new_id, **values)

    def update_commission(self, commission_id: int, **fields) -> None:
        with self._guard("update commission"):
            self._update("commissions", commission_id, _pick(fields, _COMMISSION_FIELDS))
        self._notify(COMMISSIONS)

    def delete_commission(self, commission_id: int) -> None:
        with self._guard("delete commission"):
            db.execute(
                "UPDATE members SET commission_id = NULL, commission_role = NULL WHERE commission_id = ?",
                (commission_id,),
            )
            db.execute("DELETE FROM commissions WHERE id = ?", (commission_id,))
        logger.info("Commission #%s deleted, members detached", commission_id)
        self._notify(COMMISSIONS, MEMBERS)

    # ---------- Events ----------

    def create_event(self, event: Event) -> Event:
        values = {k: getattr(event, k) for k in _EVENT_FIELDS}
        with self._guard("create event"):
            new_id = self._insert("events", values)
        logger.info("Event #%s created (%s)", new_id, event.name)
        self._notify(EVENTS)
        return Event(id=new_id, **values)

    def update_event(self, event_id: int, **fields) -> None:
        with self._guard("update event"):
            self._update("events", event_id, _pick(fields, _EVENT_FIELDS))
        logger.info("Event #%s updated", event_id)
        self._notify(EVENTS)

    def delete_event(self, event_id: int) -> None:
        # cotisations and transactions go with it (ON DELETE CASCADE)
        with self._guard("delete event"):
            db.execute("DELETE FROM events WHERE id = ?", (event_id,))
        logger.info("Event #%s deleted with its dues and transactions", event_id)
        self._notify(EVENTS, COTISATIONS, TRANSACTIONS)

    # ---------- Dues ----------

    def create_cotisation(self, cotisation: Cotisation) -> Cotisation:
        values = asdict(cotisation)
        values.pop("id")
        values["is_paid"] = int(values["is_paid"])
        with self._guard("create cotisation"):
            new_id = self._insert("cotisations", values)
        self._notify(COTISATIONS)
        return Cotisation(id=new_id, **{**values, "is_paid": cotisation.is_paid})

    def update_cotisation(self, cotisation_id: int, **fields) -> None:
        values = dict(_pick(fields, _COTISATION_FIELDS))
        if "is_paid" in values:
            values["is_paid"] = int(values["is_paid"])
        with self._guard("update cotisation"):
            self._update("cotisations", cotisation_id, values)
        self._notify(COTISATIONS)

    # ---------- Transactions ----------

    def create_transaction(self, transaction: Transaction) -> Transaction:
        values = asdict(transaction)
        values.pop("id")
        with self._guard("create transaction"):
            new_id = self._insert("transactions", values)
        logger.info(
            "Transaction #%s recorded: %s %.0f (%s) for event #%s",
            new_id, transaction.type, transaction.amount, transaction.category, transaction.event_id,
        )
        self._notify(TRANSACTIONS)
        return Transaction(id=new_id, **values)

    # ---------- Report history ----------

    def add_report_history(self, report_type: str, name: str, event_id: int | None = None,
                           year: str | None = None) -> ReportHistory:
        created = now_iso()
        with self._guard("add report history"):
            new_id = db.execute(
                "INSERT INTO report_history(type, name, event_id, year, created_at) VALUES(?,?,?,?,?)",
                (report_type, name, event_id, year, created),
            )
        self._notify(REPORT_HISTORY)
        return ReportHistory(id=new_id, type=report_type, name=name, event_id=event_id, year=year,
                             created_at=created)

    # ---------- Bulk ----------

    def _clear(self, tables: Iterable[str]) -> None:
        # sequential deletes; a failure midway leaves the earlier ones applied
        for table in tables:
            with self._guard(f"clear {table}"):
                db.execute(f"DELETE FROM {table}")

    def archive_and_clear(self) -> None:
        """
        Drop events, dues, transactions and report history. Members and commissions stay.
        Callers export the archive first (reports.archive_payload).
        """
        self._clear(("cotisations", "transactions", "events", "report_history"))
        logger.info("Archived data cleared (events, dues, transactions, report history)")
        self._notify(EVENTS, COTISATIONS, TRANSACTIONS, REPORT_HISTORY)

    def reset_all(self) -> None:
        self._clear(("cotisations", "transactions", "events", "members", "commissions", "report_history"))
        logger.warning("All association data reset")
        self._notify(*COLLECTIONS)
