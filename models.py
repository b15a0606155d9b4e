"""
models.py
Domain records (members, events, dues, transactions) and fixed choices.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime

from config import ADULT_AGE

MALE = "Male"
FEMALE = "Female"
GENDERS = (MALE, FEMALE)

COMMISSION_ROLES = ("president", "vice-president", "member")

EVENT_STATUSES = ("upcoming", "ongoing", "completed")
STATUS_LABELS = {
    "upcoming": "Upcoming",
    "ongoing": "Ongoing",
    "completed": "Completed",
}

INCOME = "income"
EXPENSE = "expense"
TRANSACTION_TYPES = (INCOME, EXPENSE)

INCOME_CATEGORIES = ["Cotisations", "Dons", "Ventes", "Sponsors", "Autres"]
EXPENSE_CATEGORIES = [
    "Alimentation",
    "Transport",
    "Location",
    "Équipement",
    "Communication",
    "Décoration",
    "Autres",
]

ROLES = ("admin", "user")
REPORT_TYPES = ("event", "annual")


@dataclass(frozen=True)
class SessionUser:
    id: int
    username: str
    role: str  # 'admin' or 'user'

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


@dataclass(frozen=True)
class Member:
    id: int | None
    first_name: str
    last_name: str
    gender: str  # 'Male' or 'Female'
    age: int
    phone: str = ""
    address: str = ""
    function: str = ""
    position: str = ""
    commission_id: int | None = None
    commission_role: str | None = None
    created_at: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_adult(self) -> bool:
        # derived from age on every read, never stored
        return self.age >= ADULT_AGE


@dataclass(frozen=True)
class Commission:
    id: int | None
    name: str
    description: str | None = None


@dataclass(frozen=True)
class Event:
    id: int | None
    name: str
    date: str  # ISO date
    cotisation_homme: float = 0.0
    cotisation_femme: float = 0.0
    status: str = "upcoming"
    description: str | None = None

    @property
    def year(self) -> int:
        return date.fromisoformat(self.date[:10]).year

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"


@dataclass(frozen=True)
class Cotisation:
    id: int | None
    member_id: int
    event_id: int
    amount: float  # due amount snapshot taken when the record was created
    paid_amount: float = 0.0
    is_paid: bool = False
    paid_at: str | None = None

    @property
    def remaining(self) -> float:
        return max(self.amount - self.paid_amount, 0.0)


@dataclass(frozen=True)
class Transaction:
    id: int | None
    event_id: int
    type: str  # 'income' or 'expense'
    category: str
    amount: float
    description: str
    date: str


@dataclass(frozen=True)
class ReportHistory:
    id: int | None
    type: str  # 'event' or 'annual'
    name: str
    event_id: int | None
    year: str | None
    created_at: str


def now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")
