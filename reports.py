"""
reports.py
Event / annual report records and their PDF, CSV and JSON renderings, plus the archive export.
"""

from __future__ import annotations

import io
import json
from dataclasses import asdict, dataclass, field
from datetime import datetime

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

import config
import finance
from models import Cotisation, Event, Member, Transaction
from utils import format_amount

DUES_COLUMNS = ["member_id", "name", "gender", "due", "paid", "remaining", "status", "paid_at"]


@dataclass(frozen=True)
class DuesLine:
    member_id: int
    name: str
    gender: str
    due: float
    paid: float
    remaining: float
    status: str  # 'paid', 'partial' or 'unpaid'
    paid_at: str | None


@dataclass(frozen=True)
class EventReport:
    event: Event
    summary: finance.EventSummary
    dues: list[DuesLine] = field(default_factory=list)
    transactions: list[Transaction] = field(default_factory=list)
    generated_at: str = ""

    @property
    def title(self) -> str:
        return f"Report - {self.event.name}"


@dataclass(frozen=True)
class AnnualReport:
    year: int
    summary: finance.YearSummary
    events: list[Event] = field(default_factory=list)
    generated_at: str = ""

    @property
    def title(self) -> str:
        return f"Annual report {self.year}"


def _generated_at() -> str:
    return datetime.now().isoformat(timespec="seconds")


def dues_lines(event: Event, members: list[Member], cotisations: list[Cotisation]) -> list[DuesLine]:
    """
    One line per adult member. Members without a dues record owe the current rate.
    """
    by_member = {}
    for c in cotisations:
        if c.event_id == event.id:
            by_member.setdefault(c.member_id, c)

    lines = []
    for m in members:
        if not m.is_adult:
            continue
        c = by_member.get(m.id)
        if c is None:
            due = finance.resolve_due_amount(m.gender, event)
            paid, paid_at = 0.0, None
        else:
            due, paid, paid_at = c.amount, c.paid_amount, c.paid_at
        remaining = max(due - paid, 0.0)
        if c is not None and c.is_paid:
            status = "paid"
        elif paid > 0:
            status = "partial"
        else:
            status = "unpaid"
        lines.append(DuesLine(m.id, m.full_name, m.gender, due, paid, remaining, status, paid_at))
    return lines


def build_event_report(event: Event, members: list[Member], cotisations: list[Cotisation],
                       transactions: list[Transaction]) -> EventReport:
    return EventReport(
        event=event,
        summary=finance.aggregate_event(event.id, cotisations, transactions, members),
        dues=dues_lines(event, members, cotisations),
        transactions=[t for t in transactions if t.event_id == event.id],
        generated_at=_generated_at(),
    )


def build_annual_report(year: int, events: list[Event], members: list[Member],
                        cotisations: list[Cotisation], transactions: list[Transaction]) -> AnnualReport:
    return AnnualReport(
        year=year,
        summary=finance.aggregate_year(year, events, cotisations, transactions, members),
        events=finance.events_in_year(year, events),
        generated_at=_generated_at(),
    )


# ---------- Renderers ----------

def dues_detail_to_csv(report: EventReport) -> bytes:
    df = pd.DataFrame([asdict(line) for line in report.dues], columns=DUES_COLUMNS)
    return df.to_csv(index=False).encode("utf-8")


def event_report_to_json(report: EventReport) -> bytes:
    s = report.summary
    data = {
        "event": report.event.name,
        "date": report.event.date,
        "generated_at": report.generated_at,
        "dues_collected": s.dues_collected,
        "other_income": s.other_income,
        "expenses": s.expenses,
        "balance": s.balance,
        "members_paid": s.members_paid_count,
        "eligible_members": s.eligible_member_count,
        "payment_rate": s.payment_rate,
        "dues": [asdict(line) for line in report.dues],
        "transactions": [asdict(t) for t in report.transactions],
    }
    return json.dumps(data, indent=2, ensure_ascii=False).encode("utf-8")


def _money(value: float) -> str:
    return f"{format_amount(value)} {config.CURRENCY}"


def _header(story: list, title: str, generated_at: str, styles) -> None:
    title_style = ParagraphStyle(
        "DahiraTitle",
        parent=styles["Heading1"],
        fontSize=18,
        textColor=colors.darkgreen,
        alignment=1,
    )
    story.append(Paragraph(config.DAHIRA_NAME.upper(), title_style))
    story.append(Paragraph(title, styles["Heading2"]))
    story.append(Paragraph(f"Generated on: {generated_at.replace('T', ' ')}", styles["Normal"]))
    story.append(Spacer(1, 20))


def _table(data: list[list], col_widths: list[float], bold_last: bool = False) -> Table:
    table = Table(data, colWidths=col_widths)
    style = [
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
    ]
    if bold_last:
        style.append(("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"))
    table.setStyle(TableStyle(style))
    return table


def _build_pdf(story: list) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4)
    doc.build(story)
    return buffer.getvalue()


def event_report_to_pdf(report: EventReport) -> bytes:
    styles = getSampleStyleSheet()
    story: list = []
    e, s = report.event, report.summary
    _header(story, report.title, report.generated_at, styles)

    story.append(Paragraph(
        f"Date: {e.date} | Dues (male): {_money(e.cotisation_homme)} | Dues (female): {_money(e.cotisation_femme)}",
        styles["Normal"],
    ))
    story.append(Spacer(1, 12))

    summary = [
        ["", "Amount"],
        ["Dues collected", _money(s.dues_collected)],
        ["Other income", _money(s.other_income)],
        ["Expenses", _money(s.expenses)],
        ["Balance", _money(s.balance)],
    ]
    story.append(_table(summary, [3 * inch, 2 * inch], bold_last=True))
    story.append(Spacer(1, 8))
    story.append(Paragraph(
        f"Members paid: {s.members_paid_count} / {s.eligible_member_count} ({s.payment_rate}%)",
        styles["Normal"],
    ))
    story.append(Spacer(1, 16))

    story.append(Paragraph("Dues by member", styles["Heading3"]))
    rows = [["Member", "Gender", "Due", "Paid", "Remaining", "Status"]]
    for line in report.dues:
        rows.append([line.name, line.gender, format_amount(line.due), format_amount(line.paid),
                     format_amount(line.remaining), line.status])
    story.append(_table(rows, [2 * inch, 0.8 * inch, 0.9 * inch, 0.9 * inch, 0.9 * inch, 0.8 * inch]))

    if report.transactions:
        story.append(Spacer(1, 16))
        story.append(Paragraph("Transactions", styles["Heading3"]))
        rows = [["Date", "Type", "Category", "Description", "Amount"]]
        for t in report.transactions:
            rows.append([t.date[:10], t.type, t.category, t.description, format_amount(t.amount)])
        story.append(_table(rows, [0.9 * inch, 0.8 * inch, 1.1 * inch, 2.2 * inch, 1 * inch]))

    return _build_pdf(story)


def annual_report_to_pdf(report: AnnualReport) -> bytes:
    styles = getSampleStyleSheet()
    story: list = []
    _header(story, report.title, report.generated_at, styles)

    names = {e.id: (e.name, e.date) for e in report.events}
    rows = [["Event", "Date", "Dues", "Income", "Expenses", "Balance", "Paid"]]
    for s in report.summary.per_event:
        name, event_date = names.get(s.event_id, (f"#{s.event_id}", ""))
        rows.append([name, event_date[:10], format_amount(s.dues_collected), format_amount(s.other_income),
                     format_amount(s.expenses), format_amount(s.balance), f"{s.payment_rate}%"])
    t = report.summary.totals
    rows.append(["Total", "", format_amount(t.dues_collected), format_amount(t.other_income),
                 format_amount(t.expenses), format_amount(t.balance), ""])
    story.append(_table(rows, [1.7 * inch, 0.9 * inch, 0.9 * inch, 0.9 * inch, 0.9 * inch, 0.9 * inch,
                               0.5 * inch], bold_last=True))

    if not report.summary.per_event:
        story.append(Spacer(1, 8))
        story.append(Paragraph(f"No events in {report.year}.", styles["Normal"]))

    return _build_pdf(story)


def annual_summary_frame(report: AnnualReport) -> pd.DataFrame:
    names = {e.id: e.name for e in report.events}
    rows = [
        {
            "event": names.get(s.event_id, f"#{s.event_id}"),
            "dues_collected": s.dues_collected,
            "other_income": s.other_income,
            "expenses": s.expenses,
            "balance": s.balance,
            "payment_rate": s.payment_rate,
        }
        for s in report.summary.per_event
    ]
    return pd.DataFrame(rows, columns=["event", "dues_collected", "other_income", "expenses",
                                       "balance", "payment_rate"])


# ---------- Archive ----------

def archive_payload(store) -> bytes:
    """
    Full export of the association data, taken before archive_and_clear().
    """
    data = {
        "export_date": _generated_at(),
        "members": [asdict(m) for m in store.list_members()],
        "commissions": [asdict(c) for c in store.list_commissions()],
        "events": [asdict(e) for e in store.list_events()],
        "cotisations": [asdict(c) for c in store.list_cotisations()],
        "transactions": [asdict(t) for t in store.list_transactions()],
    }
    return json.dumps(data, indent=2, ensure_ascii=False).encode("utf-8")


def archive_file_name() -> str:
    return f"dahira-archive-{datetime.now().date().isoformat()}.json"
