"""
app.py
Streamlit Dahira management dashboard (admin edits, user views).
Run: streamlit run app.py
"""

from __future__ import annotations

from dataclasses import asdict
from datetime import date
import logging

import pandas as pd
import plotly.express as px
import streamlit as st

import auth
import config
import db
import finance
import reports
import utils
from errors import PersistenceError, ValidationError
from models import (
    COMMISSION_ROLES,
    EVENT_STATUSES,
    EXPENSE_CATEGORIES,
    GENDERS,
    INCOME_CATEGORIES,
    STATUS_LABELS,
    Commission,
    Event,
    Member,
    Transaction,
)
from store import Store

st.set_page_config(page_title="Dahira Management", layout="wide")

config.setup_logging()
logger = logging.getLogger(__name__)


@st.cache_resource
def get_store() -> Store:
    store = Store()
    # any successful write drops the cached collections
    store.subscribe(lambda touched: st.cache_data.clear())
    return store


@st.cache_resource
def init_once():
    # Initialize DB + default users if needed (once per server process)
    db.init_db(auth.hash_password("admin123"), auth.hash_password("user123"))


def require_login():
    if "user" not in st.session_state:
        st.session_state.user = None


def logout():
    st.session_state.user = None
    st.success("Logged out.")


def current_user():
    return st.session_state.user


def is_admin() -> bool:
    user = current_user()
    return bool(user and user.is_admin)


def login_screen():
    st.title("🔐 Dahira Login")

    col1, col2 = st.columns([1, 1])
    with col1:
        username = st.text_input("Username", value="admin")
        password = st.text_input("Password", type="password")
        if st.button("Login", type="primary"):
            user = auth.login(username.strip(), password)
            if user:
                st.session_state.user = user
                st.rerun()
            else:
                st.error("Invalid username or password.")

    with col2:
        st.info(
            "First run creates default accounts:\n\n"
            "- admin: **admin / admin123**\n"
            "- read-only: **user / user123**\n\n"
            "The admin is forced to change the password on first login."
        )


def force_change_password_screen():
    st.title("⚠️ Change Password (Required)")

    st.warning("You must change the default password before using the app.")
    new1 = st.text_input("New password", type="password")
    new2 = st.text_input("Confirm new password", type="password")

    if st.button("Update password", type="primary"):
        errors = auth.validate_new_password(new1, new2)
        if errors:
            for e in errors:
                st.error(e)
            return
        auth.change_password(current_user().username, new1)
        st.success("Password updated. You can continue.")
        st.rerun()


# ---------- Data access helpers ----------

@st.cache_data
def load_members():
    return get_store().list_members()


@st.cache_data
def load_commissions():
    return get_store().list_commissions()


@st.cache_data
def load_events():
    return get_store().list_events()


@st.cache_data
def load_cotisations():
    return get_store().list_cotisations()


@st.cache_data
def load_transactions():
    return get_store().list_transactions()


def money(value: float) -> str:
    return f"{utils.format_amount(value)} {config.CURRENCY}"


def event_label(e: Event) -> str:
    return f"{e.name} ({e.date[:10]})"


def run_write(action, success) -> None:
    """
    Run a store write; on success keep the outcome for the next run and rerun.
    `success` is a message, or a callable turning the action's result into (kind, message).
    """
    try:
        result = action()
    except ValidationError as exc:
        for e in exc.errors:
            st.error(e)
        return
    except PersistenceError as exc:
        st.error(f"Could not save: {exc}")
        return
    st.session_state.flash = success(result) if callable(success) else ("success", success)
    st.rerun()


def show_flash():
    flash = st.session_state.pop("flash", None)
    if flash:
        kind, message = flash
        (st.warning if kind == "warning" else st.success)(message)


def payment_form(member: Member, events: list[Event], cotisations, key: str):
    """
    Payment inputs for one member, limited to events still open for them.
    """
    open_events = finance.eligible_events(member, events, cotisations)
    if not open_events:
        st.caption(f"{member.full_name} has nothing left to pay on open events.")
        return

    options = {event_label(e): e for e in open_events}
    chosen = st.selectbox("Event", list(options.keys()), key=f"{key}_event")
    event = options[chosen]

    existing = next(
        (c for c in cotisations if c.member_id == member.id and c.event_id == event.id), None
    )
    due = existing.amount if existing else finance.resolve_due_amount(member.gender, event)
    paid = existing.paid_amount if existing else 0.0
    st.write(f"Due: **{money(due)}** | Paid: **{money(paid)}** | Remaining: **{money(max(due - paid, 0))}**")

    amount = st.text_input("Amount", value=utils.amount_text(max(due - paid, 0)), key=f"{key}_amount")
    if st.button("Record payment", type="primary", key=f"{key}_submit"):
        errors = utils.validate_payment_inputs(member.id, event.id, amount)
        if errors:
            for e in errors:
                st.error(e)
            return
        value = utils.parse_amount(amount)
        run_write(
            lambda: finance.record_payment(get_store(), member, event, value),
            lambda outcome: finance.payment_message(outcome[1], value, fmt=money),
        )


# ---------- Pages ----------

def dashboard_page():
    st.header("📊 Dashboard")

    members = load_members()
    events = load_events()
    stats = finance.dashboard_stats(members, load_commissions(), events, load_cotisations(),
                                    load_transactions())

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Members", stats.member_count, f"{stats.adult_count} adults", delta_color="off")
    c2.metric("Commissions", stats.commission_count)
    c3.metric("Events", stats.event_count, f"{stats.upcoming_event_count} upcoming", delta_color="off")
    c4.metric("Balance", money(stats.balance))

    c5, c6, c7 = st.columns(3)
    c5.metric("Dues collected", money(stats.total_dues))
    c6.metric("Other income", money(stats.total_income))
    c7.metric("Expenses", money(stats.total_expenses))

    st.divider()

    col1, col2 = st.columns(2)
    with col1:
        st.subheader("Recent members")
        recent = sorted(members, key=lambda m: m.created_at or "", reverse=True)[:5]
        if recent:
            st.dataframe(utils.members_frame(recent, load_commissions())[["name", "gender", "function"]],
                         use_container_width=True, hide_index=True)
        else:
            st.caption("No members yet.")
    with col2:
        st.subheader("Upcoming events")
        upcoming = [e for e in events if e.status == "upcoming"]
        if upcoming:
            st.dataframe(utils.records_to_frame(upcoming, ["name", "date", "cotisation_homme", "cotisation_femme"]),
                         use_container_width=True, hide_index=True)
        else:
            st.caption("No upcoming events.")

    bureau = [m for m in members if m.commission_role == "president" or m.position]
    if bureau:
        st.subheader("Executive bureau")
        st.dataframe(utils.members_frame(bureau, load_commissions())[["name", "position", "commission",
                                                                        "commission_role"]],
                     use_container_width=True, hide_index=True)


def member_form(existing: Member | None = None):
    if existing:
        st.subheader(f"✏️ Edit Member (ID: {existing.id})")
    else:
        st.subheader("➕ Add Member")

    commissions = load_commissions()
    commission_options = {"(none)": None, **{c.name: c.id for c in commissions}}
    current_commission = next((n for n, i in commission_options.items()
                               if existing and i == existing.commission_id), "(none)")

    col1, col2, col3 = st.columns(3)
    with col1:
        first_name = st.text_input("First name", value=(existing.first_name if existing else ""))
        last_name = st.text_input("Last name", value=(existing.last_name if existing else ""))
        gender = st.selectbox("Gender", GENDERS, index=(GENDERS.index(existing.gender) if existing else 0))
        age = st.number_input("Age", min_value=0, max_value=120, step=1,
                              value=(existing.age if existing else 18))
    with col2:
        phone = st.text_input("Phone", value=(existing.phone if existing else ""))
        address = st.text_input("Address", value=(existing.address if existing else ""))
        function = st.text_input("Function (occupation)", value=(existing.function if existing else ""))
        position = st.text_input("Position in the Dahira", value=(existing.position if existing else ""))
    with col3:
        commission_name = st.selectbox("Commission", list(commission_options.keys()),
                                       index=list(commission_options.keys()).index(current_commission))
        roles = ["(none)", *COMMISSION_ROLES]
        role = st.selectbox("Commission role", roles,
                            index=roles.index(existing.commission_role) if existing and existing.commission_role else 0)

    commission_id = commission_options[commission_name]
    commission_role = None if role == "(none)" else role
    errors = utils.validate_member_inputs(first_name, last_name, gender, age, commission_id, commission_role)
    if errors:
        for e in errors:
            st.error(e)

    if st.button("Save", type="primary", disabled=bool(errors)):
        fields = dict(
            first_name=first_name.strip(), last_name=last_name.strip(), gender=gender, age=int(age),
            phone=phone.strip(), address=address.strip(), function=function.strip(),
            position=position.strip(), commission_id=commission_id, commission_role=commission_role,
        )
        store = get_store()
        if existing:
            run_write(lambda: store.update_member(existing.id, **fields), "Member updated.")
        else:
            run_write(lambda: store.create_member(Member(id=None, **fields)), "Member added.")


def members_page():
    st.header("👥 Members")

    members = load_members()
    with st.sidebar:
        st.subheader("Search")
        search = st.text_input("Search (name/function)")

    shown = utils.search_members(members, search)
    st.dataframe(utils.members_frame(shown, load_commissions()), use_container_width=True, hide_index=True)

    st.divider()

    by_id = {m.id: m for m in members}
    colA, colB = st.columns([1, 2])
    with colA:
        st.subheader("Select member")
        selected_id = st.selectbox("Member", options=["(none)"] + [m.id for m in shown],
                                   format_func=lambda i: i if i == "(none)" else by_id[i].full_name)

    with colB:
        if selected_id != "(none)":
            member = by_id[selected_id]
            dues = finance.member_dues(member, load_cotisations(), load_events())
            st.subheader(f"Dues of {member.full_name}")
            if dues:
                st.dataframe(pd.DataFrame(dues), use_container_width=True, hide_index=True)
            else:
                st.caption("No dues recorded yet.")

            if is_admin():
                c1, c2 = st.columns(2)
                with c1:
                    if st.button("Edit"):
                        st.session_state.edit_member_id = member.id
                        st.rerun()
                with c2:
                    delete_confirm = st.checkbox("Confirm delete", value=False, key="del_member_confirm")
                    if st.button("Delete", type="secondary", disabled=not delete_confirm):
                        run_write(lambda: get_store().delete_member(member.id), "Member deleted.")

                if member.is_adult:
                    with st.expander("💳 Quick payment"):
                        payment_form(member, load_events(), load_cotisations(), key="quick")
                else:
                    st.caption("Minors owe no dues.")

    if not is_admin():
        return

    st.divider()

    edit_id = st.session_state.get("edit_member_id")
    if edit_id and edit_id in by_id:
        member_form(existing=by_id[edit_id])
        if st.button("Cancel edit"):
            st.session_state.edit_member_id = None
            st.rerun()
    else:
        member_form(existing=None)


def commissions_page():
    st.header("🏛️ Commissions")

    commissions = load_commissions()
    members = load_members()

    for c in commissions:
        cm = [m for m in members if m.commission_id == c.id]
        president = next((m.full_name for m in cm if m.commission_role == "president"), "-")
        vice = next((m.full_name for m in cm if m.commission_role == "vice-president"), "-")
        with st.expander(f"{c.name} ({len(cm)} members)"):
            if c.description:
                st.caption(c.description)
            st.write(f"President: **{president}** | Vice-president: **{vice}**")
            if cm:
                st.dataframe(utils.members_frame(cm, commissions)[["name", "commission_role", "phone"]],
                             use_container_width=True, hide_index=True)
            if is_admin():
                confirm = st.checkbox("Confirm delete", value=False, key=f"del_commission_{c.id}")
                if st.button("Delete commission", key=f"delete_commission_{c.id}", disabled=not confirm):
                    run_write(lambda: get_store().delete_commission(c.id), "Commission deleted.")

    if not commissions:
        st.caption("No commissions yet.")

    if not is_admin():
        return

    st.divider()
    st.subheader("➕ Add / edit commission")
    options = {"(new)": None, **{c.name: c for c in commissions}}
    chosen = st.selectbox("Commission", list(options.keys()))
    existing = options[chosen]
    name = st.text_input("Name", value=existing.name if existing else "")
    description = st.text_area("Description", value=(existing.description or "") if existing else "")
    if st.button("Save commission", type="primary"):
        if not name.strip():
            st.error("Commission name is required.")
            return
        store = get_store()
        if existing:
            run_write(lambda: store.update_commission(existing.id, name=name.strip(),
                                                      description=description.strip() or None),
                      "Commission updated.")
        else:
            run_write(lambda: store.create_commission(Commission(None, name.strip(), description.strip() or None)),
                      "Commission added.")


def events_page():
    st.header("📅 Events")

    events = load_events()
    for status in EVENT_STATUSES:
        group = [e for e in events if e.status == status]
        st.subheader(f"{STATUS_LABELS[status]} ({len(group)})")
        if group:
            st.dataframe(utils.records_to_frame(group, ["id", "name", "date", "cotisation_homme",
                                                        "cotisation_femme", "description"]),
                         use_container_width=True, hide_index=True)

    if not is_admin():
        return

    st.divider()
    st.subheader("➕ Add / edit event")
    options = {"(new)": None, **{event_label(e): e for e in events}}
    chosen = st.selectbox("Event", list(options.keys()))
    existing = options[chosen]

    col1, col2, col3 = st.columns(3)
    with col1:
        name = st.text_input("Name", value=existing.name if existing else "")
        event_date = st.date_input(
            "Date", value=(utils.parse_iso(existing.date) if existing else date.today())
        ).isoformat()
    with col2:
        homme = st.text_input("Dues (male)", value=utils.amount_text(existing.cotisation_homme) if existing else "0")
        femme = st.text_input("Dues (female)", value=utils.amount_text(existing.cotisation_femme) if existing else "0")
    with col3:
        status = st.selectbox("Status", EVENT_STATUSES, format_func=STATUS_LABELS.get,
                              index=EVENT_STATUSES.index(existing.status) if existing else 0)
        description = st.text_input("Description", value=(existing.description or "") if existing else "")

    errors = utils.validate_event_inputs(name, event_date, homme, femme, status)
    for e in errors:
        st.error(e)

    if existing:
        st.caption("Changing the dues rates does not affect dues records already created.")

    if st.button("Save event", type="primary", disabled=bool(errors)):
        fields = dict(name=name.strip(), date=event_date, cotisation_homme=utils.parse_amount(homme),
                      cotisation_femme=utils.parse_amount(femme), status=status,
                      description=description.strip() or None)
        store = get_store()
        if existing:
            run_write(lambda: store.update_event(existing.id, **fields), "Event updated.")
        else:
            run_write(lambda: store.create_event(Event(id=None, **fields)), "Event added.")

    if existing:
        confirm = st.checkbox("Confirm delete (removes its dues and transactions)", key="del_event_confirm")
        if st.button("Delete event", disabled=not confirm):
            run_write(lambda: get_store().delete_event(existing.id), "Event deleted.")


def finance_page():
    st.header("💰 Finance")

    members = load_members()
    events = load_events()
    cotisations = load_cotisations()
    transactions = load_transactions()
    stats = finance.dashboard_stats(members, load_commissions(), events, cotisations, transactions)

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Dues collected", money(stats.total_dues))
    c2.metric("Other income", money(stats.total_income))
    c3.metric("Expenses", money(stats.total_expenses))
    c4.metric("Balance", money(stats.balance))

    if is_admin() and events:
        st.divider()
        col1, col2 = st.columns(2)
        with col1:
            st.subheader("Record dues payment")
            adults = [m for m in members if m.is_adult]
            if adults:
                by_id = {m.id: m for m in adults}
                member_id = st.selectbox("Member (adult)", list(by_id.keys()),
                                         format_func=lambda i: by_id[i].full_name)
                payment_form(by_id[member_id], events, cotisations, key="finance")
            else:
                st.caption("No adult members.")

        with col2:
            st.subheader("New transaction")
            ev_options = {event_label(e): e.id for e in events}
            ev = st.selectbox("Event", list(ev_options.keys()), key="tx_event")
            tx_type = st.selectbox("Type", ["income", "expense"])
            categories = INCOME_CATEGORIES if tx_type == "income" else EXPENSE_CATEGORIES
            category = st.selectbox("Category", categories)
            amount = st.text_input("Amount", value="0", key="tx_amount")
            description = st.text_input("Description", key="tx_description")
            if st.button("Add transaction", type="primary"):
                errors = utils.validate_transaction_inputs(ev_options[ev], tx_type, category, amount)
                if errors:
                    for e in errors:
                        st.error(e)
                else:
                    tx = Transaction(None, ev_options[ev], tx_type, category, utils.parse_amount(amount),
                                     description.strip(), utils.today_iso())
                    run_write(lambda: get_store().create_transaction(tx), "Transaction recorded.")

    st.divider()
    tab_dues, tab_tx = st.tabs(["Dues", "Transactions"])
    names = {m.id: m.full_name for m in members}
    event_names = {e.id: e.name for e in events}
    with tab_dues:
        rows = [
            {
                "member": names.get(c.member_id, f"#{c.member_id} (deleted)"),
                "event": event_names.get(c.event_id, f"#{c.event_id}"),
                "due": c.amount,
                "paid": c.paid_amount,
                "status": "paid" if c.is_paid else "pending",
                "paid_at": c.paid_at,
            }
            for c in cotisations
        ]
        st.dataframe(utils.records_to_frame(rows, ["member", "event", "due", "paid", "status", "paid_at"]),
                     use_container_width=True, hide_index=True)
    with tab_tx:
        rows = [{**asdict(t), "event": event_names.get(t.event_id, f"#{t.event_id}")} for t in transactions]
        st.dataframe(utils.records_to_frame(rows, ["date", "event", "type", "category", "amount", "description"]),
                     use_container_width=True, hide_index=True)


def reports_page():
    st.header("🧾 Reports")

    store = get_store()
    members = load_members()
    events = load_events()
    cotisations = load_cotisations()
    transactions = load_transactions()

    if not events:
        st.info("No events yet.")
    else:
        st.subheader("Event report")
        options = {event_label(e): e for e in events}
        event = options[st.selectbox("Event", list(options.keys()))]
        report = reports.build_event_report(event, members, cotisations, transactions)
        s = report.summary

        c1, c2, c3, c4 = st.columns(4)
        c1.metric("Dues collected", money(s.dues_collected))
        c2.metric("Other income", money(s.other_income))
        c3.metric("Expenses", money(s.expenses))
        c4.metric("Balance", money(s.balance))
        st.progress(min(s.payment_rate, 100) / 100,
                    text=f"Dues progress: {s.members_paid_count} / {s.eligible_member_count} ({s.payment_rate}%)")

        chart = pd.DataFrame({
            "item": ["Dues", "Other income", "Expenses"],
            "amount": [s.dues_collected, s.other_income, s.expenses],
        })
        st.plotly_chart(px.bar(chart, x="item", y="amount", title=event.name), use_container_width=True)
        st.dataframe(utils.records_to_frame(report.dues, reports.DUES_COLUMNS), use_container_width=True,
                     hide_index=True)

        c1, c2, c3 = st.columns(3)
        with c1:
            if st.download_button("Download PDF", data=reports.event_report_to_pdf(report),
                                  file_name=f"report-{event.name}.pdf", mime="application/pdf"):
                store.add_report_history("event", report.title, event_id=event.id)
        with c2:
            st.download_button("Download dues CSV", data=reports.dues_detail_to_csv(report),
                               file_name=f"dues-{event.name}.csv", mime="text/csv")
        with c3:
            st.download_button("Download JSON", data=reports.event_report_to_json(report),
                               file_name=f"report-{event.name}.json", mime="application/json")

        st.divider()
        st.subheader("Annual report")
        years = finance.event_years(events)
        year = st.selectbox("Year", years)
        annual = reports.build_annual_report(year, events, members, cotisations, transactions)
        t = annual.summary.totals
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("Dues collected", money(t.dues_collected))
        c2.metric("Other income", money(t.other_income))
        c3.metric("Expenses", money(t.expenses))
        c4.metric("Balance", money(t.balance))
        frame = reports.annual_summary_frame(annual)
        st.dataframe(frame, use_container_width=True, hide_index=True)
        if not frame.empty:
            st.plotly_chart(px.bar(frame, x="event", y=["dues_collected", "other_income", "expenses"],
                                   barmode="group"), use_container_width=True)
        if st.download_button("Download annual PDF", data=reports.annual_report_to_pdf(annual),
                              file_name=f"annual-report-{year}.pdf", mime="application/pdf"):
            store.add_report_history("annual", annual.title, year=str(year))

    st.divider()
    st.subheader("Members overview")
    stats = finance.dashboard_stats(members, load_commissions(), events, cotisations, transactions)
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Male", stats.male_count)
    c2.metric("Female", stats.female_count)
    c3.metric("Adults (dues payers)", stats.adult_count)
    c4.metric("Minors", stats.minor_count)
    st.download_button("Download members.csv",
                       data=utils.to_csv_bytes(utils.members_frame(members, load_commissions())),
                       file_name="members.csv", mime="text/csv")

    st.divider()
    st.subheader("Recent reports")
    history = store.list_report_history()
    if history:
        st.dataframe(utils.records_to_frame(history, ["created_at", "type", "name", "year"]),
                     use_container_width=True, hide_index=True)
    else:
        st.caption("No report generated yet.")


def settings_page():
    st.header("⚙️ Settings")

    user = current_user()
    st.caption(f"{user.username} ({'administrator' if user.is_admin else 'user'})")

    st.subheader("Change password")
    p1 = st.text_input("New password", type="password")
    p2 = st.text_input("Confirm new password", type="password")
    if st.button("Update password", type="primary"):
        errors = auth.validate_new_password(p1, p2)
        if errors:
            for e in errors:
                st.error(e)
        else:
            auth.change_password(user.username, p1)
            st.success("Password updated.")

    if not user.is_admin:
        return

    store = get_store()
    codes = db.get_security_codes()

    st.divider()
    st.subheader("Security codes")
    archive_code = st.text_input("Archive code", value=codes["archive_code"], type="password")
    reset_code = st.text_input("Reset code", value=codes["reset_code"], type="password")
    if st.button("Save codes"):
        if not archive_code.strip() or not reset_code.strip():
            st.error("Codes cannot be empty.")
        else:
            db.update_security_codes(archive_code.strip(), reset_code.strip())
            st.success("Security codes updated.")

    st.divider()
    st.subheader("Archive & clear")
    st.caption("Downloads every record as JSON, then removes events, dues, transactions and report "
               "history. Members and commissions are kept.")
    typed = st.text_input("Archive code", type="password", key="archive_confirm")
    if st.button("Archive and clear"):
        if typed != codes["archive_code"]:
            st.error("Wrong archive code.")
        else:
            try:
                st.session_state.archive_bytes = reports.archive_payload(store)
                st.session_state.archive_name = reports.archive_file_name()
                store.archive_and_clear()
            except PersistenceError as exc:
                st.error(f"Archive failed: {exc}")
            else:
                st.success("Data archived.")
    if st.session_state.get("archive_bytes"):
        st.download_button("Download archive", data=st.session_state.archive_bytes,
                           file_name=st.session_state.archive_name, mime="application/json")

    st.divider()
    st.subheader("Reset all data")
    typed = st.text_input("Reset code", type="password", key="reset_confirm")
    if st.button("Reset everything", type="secondary"):
        if typed != codes["reset_code"]:
            st.error("Wrong reset code.")
        else:
            run_write(store.reset_all, "All data deleted.")

    st.divider()
    st.subheader("Sample data")
    st.caption("Insert a commission, 4 members, 2 events and some payments (adds new rows each run).")
    if st.button("Insert sample data"):
        run_write(lambda: utils.insert_sample_data(store), "Sample data inserted.")


def main_app():
    user = current_user()
    st.sidebar.title("🌙 Dahira")
    st.sidebar.caption(f"Logged in as: {user.username} ({user.role})")

    pages = ["Dashboard", "Members", "Commissions", "Events", "Finance", "Reports", "Settings"]
    if "page" not in st.session_state:
        st.session_state.page = "Dashboard"
    st.session_state.page = st.sidebar.radio("Navigate", pages, index=pages.index(st.session_state.page))

    if st.sidebar.button("Logout"):
        logout()
        st.rerun()

    show_flash()

    if st.session_state.page == "Dashboard":
        dashboard_page()
    elif st.session_state.page == "Members":
        members_page()
    elif st.session_state.page == "Commissions":
        commissions_page()
    elif st.session_state.page == "Events":
        events_page()
    elif st.session_state.page == "Finance":
        finance_page()
    elif st.session_state.page == "Reports":
        reports_page()
    elif st.session_state.page == "Settings":
        settings_page()


# --------- App entry ---------

def run():
    init_once()
    require_login()

    if not current_user():
        login_screen()
        return

    # Force password change on first admin login after DB creation
    if current_user().is_admin and db.is_force_password_change():
        force_change_password_screen()
        return

    try:
        main_app()
    except PersistenceError as exc:
        logger.error("Page failed to load data: %s", exc)
        st.error(f"Database error: {exc}")


if __name__ == "__main__":
    run()
