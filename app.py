# =============================
# app.py — Streamlit App (Visitor Registration & Admin)
# =============================
from __future__ import annotations

import logging
from typing import Any, Dict

import streamlit as st

from glc_visitors.config import Settings, check_password, load_settings
from glc_visitors.exceptions import (
    CredentialError,
    ExportRefused,
    RemoteStoreError,
    VisitorAppError,
)
from glc_visitors.export.spreadsheet import (
    EXPORT_FILE_NAME,
    XLSX_MIME,
    build_export_frame,
    export_allowed,
    export_csv,
)
from glc_visitors.models import (
    CELL_GROUP_STATUS_CHOICES,
    FOUNDATION_STATUS_CHOICES,
    GENDER_CHOICES,
    MINISTERS_STATUS_CHOICES,
    PhotoFile,
)
from glc_visitors.store import RemoteStore, get_store
from glc_visitors.table.controller import VisitorTableSession
from glc_visitors.table.grid import (
    apply_editor_changes,
    column_config,
    disabled_columns,
    editor_frame,
    filter_rows,
)
from glc_visitors.visitors.register_visitor import upload_visitor_data

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

# ---------------------------------
# Page + constants
# ---------------------------------
st.set_page_config(page_title="GLC Visitors", page_icon="🙌", layout="wide")
st.title("🙌 GLC — New Visitors")
TABLE_KEY = "visitor_table"
FORM_NONCE_KEY = "register_form_nonce"       # forces the form to rebuild empty
EDITOR_NONCE_KEY = "visitors_editor_nonce"   # forces the grid to rebuild


# ---------------------------------
# Resources
# ---------------------------------
@st.cache_resource(show_spinner=False)
def _settings() -> Settings:
    return load_settings()


@st.cache_resource(show_spinner=False)
def _store() -> RemoteStore:
    return get_store(_settings())


# ---------------------------------
# Helpers
# ---------------------------------
def flash(kind: str, msg: str) -> None:
    st.session_state["_flash"] = {"kind": kind, "msg": msg}


def show_flash_once():
    f = st.session_state.pop("_flash", None)
    if not f: return
    kind = f.get("kind", "success")
    msg = f.get("msg", "")
    if   kind == "success": st.success(msg)
    elif kind == "warning": st.warning(msg)
    elif kind == "error":   st.error(msg)
    else:                   st.info(msg)
    try:
        st.toast(msg)
    except Exception:
        pass


def _bump(key: str) -> None:
    st.session_state[key] = st.session_state.get(key, 0) + 1


def _user_agent() -> str:
    try:
        return st.context.headers.get("User-Agent", "") or ""
    except Exception:
        return ""


def _table_session() -> VisitorTableSession:
    if TABLE_KEY not in st.session_state:
        s = _settings()
        st.session_state[TABLE_KEY] = VisitorTableSession(_store(), s.visitors_table, s.admin_password)
    return st.session_state[TABLE_KEY]


def _on_grid_edit(widget_key: str, frame) -> None:
    state = st.session_state.get(widget_key) or {}
    try:
        apply_editor_changes(_table_session(), frame, state.get("edited_rows", {}))
    except VisitorAppError as e:
        flash("error", e.message)


# ---------------------------------
# Boot
# ---------------------------------
try:
    settings = _settings()
    store = _store()
except VisitorAppError as e:
    st.error(f"Configuration problem: {e}")
    st.stop()
except Exception as e:
    logging.exception("Backend setup failed")
    st.error(f"Could not connect to the backend: {type(e).__name__}: {e}")
    st.stop()

with st.sidebar:
    section = st.radio("Section", ["Register Visitor", "Admin"], index=0)
    st.caption(store.describe())

show_flash_once()

# ---------------------------------
# REGISTER (PUBLIC, optional access password)
# ---------------------------------
if section == "Register Visitor":
    if settings.access_password and not st.session_state.get("access_ok"):
        st.subheader("Welcome to GLC new visitors registration form!")
        with st.form("access_gate"):
            pw = st.text_input("Access Password", type="password")
            submit = st.form_submit_button("Enter")
        if submit:
            if check_password(pw, settings.access_password):
                st.session_state.access_ok = True
                flash("success", "Access granted")
                st.rerun()
            else:
                st.error("Incorrect password")
        st.stop()

    st.subheader("Register Member — New Visitors Form")
    nonce = st.session_state.get(FORM_NONCE_KEY, 0)

    with st.form(f"register_visitor:{nonce}"):
        photo = st.file_uploader("Photo*", type=["png", "jpg", "jpeg", "webp", "heic"])
        c1, c2 = st.columns(2)
        with c1:
            full_name = st.text_input("Name*")
            primary_phone = st.text_input("Primary Phone*")
            secondary_phone = st.text_input("Secondary Phone")
            address = st.text_input("Address*")
            gender = st.selectbox("Gender*", GENDER_CHOICES, index=None, placeholder="Gender")
            age = st.text_input("Age*")
            visitation_date = st.date_input("Visitation Date*", value=None)
            inviter_name = st.text_input("Inviter Name*")
        with c2:
            inviter_phone = st.text_input("Inviter Phone*")
            follow_up_leader = st.text_input("Follow Up Leader*")
            foundation_status = st.selectbox("Foundation Status*", FOUNDATION_STATUS_CHOICES, index=None,
                                             placeholder="Foundation Status")
            foundation_teacher = st.text_input("Foundation Teacher*")
            ministers_status = st.selectbox("Minister's Training Status*", MINISTERS_STATUS_CHOICES, index=None,
                                            placeholder="Minister's Training Status")
            ministers_teacher = st.text_input("Ministers Teacher*")
            ministry_joined = st.text_input("Ministry Joined*")
            cell_group_status = st.selectbox("Cell Group Status*", CELL_GROUP_STATUS_CHOICES, index=None,
                                             placeholder="Cell Group Status")
            assigned_cell_group = st.text_input("Assigned Cell Group*")
        submit_visitor = st.form_submit_button("Save Visitor ✅")

    if submit_visitor:
        form_data: Dict[str, Any] = {
            "photo": PhotoFile.from_upload(photo) if photo is not None else None,
            "full_name": full_name,
            "primary_phone": primary_phone,
            "secondary_phone": secondary_phone,
            "address": address,
            "gender": gender,
            "age": age,
            "visitation_date": visitation_date,
            "inviter_name": inviter_name,
            "inviter_phone": inviter_phone,
            "follow_up_leader": follow_up_leader,
            "foundation_status": foundation_status,
            "foundation_teacher": foundation_teacher,
            "ministers_status": ministers_status,
            "ministers_teacher": ministers_teacher,
            "ministry_joined": ministry_joined,
            "cell_group_status": cell_group_status,
            "assigned_cell_group": assigned_cell_group,
        }
        with st.spinner("Saving visitor data..."):
            result = upload_visitor_data(
                store, form_data,
                table=settings.visitors_table,
                bucket=settings.images_bucket,
                folder=settings.upload_folder,
            )
        if result.success:
            flash("success", "Visitor registered successfully!")
            _bump(FORM_NONCE_KEY)
            st.rerun()
        else:
            st.error("Error: " + (result.error or "unknown"))

# ---------------------------------
# ADMIN (PASSWORD-PROTECTED)
# ---------------------------------
else:
    table = _table_session()

    if not table.authenticated:
        st.subheader("Admin Access Required")
        with st.form("admin_login"):
            pw = st.text_input("Admin Password", type="password")
            submit = st.form_submit_button("Enter")
        if submit:
            try:
                table.sign_in(pw)
                st.rerun()
            except CredentialError as e:
                st.error(e.message)
            except RemoteStoreError as e:
                st.error(f"Failed to fetch data: {e}")
        st.stop()

    with st.sidebar:
        if st.button("Sign out"):
            table.sign_out()
            st.rerun()

    # ---- header + export ----
    h1, h2, h3 = st.columns([3, 1, 1])
    with h1:
        st.subheader("Visitors Dashboard")
    with h2:
        if st.button("↻ Refresh"):
            try:
                table.fetch()
                st.rerun()
            except RemoteStoreError as e:
                st.error(f"Failed to fetch data: {e}")
    with h3:
        ua = _user_agent()
        if export_allowed(ua):
            # workbook bytes are cached on the session until the rows change
            st.download_button(
                "📥 Download Excel",
                table.export(ua),
                file_name=EXPORT_FILE_NAME,
                mime=XLSX_MIME,
            )
        elif st.button("📥 Download Excel"):
            try:
                table.export(ua)
            except ExportRefused as e:
                st.error(e.message)

    if table.reload_error:
        st.warning("Showing local data; the last reload failed. Use Refresh to retry.")

    # ---- summary cards ----
    stats = table.summary
    c1, c2, c3 = st.columns(3)
    c1.metric("Total Visitors", stats.total)
    c2.metric("Male Visitors", stats.male)
    c3.metric("Female Visitors", stats.female)

    if not table.rows:
        st.info("No visitors registered yet.")
        st.stop()

    # ---- filters ----
    f1, f2, f3 = st.columns([3, 2, 1])
    with f1:
        query = st.text_input("Search name/phone/address", placeholder="Search visitors…")
    with f2:
        genders = st.multiselect("Gender", GENDER_CHOICES, default=[])
    with f3:
        label = "👁️ Done editing" if table.edit_mode else "✏️ Edit"
        if st.button(label):
            if table.edit_mode and len(table.buffer):
                flash("warning", f"Discarded unsaved changes on {len(table.buffer)} row(s).")
            table.toggle_edit_mode()
            st.session_state.pop("_confirm_flush", None)
            st.rerun()

    rows = filter_rows(table.rows, query, genders)
    st.caption(f"Showing {len(rows)} of {len(table.rows)} visitors")
    frame = editor_frame(rows, table.columns, table.buffer.pending, table.pending_delete)
    cfg = column_config(table.columns)

    if not table.edit_mode:
        st.dataframe(frame, column_config=cfg, hide_index=True, use_container_width=True, height=500)
    else:
        editor_key = (
            f"visitors_editor:{table.generation}:{st.session_state.get(EDITOR_NONCE_KEY, 0)}"
            f":{query.strip().lower()}:{','.join(sorted(genders))}"
        )
        st.data_editor(
            frame,
            key=editor_key,
            column_config=cfg,
            disabled=disabled_columns(table.columns),
            hide_index=True,
            num_rows="fixed",
            use_container_width=True,
            height=500,
            on_change=_on_grid_edit,
            args=(editor_key, frame),
        )

        # ---- delete (needs confirmation) ----
        if table.pending_delete is not None:
            victim = next((r for r in table.rows if r.get("id") == table.pending_delete), {})
            st.warning(f"Delete visitor **{victim.get('full_name') or table.pending_delete}**? This is permanent.")
            d1, d2 = st.columns(2)
            with d1:
                if st.button("Confirm Delete", type="primary"):
                    try:
                        table.confirm_delete()
                        name = victim.get('full_name') or 'visitor'
                        if table.reload_error:
                            flash("warning", f"Deleted {name}, but reload failed: {table.reload_error}")
                        else:
                            flash("success", f"Deleted {name}.")
                        st.rerun()
                    except VisitorAppError as e:
                        st.error(f"Delete failed: {e}")
            with d2:
                if st.button("Cancel", key="cancel_delete"):
                    table.cancel_delete()
                    _bump(EDITOR_NONCE_KEY)
                    st.rerun()

        # ---- save edits (needs confirmation) ----
        pending = len(table.buffer)
        st.caption(f"{pending} row(s) with unsaved changes" if pending else "No unsaved changes.")
        if pending and not st.session_state.get("_confirm_flush"):
            if st.button("💾 Save changes", type="primary"):
                st.session_state["_confirm_flush"] = True
                st.rerun()
        if pending and st.session_state.get("_confirm_flush"):
            st.info(f"Save changes to {pending} visitor(s)?")
            s1, s2 = st.columns(2)
            with s1:
                if st.button("Confirm Save", type="primary"):
                    st.session_state.pop("_confirm_flush", None)
                    try:
                        result = table.flush()
                    except VisitorAppError as e:
                        st.error(f"Save failed: {e}")
                    else:
                        if result.ok and result.reload_error:
                            flash("warning", f"Saved changes to {len(result.updated)} visitor(s), "
                                             f"but reload failed: {result.reload_error}")
                            st.rerun()
                        elif result.ok:
                            flash("success", f"Saved changes to {len(result.updated)} visitor(s).")
                            st.rerun()
                        else:
                            st.error(f"Save failed, edits kept so you can retry: {result.error}")
            with s2:
                if st.button("Cancel", key="cancel_flush"):
                    st.session_state.pop("_confirm_flush", None)
                    st.rerun()

    csv_frame = build_export_frame(rows)
    st.download_button(
        "📥 Download filtered view (CSV)",
        export_csv(csv_frame),
        file_name="visitors_filtered.csv",
        mime="text/csv",
    )
