# grid.py — glue between the table session and st.data_editor
from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd
import streamlit as st

from ..models import ID_FIELD
from .columns import (
    ACTIONS_KEY,
    RENDER_ACTIONS,
    RENDER_IMAGE,
    RENDER_ROW_NUMBER,
    ROW_NUMBER_KEY,
    ColumnDefinition,
)
from .summary import normalize_category

SEARCH_FIELDS = (
    "full_name",
    "primary_phone_num",
    "secondary_phone_num",
    "address",
    "iow_name",
    "follow_up_leader",
    "assigned_cell_group",
)


# ---------------------------------
# Filters
# ---------------------------------
def filter_rows(rows: Sequence[Dict[str, Any]], query: str = "", genders: Iterable[str] = ()) -> List[Dict[str, Any]]:
    """Case-insensitive contains-search over the contact fields, plus an optional gender filter."""
    q = (query or "").strip().lower()
    wanted = {normalize_category(g) for g in genders} - {None}
    out = []
    for row in rows:
        if wanted and normalize_category(row.get("gender")) not in wanted:
            continue
        if q and not any(q in str(row.get(f) or "").lower() for f in SEARCH_FIELDS):
            continue
        out.append(row)
    return out


# ---------------------------------
# Frame + column config
# ---------------------------------
def editor_frame(rows: Sequence[Dict[str, Any]], columns: Sequence[ColumnDefinition],
                 pending: Optional[Dict[Any, Dict[str, Any]]] = None,
                 pending_delete: Any = None) -> pd.DataFrame:
    """
    One grid row per visitor, indexed by id. Unsaved edits are laid over the
    fetched values so a rebuilt grid still shows them.
    """
    pending = pending or {}
    keys = [c.key for c in columns]
    records = []
    for n, row in enumerate(rows, start=1):
        rid = row.get(ID_FIELD)
        merged = {**row, **pending.get(rid, {})}
        rec = {}
        for key in keys:
            if key == ROW_NUMBER_KEY:
                rec[key] = n
            elif key == ACTIONS_KEY:
                rec[key] = rid == pending_delete
            else:
                rec[key] = merged.get(key)
        records.append(rec)
    index = pd.Index([r.get(ID_FIELD) for r in rows], name=ID_FIELD)
    return pd.DataFrame(records, columns=keys, index=index)


def _width(px: int) -> str:
    if px <= 75:
        return "small"
    if px <= 200:
        return "medium"
    return "large"


def column_config(columns: Sequence[ColumnDefinition]) -> Dict[str, Any]:
    cfg: Dict[str, Any] = {}
    for c in columns:
        if c.render == RENDER_ROW_NUMBER:
            cfg[c.key] = st.column_config.NumberColumn(c.label, width=_width(c.width), disabled=True)
        elif c.render == RENDER_IMAGE:
            cfg[c.key] = st.column_config.ImageColumn(c.label, width=_width(c.width))
        elif c.render == RENDER_ACTIONS:
            cfg[c.key] = st.column_config.CheckboxColumn(c.label, width=_width(c.width), default=False)
        else:
            cfg[c.key] = st.column_config.TextColumn(c.label, width=_width(c.width), disabled=not c.editable)
    return cfg


def disabled_columns(columns: Sequence[ColumnDefinition]) -> List[str]:
    return [c.key for c in columns if not c.editable]


# ---------------------------------
# Edited cells -> session
# ---------------------------------
def _clean(value: Any) -> Any:
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def apply_editor_changes(session, frame: pd.DataFrame, edited_rows: Dict[int, Dict[str, Any]]) -> None:
    """
    Feed st.data_editor's `edited_rows` ({position: {column: value}}) into the session.
    Ticking Delete asks for a delete; every other cell becomes a pending edit.
    """
    for pos, changes in (edited_rows or {}).items():
        row_id = frame.index[int(pos)]
        if hasattr(row_id, "item"):  # numpy scalar -> python
            row_id = row_id.item()
        for key, value in changes.items():
            if key == ACTIONS_KEY:
                if value:
                    session.request_delete(row_id)
                elif session.pending_delete == row_id:
                    session.cancel_delete()
                continue
            session.record_edit(row_id, key, _clean(value))
