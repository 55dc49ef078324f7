# spreadsheet.py — Excel / CSV downloads of the visitor list
from __future__ import annotations

import io
import re
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

EXPORT_FILE_NAME = "visitors.xlsx"
EXPORT_SHEET_NAME = "Visitors"
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# label -> table column, in sheet order
EXPORT_COLUMNS = [
    ("Name", "full_name"),
    ("Phone", "primary_phone_num"),
    ("Address", "address"),
    ("Gender", "gender"),
    ("Age", "age"),
    ("Inviter Name", "iow_name"),
    ("Inviter Phone", "iow_phone_num"),
    ("Follow Up Leader", "follow_up_leader"),
    ("Foundation Status", "foundation_class_status"),
    ("Ministers Status", "ministers_training_status"),
    ("Ministry Joined", "ministry_joined"),
    ("Cell Group Status", "cell_group_status"),
    ("Registered", "registered_at"),
]

_MOBILE_RE = re.compile(r"Mobi|Android", re.IGNORECASE)


def export_allowed(user_agent: Optional[str]) -> bool:
    """Excel export is offered on Windows desktops and mobile browsers only."""
    ua = user_agent or ""
    return "Win" in ua or bool(_MOBILE_RE.search(ua))


def _plain(value: Any) -> Any:
    # openpyxl cannot write tz-aware datetimes
    if getattr(value, "tzinfo", None) is not None:
        return value.replace(tzinfo=None)
    return value


def build_export_frame(rows: Sequence[Dict[str, Any]]) -> pd.DataFrame:
    records: List[Dict[str, Any]] = [
        {label: _plain(row.get(col)) for label, col in EXPORT_COLUMNS}
        for row in rows
    ]
    return pd.DataFrame(records, columns=[label for label, _ in EXPORT_COLUMNS])


def export_workbook(rows: Sequence[Dict[str, Any]]) -> bytes:
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        build_export_frame(rows).to_excel(writer, sheet_name=EXPORT_SHEET_NAME, index=False)
    return output.getvalue()


def export_csv(frame: pd.DataFrame) -> bytes:
    return frame.to_csv(index=False).encode("utf-8")
