# columns.py — derive grid columns from the fetched rows
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from ..models import ID_FIELD, IMAGE_FIELD

ROW_NUMBER_KEY = "#"
ACTIONS_KEY = "Delete"

FLOOR_WIDTH = 120
PER_CHAR_WIDTH = 8
PADDING = 10
IMAGE_WIDTH = 50
ROW_NUMBER_WIDTH = 40

RENDER_ROW_NUMBER = "row_number"
RENDER_TEXT = "text"
RENDER_IMAGE = "image"
RENDER_ACTIONS = "actions"

SYNTHETIC_KEYS = (ROW_NUMBER_KEY, ACTIONS_KEY)


@dataclass(frozen=True)
class ColumnDefinition:
    key: str
    label: str
    editable: bool
    render: str
    width: int
    sortable: bool = True
    filterable: bool = True


def humanize(key: str) -> str:
    """first_visit_date -> First Visit Date (only first letters are touched)."""
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), key.replace("_", " "))


def longest_value(rows: Sequence[Dict[str, Any]], key: str) -> int:
    longest = 0
    for row in rows:
        value = row.get(key)
        longest = max(longest, len("" if value is None else str(value)))
    return longest


def derive_columns(rows: Sequence[Dict[str, Any]], edit_mode_active: bool) -> List[ColumnDefinition]:
    """
    Build the column list for `rows`.

    - keys come from the first row only, in its order; `id` is skipped
    - `image` renders as a thumbnail and is never editable
    - text widths: max(120, longest value * 8 + 10), recomputed on every call
    - edit mode appends the Delete actions column
    Returns [] for an empty row set.
    """
    if not rows:
        return []

    columns = [
        ColumnDefinition(
            key=ROW_NUMBER_KEY,
            label=ROW_NUMBER_KEY,
            editable=False,
            render=RENDER_ROW_NUMBER,
            width=ROW_NUMBER_WIDTH,
            sortable=False,
            filterable=False,
        )
    ]

    for key in rows[0].keys():
        if key == ID_FIELD:
            continue
        if key == IMAGE_FIELD:
            columns.append(ColumnDefinition(
                key=key,
                label="Photo",
                editable=False,
                render=RENDER_IMAGE,
                width=IMAGE_WIDTH,
            ))
            continue
        width = max(FLOOR_WIDTH, longest_value(rows, key) * PER_CHAR_WIDTH + PADDING)
        columns.append(ColumnDefinition(
            key=key,
            label=humanize(key),
            editable=edit_mode_active,
            render=RENDER_TEXT,
            width=width,
        ))

    if edit_mode_active:
        columns.append(ColumnDefinition(
            key=ACTIONS_KEY,
            label=ACTIONS_KEY,
            editable=True,
            render=RENDER_ACTIONS,
            width=ROW_NUMBER_WIDTH * 2,
            sortable=False,
            filterable=False,
        ))
    return columns
