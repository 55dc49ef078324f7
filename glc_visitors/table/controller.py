# controller.py — one admin table session: rows, columns, pending edits, mode
from __future__ import annotations

import enum
import logging
from typing import Any, Dict, List, Optional, Tuple

from ..config import check_password
from ..exceptions import CredentialError, ExportRefused, InvalidStateError, RemoteStoreError
from ..export.spreadsheet import export_allowed, export_workbook
from ..models import ID_FIELD, IMAGE_FIELD
from ..store.base import RemoteStore
from .columns import SYNTHETIC_KEYS, ColumnDefinition, derive_columns
from .edit_buffer import EditBuffer, FlushResult
from .summary import SummaryStats, summarize

log = logging.getLogger(__name__)


class Mode(enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    VIEW = "view"
    EDIT = "edit"


class VisitorTableSession:
    """
    Owns everything the admin grid shows for one signed-in browser session.

    Any fetch replaces the rows wholesale and drops pending edits; delete and
    a successful flush both end in a fetch. `generation` changes whenever the
    grid must be rebuilt from scratch (new rows or new mode).
    """

    def __init__(self, store: RemoteStore, table: str, admin_password: Optional[str]):
        self.store = store
        self.table = table
        self._admin_password = admin_password
        self.mode = Mode.UNAUTHENTICATED
        self.rows: List[Dict[str, Any]] = []
        self.columns: List[ColumnDefinition] = []
        self.buffer = EditBuffer(store, table)
        self.pending_delete: Optional[Any] = None
        self.generation = 0
        # set when a refetch after a successful write fails; the rows are then stale
        self.reload_error: Optional[str] = None
        self._export_cache: Optional[Tuple[int, bytes]] = None

    # ---- state ----
    @property
    def authenticated(self) -> bool:
        return self.mode is not Mode.UNAUTHENTICATED

    @property
    def edit_mode(self) -> bool:
        return self.mode is Mode.EDIT

    @property
    def summary(self) -> SummaryStats:
        return summarize(self.rows)

    def _require(self, mode: Mode, action: str) -> None:
        if self.mode is not mode:
            raise InvalidStateError(f"Cannot {action} while in {self.mode.value} mode.")

    def _rederive(self) -> None:
        self.columns = derive_columns(self.rows, self.edit_mode)
        self.generation += 1

    # ---- auth ----
    def sign_in(self, password: Optional[str]) -> None:
        if self.authenticated:
            return
        if not check_password(password, self._admin_password):
            raise CredentialError("Incorrect password")
        self.mode = Mode.VIEW
        log.info("Admin signed in")
        self.fetch()

    def sign_out(self) -> None:
        self.mode = Mode.UNAUTHENTICATED
        self.rows = []
        self.reload_error = None
        self.buffer.clear()
        self.pending_delete = None
        self._rederive()

    # ---- data ----
    def fetch(self) -> None:
        """Replace the row set with the backend's. On failure nothing local changes."""
        if not self.authenticated:
            raise InvalidStateError("Sign in to load visitors.")
        rows = self.store.select_all(self.table)
        self.rows = rows
        self.reload_error = None
        self.buffer.clear()
        self.pending_delete = None
        self._rederive()
        log.info("Fetched %d visitor row(s)", len(rows))

    def row_ids(self) -> List[Any]:
        return [r.get(ID_FIELD) for r in self.rows]

    # ---- edit mode ----
    def set_edit_mode(self, active: bool) -> None:
        if not self.authenticated:
            raise InvalidStateError("Sign in to edit visitors.")
        if active == self.edit_mode:
            return
        if not active:
            self.buffer.clear()
            self.pending_delete = None
        self.mode = Mode.EDIT if active else Mode.VIEW
        self._rederive()

    def toggle_edit_mode(self) -> None:
        self.set_edit_mode(not self.edit_mode)

    def record_edit(self, row_id: Any, field_key: str, value: Any) -> None:
        self._require(Mode.EDIT, "edit")
        if field_key in (ID_FIELD, IMAGE_FIELD) or field_key in SYNTHETIC_KEYS:
            raise InvalidStateError(f"Column {field_key!r} is not editable.")
        self.buffer.record_edit(row_id, field_key, value)

    def flush(self) -> FlushResult:
        """
        Send the buffered edits, then refetch. If the writes landed but the
        refetch fails, the saved values are applied to the local rows and the
        result carries `reload_error`.
        """
        self._require(Mode.EDIT, "save edits")
        batch = self.buffer.pending
        result = self.buffer.flush()
        if result.ok:
            result.reload_error = self._reload_after_write()
            if result.reload_error is not None:
                for row in self.rows:
                    changes = batch.get(row.get(ID_FIELD))
                    if changes:
                        row.update(changes)
                self._rederive()
        return result

    # ---- delete (always two steps) ----
    def request_delete(self, row_id: Any) -> None:
        self._require(Mode.EDIT, "delete")
        if row_id not in self.row_ids():
            raise InvalidStateError(f"No visitor with id {row_id}.")
        self.pending_delete = row_id

    def cancel_delete(self) -> None:
        self.pending_delete = None

    def confirm_delete(self) -> Any:
        """
        Delete the requested row and refetch. A failed delete leaves rows and the
        request as they were; a failed refetch after it drops the row locally
        and sets `reload_error`.
        """
        self._require(Mode.EDIT, "delete")
        if self.pending_delete is None:
            raise InvalidStateError("No row selected for deletion.")
        row_id = self.pending_delete
        self.store.delete(self.table, row_id)
        log.info("Deleted visitor id=%s", row_id)
        self.pending_delete = None
        if self._reload_after_write() is not None:
            self.rows = [r for r in self.rows if r.get(ID_FIELD) != row_id]
            self._rederive()
        return row_id

    def _reload_after_write(self) -> Optional[str]:
        try:
            self.fetch()
        except RemoteStoreError as e:
            log.warning("Reload after write failed: %s", e)
            self.reload_error = e.message
            return e.message
        return None

    # ---- export ----
    def export(self, user_agent: Optional[str]) -> bytes:
        """Workbook bytes for the current rows, built once per generation."""
        if not self.authenticated:
            raise InvalidStateError("Sign in to export visitors.")
        if not export_allowed(user_agent):
            raise ExportRefused("Excel export is only available on Windows or mobile.")
        if self._export_cache is None or self._export_cache[0] != self.generation:
            self._export_cache = (self.generation, export_workbook(self.rows))
        return self._export_cache[1]
