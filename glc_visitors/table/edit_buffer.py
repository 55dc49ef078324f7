# edit_buffer.py — pending per-row edits, flushed as one update per row
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..store.base import RemoteStore

log = logging.getLogger(__name__)

MAX_FLUSH_WORKERS = 8


@dataclass
class FlushResult:
    ok: bool
    updated: List[Any] = field(default_factory=list)
    failures: Dict[Any, str] = field(default_factory=dict)
    reload_error: Optional[str] = None

    @property
    def error(self) -> str:
        return "; ".join(f"row {rid}: {msg}" for rid, msg in self.failures.items())


class EditBuffer:
    """
    row id -> {field: new value}. Repeated edits to the same field overwrite
    (last write wins). The buffer is only cleared as a whole.
    """

    def __init__(self, store: RemoteStore, table: str):
        self.store = store
        self.table = table
        self._pending: Dict[Any, Dict[str, Any]] = {}

    def record_edit(self, row_id: Any, field_key: str, new_value: Any) -> None:
        self._pending.setdefault(row_id, {})[field_key] = new_value

    def clear(self) -> None:
        self._pending.clear()

    @property
    def pending(self) -> Dict[Any, Dict[str, Any]]:
        return {rid: dict(changes) for rid, changes in self._pending.items()}

    def is_empty(self) -> bool:
        return not self._pending

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, row_id: Any) -> bool:
        return row_id in self._pending

    def flush(self) -> FlushResult:
        """
        Send every buffered row as its own update, concurrently, and wait for all.

        Any failure leaves the whole buffer in place so a retry resends every
        row (updates are plain field overwrites, so resending is harmless).
        """
        batch = self.pending
        if not batch:
            return FlushResult(ok=True)

        result = FlushResult(ok=True)
        workers = min(MAX_FLUSH_WORKERS, len(batch))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(self.store.update, self.table, rid, changes): rid
                for rid, changes in batch.items()
            }
            for fut in as_completed(futures):
                rid = futures[fut]
                try:
                    fut.result()
                    result.updated.append(rid)
                except Exception as e:
                    result.failures[rid] = str(e)

        if result.failures:
            result.ok = False
            log.warning("Flush failed for %d of %d row(s); keeping edits", len(result.failures), len(batch))
        else:
            log.info("Flushed %d row update(s)", len(batch))
            self.clear()
        return result
