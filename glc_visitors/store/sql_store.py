# sql_store.py — self-hosted backend (Postgres via SQLAlchemy + files on disk)
from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, insert, select, update
from sqlalchemy.engine import Engine

from ..db import dsn_caption, ensure_schema, visitors_table
from ..exceptions import RemoteStoreError, UploadError
from ..models import ID_FIELD
from .base import RemoteStore

log = logging.getLogger(__name__)


class SqlStore(RemoteStore):
    """
    Rows live in a SQL table; objects are written under `media_root/<bucket>/<path>`
    and served from `media_base_url` (Streamlit static serving by default).
    """

    def __init__(self, engine: Engine, table_name: str = "newVisitors",
                 media_root: str = "static", media_base_url: str = "app/static"):
        self.engine = engine
        self.table_name = table_name
        self.media_root = media_root
        self.media_base_url = media_base_url.rstrip("/")
        ensure_schema(engine, table_name)

    def _table(self, table: str):
        if table != self.table_name:
            raise RemoteStoreError(f"Unknown table: {table}")
        return visitors_table(table)

    def _check_columns(self, t, record: Dict[str, Any]) -> None:
        unknown = [k for k in record if k not in t.c]
        if unknown:
            raise RemoteStoreError(f"Unknown column(s) for {t.name}: {', '.join(unknown)}")

    def select_all(self, table: str) -> List[Dict[str, Any]]:
        t = self._table(table)
        try:
            with self.engine.begin() as c:
                rows = c.execute(select(t).order_by(t.c[ID_FIELD])).mappings().all()
        except Exception as e:
            log.exception("select from %s failed", table)
            raise RemoteStoreError(str(e)) from e
        return [dict(r) for r in rows]

    def insert(self, table: str, record: Dict[str, Any]) -> None:
        t = self._table(table)
        self._check_columns(t, record)
        try:
            with self.engine.begin() as c:
                c.execute(insert(t).values(**record))
        except Exception as e:
            log.exception("insert into %s failed", table)
            raise RemoteStoreError(str(e)) from e

    def update(self, table: str, row_id: Any, partial: Dict[str, Any]) -> None:
        t = self._table(table)
        self._check_columns(t, partial)
        if ID_FIELD in partial:
            raise RemoteStoreError("Row identifier cannot be changed.")
        try:
            with self.engine.begin() as c:
                res = c.execute(update(t).where(t.c[ID_FIELD] == row_id).values(**partial))
        except Exception as e:
            log.exception("update %s id=%s failed", table, row_id)
            raise RemoteStoreError(str(e)) from e
        if res.rowcount == 0:
            raise RemoteStoreError(f"No row with id {row_id} in {table}.")

    def delete(self, table: str, row_id: Any) -> None:
        t = self._table(table)
        try:
            with self.engine.begin() as c:
                res = c.execute(delete(t).where(t.c[ID_FIELD] == row_id))
        except Exception as e:
            log.exception("delete %s id=%s failed", table, row_id)
            raise RemoteStoreError(str(e)) from e
        if res.rowcount == 0:
            raise RemoteStoreError(f"No row with id {row_id} in {table}.")

    # ---- objects ----
    def _object_path(self, bucket: str, path: str) -> str:
        root = os.path.abspath(os.path.join(self.media_root, bucket))
        full = os.path.abspath(os.path.join(root, path))
        if not full.startswith(root + os.sep):
            raise UploadError(f"Invalid object path: {path}")
        return full

    def upload_object(self, bucket: str, path: str, data: bytes, content_type: Optional[str] = None) -> None:
        full = self._object_path(bucket, path)
        if os.path.exists(full):
            raise UploadError(f"The resource already exists: {bucket}/{path}")
        try:
            os.makedirs(os.path.dirname(full), exist_ok=True)
            with open(full, "wb") as f:
                f.write(data)
        except OSError as e:
            log.exception("upload %s/%s failed", bucket, path)
            raise UploadError(str(e)) from e

    def get_public_url(self, bucket: str, path: str) -> str:
        return f"{self.media_base_url}/{bucket}/{path}"

    def describe(self) -> str:
        return dsn_caption(self.engine)
