# supabase_store.py — hosted backend (Supabase tables + storage)
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from supabase import Client, create_client

from ..exceptions import RemoteStoreError, UploadError
from ..models import ID_FIELD
from .base import RemoteStore

log = logging.getLogger(__name__)


def _message(e: Exception) -> str:
    # postgrest APIError keeps the server text in .message
    return getattr(e, "message", None) or str(e)


class SupabaseStore(RemoteStore):
    def __init__(self, url: Optional[str] = None, key: Optional[str] = None, client: Optional[Client] = None):
        if client is None:
            client = create_client(url, key)
        self.client = client
        self.url = url

    def select_all(self, table: str) -> List[Dict[str, Any]]:
        try:
            res = self.client.table(table).select("*").order(ID_FIELD).execute()
        except Exception as e:
            log.exception("select from %s failed", table)
            raise RemoteStoreError(_message(e)) from e
        return list(res.data or [])

    def insert(self, table: str, record: Dict[str, Any]) -> None:
        try:
            self.client.table(table).insert(record).execute()
        except Exception as e:
            log.exception("insert into %s failed", table)
            raise RemoteStoreError(_message(e)) from e

    def update(self, table: str, row_id: Any, partial: Dict[str, Any]) -> None:
        try:
            self.client.table(table).update(partial).eq(ID_FIELD, row_id).execute()
        except Exception as e:
            log.exception("update %s id=%s failed", table, row_id)
            raise RemoteStoreError(_message(e)) from e

    def delete(self, table: str, row_id: Any) -> None:
        try:
            self.client.table(table).delete().eq(ID_FIELD, row_id).execute()
        except Exception as e:
            log.exception("delete %s id=%s failed", table, row_id)
            raise RemoteStoreError(_message(e)) from e

    def upload_object(self, bucket: str, path: str, data: bytes, content_type: Optional[str] = None) -> None:
        try:
            self.client.storage.from_(bucket).upload(
                path, data, {"content-type": content_type or "application/octet-stream"}
            )
        except Exception as e:
            log.exception("upload %s/%s failed", bucket, path)
            raise UploadError(_message(e)) from e

    def get_public_url(self, bucket: str, path: str) -> str:
        try:
            return self.client.storage.from_(bucket).get_public_url(path)
        except Exception as e:
            log.exception("public url for %s/%s failed", bucket, path)
            raise RemoteStoreError(_message(e)) from e

    def describe(self) -> str:
        return f"Supabase → {self.url or '<client>'}"
