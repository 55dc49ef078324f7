import os
import sys
import threading

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from glc_visitors.exceptions import RemoteStoreError, UploadError
from glc_visitors.store.base import RemoteStore


class FakeStore(RemoteStore):
    """In-memory backend that records every call in order."""

    def __init__(self, rows=None):
        self.rows = [dict(r) for r in (rows or [])]
        self.calls = []
        self.fail_updates_for = set()
        self.fail_select = False
        self.fail_delete = False
        self.fail_upload = False
        self.fail_insert = False
        self._lock = threading.Lock()

    def _log(self, *call):
        with self._lock:
            self.calls.append(call)

    def calls_named(self, name):
        return [c for c in self.calls if c[0] == name]

    def select_all(self, table):
        self._log("select_all", table)
        if self.fail_select:
            raise RemoteStoreError("select exploded")
        return [dict(r) for r in self.rows]

    def insert(self, table, record):
        self._log("insert", table, dict(record))
        if self.fail_insert:
            raise RemoteStoreError("duplicate key value")
        new_id = max([r["id"] for r in self.rows] or [0]) + 1
        self.rows.append({"id": new_id, **record})

    def update(self, table, row_id, partial):
        self._log("update", table, row_id, dict(partial))
        if row_id in self.fail_updates_for:
            raise RemoteStoreError(f"update rejected for {row_id}")
        with self._lock:
            for r in self.rows:
                if r["id"] == row_id:
                    r.update(partial)

    def delete(self, table, row_id):
        self._log("delete", table, row_id)
        if self.fail_delete:
            raise RemoteStoreError("permission denied")
        self.rows = [r for r in self.rows if r["id"] != row_id]

    def upload_object(self, bucket, path, data, content_type=None):
        self._log("upload_object", bucket, path)
        if self.fail_upload:
            raise UploadError("bucket not found")

    def get_public_url(self, bucket, path):
        self._log("get_public_url", bucket, path)
        return f"https://cdn.example/{bucket}/{path}"


@pytest.fixture
def visitor_rows():
    return [
        {"id": 1, "image": "https://cdn.example/images/1.png", "full_name": "Abebe Kebede",
         "primary_phone_num": "0911000000", "gender": "M", "age": "31"},
        {"id": 2, "image": None, "full_name": "Sara", "primary_phone_num": "0922000000",
         "gender": "f", "age": "24"},
        {"id": 3, "image": None, "full_name": "Hanna Tesfaye Woldemariam",
         "primary_phone_num": "0933", "gender": None, "age": "40"},
    ]


@pytest.fixture
def store(visitor_rows):
    return FakeStore(visitor_rows)
