# base.py — contract every visitors backend implements
from __future__ import annotations

from typing import Any, Dict, List, Optional


class RemoteStore:
    """
    Row CRUD on one logical table plus binary object storage.
    Every call is request/response; failures raise RemoteStoreError
    (UploadError for object storage) with the backend's message.
    """

    def select_all(self, table: str) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def insert(self, table: str, record: Dict[str, Any]) -> None:
        raise NotImplementedError

    def update(self, table: str, row_id: Any, partial: Dict[str, Any]) -> None:
        raise NotImplementedError

    def delete(self, table: str, row_id: Any) -> None:
        raise NotImplementedError

    def upload_object(self, bucket: str, path: str, data: bytes, content_type: Optional[str] = None) -> None:
        raise NotImplementedError

    def get_public_url(self, bucket: str, path: str) -> str:
        raise NotImplementedError

    def describe(self) -> str:
        """One-line caption for the admin sidebar."""
        return type(self).__name__
