# register_visitor.py — validate, upload the photo, then insert the visitor row
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Optional

from ..exceptions import RemoteStoreError, UploadError, ValidationError
from ..models import FORM_TO_COLUMN, IMAGE_FIELD, REQUIRED_FIELDS, PhotoFile
from ..store.base import RemoteStore
from ..utils import is_blank, norm

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistrationResult:
    success: bool
    error: Optional[str] = None


def validate_form(form_data: Dict[str, Any]) -> None:
    """Raise ValidationError naming the first missing required field."""
    for field in REQUIRED_FIELDS:
        if is_blank(form_data.get(field)):
            raise ValidationError(field)


def photo_path(photo: PhotoFile, folder: str, now_ms: Optional[int] = None) -> str:
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{folder}/{stamp}.{photo.extension}"


def _cell(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, str):
        return norm(value)
    return value


def build_record(form_data: Dict[str, Any], image_url: str) -> Dict[str, Any]:
    """Map form fields onto table columns; registered_at is left to the DB default."""
    record: Dict[str, Any] = {IMAGE_FIELD: image_url}
    for form_key, column in FORM_TO_COLUMN.items():
        record[column] = _cell(form_data.get(form_key))
    return record


def upload_visitor_data(store: RemoteStore, form_data: Dict[str, Any], *,
                        table: str = "newVisitors", bucket: str = "images",
                        folder: str = "newVisitors") -> RegistrationResult:
    """
    1) check required fields (no network call when one is missing)
    2) upload the photo to `bucket`
    3) resolve its public URL
    4) insert the visitor row
    Steps run strictly in order; the insert never happens without a stored photo.
    """
    try:
        validate_form(form_data)
    except ValidationError as e:
        return RegistrationResult(False, e.message)

    photo: PhotoFile = form_data["photo"]
    try:
        path = photo_path(photo, folder)
        store.upload_object(bucket, path, photo.content, photo.content_type)
    except UploadError as e:
        return RegistrationResult(False, f"Image upload failed: {e}")
    except Exception as e:
        log.exception("Photo upload crashed")
        return RegistrationResult(False, f"Unexpected error: {e}")

    try:
        image_url = store.get_public_url(bucket, path)
        record = build_record(form_data, image_url)
    except Exception as e:
        log.exception("Could not resolve photo URL")
        return RegistrationResult(False, f"Unexpected error: {e}")

    try:
        store.insert(table, record)
    except RemoteStoreError as e:
        return RegistrationResult(False, f"Data insert failed: {e}")
    except Exception as e:
        log.exception("Visitor insert crashed")
        return RegistrationResult(False, f"Unexpected error: {e}")

    log.info("Registered visitor %s", record.get("full_name"))
    return RegistrationResult(True)
