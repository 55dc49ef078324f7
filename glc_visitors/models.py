# models.py — the visitor record shape and form mapping
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

ID_FIELD = "id"
IMAGE_FIELD = "image"
CATEGORY_FIELD = "gender"

# Persisted columns of the visitors table, in display order.
VISITOR_COLUMNS: Tuple[str, ...] = (
    "id",
    "image",
    "full_name",
    "primary_phone_num",
    "secondary_phone_num",
    "address",
    "gender",
    "age",
    "born_again_date",
    "iow_name",
    "iow_phone_num",
    "follow_up_leader",
    "foundation_class_status",
    "foundation_class_teacher",
    "ministers_training_status",
    "ministers_training_teacher",
    "ministry_joined",
    "cell_group_status",
    "assigned_cell_group",
    "registered_at",
)

# Registration form field -> table column ("photo" becomes "image" after upload)
FORM_TO_COLUMN: Dict[str, str] = {
    "full_name": "full_name",
    "primary_phone": "primary_phone_num",
    "secondary_phone": "secondary_phone_num",
    "address": "address",
    "gender": "gender",
    "age": "age",
    "visitation_date": "born_again_date",
    "inviter_name": "iow_name",
    "inviter_phone": "iow_phone_num",
    "follow_up_leader": "follow_up_leader",
    "foundation_status": "foundation_class_status",
    "foundation_teacher": "foundation_class_teacher",
    "ministers_status": "ministers_training_status",
    "ministers_teacher": "ministers_training_teacher",
    "ministry_joined": "ministry_joined",
    "cell_group_status": "cell_group_status",
    "assigned_cell_group": "assigned_cell_group",
}

# Checked in this order; the first missing one is reported.
REQUIRED_FIELDS: Tuple[str, ...] = (
    "photo",
    "full_name",
    "primary_phone",
    "address",
    "gender",
    "age",
    "visitation_date",
    "inviter_name",
    "inviter_phone",
    "follow_up_leader",
    "foundation_status",
    "foundation_teacher",
    "ministers_status",
    "ministers_teacher",
    "ministry_joined",
    "cell_group_status",
    "assigned_cell_group",
)

GENDER_CHOICES = ["Male", "Female"]
FOUNDATION_STATUS_CHOICES = ["Didn't start", "Started 1", "Finished 1", "Started 2", "Finished 2"]
MINISTERS_STATUS_CHOICES = ["Didn't start", "Started", "Finished", "Has Joined A Ministry"]
CELL_GROUP_STATUS_CHOICES = ["Didn't Join", "Joined"]


@dataclass(frozen=True)
class PhotoFile:
    """An uploaded photo: original file name, raw bytes, MIME type."""
    name: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def extension(self) -> str:
        if "." not in self.name:
            return "bin"
        return self.name.rsplit(".", 1)[-1].lower() or "bin"

    @classmethod
    def from_upload(cls, uploaded) -> "PhotoFile":
        """Build from a Streamlit UploadedFile."""
        return cls(
            name=uploaded.name,
            content=uploaded.getvalue(),
            content_type=getattr(uploaded, "type", None) or "application/octet-stream",
        )
