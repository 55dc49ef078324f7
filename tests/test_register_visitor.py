from datetime import date

import pytest

from glc_visitors.exceptions import ValidationError
from glc_visitors.models import PhotoFile
from glc_visitors.visitors.register_visitor import (
    build_record,
    photo_path,
    upload_visitor_data,
    validate_form,
)

from conftest import FakeStore


@pytest.fixture
def form_data():
    return {
        "photo": PhotoFile("me.JPG", b"\xff\xd8jpeg", "image/jpeg"),
        "full_name": "  Meron Alemu ",
        "primary_phone": "0911223344",
        "secondary_phone": "",
        "address": "Bole, Addis Ababa",
        "gender": "Female",
        "age": "27",
        "visitation_date": date(2024, 5, 12),
        "inviter_name": "Dawit",
        "inviter_phone": "0911000001",
        "follow_up_leader": "Ruth",
        "foundation_status": "Started 1",
        "foundation_teacher": "Samuel",
        "ministers_status": "Didn't start",
        "ministers_teacher": "Yonas",
        "ministry_joined": "Choir",
        "cell_group_status": "Joined",
        "assigned_cell_group": "Bole 3",
    }


def test_missing_age_names_field_and_skips_network(form_data):
    store = FakeStore()
    form_data["age"] = ""
    result = upload_visitor_data(store, form_data)
    assert not result.success
    assert "age" in result.error
    assert store.calls == []


def test_missing_photo_reported_first(form_data):
    form_data["photo"] = None
    form_data["age"] = None
    with pytest.raises(ValidationError) as exc:
        validate_form(form_data)
    assert exc.value.field == "photo"


def test_secondary_phone_optional(form_data):
    del form_data["secondary_phone"]
    validate_form(form_data)


def test_success_calls_in_order(form_data):
    store = FakeStore()
    result = upload_visitor_data(store, form_data, table="newVisitors", bucket="images", folder="newVisitors")

    assert result.success and result.error is None
    assert [c[0] for c in store.calls] == ["upload_object", "get_public_url", "insert"]

    _, bucket, path = store.calls[0]
    assert bucket == "images"
    assert path.startswith("newVisitors/") and path.endswith(".jpg")
    assert store.calls[1] == ("get_public_url", "images", path)

    record = store.calls[2][2]
    assert record["image"] == f"https://cdn.example/images/{path}"
    assert record["full_name"] == "Meron Alemu"
    assert record["born_again_date"] == "2024-05-12"
    assert record["iow_name"] == "Dawit"
    assert record["secondary_phone_num"] is None
    assert "registered_at" not in record


def test_upload_failure_aborts_before_insert(form_data):
    store = FakeStore()
    store.fail_upload = True
    result = upload_visitor_data(store, form_data)
    assert not result.success
    assert result.error.startswith("Image upload failed: bucket not found")
    assert store.calls_named("insert") == []
    assert store.calls_named("get_public_url") == []


def test_insert_failure_reported(form_data):
    store = FakeStore()
    store.fail_insert = True
    result = upload_visitor_data(store, form_data)
    assert not result.success
    assert result.error == "Data insert failed: duplicate key value"


def test_photo_path_uses_extension():
    assert photo_path(PhotoFile("a.b.PNG", b"x"), "newVisitors", now_ms=1700) == "newVisitors/1700.png"
    assert photo_path(PhotoFile("noext", b"x"), "f", now_ms=1) == "f/1.bin"


def test_build_record_maps_every_form_field(form_data):
    record = build_record(form_data, "url")
    assert set(record) == {
        "image", "full_name", "primary_phone_num", "secondary_phone_num", "address", "gender", "age",
        "born_again_date", "iow_name", "iow_phone_num", "follow_up_leader", "foundation_class_status",
        "foundation_class_teacher", "ministers_training_status", "ministers_training_teacher",
        "ministry_joined", "cell_group_status", "assigned_cell_group",
    }
