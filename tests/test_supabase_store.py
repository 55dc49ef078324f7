import pytest

from glc_visitors.exceptions import RemoteStoreError, UploadError
from glc_visitors.store.supabase_store import SupabaseStore


class APIError(Exception):
    """Shaped like postgrest's APIError: the server text lives in .message."""

    def __init__(self, message):
        super().__init__({"message": message, "code": "42501"})
        self.message = message


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Records a postgrest-style builder chain; execute() ends it."""

    def __init__(self, client, table):
        self.client = client
        self.chain = [("table", table)]

    def _step(self, *call):
        self.chain.append(call)
        return self

    def select(self, cols):
        return self._step("select", cols)

    def order(self, col):
        return self._step("order", col)

    def insert(self, record):
        return self._step("insert", record)

    def update(self, partial):
        return self._step("update", partial)

    def delete(self):
        return self._step("delete")

    def eq(self, col, value):
        return self._step("eq", col, value)

    def execute(self):
        self.client.executed.append(self.chain)
        if self.client.error is not None:
            raise self.client.error
        return FakeResponse(self.client.rows)


class FakeBucket:
    def __init__(self, client, name):
        self.client = client
        self.name = name

    def upload(self, path, data, options):
        self.client.uploads.append((self.name, path, data, options))
        if self.client.error is not None:
            raise self.client.error

    def get_public_url(self, path):
        return f"https://proj.supabase.co/storage/v1/object/public/{self.name}/{path}"


class FakeStorage:
    def __init__(self, client):
        self.client = client

    def from_(self, bucket):
        return FakeBucket(self.client, bucket)


class FakeClient:
    def __init__(self, rows=None):
        self.rows = rows
        self.error = None
        self.executed = []
        self.uploads = []
        self.storage = FakeStorage(self)

    def table(self, name):
        return FakeQuery(self, name)


@pytest.fixture
def client():
    return FakeClient(rows=[{"id": 1, "full_name": "Abebe"}])


@pytest.fixture
def supa(client):
    return SupabaseStore(url="https://proj.supabase.co", client=client)


def test_select_all_orders_by_id(supa, client):
    assert supa.select_all("newVisitors") == [{"id": 1, "full_name": "Abebe"}]
    assert client.executed == [[("table", "newVisitors"), ("select", "*"), ("order", "id")]]


def test_select_all_empty_data(supa, client):
    client.rows = None
    assert supa.select_all("newVisitors") == []


def test_insert_sends_record(supa, client):
    supa.insert("newVisitors", {"full_name": "Sara"})
    assert client.executed == [[("table", "newVisitors"), ("insert", {"full_name": "Sara"})]]


def test_update_and_delete_filter_by_id(supa, client):
    supa.update("newVisitors", 7, {"age": "30"})
    supa.delete("newVisitors", 7)
    assert client.executed == [
        [("table", "newVisitors"), ("update", {"age": "30"}), ("eq", "id", 7)],
        [("table", "newVisitors"), ("delete",), ("eq", "id", 7)],
    ]


def test_api_error_becomes_remote_store_error(supa, client):
    client.error = APIError("permission denied for table newVisitors")
    for call in (
        lambda: supa.select_all("newVisitors"),
        lambda: supa.insert("newVisitors", {"full_name": "x"}),
        lambda: supa.update("newVisitors", 1, {"age": "2"}),
        lambda: supa.delete("newVisitors", 1),
    ):
        with pytest.raises(RemoteStoreError) as exc:
            call()
        assert exc.value.message == "permission denied for table newVisitors"
        assert not isinstance(exc.value, UploadError)


def test_plain_exception_message_falls_back_to_str(supa, client):
    client.error = RuntimeError("connection reset")
    with pytest.raises(RemoteStoreError, match="connection reset"):
        supa.select_all("newVisitors")


def test_upload_passes_content_type(supa, client):
    supa.upload_object("images", "newVisitors/1.png", b"png", "image/png")
    supa.upload_object("images", "newVisitors/2.bin", b"raw")
    assert client.uploads == [
        ("images", "newVisitors/1.png", b"png", {"content-type": "image/png"}),
        ("images", "newVisitors/2.bin", b"raw", {"content-type": "application/octet-stream"}),
    ]


def test_storage_failure_raises_upload_error(supa, client):
    client.error = APIError("The resource already exists")
    with pytest.raises(UploadError) as exc:
        supa.upload_object("images", "newVisitors/1.png", b"png", "image/png")
    assert exc.value.message == "The resource already exists"


def test_public_url_and_describe(supa):
    url = supa.get_public_url("images", "newVisitors/1.png")
    assert url.endswith("/public/images/newVisitors/1.png")
    assert supa.describe() == "Supabase → https://proj.supabase.co"
