from glc_visitors.table.edit_buffer import EditBuffer


def test_last_write_wins(store):
    buf = EditBuffer(store, "newVisitors")
    buf.record_edit(1, "a", "x")
    buf.record_edit(1, "a", "y")
    assert buf.pending == {1: {"a": "y"}}
    assert len(buf) == 1


def test_record_edit_makes_no_calls(store):
    buf = EditBuffer(store, "newVisitors")
    buf.record_edit(1, "full_name", "New")
    buf.record_edit(2, "age", 99)
    assert store.calls == []


def test_flush_one_update_per_row(store):
    buf = EditBuffer(store, "newVisitors")
    buf.record_edit(1, "full_name", "Abebe K.")
    buf.record_edit(1, "age", "32")
    buf.record_edit(2, "gender", "F")

    result = buf.flush()

    assert result.ok
    updates = store.calls_named("update")
    assert len(updates) == 2
    by_row = {c[2]: c[3] for c in updates}
    assert by_row == {1: {"full_name": "Abebe K.", "age": "32"}, 2: {"gender": "F"}}
    assert buf.is_empty()
    assert sorted(result.updated) == [1, 2]


def test_flush_failure_keeps_everything(store):
    store.fail_updates_for = {2}
    buf = EditBuffer(store, "newVisitors")
    buf.record_edit(1, "full_name", "Abebe K.")
    buf.record_edit(2, "gender", "F")

    result = buf.flush()

    assert not result.ok
    assert 2 in result.failures
    assert "update rejected" in result.error
    # row 1 already went through but stays buffered for the retry
    assert buf.pending == {1: {"full_name": "Abebe K."}, 2: {"gender": "F"}}


def test_retry_after_failure_resends_all(store):
    store.fail_updates_for = {2}
    buf = EditBuffer(store, "newVisitors")
    buf.record_edit(1, "full_name", "Abebe K.")
    buf.record_edit(2, "gender", "F")
    buf.flush()

    store.fail_updates_for = set()
    result = buf.flush()

    assert result.ok
    assert len(store.calls_named("update")) == 4
    assert buf.is_empty()


def test_empty_flush_is_noop(store):
    result = EditBuffer(store, "newVisitors").flush()
    assert result.ok
    assert store.calls == []


def test_clear_drops_edits(store):
    buf = EditBuffer(store, "newVisitors")
    buf.record_edit(1, "age", "1")
    buf.clear()
    assert buf.is_empty()
    assert 1 not in buf
