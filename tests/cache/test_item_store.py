from __future__ import annotations

import sqlite3
from dataclasses import replace
from pathlib import Path

import pytest

from redimgur.cache.item_store import FetchRequest, ItemStore
from redimgur.core.validation import parse_image_data
from redimgur.models.image_item import ChangeSet


def _record(image_data, identifier: str, **overrides):
    return parse_image_data(image_data(identifier, **overrides)).record


def test_store_creates_model_file(store: ItemStore, tmp_path: Path) -> None:
    assert store.is_loaded
    assert store.load_error is None
    assert store.db_path == tmp_path / "ImgurModel.sqlite"
    assert store.db_path.exists()


def test_store_reopens_existing_file(qapp, tmp_path: Path, image_data) -> None:
    first = ItemStore(tmp_path)
    with first.new_background_context() as context:
        context.insert_object(_record(image_data, "kept"))
        first.save_context(context)
    first.shutdown()

    second = ItemStore(tmp_path)
    try:
        items = second.view_context.fetch(FetchRequest.by_identifier("kept"))
        assert [item.identifier for item in items] == ["kept"]
    finally:
        second.shutdown()


def test_corrupt_file_leaves_store_inert(qapp, tmp_path: Path, image_data) -> None:
    (tmp_path / "ImgurModel.sqlite").write_bytes(b"definitely not sqlite" * 64)

    store = ItemStore(tmp_path)
    try:
        assert not store.is_loaded
        assert store.load_error is not None
        assert store.view_context.fetch(FetchRequest.feed()) == []

        with store.new_background_context() as context:
            assert not context.is_usable
            context.insert_object(_record(image_data, "dropped"))
            store.save_context(context)
            assert not context.has_changes
    finally:
        store.shutdown()


def test_newer_schema_is_rejected(qapp, tmp_path: Path) -> None:
    conn = sqlite3.connect(tmp_path / "ImgurModel.sqlite")
    conn.execute("PRAGMA user_version = 99")
    conn.close()

    store = ItemStore(tmp_path)
    try:
        assert not store.is_loaded
        assert "99" in str(store.load_error)
    finally:
        store.shutdown()


def test_pending_inserts_are_visible_in_their_context(store: ItemStore, image_data) -> None:
    with store.new_background_context() as context:
        item = context.insert_object(_record(image_data, "pending"))

        assert context.has_changes
        assert item.object_id is None
        assert context.fetch(FetchRequest.by_identifier("pending")) == [item]
        assert store.view_context.fetch(FetchRequest.by_identifier("pending")) == []


def test_save_assigns_object_ids_and_notifies(store: ItemStore, image_data) -> None:
    received = []
    store.signals.didSave.connect(lambda origin, change_set: received.append(change_set))

    with store.new_background_context() as context:
        first = context.insert_object(_record(image_data, "one"))
        second = context.insert_object(_record(image_data, "two"))
        store.save_context(context)

        assert not context.has_changes
        assert first.object_id is not None and second.object_id is not None
        assert context.object_with_id(first.object_id) is first

    assert received == [ChangeSet(inserted=(first.object_id, second.object_id))]


def test_save_without_changes_is_a_no_op(store: ItemStore) -> None:
    received = []
    store.signals.didSave.connect(lambda origin, change_set: received.append(change_set))

    store.save_context()

    assert received == []


def test_fetch_feed_orders_newest_first(store: ItemStore, image_data) -> None:
    with store.new_background_context() as context:
        for identifier, stamp in (("a", 100), ("b", 300), ("c", 200), ("d", 300)):
            context.insert_object(_record(image_data, identifier, datetime=stamp))
        store.save_context(context)

    items = store.view_context.fetch(FetchRequest.feed())

    assert [(item.identifier, item.datetime) for item in items] == [
        ("b", 300.0),
        ("d", 300.0),
        ("c", 200.0),
        ("a", 100.0),
    ]


def test_view_context_returns_registered_instances(store: ItemStore, image_data) -> None:
    with store.new_background_context() as context:
        context.insert_object(_record(image_data, "same"))
        store.save_context(context)

    view = store.view_context
    first = view.fetch(FetchRequest.by_identifier("same"))[0]
    second = view.fetch(FetchRequest.by_identifier("same"))[0]

    assert first is second
    view.reset()
    assert view.registered_objects() == []
    assert view.fetch(FetchRequest.by_identifier("same"))[0] is not first


def test_view_context_merges_background_saves(store: ItemStore, image_data) -> None:
    merged = []
    store.view_context.signals.objectsDidChange.connect(merged.append)

    with store.new_background_context() as context:
        context.insert_object(_record(image_data, "merge-me"))
        store.save_context(context)

    assert len(merged) == 1
    assert len(merged[0].inserted) == 1


def test_disabled_merging_ignores_foreign_saves(store: ItemStore, image_data) -> None:
    merged = []
    view = store.view_context
    view.automatically_merges_changes = False
    view.signals.objectsDidChange.connect(merged.append)

    with store.new_background_context() as context:
        context.insert_object(_record(image_data, "ignored"))
        store.save_context(context)
    assert merged == []

    view.insert_object(_record(image_data, "own"))
    store.save_context()
    assert len(merged) == 1


def test_delete_all_reports_removed_ids(store: ItemStore, image_data) -> None:
    with store.new_background_context() as context:
        item = context.insert_object(_record(image_data, "gone"))
        store.save_context(context)

    with store.new_background_context() as context:
        change_set = context.execute_delete_all()

    assert change_set.deleted == (item.object_id,)
    assert store.view_context.count() == 0


def test_commit_failure_is_fatal(store: ItemStore, image_data, monkeypatch) -> None:
    class _Fatal(Exception):
        pass

    def fake_qfatal(message: str) -> None:
        raise _Fatal(message)

    monkeypatch.setattr("redimgur.cache.item_store.store.qFatal", fake_qfatal)

    with store.new_background_context() as context:
        context.insert_object(_record(image_data, "boom"))

        def failing_save():
            raise sqlite3.OperationalError("disk I/O error")

        monkeypatch.setattr(context, "save", failing_save)
        with pytest.raises(_Fatal, match="disk I/O error"):
            store.save_context(context)


def test_failed_save_leaves_no_open_transaction(store: ItemStore, image_data) -> None:
    with store.new_background_context() as context:
        context.insert_object(_record(image_data, "kept-out"))
        context.insert_object(replace(_record(image_data, "huge"), views=2**63))

        with pytest.raises(OverflowError):
            context.save()
        assert not context._conn.in_transaction
        context.rollback()

    with store.new_background_context() as context:
        context.insert_object(_record(image_data, "after"))
        store.save_context(context)

    assert store.view_context.fetch(FetchRequest.by_identifier("kept-out")) == []
    assert len(store.view_context.fetch(FetchRequest.by_identifier("after"))) == 1


def test_non_sqlite_commit_failure_is_fatal(store: ItemStore, image_data, monkeypatch) -> None:
    messages = []
    monkeypatch.setattr("redimgur.cache.item_store.store.qFatal", messages.append)

    with store.new_background_context() as context:
        context.insert_object(replace(_record(image_data, "huge"), views=2**63))
        store.save_context(context)

    assert len(messages) == 1
    assert messages[0].startswith("Failure to save context")


def test_perform_background_task_runs_off_the_gui_thread(store: ItemStore, image_data, qtbot) -> None:
    import threading

    seen = {}

    def block(context) -> None:
        seen["thread"] = threading.current_thread()
        context.insert_object(_record(image_data, "task"))
        store.save_context(context)

    store.perform_background_task(block)
    assert store.wait_for_background_tasks(5000)

    assert seen["thread"] is not threading.main_thread()
    qtbot.waitUntil(
        lambda: bool(store.view_context.fetch(FetchRequest.by_identifier("task"))),
        timeout=5000,
    )
