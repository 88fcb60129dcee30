from __future__ import annotations

import sqlite3
from typing import List, Tuple

import pytest
from PySide6.QtCore import Qt

from redimgur.cache.item_store import ItemStore
from redimgur.core.gateway import insert_image_item
from redimgur.data_controller import DataController
from redimgur.gui.models import FeedListModel, Roles


def _save_items(store: ItemStore, image_data, stamps) -> None:
    with store.new_background_context() as context:
        for identifier, stamp in stamps:
            insert_image_item(image_data(identifier, datetime=stamp), context)
        store.save_context(context)


def _datetimes(model: FeedListModel) -> List[float]:
    return [item.datetime for item in model.snapshot()]


@pytest.fixture
def model(controller: DataController) -> FeedListModel:
    return controller.create_feed_model()


def test_initial_fetch_is_sorted_newest_first(controller: DataController, image_data) -> None:
    _save_items(controller.store, image_data, [("a", 100), ("b", 300), ("c", 200)])

    model = controller.create_feed_model()

    assert _datetimes(model) == [300.0, 200.0, 100.0]


def test_background_import_updates_model(
    controller: DataController, model: FeedListModel, qtbot, image_data
) -> None:
    records = [image_data("a", datetime=100), image_data("b", datetime=300), image_data("c", datetime=200)]
    controller.insert_image_item_data_array(records)

    qtbot.waitUntil(lambda: model.rowCount() == 3, timeout=5000)
    assert _datetimes(model) == [300.0, 200.0, 100.0]


def test_inserts_land_at_sorted_positions(
    controller: DataController, model: FeedListModel, image_data
) -> None:
    _save_items(controller.store, image_data, [("old", 100), ("new", 300)])
    inserted: List[Tuple[int, int]] = []
    model.rowsInserted.connect(lambda _parent, first, last: inserted.append((first, last)))

    _save_items(controller.store, image_data, [("middle", 200)])

    assert inserted == [(1, 1)]
    assert [item.identifier for item in model.snapshot()] == ["new", "middle", "old"]


def test_deletes_remove_rows(
    controller: DataController, model: FeedListModel, qtbot, image_data
) -> None:
    _save_items(controller.store, image_data, [("x", 1), ("y", 2)])
    assert model.rowCount() == 2

    with qtbot.waitSignal(model.modelReset, timeout=5000):
        controller.delete_all_image_items()

    assert model.rowCount() == 0
    assert model.snapshot() == []


def test_delete_merge_removes_contiguous_rows(
    controller: DataController, model: FeedListModel, image_data
) -> None:
    _save_items(controller.store, image_data, [("x", 1), ("y", 2), ("z", 3)])
    removed: List[Tuple[int, int]] = []
    model.rowsRemoved.connect(lambda _parent, first, last: removed.append((first, last)))

    with controller.store.new_background_context() as context:
        context.execute_delete_all()

    assert removed == [(0, 2)]
    assert model.rowCount() == 0


def test_roles_expose_item_attributes(
    controller: DataController, model: FeedListModel, image_data
) -> None:
    _save_items(controller.store, image_data, [("roles", 55)])
    index = model.index(0, 0)

    assert model.data(index, Roles.IDENTIFIER) == "roles"
    assert model.data(index, Roles.DATETIME) == 55.0
    assert model.data(index, Roles.VIEWS) == 42
    assert model.data(index, Roles.LINK) == "https://i.imgur.com/roles.jpg"
    assert model.data(index, Qt.ItemDataRole.DisplayRole) == "Title roles"
    assert model.data(model.index(5, 0), Roles.IDENTIFIER) is None
    assert model.roleNames()[int(Roles.TITLE)] == b"title"


def test_lookup_helpers(controller: DataController, model: FeedListModel, image_data) -> None:
    _save_items(controller.store, image_data, [("first", 1), ("second", 2)])

    assert model.row_for_identifier("first") == 1
    assert model.row_for_identifier("missing") is None
    assert model.item_at(0).identifier == "second"
    assert model.item_at(2) is None


def test_fetch_failure_yields_empty_model(controller: DataController, image_data, monkeypatch) -> None:
    _save_items(controller.store, image_data, [("hidden", 1)])

    def failing_fetch(_request):
        raise sqlite3.OperationalError("no such table: image_items")

    monkeypatch.setattr(controller.view_context, "fetch", failing_fetch)
    model = controller.create_feed_model()

    assert model.rowCount() == 0


def test_large_merge_fetches_in_chunks(
    controller: DataController, model: FeedListModel, image_data, monkeypatch
) -> None:
    monkeypatch.setattr("redimgur.gui.models.feed_model.FETCH_CHUNK_SIZE", 2)
    requests = []
    fetch = controller.view_context.fetch

    def recording_fetch(request):
        requests.append(request)
        return fetch(request)

    monkeypatch.setattr(controller.view_context, "fetch", recording_fetch)

    _save_items(controller.store, image_data, [(f"item{n}", n) for n in range(5)])

    assert _datetimes(model) == [4.0, 3.0, 2.0, 1.0, 0.0]
    assert [len(request.object_ids) for request in requests] == [2, 2, 1]
