import os
import sys
from pathlib import Path
from typing import Any, Dict

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

# Headless runs: the store only needs an event loop, never a display.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from redimgur.cache.item_store import ItemStore  # noqa: E402
from redimgur.data_controller import DataController  # noqa: E402


def build_image_data(identifier: str = "abc123", **overrides: Any) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": identifier,
        "title": f"Title {identifier}",
        "datetime": 1500000000,
        "views": 42,
        "link": f"https://i.imgur.com/{identifier}.jpg",
        "type": "image/jpeg",
    }
    data.update(overrides)
    return data


@pytest.fixture
def image_data():
    return build_image_data


@pytest.fixture
def store(qapp, tmp_path: Path):
    store = ItemStore(tmp_path)
    yield store
    store.shutdown()


@pytest.fixture
def controller(store: ItemStore) -> DataController:
    return DataController(store)
