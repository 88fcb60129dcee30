from __future__ import annotations

from pathlib import Path

from redimgur.config import DATA_DIR_ENV, MODEL_NAME, default_store_directory
from redimgur.data_controller import DataController


def test_data_dir_environment_override(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv(DATA_DIR_ENV, str(tmp_path / "gallery"))

    assert default_store_directory() == tmp_path / "gallery"


def test_controller_uses_default_directory(qapp, monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv(DATA_DIR_ENV, str(tmp_path))

    controller = DataController()
    try:
        assert controller.store.is_loaded
        assert controller.store.db_path == tmp_path / f"{MODEL_NAME}.sqlite"
    finally:
        controller.shutdown()
