from __future__ import annotations

from pathlib import Path

from stemclient.config import Config
from stemclient.endpoint import (
    EndpointStore,
    json_file_store,
    load_endpoint,
    memory_store,
    normalize_endpoint,
    save_endpoint,
)
from stemclient.utils import read_json


def test_normalize_endpoint():
    assert normalize_endpoint("  http://h:1/ ") == "http://h:1"


def test_load_falls_back_to_default():
    assert load_endpoint(None) == Config.DEFAULT_ENDPOINT
    assert load_endpoint(memory_store()) == Config.DEFAULT_ENDPOINT
    assert load_endpoint(memory_store("   ")) == Config.DEFAULT_ENDPOINT
    assert load_endpoint(memory_store("http://x.test/")) == "http://x.test"


def test_broken_store_is_best_effort():
    def _boom(*_args):
        raise OSError("denied")

    store = EndpointStore(load=_boom, save=_boom)
    assert load_endpoint(store) == Config.DEFAULT_ENDPOINT
    save_endpoint(store, "http://x.test")


def test_json_file_store_round_trip(tmp_path: Path):
    path = tmp_path / "state" / "endpoint.json"
    store = json_file_store(path)
    assert store.load() is None

    store.save("http://saved.test")
    assert json_file_store(path).load() == "http://saved.test"
    assert read_json(path) == {Config.STORAGE_KEY: "http://saved.test"}


def test_json_file_store_keeps_other_keys(tmp_path: Path):
    path = tmp_path / "settings.json"
    path.write_text('{"theme": "dark"}', encoding="utf-8")
    json_file_store(path).save("http://saved.test")
    assert read_json(path)["theme"] == "dark"
