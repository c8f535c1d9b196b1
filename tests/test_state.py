import json
import logging
import os
from pathlib import Path

from gui.state import DatasetState

BASELINE = Path(__file__).resolve().parent.parent / "data" / "baseline.json"


def _write(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_missing_file_falls_back_to_empty(tmp_path, caplog):
    caplog.set_level(logging.WARNING)
    state = DatasetState(tmp_path / "nope.json")
    dataset = state.load()
    assert dataset.nodes == [] and dataset.links == []
    assert state.last_error == "missing"
    assert any(r.getMessage() == "dataset-fallback" for r in caplog.records)


def test_bad_json_falls_back(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{not json", encoding="utf-8")
    state = DatasetState(path)
    assert state.load().nodes == []
    assert state.last_error.startswith("unreadable")


def test_schema_violation_falls_back(tmp_path):
    path = _write(tmp_path / "data.json", {"nodes": [{"label": "no id"}], "links": []})
    state = DatasetState(path)
    assert state.load().nodes == []
    assert state.last_error.startswith("invalid")
    assert state.errors({"nodes": []})


def test_valid_file_loads_and_reports_dangling(tmp_path, caplog):
    caplog.set_level(logging.INFO)
    path = _write(
        tmp_path / "data.json",
        {
            "nodes": [{"id": "a", "type": "environment"}, {"id": 2}],
            "links": [{"source": "a", "target": {"id": 2}, "weight": 0.5}, {"source": "a", "target": "x"}],
        },
    )
    state = DatasetState(path)
    dataset = state.load()
    assert [n.id for n in dataset.nodes] == ["a", "2"]
    assert dataset.links[0].target == "2"
    assert state.last_error is None
    messages = [r.getMessage() for r in caplog.records]
    assert "dataset-dangling-links" in messages
    assert "dataset-loaded" in messages


def test_unchanged_file_is_cached(tmp_path):
    path = _write(tmp_path / "data.json", {"nodes": [{"id": "a"}], "links": []})
    state = DatasetState(path)
    first = state.load()
    assert state.load() is first
    assert state.dataset is first
    assert state.load(force=True) is not first


def test_changed_file_is_reloaded(tmp_path):
    path = _write(tmp_path / "data.json", {"nodes": [{"id": "a"}], "links": []})
    state = DatasetState(path)
    state.load()
    _write(path, {"nodes": [{"id": "a"}, {"id": "b"}], "links": []})
    stamp = path.stat().st_mtime + 5
    os.utime(path, (stamp, stamp))
    assert len(state.load().nodes) == 2


def test_shipped_baseline_is_valid():
    state = DatasetState(BASELINE)
    dataset = state.load()
    assert state.last_error is None
    assert len(dataset.nodes) == 9
    assert dataset.meta["dangling_links"] == 0
    assert state.to_dict()["meta"]["links"] == len(dataset.links)
