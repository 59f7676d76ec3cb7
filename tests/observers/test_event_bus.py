import json
import logging
from pathlib import Path

from kuboprov.observers.dispatcher import EventBus
from kuboprov.observers.events import StageStarted, StageFailed, new_ctx
from kuboprov.observers.jsonfile import JsonFileObserver
from kuboprov.observers.logger import LoggerObserver


class Capture:
    def __init__(self): self.events = []
    def notify(self, ev): self.events.append(ev)


class Broken:
    def notify(self, ev): raise RuntimeError("observer bug")


def test_broken_observer_does_not_stop_others():
    cap = Capture()
    bus = EventBus([Broken(), cap])
    bus.emit(StageStarted(stage="fetch", **new_ctx(version="v0.34.1")))
    assert len(cap.events) == 1


def test_json_file_observer_writes_jsonl(tmp_path: Path):
    path = tmp_path / "logs" / "run.jsonl"
    bus = EventBus([JsonFileObserver(path)])
    ctx = new_ctx(version="v0.34.1", platform="linux-amd64", run_id="r1")
    bus.emit(StageStarted(stage="fetch", **ctx))
    bus.emit(StageFailed(stage="fetch", error="boom", **ctx))

    lines = [json.loads(l) for l in path.read_text().splitlines()]
    assert [l["type"] for l in lines] == ["StageStarted", "StageFailed"]
    assert lines[1]["error"] == "boom"
    assert all(l["run_id"] == "r1" for l in lines)
    assert lines[0]["ts"].endswith("Z")


def test_logger_observer(caplog):
    logger = logging.getLogger("observer-test")
    caplog.set_level(logging.DEBUG, logger="observer-test")
    LoggerObserver(logger).notify(StageStarted(stage="install", **new_ctx(version="v0.34.1")))
    assert "StageStarted" in caplog.text and "stage=install" in caplog.text


def test_each_emit_gets_its_own_timestamp(monkeypatch):
    stamps = iter(["2026-01-01T00:00:00.000Z", "2026-01-01T00:00:01.250Z"])
    monkeypatch.setattr("kuboprov.observers.dispatcher.utc_timestamp", lambda: next(stamps))
    cap = Capture()
    bus = EventBus([cap])
    ctx = new_ctx(version="v0.34.1", run_id="r1")

    bus.emit(StageStarted(stage="fetch", **ctx))
    bus.emit(StageFailed(stage="fetch", error="boom", **ctx))

    assert [e.ts for e in cap.events] == ["2026-01-01T00:00:00.000Z", "2026-01-01T00:00:01.250Z"]
    assert all(e.run_id == "r1" for e in cap.events)
