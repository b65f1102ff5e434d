"""Tests for the event emitter shared by workers and the progress display."""
import threading

from tinypool.utils.events import EventEmitter


def test_emit_calls_listeners_once():
    emitter = EventEmitter()
    received = []
    callback = received.append

    emitter.on("file_compressed", callback)
    emitter.on("file_compressed", callback)
    emitter.emit("file_compressed", "a.png")

    assert received == ["a.png"]


def test_off_removes_listener():
    emitter = EventEmitter()
    received = []
    emitter.on("file_failed", received.append)
    emitter.off("file_failed", received.append)
    emitter.off("unknown", received.append)

    emitter.emit("file_failed", "a.png")

    assert received == []


def test_failing_listener_does_not_stop_others(caplog):
    emitter = EventEmitter()
    received = []

    def broken(*args):
        raise ValueError("boom")

    emitter.on("key_exhausted", broken)
    emitter.on("key_exhausted", lambda key, reason: received.append((key, reason)))

    emitter.emit("key_exhausted", "k1", "quota")

    assert received == [("k1", "quota")]
    assert "Error in event listener for key_exhausted: boom" in caplog.text


def test_emit_from_many_threads():
    emitter = EventEmitter()
    counter = {"value": 0}

    def increment():
        value = counter["value"]
        counter["value"] = value + 1

    emitter.on("tick", increment)
    threads = [
        threading.Thread(target=lambda: [emitter.emit("tick") for _ in range(200)])
        for _ in range(8)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert counter["value"] == 1600
