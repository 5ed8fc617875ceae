"""Tests for the watch loop."""

import threading

import pytest

from llm_doc_commenter.src.watcher import Watcher


def test_runs_until_max_iterations():
    calls = []
    watcher = Watcher(lambda: calls.append(1), interval_seconds=0.01)

    assert watcher.run(max_iterations=3) == 3
    assert len(calls) == 3
    assert watcher.last_run is not None


def test_failing_check_does_not_stop_the_loop():
    calls = []

    def check():
        calls.append(1)
        raise RuntimeError("scan failed")

    assert Watcher(check, interval_seconds=0.01).run(max_iterations=2) == 2
    assert len(calls) == 2


def test_stop_from_inside_a_check():
    watcher = None

    def check():
        watcher.stop()

    watcher = Watcher(check, interval_seconds=60)
    assert watcher.run() == 1


def test_stop_from_another_thread_interrupts_the_wait():
    stop_event = threading.Event()
    watcher = Watcher(lambda: None, interval_seconds=60, stop_event=stop_event)
    timer = threading.Timer(0.05, watcher.stop)
    timer.start()
    try:
        iterations = watcher.run()
    finally:
        timer.cancel()

    assert iterations == 1
    assert stop_event.is_set()


def test_already_stopped_runs_nothing():
    event = threading.Event()
    event.set()
    calls = []

    assert Watcher(lambda: calls.append(1), 1, stop_event=event).run() == 0
    assert calls == []


@pytest.mark.parametrize("interval", [0, -5])
def test_interval_must_be_positive(interval):
    with pytest.raises(ValueError):
        Watcher(lambda: None, interval_seconds=interval)
