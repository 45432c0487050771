"""Tests for EventLoop."""

import threading

import pytest

from warema_bridge.loop import EventLoop


def test_run_pending_in_order():
    loop = EventLoop()
    seen = []
    loop.submit(seen.append, 1)
    loop.submit(seen.append, 2)
    loop.submit(lambda: seen.append(3))

    assert loop.run_pending() == 3
    assert seen == [1, 2, 3]
    assert loop.run_pending() == 0


def test_failing_handler_does_not_stop_queue():
    loop = EventLoop()
    seen = []

    def boom():
        raise RuntimeError("boom")

    loop.submit(boom)
    loop.submit(seen.append, "after")
    assert loop.run_pending() == 2
    assert seen == ["after"]


def test_worker_thread_executes():
    loop = EventLoop()
    done = threading.Event()
    loop.start()
    try:
        loop.submit(done.set)
        assert done.wait(timeout=2.0)
        assert loop.is_running()
    finally:
        loop.stop()
    assert not loop.is_running()


def test_call_later_enqueues_on_loop():
    loop = EventLoop()
    done = threading.Event()
    thread_names = []

    def record():
        thread_names.append(threading.current_thread().name)
        done.set()

    loop.start()
    try:
        loop.call_later(0.05, record)
        assert done.wait(timeout=2.0)
    finally:
        loop.stop()
    assert thread_names == ["warema-bridge"]


def test_call_every_repeats_until_stop():
    loop = EventLoop()
    ticks = []
    enough = threading.Event()

    def tick():
        ticks.append(1)
        if len(ticks) >= 3:
            enough.set()

    loop.start()
    try:
        loop.call_every(0.02, tick)
        assert enough.wait(timeout=2.0)
    finally:
        loop.stop()
    assert loop.pending_timers == 0


def test_stop_cancels_timers():
    loop = EventLoop()
    fired = []
    loop.start()
    loop.call_later(5.0, fired.append, 1)
    assert loop.pending_timers == 1
    loop.stop()
    assert loop.pending_timers == 0
    assert fired == []


def test_call_every_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        EventLoop().call_every(0, print)
