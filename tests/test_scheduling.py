import threading

from lead_prospector.scheduling import ManualScheduler, ThreadingScheduler


def test_manual_scheduler_runs_tasks_in_due_order() -> None:
    scheduler = ManualScheduler()
    calls: list = []
    scheduler.call_later(5, lambda: calls.append("late"))
    scheduler.call_later(1, lambda: calls.append("early"))

    assert scheduler.advance(2) == 1
    assert calls == ["early"]
    assert scheduler.now == 2
    assert scheduler.advance(3) == 1
    assert calls == ["early", "late"]


def test_cancelled_tasks_never_run() -> None:
    scheduler = ManualScheduler()
    calls: list = []
    task = scheduler.call_later(1, lambda: calls.append("x"))

    task.cancel()

    assert scheduler.pending == []
    assert scheduler.run_next() is False
    assert calls == []


def test_threading_scheduler_fires_and_cancels() -> None:
    scheduler = ThreadingScheduler()
    fired = threading.Event()
    never = threading.Event()

    scheduler.call_later(0.01, fired.set)
    cancelled = scheduler.call_later(0.2, never.set)
    cancelled.cancel()

    assert fired.wait(2)
    assert not never.wait(0.4)
