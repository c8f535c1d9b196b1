import logging

from twin_view.scheduler import FrameThrottle, RecurringTask, TaskScheduler


def test_task_runs_once_per_elapsed_interval():
    seen = []
    task = RecurringTask("t", 10, seen.append)
    task.start(0.0)
    assert task.run_if_due(0.005) == 0
    assert task.run_if_due(0.035) == 3
    assert seen == [0.035] * 3


def test_long_stall_is_bounded_and_resynchronised():
    task = RecurringTask("t", 10, lambda now: None, max_catchup=8)
    task.start(0.0)
    assert task.run_if_due(10.0) == 8
    assert task.run_if_due(10.0) == 0
    assert task.run_if_due(10.015) == 1


def test_stopped_task_never_runs():
    task = RecurringTask("t", 10, lambda now: None)
    assert not task.due(1.0)
    task.start(0.0)
    task.stop()
    assert task.run_if_due(1.0) == 0


def test_failing_task_is_logged_and_keeps_running(caplog):
    calls = {"good": 0}

    def bad(now):
        raise RuntimeError("boom")

    def good(now):
        calls["good"] += 1

    scheduler = TaskScheduler(clock=lambda: 0.0)
    scheduler.add(RecurringTask("bad", 10, bad))
    scheduler.add(RecurringTask("good", 10, good))
    caplog.set_level(logging.ERROR)

    scheduler.run_pending(0.055)
    assert scheduler.errors == 1
    assert calls["good"] == 5
    scheduler.run_pending(0.075)
    assert scheduler.errors == 2
    assert calls["good"] == 7

    records = [r for r in caplog.records if r.getMessage() == "scheduler-error"]
    assert len(records) == 2
    assert records[0].source == "bad"
    assert records[0].error == "boom"


def test_cancel_all_stops_everything():
    scheduler = TaskScheduler(clock=lambda: 0.0)
    task = scheduler.add(RecurringTask("t", 10, lambda now: None))
    assert task.active
    scheduler.cancel_all()
    assert not task.active
    assert scheduler.tasks == []
    assert scheduler.run_pending(5.0) == 0


def test_throttle_keeps_only_latest_request():
    applied = []
    throttle = FrameThrottle(applied.append, min_interval_ms=33)
    throttle.request(1)
    throttle.request(2)
    assert throttle.flush(0.0)
    assert applied == [2]

    throttle.request(3)
    assert not throttle.flush(0.01)
    assert throttle.pending
    assert throttle.flush(0.05)
    assert applied == [2, 3]
    assert throttle.commits == 2
    assert not throttle.flush(1.0)


def test_cancelled_request_is_dropped():
    applied = []
    throttle = FrameThrottle(applied.append)
    throttle.request("x")
    throttle.cancel()
    assert not throttle.flush(1.0)
    assert applied == []
