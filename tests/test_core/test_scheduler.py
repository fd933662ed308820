import logging

from dialogue_runtime.core.scheduler import Scheduler


def test_task_fires_after_delay(scheduler):
    calls = []
    task = scheduler.schedule(0.5, lambda: calls.append("fired"))

    scheduler.update(0.25)
    assert calls == []
    assert task.pending

    assert scheduler.update(0.25) == 1
    assert calls == ["fired"]
    assert task.fired
    assert not task.pending


def test_task_fires_only_once(scheduler):
    calls = []
    scheduler.schedule(0.1, lambda: calls.append(1))

    scheduler.update(1.0)
    scheduler.update(1.0)

    assert calls == [1]
    assert scheduler.pending_count == 0


def test_cancelled_task_never_fires(scheduler):
    calls = []
    task = scheduler.schedule(0.5, lambda: calls.append(1))

    assert task.cancel() is True
    scheduler.update(1.0)

    assert calls == []
    assert task.cancelled
    assert task.cancel() is False


def test_cancel_after_fire_is_noop(scheduler):
    task = scheduler.schedule(0.0, lambda: None)
    scheduler.update(0.0)

    assert task.fired
    assert task.cancel() is False


def test_tasks_fire_in_schedule_order(scheduler):
    order = []
    scheduler.schedule(0.2, lambda: order.append("a"))
    scheduler.schedule(0.1, lambda: order.append("b"))

    scheduler.update(0.5)

    assert order == ["a", "b"]


def test_task_scheduled_during_update_waits_for_next_tick(scheduler):
    order = []

    def chain():
        order.append("first")
        scheduler.schedule(0.0, lambda: order.append("second"))

    scheduler.schedule(0.0, chain)
    scheduler.update(0.016)
    assert order == ["first"]

    scheduler.update(0.016)
    assert order == ["first", "second"]


def test_failing_task_does_not_stop_others(scheduler, caplog):
    calls = []

    def broken():
        raise RuntimeError("boom")

    scheduler.schedule(0.0, broken)
    scheduler.schedule(0.0, lambda: calls.append(1))

    with caplog.at_level(logging.ERROR):
        assert scheduler.update(0.0) == 2

    assert calls == [1]
    assert "raised" in caplog.text


def test_cancel_all():
    scheduler = Scheduler()
    calls = []
    tasks = [scheduler.schedule(0.1, lambda: calls.append(1)) for _ in range(3)]

    scheduler.cancel_all()
    scheduler.update(1.0)

    assert calls == []
    assert all(task.cancelled for task in tasks)


def test_elapsed_and_negative_delay(scheduler):
    task = scheduler.schedule(-1.0, lambda: None)
    assert task.delay == 0.0

    scheduler.update(0.25)
    scheduler.update(0.25)
    assert scheduler.elapsed == 0.5


def test_small_steps_fire_on_the_due_frame(scheduler):
    calls = []
    task = scheduler.schedule(0.5, lambda: calls.append(1))

    for _ in range(4):
        scheduler.update(0.1)
    assert calls == []
    assert task.remaining > 0

    scheduler.update(0.1)
    assert calls == [1]


def test_task_due_time_follows_the_clock(scheduler):
    scheduler.update(1.0)
    task = scheduler.schedule(0.5, lambda: None)

    assert task.due == 1.5
