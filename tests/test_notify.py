from typing import Any

from protoform.engine.notify import ChangeNotifier, Debouncer
from tests.conftest import FakeClock


def test_debouncer_delivers_latest_after_quiet_period(clock: FakeClock) -> None:
    delivered: list[Any] = []
    debouncer = Debouncer(delivered.append, 0.3, clock=clock)
    debouncer.schedule(1)
    clock.advance(0.2)
    debouncer.schedule(2)
    clock.advance(0.2)
    assert not debouncer.poll()
    clock.advance(0.2)
    assert debouncer.poll()
    assert delivered == [2]
    assert not debouncer.pending
    assert not debouncer.poll()


def test_debouncer_cancel(clock: FakeClock) -> None:
    delivered: list[Any] = []
    debouncer = Debouncer(delivered.append, 0.3, clock=clock)
    debouncer.schedule("x")
    debouncer.cancel()
    clock.advance(1)
    assert not debouncer.poll()
    assert not debouncer.flush()
    assert delivered == []


def test_none_is_a_value(clock: FakeClock) -> None:
    delivered: list[Any] = []
    debouncer = Debouncer(delivered.append, 0, clock=clock)
    debouncer.schedule(None)
    assert debouncer.pending
    assert debouncer.poll()
    assert delivered == [None]


def test_immediate_change_supersedes_pending(clock: FakeClock) -> None:
    delivered: list[Any] = []
    notifier = ChangeNotifier(delivered.append, 0.3, clock=clock)
    notifier.changed({"v": 1})
    notifier.changed_now({"v": 2})
    clock.advance(1)
    assert not notifier.poll()
    assert delivered == [{"v": 2}]


def test_notifier_without_listener(clock: FakeClock) -> None:
    notifier = ChangeNotifier(None, 0.3, clock=clock)
    notifier.changed(1)
    assert notifier.flush()
    notifier.changed_now(2)
