import pytest

from minesolver.errors import SolveCancelled
from minesolver.progress import ProgressChannel, ProgressEvent, ensure_channel


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_checkpoint_is_rate_limited():
    clock = FakeClock()
    channel = ProgressChannel(interval=1.0, clock=clock)
    calls = []

    def supplier():
        calls.append(clock.now)
        return ProgressEvent(f"at {clock.now}")

    channel.checkpoint(supplier)
    channel.checkpoint(supplier)
    clock.now = 0.5
    channel.checkpoint(supplier)
    clock.now = 1.0
    channel.checkpoint(supplier)

    assert calls == [0.0, 1.0]
    assert [e.message for e in channel.drain()] == ["at 0.0", "at 1.0"]
    assert channel.drain() == []
    assert channel.checkpoints == 4


def test_cancellation_is_observed_at_the_next_due_checkpoint():
    clock = FakeClock()
    channel = ProgressChannel(interval=1.0, clock=clock)
    channel.checkpoint()
    channel.cancel()
    assert channel.cancelled

    clock.now = 0.5
    channel.checkpoint()  # not due yet
    clock.now = 1.5
    with pytest.raises(SolveCancelled):
        channel.checkpoint()


def test_publish_bypasses_the_rate_limit():
    clock = FakeClock()
    channel = ProgressChannel(interval=10.0, clock=clock)
    channel.checkpoint(lambda: ProgressEvent("first"))
    channel.publish(ProgressEvent("group", {(1, 2): "1"}))
    channel.checkpoint(lambda: ProgressEvent("skipped"))

    events = channel.drain()
    assert [e.message for e in events] == ["first", "group"]
    assert events[1].annotations == {(1, 2): "1"}


def test_negative_interval_is_rejected():
    with pytest.raises(ValueError):
        ProgressChannel(interval=-1)


def test_missing_channel_is_silent():
    channel = ensure_channel(None)
    channel.cancel()
    channel.checkpoint(lambda: ProgressEvent("never"))
    channel.publish(ProgressEvent("never"))
    assert channel.drain() == []

    real = ProgressChannel()
    assert ensure_channel(real) is real
