"""Tests for the frame-time scheduler and cancellation tokens."""

from systems.scheduler import CancelToken, Scheduler


class TestScheduler:

    def test_runs_when_due(self, scheduler):
        ran = []
        scheduler.call_later(0.5, lambda: ran.append("a"))
        assert scheduler.advance(0.4) == 0
        assert scheduler.advance(0.1) == 1
        assert ran == ["a"]
        assert scheduler.pending == 0

    def test_order_by_due_then_insertion(self, scheduler):
        ran = []
        scheduler.call_later(0.2, lambda: ran.append("late"))
        scheduler.call_later(0.1, lambda: ran.append("first"))
        scheduler.call_later(0.1, lambda: ran.append("second"))
        scheduler.advance(1.0)
        assert ran == ["first", "second", "late"]

    def test_negative_delay_runs_next_advance(self, scheduler):
        ran = []
        scheduler.call_later(-3, lambda: ran.append(1))
        scheduler.advance(0)
        assert ran == [1]

    def test_events_scheduled_while_running_wait(self, scheduler):
        ran = []

        def chain():
            ran.append("outer")
            scheduler.call_later(0, lambda: ran.append("inner"))

        scheduler.call_later(0.1, chain)
        scheduler.advance(0.1)
        assert ran == ["outer"]
        scheduler.advance(0)
        assert ran == ["outer", "inner"]


class TestCancellation:

    def test_cancelled_token_discards_events(self, scheduler):
        ran = []
        token = CancelToken("duel")
        scheduler.call_later(0.1, lambda: ran.append(1), token)
        scheduler.call_later(0.2, lambda: ran.append(2), token)
        assert scheduler.pending == 2
        token.cancel()
        assert scheduler.pending == 0
        assert scheduler.advance(1.0) == 0
        assert ran == []

    def test_other_tokens_unaffected(self, scheduler):
        ran = []
        old, new = CancelToken("old"), CancelToken("new")
        scheduler.call_later(0.1, lambda: ran.append("old"), old)
        scheduler.call_later(0.1, lambda: ran.append("new"), new)
        old.cancel()
        scheduler.advance(0.1)
        assert ran == ["new"]

    def test_single_event_cancel(self, scheduler):
        ran = []
        event = scheduler.call_later(0.1, lambda: ran.append(1))
        event.cancel()
        scheduler.advance(0.2)
        assert ran == []

    def test_clear(self, scheduler):
        scheduler.call_later(0.1, lambda: None)
        scheduler.clear()
        assert scheduler.pending == 0
