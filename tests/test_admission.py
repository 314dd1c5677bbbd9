"""Unit tests for the fixed-window submission admission."""

import threading

import pytest

from conftest import FakeClock
from trafficnews_app.services.admission import SubmissionAdmission


@pytest.fixture
def small(clock):
    """limit=2 per 1000 ms window."""
    return SubmissionAdmission(limit=2, window_ms=1000, clock=clock)


class TestCanSubmit:
    def test_limit_two_window_one_second(self, small, clock):
        assert small.can_submit("u1") is True
        assert small.can_submit("u1") is True
        assert small.can_submit("u1") is False

        clock.advance(1001)

        assert small.can_submit("u1") is True
        assert small.peek("u1").used == 1

    def test_window_still_active_at_exact_boundary(self, small, clock):
        small.can_submit("u1")
        small.can_submit("u1")
        clock.advance(1000)

        assert small.can_submit("u1") is False

    def test_subjects_are_independent(self, small):
        small.can_submit("u1")
        small.can_submit("u1")

        assert small.can_submit("u1") is False
        assert small.can_submit("u2") is True

    def test_default_limit_is_five(self, admission):
        results = [admission.can_submit("reporter") for _ in range(6)]

        assert results == [True] * 5 + [False]

    def test_boundary_burst_admits_two_windows(self, small, clock):
        """Fixed windows allow up to 2x limit across a window edge."""
        small.can_submit("u1")
        clock.advance(999)
        small.can_submit("u1")
        clock.advance(2)

        assert [small.can_submit("u1") for _ in range(3)] == [True, True, False]

    def test_concurrent_calls_never_over_admit(self):
        gate = SubmissionAdmission(limit=5, window_ms=60_000, clock=FakeClock())
        allowed = []
        lock = threading.Lock()

        def worker():
            ok = gate.can_submit("shared")
            with lock:
                allowed.append(ok)

        threads = [threading.Thread(target=worker) for _ in range(50)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert allowed.count(True) == 5

    @pytest.mark.parametrize("kwargs", [{"limit": 0}, {"window_ms": 0}])
    def test_rejects_bad_configuration(self, kwargs):
        with pytest.raises(ValueError):
            SubmissionAdmission(**kwargs)


class TestAdministration:
    def test_reset_subject_clears_window(self, small):
        small.can_submit("u1")
        small.can_submit("u1")

        assert small.reset_subject("u1") is True
        assert small.can_submit("u1") is True
        assert small.reset_subject("nobody") is False

    def test_refund_returns_one_admission(self, small, clock):
        small.can_submit("u1")
        small.can_submit("u1")

        assert small.refund("u1") is True
        assert small.can_submit("u1") is True
        assert small.can_submit("u1") is False

    def test_refund_ignores_unknown_and_expired_windows(self, small, clock):
        assert small.refund("nobody") is False
        small.can_submit("u1")
        clock.advance(1001)

        assert small.refund("u1") is False

    def test_peek_does_not_consume(self, small, clock):
        small.can_submit("u1")
        clock.advance(250)

        status = small.peek("u1")

        assert status.used == 1
        assert status.remaining == 1
        assert status.resets_in_ms == 750
        assert small.peek("u1").used == 1

    def test_sweep_evicts_only_stale_windows(self, clock):
        gate = SubmissionAdmission(limit=2, window_ms=1000, evict_factor=2, clock=clock)
        gate.can_submit("old")
        clock.advance(1500)
        gate.can_submit("fresh")
        clock.advance(600)

        assert gate.sweep() == 1
        assert len(gate) == 1
        assert gate.peek("fresh").used == 1
