"""
Tests for the per-identity sliding-window rate limiter.
A fake clock drives the window; nothing sleeps.
"""

import threading
import pytest

from sitepipe.services.rate_limiter import SlidingWindowRateLimiter


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return SlidingWindowRateLimiter(max_requests=5, window_seconds=600, clock=clock)


class TestCheckAndRecord:

    def test_first_five_admitted_sixth_denied(self, limiter):
        """5 per 10 minutes: the 6th request in the window is denied."""
        results = [limiter.check_and_record("alice") for _ in range(6)]
        assert results == [True, True, True, True, True, False]

    def test_denied_request_is_not_recorded(self, limiter, clock):
        """A denial does not extend the window."""
        for _ in range(5):
            limiter.check_and_record("alice")
        for _ in range(10):
            assert limiter.check_and_record("alice") is False

        clock.advance(600)
        assert limiter.check_and_record("alice") is True

    def test_old_entries_are_pruned(self, limiter, clock):
        """Entries older than the window stop counting."""
        limiter.check_and_record("alice")
        clock.advance(300)
        for _ in range(4):
            limiter.check_and_record("alice")
        assert limiter.check_and_record("alice") is False

        clock.advance(301)
        assert limiter.remaining("alice") == 1
        assert limiter.check_and_record("alice") is True
        assert limiter.check_and_record("alice") is False

    def test_identities_are_independent(self, limiter):
        for _ in range(5):
            limiter.check_and_record("alice")

        assert limiter.check_and_record("alice") is False
        assert limiter.check_and_record("bob") is True


class TestIntrospection:

    def test_retry_after_counts_down_to_oldest_expiry(self, limiter, clock):
        for _ in range(5):
            limiter.check_and_record("alice")

        clock.advance(100)
        assert limiter.retry_after("alice") == pytest.approx(500)

    def test_retry_after_is_zero_with_capacity(self, limiter):
        limiter.check_and_record("alice")
        assert limiter.retry_after("alice") == 0.0

    def test_reset_single_identity(self, limiter):
        for _ in range(5):
            limiter.check_and_record("alice")
            limiter.check_and_record("bob")

        limiter.reset("alice")

        assert limiter.remaining("alice") == 5
        assert limiter.remaining("bob") == 0

    def test_reset_all(self, limiter):
        for _ in range(5):
            limiter.check_and_record("alice")
            limiter.check_and_record("bob")

        limiter.reset()

        assert limiter.remaining("alice") == 5
        assert limiter.remaining("bob") == 5

    @pytest.mark.parametrize("kwargs", [
        {"max_requests": 0},
        {"window_seconds": 0},
    ])
    def test_invalid_configuration(self, kwargs):
        with pytest.raises(ValueError):
            SlidingWindowRateLimiter(**kwargs)


class TestStateBound:

    def test_expired_identities_are_forgotten(self, limiter, clock):
        """Identities seen once do not accumulate after their window passes."""
        for i in range(1000):
            limiter.check_and_record(f"user-{i}")
        assert limiter.tracked_identities() == 1000

        clock.advance(601)
        limiter.check_and_record("latecomer")

        assert limiter.tracked_identities() == 1

    def test_active_identities_survive_sweep(self, limiter, clock):
        limiter.check_and_record("idle")
        clock.advance(500)
        for _ in range(5):
            limiter.check_and_record("busy")

        clock.advance(101)
        limiter.check_and_record("latecomer")

        assert limiter.tracked_identities() == 2
        assert limiter.check_and_record("busy") is False

    def test_queries_leave_no_state(self, limiter):
        assert limiter.remaining("stranger") == 5
        assert limiter.retry_after("stranger") == 0.0

        assert limiter.tracked_identities() == 0

    def test_reset_forgets_identity(self, limiter):
        limiter.check_and_record("alice")

        limiter.reset("alice")

        assert limiter.tracked_identities() == 0
        assert limiter.check_and_record("alice") is True


def test_concurrent_requests_never_exceed_limit():
    """Many threads racing for one identity admit exactly max_requests."""
    limiter = SlidingWindowRateLimiter(max_requests=5, window_seconds=600)
    barrier = threading.Barrier(50)
    admitted = []
    lock = threading.Lock()

    def attempt():
        barrier.wait()
        result = limiter.check_and_record("alice")
        with lock:
            admitted.append(result)

    threads = [threading.Thread(target=attempt) for _ in range(50)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert admitted.count(True) == 5
    assert admitted.count(False) == 45
