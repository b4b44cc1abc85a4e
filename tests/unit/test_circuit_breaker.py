import pytest

from echelon_core.advisory import CircuitBreaker, CircuitState


@pytest.fixture
def breaker(fake_clock):
    return CircuitBreaker(failure_threshold=3, cooldown_seconds=60, clock=fake_clock)


def test_opens_after_consecutive_failures(breaker):
    for _ in range(2):
        breaker.record_failure()
        assert breaker.state is CircuitState.CLOSED
        assert breaker.allow_request()

    breaker.record_failure()

    assert breaker.state is CircuitState.OPEN
    assert not breaker.allow_request()
    assert breaker.retry_after() == pytest.approx(60)


def test_success_resets_the_failure_streak(breaker):
    breaker.record_failure()
    breaker.record_failure()
    breaker.record_success()
    breaker.record_failure()
    breaker.record_failure()

    assert breaker.state is CircuitState.CLOSED
    assert breaker.consecutive_failures == 2


def test_half_open_admits_one_trial_after_cooldown(breaker, fake_clock):
    for _ in range(3):
        breaker.record_failure()

    fake_clock.advance(59)
    assert not breaker.allow_request()

    fake_clock.advance(1)
    assert breaker.state is CircuitState.HALF_OPEN
    assert breaker.allow_request()
    assert not breaker.allow_request()

    breaker.record_success()
    assert breaker.state is CircuitState.CLOSED
    assert breaker.allow_request()


def test_failed_trial_reopens_for_a_full_cooldown(breaker, fake_clock):
    for _ in range(3):
        breaker.record_failure()
    fake_clock.advance(60)
    assert breaker.allow_request()

    breaker.record_failure()

    assert breaker.state is CircuitState.OPEN
    assert breaker.retry_after() == pytest.approx(60)


def test_released_trial_can_be_retried(breaker, fake_clock):
    for _ in range(3):
        breaker.record_failure()
    fake_clock.advance(60)
    assert breaker.allow_request()

    breaker.release_trial()

    assert breaker.allow_request()


def test_snapshot_reports_state(breaker):
    breaker.record_failure()
    snap = breaker.snapshot()
    assert snap["state"] == "closed"
    assert snap["consecutive_failures"] == 1
    assert snap["failure_threshold"] == 3
