"""Tests for InMemoryRateLimiter."""

from datetime import datetime, timedelta

import pytest
from freezegun import freeze_time

from calai.infrastructure.rate_limit.in_memory import InMemoryRateLimiter


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(clock: FakeClock) -> InMemoryRateLimiter:
    return InMemoryRateLimiter(limit=5, window_s=60, clock=clock)


@pytest.mark.asyncio
async def test_first_five_allowed_sixth_rejected(limiter: InMemoryRateLimiter) -> None:
    decisions = [await limiter.hit("ip-1") for _ in range(6)]

    assert [d.allowed for d in decisions] == [True] * 5 + [False]
    assert [d.count for d in decisions] == [1, 2, 3, 4, 5, 6]
    assert decisions[-1].limit == 5


@pytest.mark.asyncio
async def test_rejected_requests_still_count(limiter: InMemoryRateLimiter) -> None:
    for _ in range(7):
        await limiter.hit("ip-1")

    decision = await limiter.hit("ip-1")

    assert decision.count == 8
    assert decision.allowed is False


@pytest.mark.asyncio
async def test_retry_after_counts_down(limiter: InMemoryRateLimiter, clock: FakeClock) -> None:
    first = await limiter.hit("ip-1")
    clock.advance(45.5)
    later = await limiter.hit("ip-1")

    assert first.retry_after_s == 60
    assert later.retry_after_s == 15


@pytest.mark.asyncio
async def test_window_still_open_at_exactly_sixty_seconds(
    limiter: InMemoryRateLimiter, clock: FakeClock
) -> None:
    for _ in range(5):
        await limiter.hit("ip-1")
    clock.advance(60)

    decision = await limiter.hit("ip-1")

    assert decision.allowed is False
    assert decision.count == 6


@pytest.mark.asyncio
async def test_window_resets_after_expiry(limiter: InMemoryRateLimiter, clock: FakeClock) -> None:
    for _ in range(6):
        await limiter.hit("ip-1")
    clock.advance(60.001)

    decision = await limiter.hit("ip-1")

    assert decision.allowed is True
    assert decision.count == 1
    assert decision.retry_after_s == 60


@pytest.mark.asyncio
async def test_keys_are_independent(limiter: InMemoryRateLimiter) -> None:
    for _ in range(6):
        await limiter.hit("ip-1")

    decision = await limiter.hit("ip-2")

    assert decision.allowed is True
    assert decision.count == 1


@pytest.mark.asyncio
async def test_reset_forgets_key(limiter: InMemoryRateLimiter) -> None:
    for _ in range(6):
        await limiter.hit("ip-1")

    await limiter.reset("ip-1")
    decision = await limiter.hit("ip-1")

    assert decision.count == 1
    # unknown key is fine
    await limiter.reset("never-seen")


@pytest.mark.asyncio
async def test_purge_expired(limiter: InMemoryRateLimiter, clock: FakeClock) -> None:
    await limiter.hit("old")
    clock.advance(30)
    await limiter.hit("recent")
    clock.advance(31)

    removed = limiter.purge_expired()

    assert removed == 1
    assert limiter.size() == 1


@pytest.mark.asyncio
async def test_default_clock_follows_wall_time() -> None:
    limiter = InMemoryRateLimiter(limit=5, window_s=60)

    with freeze_time(datetime(2026, 3, 1, 12, 0, 0)) as frozen:
        for _ in range(5):
            await limiter.hit("ip-1")
        assert (await limiter.hit("ip-1")).allowed is False

        frozen.tick(timedelta(seconds=61))

        decision = await limiter.hit("ip-1")
        assert decision.allowed is True
        assert decision.count == 1
