"""
Tests for TokenGate.

Tests cover:
- Immediate first issuance
- Minimum spacing between issuances (real clock and injected clock)
- Issuer failure mapping
- Stats and reset
"""

import asyncio
import time
from unittest.mock import AsyncMock

import pytest

from mediafeed.exceptions import UpstreamAuthError
from mediafeed.token_gate import TokenGate


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestTokenGate:
    """Test suite for TokenGate."""

    def test_initialization_defaults(self):
        """Test gate starts with no issuances and a 600ms interval."""
        gate = TokenGate()

        assert gate.min_interval_seconds == 0.6
        assert gate.last_issued_at is None
        assert gate.issued_count == 0
        assert gate.get_wait_seconds() == 0.0

    @pytest.mark.asyncio
    async def test_first_issuance_is_immediate(self):
        """Test the first token is issued without waiting."""
        gate = TokenGate(min_interval_seconds=5)
        issuer = AsyncMock(return_value="token-1")

        start = time.monotonic()
        token = await gate.acquire_token(issuer)

        assert token == "token-1"
        assert time.monotonic() - start < 0.5
        issuer.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_tokens_are_never_cached(self):
        """Test every acquisition runs the issuer again."""
        gate = TokenGate(min_interval_seconds=0)
        issuer = AsyncMock(side_effect=["a", "b", "c"])

        tokens = [await gate.acquire_token(issuer) for _ in range(3)]

        assert tokens == ["a", "b", "c"]
        assert issuer.await_count == 3
        assert gate.issued_count == 3

    @pytest.mark.asyncio
    async def test_concurrent_issuances_are_spaced(self):
        """Test concurrent callers are issued at least the interval apart."""
        interval = 0.1
        gate = TokenGate(min_interval_seconds=interval)
        issued_at = []

        async def issuer():
            issued_at.append(time.monotonic())
            return "token"

        await asyncio.gather(*(gate.acquire_token(issuer) for _ in range(4)))

        assert len(issued_at) == 4
        gaps = [later - earlier for earlier, later in zip(issued_at, issued_at[1:])]
        # Small tolerance for event loop clock resolution
        assert all(gap >= interval - 0.01 for gap in gaps)

    @pytest.mark.asyncio
    async def test_issuances_never_overlap(self):
        """Test the issuer runs under the lock, one exchange at a time."""
        gate = TokenGate(min_interval_seconds=0)
        active = 0
        max_active = 0

        async def issuer():
            nonlocal active, max_active
            active += 1
            max_active = max(max_active, active)
            await asyncio.sleep(0.01)
            active -= 1
            return "token"

        await asyncio.gather(*(gate.acquire_token(issuer) for _ in range(5)))

        assert max_active == 1

    def test_wait_seconds_with_injected_clock(self):
        """Test remaining wait is computed from the last issuance."""
        clock = FakeClock(now=10.0)
        gate = TokenGate(min_interval_seconds=0.6, clock=clock)
        gate.last_issued_at = 10.0

        clock.now = 10.25
        assert gate.get_wait_seconds() == pytest.approx(0.35)

        # Exactly one interval later the gate is open
        clock.now = 10.6
        assert gate.get_wait_seconds() == pytest.approx(0.0)

        clock.now = 12.0
        assert gate.get_wait_seconds() == 0.0

    @pytest.mark.asyncio
    async def test_last_issued_at_uses_clock(self):
        """Test last_issued_at records the injected clock value."""
        clock = FakeClock(now=42.0)
        gate = TokenGate(min_interval_seconds=0, clock=clock)

        await gate.acquire_token(AsyncMock(return_value="t"))

        assert gate.last_issued_at == 42.0

    @pytest.mark.asyncio
    async def test_upstream_auth_error_propagates(self):
        """Test UpstreamAuthError from the issuer is re-raised unchanged."""
        gate = TokenGate(min_interval_seconds=0)
        error = UpstreamAuthError("bad credentials")

        with pytest.raises(UpstreamAuthError) as exc_info:
            await gate.acquire_token(AsyncMock(side_effect=error))

        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_other_errors_are_wrapped(self):
        """Test unexpected issuer errors become UpstreamAuthError."""
        gate = TokenGate(min_interval_seconds=0)

        with pytest.raises(UpstreamAuthError, match="connection reset"):
            await gate.acquire_token(AsyncMock(side_effect=ConnectionError("connection reset")))

        # A failed exchange still counts toward pacing
        assert gate.issued_count == 1
        assert gate.last_issued_at is not None

    @pytest.mark.asyncio
    async def test_reset(self):
        """Test reset clears issuance state."""
        gate = TokenGate(min_interval_seconds=0)
        await gate.acquire_token(AsyncMock(return_value="t"))

        await gate.reset()

        assert gate.issued_count == 0
        assert gate.last_issued_at is None

    def test_get_stats(self):
        """Test stats expose the gate state."""
        gate = TokenGate(min_interval_seconds=0.6, name="reddit")

        stats = gate.get_stats()

        assert stats["gate"] == "reddit"
        assert stats["issued_count"] == 0
        assert stats["last_issued_at"] is None
        assert stats["min_interval_seconds"] == 0.6
        assert stats["wait_seconds"] == 0.0
