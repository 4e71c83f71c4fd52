"""
Token issuance gate for upstream APIs.

Serializes and paces token exchanges so that no two issuances are ever
in flight together and consecutive issuances are at least
``min_interval_seconds`` apart. Tokens themselves are never cached: every
caller that needs authorization goes through the gate.
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional, TypeVar

import structlog

from mediafeed.exceptions import UpstreamAuthError

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_MIN_INTERVAL_SECONDS = 0.6


class TokenGate:
    """
    Paced, serialized token issuance.

    The gate owns the only cross-call mutable state of the pipeline
    (``last_issued_at``). It is injected into the source clients rather
    than kept at module level, so independent pipelines can be built and
    tested in isolation. Several clients may share one gate; their
    issuances are then totally ordered.

    Thread-safe for asyncio tasks using asyncio.Lock.
    """

    def __init__(
        self,
        min_interval_seconds: float = DEFAULT_MIN_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        name: str = "upstream",
    ) -> None:
        """
        Initialize the gate.

        Args:
            min_interval_seconds: Minimum spacing between issuances (default: 0.6)
            clock: Monotonic clock, injectable for tests
            name: Label used in log events
        """
        self.min_interval_seconds = min_interval_seconds
        self.clock = clock
        self.name = name
        self.last_issued_at: Optional[float] = None
        self.issued_count = 0
        self.lock = asyncio.Lock()

        logger.info(
            "token_gate_initialized",
            gate=name,
            min_interval_seconds=min_interval_seconds,
        )

    async def acquire_token(self, issuer: Callable[[], Awaitable[T]]) -> T:
        """
        Issue a fresh token, waiting for the minimum interval if needed.

        Callers arriving early suspend until exactly ``min_interval_seconds``
        have elapsed since the prior issuance. The lock is held for the
        whole issuance so exchanges are totally ordered.

        Args:
            issuer: Coroutine function performing the credential exchange

        Returns:
            Whatever the issuer returns (an access token or authorized state)

        Raises:
            UpstreamAuthError: If the credential exchange fails

        Example:
            >>> gate = TokenGate(min_interval_seconds=0.6)
            >>> token = await gate.acquire_token(fetch_token)  # immediate
            >>> token = await gate.acquire_token(fetch_token)  # waits ~600ms
        """
        async with self.lock:
            wait_seconds = self.get_wait_seconds()

            if wait_seconds > 0:
                logger.debug(
                    "token_gate_waiting",
                    gate=self.name,
                    wait_seconds=round(wait_seconds, 3),
                )
                await asyncio.sleep(wait_seconds)

            self.last_issued_at = self.clock()
            self.issued_count += 1

            try:
                token = await issuer()
            except UpstreamAuthError:
                logger.error("token_issuance_failed", gate=self.name)
                raise
            except Exception as e:
                logger.error(
                    "token_issuance_failed",
                    gate=self.name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise UpstreamAuthError(f"Token exchange failed: {e}") from e

            logger.debug(
                "token_issued",
                gate=self.name,
                issued_count=self.issued_count,
            )

            return token

    def get_wait_seconds(self) -> float:
        """
        Seconds a caller arriving now would have to wait.

        Returns:
            0.0 if an issuance could start immediately
        """
        if self.last_issued_at is None:
            return 0.0

        elapsed = self.clock() - self.last_issued_at
        return max(0.0, self.min_interval_seconds - elapsed)

    async def reset(self) -> None:
        """
        Reset the gate state.

        Useful for testing or manual intervention.
        """
        async with self.lock:
            self.last_issued_at = None
            self.issued_count = 0
            logger.info("token_gate_reset", gate=self.name)

    def get_stats(self) -> dict[str, object]:
        """
        Get current gate statistics.

        Example:
            >>> gate.get_stats()
            {'gate': 'upstream', 'issued_count': 3, 'last_issued_at': 1042.17,
             'min_interval_seconds': 0.6, 'wait_seconds': 0.0}
        """
        return {
            "gate": self.name,
            "issued_count": self.issued_count,
            "last_issued_at": self.last_issued_at,
            "min_interval_seconds": self.min_interval_seconds,
            "wait_seconds": round(self.get_wait_seconds(), 3),
        }
