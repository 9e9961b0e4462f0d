from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterator, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryExhausted(RuntimeError):
	"""All attempts of a RetryPolicy failed; `last_error` holds the final cause."""

	def __init__(self, message: str, last_error: Optional[BaseException] = None) -> None:
		super().__init__(message)
		self.last_error = last_error


@dataclass(frozen=True)
class RetryPolicy:
	"""
	Bounded retry: `max_attempts` tries with a flat `backoff_seconds` between
	them. No delay is taken after the last attempt.
	"""

	max_attempts: int = 3
	backoff_seconds: float = 1.0

	def delays(self) -> Iterator[float]:
		"""Yield the wait before attempts 2..max_attempts."""
		delay = max(0.0, float(self.backoff_seconds))
		for _ in range(max(0, int(self.max_attempts) - 1)):
			yield delay

	async def run(
		self,
		fn: Callable[[int], Awaitable[T]],
		*,
		label: str = "operation",
		sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
	) -> T:
		"""
		Await `fn(attempt)` until it succeeds or attempts run out.

		`attempt` is 1-based. Raises RetryExhausted chained to the last error.
		"""
		attempts = max(1, int(self.max_attempts))
		delays = self.delays()
		last_error: Optional[BaseException] = None
		for attempt in range(1, attempts + 1):
			try:
				return await fn(attempt)
			except Exception as e:
				last_error = e
				logger.warning("[Retry] %s attempt %d/%d failed: %s", label, attempt, attempts, e)
			if attempt < attempts:
				await sleep(next(delays))
		raise RetryExhausted(f"{label} failed after {attempts} attempt(s)", last_error) from last_error
