"""
Bounded exponential-backoff retry around a single outbound call.

Retries on 429, 5xx and transport failures; any other failure is terminal.
Delay before attempt k (k > 1) is base_delay * 2^(k-1): 2s then 4s with the
default one-second base. No jitter, so delays strictly increase.
"""

import asyncio
import logging
from typing import Awaitable, Callable

from pydantic import BaseModel, Field

from .models import AttemptOutcome, CallResult, GenerationAttempt

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class RetryPolicy(BaseModel):
    max_attempts: int = Field(default=3, ge=1)
    base_delay: float = Field(default=1.0, ge=0)

    def delay_before(self, attempt: int) -> float:
        """Seconds to wait before the given 1-based attempt."""
        if attempt <= 1:
            return 0.0
        return self.base_delay * (2 ** (attempt - 1))


NO_RETRY = RetryPolicy(max_attempts=1)


class RetryOutcome(BaseModel):
    result: CallResult
    attempts: list[GenerationAttempt] = Field(default_factory=list)

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)


async def run_with_retry(
    call: Callable[[], Awaitable[CallResult]],
    policy: RetryPolicy,
    sleep: Sleep = asyncio.sleep,
    label: str = "PRISM",
) -> RetryOutcome:
    """
    Run `call` until it succeeds, hits a terminal failure, or the policy's
    attempts run out. The returned result is the last one observed.
    """
    attempts: list[GenerationAttempt] = []
    result = None

    for attempt in range(1, policy.max_attempts + 1):
        if attempt > 1:
            delay = policy.delay_before(attempt)
            logger.info(f"⏳ [{label}] Retry attempt {attempt}/{policy.max_attempts} after {delay:.1f}s delay")
            await sleep(delay)

        result = await call()

        if result.ok:
            attempts.append(GenerationAttempt(number=attempt, outcome=AttemptOutcome.SUCCESS))
            if attempt > 1:
                logger.info(f"✅ [{label}] Succeeded on attempt {attempt}")
            break

        failure = result.failure
        if not failure.retryable:
            attempts.append(GenerationAttempt(
                number=attempt,
                outcome=AttemptOutcome.FATAL,
                status_code=failure.status_code,
                error=failure.details or failure.message,
            ))
            logger.error(f"❌ [{label}] {failure.kind.value} {failure.status_code}, not retrying: {failure.details}")
            break

        attempts.append(GenerationAttempt(
            number=attempt,
            outcome=AttemptOutcome.RETRYABLE,
            status_code=failure.status_code,
            error=failure.details or failure.message,
        ))
        logger.warning(
            f"⚠️ [{label}] {failure.kind.value} {failure.status_code} on attempt "
            f"{attempt}/{policy.max_attempts}: {failure.details}"
        )

    return RetryOutcome(result=result, attempts=attempts)
