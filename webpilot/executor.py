"""
Action executor with bounded retry.

Browsers throw while a navigation is in flight; those failures usually succeed on a
second attempt. Retry uses a linear backoff (`base_delay_s * attempt`) so a run that a
human is watching keeps a predictable pace.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .constants import ACTION_RETRY_BASE_DELAY_S, ACTION_RETRY_LIMIT
from .errors import ActionExecutionError, FatalActionError, TransientActionError
from .models import BrowserAction

if TYPE_CHECKING:
    from .driver import BrowserDriver

logger = logging.getLogger(__name__)

_TRANSIENT_MARKERS = (
    "timeout",
    "timed out",
    "navigation",
    "context was destroyed",
    "target closed",
    "detached",
    "temporar",
)


@dataclass(frozen=True)
class RetryPolicy:
    limit: int = ACTION_RETRY_LIMIT
    base_delay_s: float = ACTION_RETRY_BASE_DELAY_S

    def delay_for(self, attempt: int) -> float:
        """Delay before retrying after the given 1-based failed attempt."""
        return max(0.0, self.base_delay_s) * attempt


def is_transient_browser_error(error: BaseException) -> bool:
    """
    Classify a driver failure as transient (worth retrying) or fatal.

    Common transient symptoms:
    - "Timeout 30000ms exceeded" / "timed out"
    - "Execution context was destroyed, most likely because of a navigation"
    - "Target closed" / "frame was detached"
    """
    if isinstance(error, TransientActionError):
        return True
    if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
        return True
    msg = str(error).lower()
    return any(marker in msg for marker in _TRANSIENT_MARKERS)


async def perform_action_with_retry(
    driver: BrowserDriver,
    action: BrowserAction,
    *,
    policy: RetryPolicy = RetryPolicy(),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> None:
    """
    Execute `action` against the driver, retrying transient failures.

    Raises:
        FatalActionError: on a non-transient failure or when the retry budget is spent.
            The original driver exception is chained as `__cause__`.
    """
    limit = max(0, int(policy.limit))
    for attempt in range(limit + 1):
        try:
            await driver.perform_action(action)
            return
        except Exception as e:
            attempts = attempt + 1
            if not is_transient_browser_error(e) or attempt >= limit:
                if isinstance(e, FatalActionError):
                    raise
                message = str(e) if isinstance(e, ActionExecutionError) else f"{action.name} failed: {e}"
                raise FatalActionError(message, action=action, attempts=attempts) from e

            delay = policy.delay_for(attempts)
            logger.debug(
                f"Transient error on {action.name} (attempt {attempts}/{limit + 1}), "
                f"retrying in {delay:.2f}s: {e}"
            )
            await sleep(delay)

    # Unreachable in practice, but keeps type-checkers happy.
    raise FatalActionError(f"{action.name} failed", action=action, attempts=limit + 1)
