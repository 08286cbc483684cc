"""Retrying store calls from async services."""
from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any, TypeVar

from tenacity import RetryCallState, retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from .config import CONFIG, KinshipConfig
from .exceptions import StoreUnavailable
from .logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def _log_retry(call: str, state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    logger.warning(
        "store_read_retry",
        call=call,
        attempt=state.attempt_number,
        error=str(exc) if exc else None,
    )


async def call_store(
    fn: Callable[..., T],
    *args: Any,
    config: KinshipConfig | None = None,
    **kwargs: Any,
) -> T:
    """Run a blocking store method in a worker thread, retrying StoreUnavailable.

    Other exceptions propagate on the first attempt.
    """
    cfg = config or CONFIG
    name = getattr(fn, "__qualname__", None) or getattr(fn, "__name__", "store_call")

    @retry(
        reraise=True,
        stop=stop_after_attempt(max(cfg.store_retry_attempts, 1)),
        wait=wait_exponential_jitter(initial=0.1, max=cfg.store_retry_max_wait),
        retry=retry_if_exception_type(StoreUnavailable),
        before_sleep=lambda state: _log_retry(name, state),
    )
    async def _do() -> T:
        return await asyncio.to_thread(fn, *args, **kwargs)

    return await _do()
