# helpers.py
from __future__ import annotations

import time
from typing import Callable, Optional, Tuple, Type, TypeVar

from .errors import PollTimeout, RetryError
from .model import RetryPolicy
from .ui.console import get_console

T = TypeVar("T")


def retry(
    policy: RetryPolicy,
    operation: Callable[[], T],
    *,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Run `operation`, retrying it up to `policy.attempts` times in total.

    The delay between attempts is fixed. Attempts never overlap.

    Raises:
        RetryError: after the last attempt failed, chained to that failure
    """
    for attempt in range(1, policy.attempts + 1):
        try:
            return operation()
        except retry_on as e:
            if attempt >= policy.attempts:
                raise RetryError(policy.attempts, e) from e
            get_console().print_warning(f"retrying after error: {e}")
            sleep(policy.delay)

    # attempts >= 1 is enforced by RetryPolicy
    raise AssertionError("unreachable")


def poll(
    check: Callable[[], Optional[T]],
    *,
    timeout: float,
    interval: float,
    description: str,
    sleep: Callable[[float], None] = time.sleep,
    **details,
) -> T:
    """
    Call `check` every `interval` seconds until it returns something other than None.

    Exceptions from `check` are not caught: callers decide which errors mean
    "not there yet" and swallow those themselves.

    Raises:
        PollTimeout: if `timeout` seconds pass without a result
    """
    deadline = time.monotonic() + timeout
    while True:
        result = check()
        if result is not None:
            return result
        if time.monotonic() >= deadline:
            raise PollTimeout(f"timed out after {timeout:g}s waiting for {description}", **details)
        sleep(interval)
