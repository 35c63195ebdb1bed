"""
Bounded polling helpers.

Each helper blocks the calling test while it samples the screen, returns as
soon as its condition holds, and raises WaitTimeoutError (an AssertionError,
so test runners report a failure rather than an error) once the deadline
passes.
"""

import logging
import time
from typing import Any, Callable, Optional

from uitest.config import get_settings
from uitest.elements import Element, UiNode, node_value

__all__ = [
    "WaitTimeoutError",
    "wait_until",
    "wait_for_existence",
    "wait_for_no_existence",
    "wait_for_value_contains",
]


class WaitTimeoutError(AssertionError):
    """A UI condition did not hold within its wait window."""

    def __init__(self, message: str, element: Optional[Element] = None):
        super().__init__(message)
        self.element = element


def _defaults(timeout: Optional[float], poll: Optional[float]) -> tuple[float, float]:
    settings = get_settings()
    return (
        settings.timeout_s if timeout is None else timeout,
        settings.poll_s if poll is None else poll,
    )


def wait_until(predicate: Callable[[], Any], timeout: Optional[float] = None, poll: Optional[float] = None, message: str = "condition not met", element: Optional[Element] = None) -> Any:
    """Poll `predicate` until it returns something truthy and return that."""
    timeout, poll = _defaults(timeout, poll)
    deadline = time.monotonic() + timeout
    while True:
        result = predicate()
        if result:
            return result
        if time.monotonic() >= deadline:
            raise WaitTimeoutError(f"{message} (waited {timeout:.1f}s)", element)
        time.sleep(poll)


def wait_for_existence(element: Element, timeout: Optional[float] = None, poll: Optional[float] = None) -> UiNode:
    logging.debug(f"[WAIT] for {element!r}")
    return wait_until(element.find, timeout, poll, message=f"{element!r} did not appear", element=element)


def wait_for_no_existence(element: Element, timeout: Optional[float] = None, hold: Optional[float] = None, poll: Optional[float] = None):
    """Wait until `element` is gone and stays gone for `hold` seconds.

    Rows such as search suggestions arrive asynchronously, so a single
    "not there" sample right after typing proves nothing. The element has to
    be absent for the whole hold window; if it shows up inside the window the
    clock restarts, bounded by the overall timeout.
    """
    timeout, poll = _defaults(timeout, poll)
    if hold is None:
        hold = get_settings().absence_hold_s
    hold = min(hold, timeout)

    logging.debug(f"[WAIT] for {element!r} to be absent")
    deadline: Optional[float] = None
    absent_since: Optional[float] = None
    while True:
        sampled_at = time.monotonic()
        if deadline is None:
            deadline = sampled_at + timeout
        present = element.exists
        now = time.monotonic()
        if present:
            absent_since = None
        elif absent_since is None:
            # Absence counts from when the sample was taken.
            absent_since = sampled_at
        if absent_since is not None and now - absent_since >= hold:
            return
        if now >= deadline:
            if present:
                raise WaitTimeoutError(f"{element!r} still exists (waited {timeout:.1f}s)", element)
            raise WaitTimeoutError(f"{element!r} did not stay absent for {hold:.1f}s (waited {timeout:.1f}s)", element)
        time.sleep(poll)


def wait_for_value_contains(element: Element, value: str, timeout: Optional[float] = None, poll: Optional[float] = None) -> str:
    last = {"value": None}

    def check():
        node = element.find()
        if node is None:
            return None
        current = node_value(node, element.category)
        last["value"] = current
        return value in current

    logging.debug(f"[WAIT] for {element!r} to contain {value!r}")
    try:
        wait_until(check, timeout, poll, message=f"{element!r} value does not contain {value!r}", element=element)
    except WaitTimeoutError as e:
        raise WaitTimeoutError(f"{e}; last value was {last['value']!r}", element) from None
    return last["value"]
