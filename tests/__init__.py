"""
tests: this package contains all fetchstate unittests
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from twisted.internet.defer import Deferred
from twisted.python.failure import Failure

if TYPE_CHECKING:
    from collections.abc import Callable

    from twisted.internet.task import Clock


def create_mock_request(
    clock: Clock, delay: float, response: Any, fail: bool = False
) -> Callable[[], Deferred[Any]]:
    """Return a request factory whose Deferred fires ``delay`` seconds after
    each call, on ``clock``."""

    def request() -> Deferred[Any]:
        d: Deferred[Any] = Deferred()
        if fail:
            clock.callLater(delay, d.errback, response)
        else:
            clock.callLater(delay, d.callback, response)
        return d

    return request


def result_of(d: Deferred[Any]) -> Any:
    """Return the result of a fired Deferred, raising its failure if it
    failed."""
    results: list[Any] = []
    d.addBoth(results.append)
    assert results, f"{d!r} has not fired yet"
    result = results[0]
    if isinstance(result, Failure):
        result.raiseException()
    return result
