"""
Helper functions for dealing with Twisted deferreds
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Coroutine, Iterable
from typing import TYPE_CHECKING, Any, TypeVar, cast

from twisted.internet import defer
from twisted.internet.defer import Deferred, DeferredList, ensureDeferred
from twisted.python import failure

from fetchstate.utils.reactor import (
    get_asyncio_event_loop,
    is_asyncio_reactor_installed,
    is_reactor_installed,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from twisted.python.failure import Failure


_T = TypeVar("_T")


async def _await(awaitable: Awaitable[_T]) -> _T:
    return await awaitable


def deferred_from_coro(o: Any) -> Any:
    """Converts an awaitable into a Deferred, or returns the object as is if it isn't one"""
    if isinstance(o, Deferred):
        return o
    if asyncio.isfuture(o) or inspect.isawaitable(o):
        if not is_reactor_installed() or not is_asyncio_reactor_installed():
            # ensureDeferred only takes coroutines, other awaitables are awaited from one
            if not inspect.iscoroutine(o):
                o = _await(o)
            # wrapping the coroutine directly into a Deferred, this doesn't work correctly with coroutines
            # that use asyncio, e.g. "await asyncio.sleep(1)"
            return ensureDeferred(cast(Coroutine[Deferred, Any, Any], o))
        # wrapping the coroutine into a Future and then into a Deferred, this requires AsyncioSelectorReactor
        event_loop = get_asyncio_event_loop()
        return Deferred.fromFuture(asyncio.ensure_future(o, loop=event_loop))
    return o


def maybe_deferred_coro(f: Callable[..., Any], *args: Any, **kw: Any) -> Deferred[Any]:
    """Copy of defer.maybeDeferred that also converts awaitables to Deferreds.

    An exception raised by ``f``, or while converting what it returned,
    becomes a failed Deferred instead of propagating to the caller.
    """
    try:
        result = f(*args, **kw)
        if asyncio.isfuture(result) or inspect.isawaitable(result):
            result = deferred_from_coro(result)
    except Exception:
        return defer.fail(failure.Failure(captureVars=Deferred.debug))

    if isinstance(result, Deferred):
        return result
    if isinstance(result, failure.Failure):
        return defer.fail(result)
    return defer.succeed(result)


def gather(dfds: Iterable[Deferred[_T]]) -> Deferred[list[_T]]:
    """Return a Deferred that fires with the results of all ``dfds``, in
    the order they were given, once every one of them has succeeded.

    The returned Deferred fails with the original failure of the first
    Deferred that fails. Failures of the remaining Deferreds are consumed.
    """
    d: Deferred[list[tuple[bool, _T]]] = DeferredList(
        list(dfds), fireOnOneErrback=True, consumeErrors=True
    )
    d2: Deferred[list[_T]] = d.addCallback(lambda r: [x[1] for x in r])

    def eb(failure: Failure) -> Failure:
        return failure.value.subFailure

    d2.addErrback(eb)
    return d2


def call_all(factories: Iterable[Callable[[], Any]]) -> Deferred[list[Any]]:
    """Call every zero-argument factory right away and :func:`gather` the
    Deferreds they produce."""
    return gather([maybe_deferred_coro(f) for f in factories])
