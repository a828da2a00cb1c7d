from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING
from warnings import catch_warnings, filterwarnings

from twisted.internet import asyncioreactor

if TYPE_CHECKING:
    from asyncio import AbstractEventLoop

    from twisted.internet.interfaces import IReactorTime


def is_reactor_installed() -> bool:
    return "twisted.internet.reactor" in sys.modules


def is_asyncio_reactor_installed() -> bool:
    """Check whether the installed reactor is :class:`~twisted.internet.asyncioreactor.AsyncioSelectorReactor`.

    Raise a :exc:`RuntimeError` if no reactor is installed.
    """
    if not is_reactor_installed():
        raise RuntimeError(
            "is_asyncio_reactor_installed() called without an installed reactor."
        )

    from twisted.internet import reactor

    return isinstance(reactor, asyncioreactor.AsyncioSelectorReactor)


def get_asyncio_event_loop() -> AbstractEventLoop:
    try:
        with catch_warnings():
            # Python 3.10.9+ warns when there is no current event loop; we
            # create one in that case anyway.
            filterwarnings(
                "ignore",
                message="There is no current event loop",
                category=DeprecationWarning,
            )
            event_loop = asyncio.get_event_loop()
    except RuntimeError:
        event_loop = asyncio.new_event_loop()
        asyncio.set_event_loop(event_loop)
    return event_loop


def get_clock(clock: IReactorTime | None = None) -> IReactorTime:
    """Return *clock* or, when it is ``None``, the global Twisted reactor."""
    if clock is not None:
        return clock

    from twisted.internet import reactor

    return reactor
