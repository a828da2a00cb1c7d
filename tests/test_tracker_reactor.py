from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import pytest
from twisted.internet import defer
from twisted.internet.defer import Deferred, inlineCallbacks
from twisted.internet.task import deferLater

from fetchstate import create_request
from fetchstate.utils.reactor import get_asyncio_event_loop

if TYPE_CHECKING:
    from collections.abc import Generator

    from fetchstate import TrackerState


def delayed(seconds: float, value: Any):
    def request() -> Deferred[Any]:
        from twisted.internet import reactor

        return deferLater(reactor, seconds, lambda: value)

    return request


class TestTrackerOnReactor:
    @inlineCallbacks
    def test_stalled_run(self) -> Generator[Deferred[Any], Any, None]:
        states: list[TrackerState] = []
        tracker = create_request(
            id="REACTOR_REQUEST",
            request=[delayed(0.2, "a"), delayed(0.1, "b")],
            stalled_delay=0.02,
            on_state_change=states.append,
        )

        result = yield tracker()

        assert result == ["a", "b"]
        assert [(s.is_fetching, s.is_stalled, s.is_finished) for s in states] == [
            (True, False, False),
            (True, True, False),
            (False, False, True),
        ]

    @inlineCallbacks
    def test_fast_run_does_not_stall(self) -> Generator[Deferred[Any], Any, None]:
        from twisted.internet import reactor

        states: list[TrackerState] = []
        tracker = create_request(
            id="REACTOR_REQUEST",
            request=delayed(0.01, "a"),
            stalled_delay=0.5,
            on_state_change=states.append,
        )

        result = yield tracker()

        assert result == "a"
        assert len(states) == 2
        assert not [c for c in reactor.getDelayedCalls() if c.func == tracker._stalled]

    @pytest.mark.usefixtures("reactor_pytest")
    @inlineCallbacks
    def test_coroutine_request(self) -> Generator[Deferred[Any], Any, None]:
        async def request() -> int:
            await defer.succeed(None)
            return 42

        states: list[TrackerState] = []
        tracker = create_request(
            id="COROUTINE_REQUEST", request=request, on_state_change=states.append
        )

        result = yield tracker()

        assert result == 42
        assert states[-1].is_finished

    @inlineCallbacks
    def test_failing_coroutine_request(self) -> Generator[Deferred[Any], Any, None]:
        async def request() -> None:
            raise KeyError("missing")

        tracker = create_request(id="COROUTINE_REQUEST", request=request)

        with pytest.raises(KeyError):
            yield tracker()
        assert tracker.state.is_finished

    @pytest.mark.only_asyncio
    @inlineCallbacks
    def test_asyncio_coroutine_request(self) -> Generator[Deferred[Any], Any, None]:
        async def request() -> str:
            await asyncio.sleep(0.1)
            return "slept"

        states: list[TrackerState] = []
        tracker = create_request(
            id="ASYNCIO_REQUEST",
            request=request,
            stalled_delay=0.01,
            on_state_change=states.append,
        )

        result = yield tracker()

        assert result == "slept"
        assert [s.is_stalled for s in states] == [False, True, False]

    @pytest.mark.only_not_asyncio
    @inlineCallbacks
    def test_coroutine_awaiting_deferred(self) -> Generator[Deferred[Any], Any, None]:
        from twisted.internet import reactor

        async def request() -> str:
            return await deferLater(reactor, 0.05, lambda: "waited")

        states: list[TrackerState] = []
        tracker = create_request(
            id="COROUTINE_REQUEST",
            request=request,
            stalled_delay=0.01,
            on_state_change=states.append,
        )

        result = yield tracker()

        assert result == "waited"
        assert [s.is_stalled for s in states] == [False, True, False]

    @inlineCallbacks
    def test_custom_awaitable_request(self) -> Generator[Deferred[Any], Any, None]:
        class Ready:
            def __await__(self):
                return "ready"
                yield

        tracker = create_request(id="AWAITABLE_REQUEST", request=Ready)

        result = yield tracker()

        assert result == "ready"
        assert tracker.state.is_finished
        assert not tracker.state.is_fetching

    @pytest.mark.only_asyncio
    @inlineCallbacks
    def test_asyncio_future_request(self) -> Generator[Deferred[Any], Any, None]:
        def request() -> asyncio.Future[str]:
            loop = get_asyncio_event_loop()
            future = loop.create_future()
            loop.call_later(0.05, future.set_result, "resolved")
            return future

        states: list[TrackerState] = []
        tracker = create_request(
            id="FUTURE_REQUEST",
            request=request,
            stalled_delay=0.01,
            on_state_change=states.append,
        )

        result = yield tracker()

        assert result == "resolved"
        assert [s.is_stalled for s in states] == [False, True, False]
        assert states[-1].is_finished
