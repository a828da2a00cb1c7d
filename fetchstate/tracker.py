"""
RequestTracker wraps one or more zero-argument factories of Deferreds and
reports the lifecycle of every run through state handlers and signals.

See README.rst for usage.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any, Union

from twisted.internet.defer import Deferred, fail
from twisted.python.failure import Failure

from fetchstate import signals
from fetchstate.settings import BaseSettings, Settings
from fetchstate.signalmanager import SignalManager
from fetchstate.state import HANDLER_NAMES, TrackerState
from fetchstate.utils.defer import call_all
from fetchstate.utils.log import failure_to_exc_info
from fetchstate.utils.reactor import get_clock

if TYPE_CHECKING:
    from twisted.internet.interfaces import IDelayedCall, IReactorTime

    # typing.Self requires Python 3.11
    from typing_extensions import Self


logger = logging.getLogger(__name__)

StateHandler = Callable[[TrackerState], Any]
OperationFactory = Callable[[], Any]
_RequestT = Union[OperationFactory, Iterable[OperationFactory]]
_SettingsT = Union[BaseSettings, dict[str, Any], None]


class RequestTracker:
    """Run a fixed set of operation factories and track each run.

    Calling the tracker calls every factory, joins the Deferreds they return
    and moves the tracker state through ``fetching -> [stalled] -> finished``.
    For each transition the specific handler (``on_fetching``, ``on_stalled``
    or ``on_finished``) is called with the new :class:`TrackerState`; when it
    is not set, ``on_state_change`` is called instead. The tracker can be
    called any number of times and ``times_run`` keeps counting across runs.

    Concurrent calls on one tracker share its state: the first run to settle
    reports ``finished`` and cancels whichever stall timer is pending.
    """

    def __init__(
        self,
        id: str,
        request: _RequestT,
        stalled_delay: float | None = None,
        on_stalled: StateHandler | None = None,
        on_fetching: StateHandler | None = None,
        on_finished: StateHandler | None = None,
        on_state_change: StateHandler | None = None,
        settings: _SettingsT = None,
        clock: IReactorTime | None = None,
    ):
        if not isinstance(id, str):
            raise TypeError(f"Tracker id must be a str, got {type(id).__name__}")
        factories = (request,) if callable(request) else tuple(request)
        if not factories:
            raise ValueError(f"Tracker {id!r} needs at least one request factory")
        for factory in factories:
            if not callable(factory):
                raise TypeError(
                    f"Request factories must be callable, got {factory!r} in tracker {id!r}"
                )

        if stalled_delay is None:
            if isinstance(settings, dict) or settings is None:
                settings = Settings(settings)
            stalled_delay = settings.getdelay("STALLED_DELAY")
        elif stalled_delay < 0:
            raise ValueError(f"stalled_delay must not be negative, got {stalled_delay!r}")

        self.request: tuple[OperationFactory, ...] = factories
        self.stalled_delay: float | None = stalled_delay or None
        self.on_stalled: StateHandler | None = None
        self.on_fetching: StateHandler | None = None
        self.on_finished: StateHandler | None = None
        self.on_state_change: StateHandler | None = None
        self.set_handlers(
            on_stalled=on_stalled,
            on_fetching=on_fetching,
            on_finished=on_finished,
            on_state_change=on_state_change,
        )
        self.signals: SignalManager = SignalManager(self)

        self._clock: IReactorTime | None = clock
        self._state: TrackerState = TrackerState(id=id)
        self._stalled_call: IDelayedCall | None = None

    @classmethod
    def from_settings(
        cls, settings: BaseSettings, id: str, request: _RequestT, **kwargs: Any
    ) -> Self:
        return cls(id, request, settings=settings, **kwargs)

    @property
    def id(self) -> str:
        return self._state.id

    @property
    def state(self) -> TrackerState:
        return self._state

    def set_handlers(self, **handlers: StateHandler | None) -> None:
        """Replace the named state handlers.

        Only the given names change; ``None`` removes a handler. The new
        handlers apply to this and every later run.
        """
        unknown = sorted(set(handlers).difference(HANDLER_NAMES))
        if unknown:
            raise TypeError(f"Unknown state handler(s): {', '.join(unknown)}")
        for name, handler in handlers.items():
            if handler is not None and not callable(handler):
                raise TypeError(f"{name} must be callable or None, got {handler!r}")

        self.on_stalled = handlers.get("on_stalled", self.on_stalled)
        self.on_fetching = handlers.get("on_fetching", self.on_fetching)
        self.on_finished = handlers.get("on_finished", self.on_finished)
        self.on_state_change = handlers.get("on_state_change", self.on_state_change)

    def __call__(self, **handlers: StateHandler | None) -> Deferred[Any]:
        if handlers:
            self.set_handlers(**handlers)

        if not self._state.is_fetching:
            state = self._state.evolve(
                is_fetching=True,
                is_finished=False,
                times_run=self._state.times_run + 1,
            )
            logger.debug(
                "Fetching %(id)s (run %(times_run)d)",
                {"id": state.id, "times_run": state.times_run},
            )
            self._set_state(state, self.on_fetching, signals.request_fetching)

        if self.stalled_delay:
            self._start_stalled_timer()

        try:
            d = call_all(self.request)
        except Exception:
            d = fail()
        d.addBoth(self._finish)
        d.addCallback(self._unwrap)
        return d

    def _start_stalled_timer(self) -> None:
        self._cancel_stalled_timer()
        clock = get_clock(self._clock)
        self._stalled_call = clock.callLater(self.stalled_delay, self._stalled)

    def _cancel_stalled_timer(self) -> None:
        if self._stalled_call is not None and self._stalled_call.active():
            self._stalled_call.cancel()
        self._stalled_call = None

    def _stalled(self) -> None:
        self._stalled_call = None
        # a run that settled in the meantime must not be marked as stalled
        if self._state.is_finished:
            return
        logger.info(
            "%(id)s stalled: still fetching after %(delay)s seconds",
            {"id": self.id, "delay": self.stalled_delay},
        )
        self._set_state(
            self._state.evolve(is_stalled=True),
            self.on_stalled,
            signals.request_stalled,
        )

    def _finish(self, result: Any | Failure) -> Any | Failure:
        self._cancel_stalled_timer()
        state = self._state.evolve(is_finished=True, is_fetching=False, is_stalled=False)
        logger.debug(
            "Finished %(id)s (run %(times_run)d, %(outcome)s)",
            {
                "id": state.id,
                "times_run": state.times_run,
                "outcome": "failed" if isinstance(result, Failure) else "succeeded",
            },
            exc_info=failure_to_exc_info(result),
        )
        self._set_state(state, self.on_finished, signals.request_finished)
        return result

    def _unwrap(self, results: list[Any]) -> Any:
        if len(self.request) == 1:
            return results[0]
        return results

    def _set_state(
        self, state: TrackerState, handler: StateHandler | None, signal: object
    ) -> None:
        self._state = state
        if handler is not None:
            self._notify(handler, state)
        elif self.on_state_change is not None:
            self._notify(self.on_state_change, state)
        self.signals.send_catch_log(signal, state=state)
        self.signals.send_catch_log(signals.request_state_changed, state=state)

    def _notify(self, handler: StateHandler, state: TrackerState) -> None:
        try:
            result = handler(state)
        except Exception:
            logger.error(
                "Error caught on state handler %(handler)r of %(id)s",
                {"handler": handler, "id": state.id},
                exc_info=True,
                extra={"state": state},
            )
            return
        if isinstance(result, Deferred):
            logger.error(
                "Cannot return deferreds from state handler: %(handler)r",
                {"handler": handler},
                extra={"state": state},
            )

    def __repr__(self) -> str:
        cls_name = self.__class__.__name__
        return (
            f"{cls_name}(id={self.id!r}, requests={len(self.request)}, "
            f"stalled_delay={self.stalled_delay!r}, times_run={self._state.times_run})"
        )


def create_request(
    id: str,
    request: _RequestT,
    stalled_delay: float | None = None,
    on_stalled: StateHandler | None = None,
    on_fetching: StateHandler | None = None,
    on_finished: StateHandler | None = None,
    on_state_change: StateHandler | None = None,
    settings: _SettingsT = None,
    clock: IReactorTime | None = None,
) -> RequestTracker:
    """Build a :class:`RequestTracker`.

    :param id: identifier copied into every state snapshot
    :param request: a zero-argument callable, or a non-empty sequence of
        them, returning a Deferred, a coroutine or a plain value
    :param stalled_delay: seconds a run may stay fetching before it is
        reported as stalled; ``None`` reads the ``STALLED_DELAY`` setting and
        ``0`` disables stall detection
    :param settings: :class:`~fetchstate.settings.Settings` or dict used for
        defaults
    :param clock: the ``IReactorTime`` provider for the stall timer, the
        global reactor by default
    """
    return RequestTracker(
        id,
        request,
        stalled_delay=stalled_delay,
        on_stalled=on_stalled,
        on_fetching=on_fetching,
        on_finished=on_finished,
        on_state_change=on_state_change,
        settings=settings,
        clock=clock,
    )
