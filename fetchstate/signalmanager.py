from __future__ import annotations

from typing import Any

from pydispatch import dispatcher

from fetchstate.utils import signal as _signal


class SignalManager:
    """Connects receivers to the signals sent on behalf of one sender.

    Each :class:`~fetchstate.tracker.RequestTracker` owns one, with itself
    as the sender, so receivers only hear about that tracker.
    """

    def __init__(self, sender: Any = dispatcher.Anonymous):
        self.sender: Any = sender

    def connect(self, receiver: Any, signal: Any, **kwargs: Any) -> None:
        """
        Connect a receiver function to a signal.

        :param receiver: the function to be connected
        :type receiver: collections.abc.Callable

        :param signal: the signal to connect to, usually one of
            :mod:`fetchstate.signals`
        :type signal: object
        """
        kwargs.setdefault("sender", self.sender)
        dispatcher.connect(receiver, signal, **kwargs)

    def disconnect(self, receiver: Any, signal: Any, **kwargs: Any) -> None:
        kwargs.setdefault("sender", self.sender)
        dispatcher.disconnect(receiver, signal, **kwargs)

    def send_catch_log(self, signal: Any, **kwargs: Any) -> list[tuple[Any, Any]]:
        """
        Send a signal, catch exceptions and log them.

        The keyword arguments are passed to the signal handlers (connected
        through the :meth:`connect` method).
        """
        kwargs.setdefault("sender", self.sender)
        return _signal.send_catch_log(signal, **kwargs)

    def disconnect_all(self, signal: Any, **kwargs: Any) -> None:
        kwargs.setdefault("sender", self.sender)
        _signal.disconnect_all(signal, **kwargs)
