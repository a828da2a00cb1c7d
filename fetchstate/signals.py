"""
fetchstate signals

Every tracker transition sends the specific signal for that transition
followed by request_state_changed. Receivers get the state snapshot as the
``state`` keyword argument.
"""

request_fetching = object()
request_stalled = object()
request_finished = object()
request_state_changed = object()
