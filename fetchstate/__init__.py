"""
fetchstate - lifecycle tracking for Twisted deferred operations
"""

import pkgutil

# Declare top-level shortcuts
from fetchstate.state import INITIAL_REQUEST_STATE, TrackerState
from fetchstate.tracker import RequestTracker, create_request

__all__ = [
    "INITIAL_REQUEST_STATE",
    "RequestTracker",
    "TrackerState",
    "__version__",
    "create_request",
]


__version__ = (pkgutil.get_data(__package__, "VERSION") or b"").decode("ascii").strip()


del pkgutil
