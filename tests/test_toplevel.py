import warnings

import fetchstate


def test_version():
    assert isinstance(fetchstate.__version__, str)
    assert fetchstate.__version__ == "1.0.0"


def test_tracker_shortcuts():
    from fetchstate.state import INITIAL_REQUEST_STATE, TrackerState  # noqa: PLC0415
    from fetchstate.tracker import RequestTracker, create_request  # noqa: PLC0415

    assert fetchstate.RequestTracker is RequestTracker
    assert fetchstate.create_request is create_request
    assert fetchstate.TrackerState is TrackerState
    assert fetchstate.INITIAL_REQUEST_STATE is INITIAL_REQUEST_STATE


def test_import_keeps_warning_filters():
    twisted_filters = [
        f
        for f in warnings.filters
        if f[0] == "ignore"
        and f[2] is DeprecationWarning
        and f[3] is not None
        and f[3].pattern.startswith("twisted")
    ]
    assert not twisted_filters
