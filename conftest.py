import pytest


@pytest.fixture(scope="session")
def reactor_pytest(request) -> str:
    return request.config.getoption("--reactor")


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "only_asyncio: run only with --reactor=asyncio"
    )
    config.addinivalue_line(
        "markers", "only_not_asyncio: run only without --reactor=asyncio"
    )


def pytest_runtest_setup(item):
    # Skip tests based on reactor markers
    reactor = item.config.getoption("--reactor")

    if item.get_closest_marker("only_asyncio") and reactor != "asyncio":
        pytest.skip("This test is only run with --reactor=asyncio")

    if item.get_closest_marker("only_not_asyncio") and reactor == "asyncio":
        pytest.skip("This test is only run without --reactor=asyncio")
