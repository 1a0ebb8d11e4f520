import pytest

from avd_provider.acceptance import acceptance_enabled, missing_prerequisites, pre_check
from avd_provider.config_manager import ProviderConfig
from avd_provider.provider import Provider


def pytest_collection_modifyitems(config, items):
    """Skip acceptance tests unless ARM_ACC is set or --run-acceptance is given."""
    if config.getoption("--run-acceptance") or acceptance_enabled():
        return
    skip = pytest.mark.skip(reason="acceptance tests need ARM_ACC=1 or --run-acceptance")
    for item in items:
        if item.get_closest_marker("acceptance") is not None:
            item.add_marker(skip)


@pytest.fixture
def live_provider():
    missing = missing_prerequisites()
    if missing:
        pytest.skip(f"acceptance prerequisites not set: {', '.join(missing)}")
    pre_check()
    provider = Provider(ProviderConfig.from_environment())
    yield provider
    provider.clients.close()
