import pytest
from loguru import logger

from lasersweep.util import TEST_LOGLEVEL, shutdown_client_log, start_client_log


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "slow: marks test as slow running test")
    config.addinivalue_line(
        "markers", "hardware: marks test that require physical hardware"
    )


@pytest.fixture(scope="class")
def client_log():
    start_client_log(
        log_level=TEST_LOGLEVEL, log_to_stdout=True, log_to_file=False, clear_prev=False
    )
    yield
    shutdown_client_log()


@pytest.fixture
def log(request):
    logger.warning("STARTED Test '{}'".format(request.node.originalname))
    yield
    logger.warning("COMPLETED Test '{}' \n".format(request.node.originalname))
