import pytest
from loguru import logger

from annocode.lib.log import state_connectToLogger


@pytest.fixture
def messages():
    """Capture LOG records and unbind any program state afterwards"""
    captured = []
    sink = logger.add(lambda m: captured.append((m.record['level'].name, m.record['message'])),
                      level="DEBUG")
    yield captured
    logger.remove(sink)
    state_connectToLogger(None)
