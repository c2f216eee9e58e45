"""
Shared fixtures for Glazion Synthesis tests
"""

import pytest
from unittest.mock import Mock, AsyncMock

from glazionsynth.settings import Settings
from glazionsynth.synthesis_engine import SynthesisEngine
from glazionsynth.upstream_client import UpstreamClient


class FakeClock:
    """Manually advanced monotonic clock"""
    
    def __init__(self, start: float = 1000.0):
        self.now = start
    
    def __call__(self) -> float:
        return self.now
    
    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def test_settings():
    """Settings with both upstreams configured and library defaults elsewhere"""
    return Settings(
        kb_url="http://kb.test/api/ask",
        conv_url="http://conv.test/api/chat",
    )


@pytest.fixture
def mock_client():
    """Upstream client whose get_json is driven per test via side_effect"""
    client = Mock(spec=UpstreamClient)
    client.get_json = AsyncMock(return_value={})
    client.close = AsyncMock()
    client.get_stats.return_value = {"total_requests": 0, "error_count": 0}
    return client


@pytest.fixture
def engine(test_settings, mock_client, clock):
    return SynthesisEngine(test_settings, client=mock_client, clock=clock)
