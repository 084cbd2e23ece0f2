"""
Test fixtures and configuration.
"""

import pytest
from helpers import FakeRpcTransport, FakeSubscriptionTransport

from veilleur.config import TimeoutSettings, VeilleurConfig


# ================================================================
# Fixtures
# ================================================================


@pytest.fixture
def settings() -> VeilleurConfig:
    """Configuration independent of YAML files."""
    return VeilleurConfig(
        rpc_url="http://rpc.test",
        ws_url="ws://rpc.test",
        default_commitment="finalized",
        subscription_queue_size=4,
        timeouts=TimeoutSettings(rpc_call=1.0, subscribe_ack=1.0),
    )


@pytest.fixture
def rpc_transport() -> FakeRpcTransport:
    return FakeRpcTransport()


@pytest.fixture
def push_transport() -> FakeSubscriptionTransport:
    return FakeSubscriptionTransport()
