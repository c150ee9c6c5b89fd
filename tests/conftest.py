import copy

import pytest

from base_sniper.config import DEFAULT_SETTINGS
from base_sniper.state.state_service import StateService

from fakes import FakeChainClient, RecordingAlerts


@pytest.fixture
def settings():
    config = copy.deepcopy(DEFAULT_SETTINGS)
    config['monitoring']['retry_delay_ms'] = 0
    config['filters']['min_liquidity_eth'] = 5
    config['filters']['max_liquidity_eth'] = 10
    return config


@pytest.fixture
def client():
    return FakeChainClient()


@pytest.fixture
def alerts():
    return RecordingAlerts()


@pytest.fixture
def state(tmp_path):
    return StateService(tmp_path / "state.json")
