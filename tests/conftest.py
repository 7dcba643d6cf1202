"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from range_monitor.config import (
    AppConfig,
    ContractsConfig,
    MonitorConfig,
    NetworkConfig,
    NotificationsConfig,
    TelegramConfig,
    UserConfig,
)
from range_monitor.models import OutOfRangeEntry, PositionRecord
from tests.helpers import (
    FACTORY,
    OWNER,
    POOL_FACTORY,
    POSITION_MANAGER,
    make_entry,
    make_position,
)


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_contracts() -> ContractsConfig:
    return ContractsConfig(
        proxy_wallet_factory=FACTORY,
        position_manager=POSITION_MANAGER,
        pool_factory=POOL_FACTORY,
    )


@pytest.fixture()
def sample_network_config(sample_contracts: ContractsConfig) -> NetworkConfig:
    return NetworkConfig(
        name="polygon",
        rpc_url="https://rpc.example.com",
        chain_id=137,
        protocol="uniswap_v3_factory",
        rpc_timeout=5,
        max_concurrent_calls=2,
        contracts=sample_contracts,
    )


@pytest.fixture()
def sample_app_config(
    sample_network_config: NetworkConfig,
    sample_contracts: ContractsConfig,
    tmp_path: Path,
) -> AppConfig:
    return AppConfig(
        monitor=MonitorConfig(
            check_interval_minutes=60,
            retention_hours=24,
            notification_cooldown_hours=24,
            state_file=str(tmp_path / "out_of_range.json"),
        ),
        users=(UserConfig(username="alice", chat_id="1001", addresses=(OWNER,)),),
        networks={
            "polygon": sample_network_config,
            "arbitrum": NetworkConfig(
                name="arbitrum",
                rpc_url="https://arb.example.com",
                chain_id=42161,
                protocol="uniswap_v3_factory",
                contracts=sample_contracts,
            ),
        },
        notifications=NotificationsConfig(
            telegram=TelegramConfig(enabled=True, bot_token="fake-token"),
        ),
    )


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_position() -> PositionRecord:
    return make_position(1)


@pytest.fixture()
def sample_entry() -> OutOfRangeEntry:
    return make_entry()


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent(f"""\
    monitor:
      check_interval_minutes: 30
      retention_hours: 12
      notification_cooldown_hours: 6
      state_file: state.json
    users:
      - username: alice
        chat_id: "1001"
        addresses: ["{OWNER}"]
    networks:
      polygon:
        rpc_url: "https://rpc.example.com"
        chain_id: 137
        protocol: uniswap_v3
        rpc_timeout: 10
        contracts:
          proxy_wallet_factory: "{FACTORY}"
          position_manager: "{POSITION_MANAGER}"
          pool_factory: "{POOL_FACTORY}"
      base:
        rpc_url: "https://base.example.com"
        chain_id: 8453
        protocol: aerodrome
        contracts:
          proxy_wallet_factory: "0x...replace_with_base_sickle_factory_address..."
          position_manager: "{POSITION_MANAGER}"
          pool_factory: "{POOL_FACTORY}"
    notifications:
      telegram:
        enabled: true
        bot_token: "tok1"
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
