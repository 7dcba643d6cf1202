"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from eth_utils import is_address, to_checksum_address

logger = logging.getLogger(__name__)

SUPPORTED_PROTOCOLS = ("uniswap_v3", "uniswap_v3_factory", "aerodrome", "shadow")

REQUIRED_CONTRACTS = ("proxy_wallet_factory", "position_manager", "pool_factory")

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Uniswap V3 pool creation code hash (PoolAddress.POOL_INIT_CODE_HASH)
UNISWAP_V3_POOL_INIT_CODE_HASH = (
    "0xe34f199b19b2b4f47f68442619d555527d244f78a3297ea89325f843f87b8b54"
)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MonitorConfig:
    check_interval_minutes: int = 60
    retention_hours: float = 24.0
    notification_cooldown_hours: float = 24.0
    state_file: str = "out_of_range.json"

    @property
    def retention_seconds(self) -> float:
        return self.retention_hours * 3600

    @property
    def cooldown_seconds(self) -> float:
        return self.notification_cooldown_hours * 3600


@dataclass(frozen=True)
class UserConfig:
    username: str = ""
    chat_id: str = ""
    addresses: tuple[str, ...] = ()


@dataclass(frozen=True)
class ContractsConfig:
    proxy_wallet_factory: str = ""
    position_manager: str = ""
    pool_factory: str = ""


@dataclass(frozen=True)
class NetworkConfig:
    name: str = ""
    rpc_url: str = ""
    chain_id: int = 0
    protocol: str = ""
    rpc_timeout: int = 30
    max_concurrent_calls: int = 4
    contracts: ContractsConfig = field(default_factory=ContractsConfig)
    proxy_lookup_function: str = "getSickleAddress(address)"
    pool_init_code_hash: str = UNISWAP_V3_POOL_INIT_CODE_HASH


@dataclass(frozen=True)
class TelegramConfig:
    enabled: bool = False
    bot_token: str = ""


@dataclass(frozen=True)
class NotificationsConfig:
    telegram: TelegramConfig = field(default_factory=TelegramConfig)


@dataclass(frozen=True)
class AppConfig:
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    users: tuple[UserConfig, ...] = ()
    networks: dict[str, NetworkConfig] = field(default_factory=dict)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_monitor(raw: dict[str, Any]) -> MonitorConfig:
    return MonitorConfig(
        check_interval_minutes=int(raw.get("check_interval_minutes", 60)),
        retention_hours=float(raw.get("retention_hours", 24.0)),
        notification_cooldown_hours=float(
            raw.get("notification_cooldown_hours", 24.0)
        ),
        state_file=str(raw.get("state_file", "out_of_range.json")),
    )


def _build_users(raw: list[dict[str, Any]]) -> tuple[UserConfig, ...]:
    users: list[UserConfig] = []
    for u in raw:
        users.append(
            UserConfig(
                username=str(u.get("username", "")),
                chat_id=str(u.get("chat_id", "")),
                addresses=tuple(str(a) for a in u.get("addresses", [])),
            )
        )
    return tuple(users)


def _build_networks(raw: dict[str, Any]) -> dict[str, NetworkConfig]:
    networks: dict[str, NetworkConfig] = {}
    for name, cfg in raw.items():
        contracts = cfg.get("contracts", {}) or {}
        networks[name] = NetworkConfig(
            name=name,
            rpc_url=cfg.get("rpc_url", ""),
            chain_id=int(cfg.get("chain_id", 0)),
            protocol=str(cfg.get("protocol", "")).lower(),
            rpc_timeout=int(cfg.get("rpc_timeout", 30)),
            max_concurrent_calls=int(cfg.get("max_concurrent_calls", 4)),
            contracts=ContractsConfig(
                proxy_wallet_factory=str(contracts.get("proxy_wallet_factory", "")),
                position_manager=str(contracts.get("position_manager", "")),
                pool_factory=str(contracts.get("pool_factory", "")),
            ),
            proxy_lookup_function=cfg.get(
                "proxy_lookup_function", NetworkConfig.proxy_lookup_function
            ),
            pool_init_code_hash=cfg.get(
                "pool_init_code_hash", UNISWAP_V3_POOL_INIT_CODE_HASH
            ),
        )
    return networks


def _build_notifications(raw: dict[str, Any]) -> NotificationsConfig:
    tg = raw.get("telegram", {})
    return NotificationsConfig(
        telegram=TelegramConfig(
            enabled=bool(tg.get("enabled", False)),
            bot_token=tg.get("bot_token", ""),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (two levels up from this file).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        monitor=_build_monitor(raw.get("monitor", {})),
        users=_build_users(raw.get("users", [])),
        networks=_build_networks(raw.get("networks", {})),
        notifications=_build_notifications(raw.get("notifications", {})),
    )

    cfg = _validate(cfg)
    logger.info(
        "Configuration loaded from %s (%d users, %d networks)",
        config_path,
        len(cfg.users),
        len(cfg.networks),
    )
    return cfg


def _valid_contract(address: str) -> bool:
    return bool(address) and is_address(address) and int(address, 16) != 0


def network_problems(network: NetworkConfig) -> list[str]:
    """Return the reasons a network cannot be monitored (empty when usable)."""
    problems: list[str] = []
    if network.protocol not in SUPPORTED_PROTOCOLS:
        problems.append(f"unsupported protocol '{network.protocol}'")
    if not network.rpc_url:
        problems.append("no rpc_url")
    for contract in REQUIRED_CONTRACTS:
        address = getattr(network.contracts, contract)
        if not _valid_contract(address):
            problems.append(f"missing or placeholder {contract} address '{address}'")
    return problems


def _normalize_network(network: NetworkConfig) -> NetworkConfig:
    c = network.contracts
    return NetworkConfig(
        name=network.name,
        rpc_url=network.rpc_url,
        chain_id=network.chain_id,
        protocol=network.protocol,
        rpc_timeout=network.rpc_timeout,
        max_concurrent_calls=max(1, network.max_concurrent_calls),
        contracts=ContractsConfig(
            proxy_wallet_factory=to_checksum_address(c.proxy_wallet_factory),
            position_manager=to_checksum_address(c.position_manager),
            pool_factory=to_checksum_address(c.pool_factory),
        ),
        proxy_lookup_function=network.proxy_lookup_function,
        pool_init_code_hash=network.pool_init_code_hash,
    )


def _validate(cfg: AppConfig) -> AppConfig:
    """Raise on invalid user configuration, drop unusable addresses and networks.

    Returns a new ``AppConfig`` holding only usable users and networks, with
    all addresses in checksum form.
    """
    if not cfg.users:
        raise ValueError("At least one user must be configured")

    users: list[UserConfig] = []
    for user in cfg.users:
        if not user.username:
            raise ValueError("User entry has no username")
        if not user.chat_id:
            raise ValueError(f"User '{user.username}' has no chat_id")
        if not user.addresses:
            raise ValueError(f"User '{user.username}' has no addresses")
        addresses: list[str] = []
        for address in user.addresses:
            if not is_address(address):
                logger.warning(
                    "Skipping malformed address '%s' of user '%s'",
                    address,
                    user.username,
                )
                continue
            addresses.append(to_checksum_address(address))
        if not addresses:
            logger.warning("Skipping user '%s': no usable addresses", user.username)
            continue
        users.append(
            UserConfig(
                username=user.username,
                chat_id=user.chat_id,
                addresses=tuple(addresses),
            )
        )

    if not users:
        raise ValueError("No configured user has a usable address")

    networks: dict[str, NetworkConfig] = {}
    for name, network in cfg.networks.items():
        problems = network_problems(network)
        if problems:
            logger.warning("Skipping network '%s': %s", name, "; ".join(problems))
            continue
        networks[name] = _normalize_network(network)

    if not networks:
        raise ValueError(
            "At least one usable network must be configured; networks with "
            "placeholder contract addresses are skipped"
        )

    return AppConfig(
        monitor=cfg.monitor,
        users=tuple(users),
        networks=networks,
        notifications=cfg.notifications,
    )
