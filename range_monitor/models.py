"""Data models: all frozen (immutable)."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, NamedTuple


@dataclass(frozen=True)
class MonitoredTarget:
    """One (user, owned address, network) unit of work for a sweep."""

    username: str
    chat_id: str
    address: str
    network: str
    protocol: str


@dataclass(frozen=True)
class PositionRecord:
    """Concentrated-liquidity position as read from the position manager."""

    token_id: int
    token0: str
    token1: str
    fee: int
    tick_lower: int
    tick_upper: int
    liquidity: int

    @property
    def is_active(self) -> bool:
        return self.liquidity > 0


@dataclass(frozen=True)
class RangeCheck:
    current_tick: int
    in_range: bool


class EntryKey(NamedTuple):
    username: str
    address: str
    network: str
    token_id: str


@dataclass(frozen=True)
class OutOfRangeEntry:
    """Persisted record of a position last seen outside its tick range."""

    username: str
    chat_id: str
    address: str
    network: str
    protocol: str
    proxy_wallet: str
    token_id: str
    token0: str
    token1: str
    fee: int
    tick_lower: int
    tick_upper: int
    current_tick: int
    detected_at: float

    @property
    def key(self) -> EntryKey:
        return EntryKey(self.username, self.address, self.network, self.token_id)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> OutOfRangeEntry:
        return cls(
            username=str(raw["username"]),
            chat_id=str(raw["chat_id"]),
            address=str(raw["address"]),
            network=str(raw["network"]),
            protocol=str(raw["protocol"]),
            proxy_wallet=str(raw["proxy_wallet"]),
            token_id=str(int(raw["token_id"])),
            token0=str(raw["token0"]),
            token1=str(raw["token1"]),
            fee=int(raw.get("fee", 0)),
            tick_lower=int(raw["tick_lower"]),
            tick_upper=int(raw["tick_upper"]),
            current_tick=int(raw["current_tick"]),
            detected_at=float(raw["detected_at"]),
        )


@dataclass(frozen=True)
class SweepSummary:
    """Counters describing one completed sweep."""

    started_at: float
    units: int = 0
    units_failed: int = 0
    positions_checked: int = 0
    positions_failed: int = 0
    out_of_range: int = 0
    cleared: int = 0
    evicted: int = 0
    notified: tuple[str, ...] = ()
