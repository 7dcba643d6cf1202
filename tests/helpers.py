"""Constants, builders and an in-memory chain gateway shared by tests."""
from __future__ import annotations

from range_monitor.models import OutOfRangeEntry, PositionRecord

# Digit-only addresses are already in checksum form.
OWNER = "0x1111111111111111111111111111111111111111"
PROXY_WALLET = "0x2222222222222222222222222222222222222222"
TOKEN0 = "0x3333333333333333333333333333333333333333"
TOKEN1 = "0x4444444444444444444444444444444444444444"
POOL = "0x5555555555555555555555555555555555555555"
FACTORY = "0x6666666666666666666666666666666666666666"
POSITION_MANAGER = "0x7777777777777777777777777777777777777777"
POOL_FACTORY = "0x8888888888888888888888888888888888888888"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

HOUR = 3600.0


def make_entry(**overrides) -> OutOfRangeEntry:
    fields = dict(
        username="alice",
        chat_id="1001",
        address=OWNER,
        network="polygon",
        protocol="uniswap_v3_factory",
        proxy_wallet=PROXY_WALLET,
        token_id="1",
        token0=TOKEN0,
        token1=TOKEN1,
        fee=3000,
        tick_lower=-100,
        tick_upper=100,
        current_tick=150,
        detected_at=1_000.0,
    )
    fields.update(overrides)
    return OutOfRangeEntry(**fields)


def make_position(token_id: int = 1, **overrides) -> PositionRecord:
    fields = dict(
        token_id=token_id,
        token0=TOKEN0,
        token1=TOKEN1,
        fee=3000,
        tick_lower=-100,
        tick_upper=100,
        liquidity=5,
    )
    fields.update(overrides)
    return PositionRecord(**fields)


class FakeGateway:
    """In-memory stand-in for ``EvmGateway``.

    ``positions`` maps token id to a ``PositionRecord`` or to an exception
    raised when that position is fetched.
    """

    def __init__(
        self,
        network: str = "polygon",
        proxy_wallet: str = PROXY_WALLET,
        positions: dict | None = None,
        tick: int = 0,
    ) -> None:
        self.network = network
        self.proxy_wallet = proxy_wallet
        self.positions = dict(positions or {})
        self.tick = tick
        self.proxy_error: Exception | None = None
        self.transfer_error: Exception | None = None
        self.tick_calls = 0
        self.pool_calls: list[tuple] = []

    async def get_proxy_wallet(self, owner: str) -> str:
        if self.proxy_error is not None:
            raise self.proxy_error
        return self.proxy_wallet

    async def get_transferred_token_ids(self, wallet: str) -> list[int]:
        if self.transfer_error is not None:
            raise self.transfer_error
        return list(self.positions)

    async def balance_of(self, wallet: str) -> int:
        return len(self.positions)

    async def token_of_owner_by_index(self, wallet: str, index: int) -> int:
        return list(self.positions)[index]

    async def get_position(self, token_id: int) -> PositionRecord:
        position = self.positions[token_id]
        if isinstance(position, Exception):
            raise position
        return position

    async def get_pool(self, token_a: str, token_b: str, fee: int, signature: str) -> str:
        self.pool_calls.append((token_a, token_b, fee, signature))
        return POOL

    async def get_current_tick(self, pool: str) -> int:
        self.tick_calls += 1
        return self.tick
