"""Chain gateway protocol — read-only contract access for one network."""
from typing import Protocol

from ..models import PositionRecord


class ChainGateway(Protocol):
    """Named view calls against a network's proxy-wallet and DEX contracts."""

    network: str

    async def get_proxy_wallet(self, owner: str) -> str: ...

    async def get_transferred_token_ids(self, wallet: str) -> list[int]: ...

    async def balance_of(self, wallet: str) -> int: ...

    async def token_of_owner_by_index(self, wallet: str, index: int) -> int: ...

    async def get_position(self, token_id: int) -> PositionRecord: ...

    async def get_pool(
        self, token_a: str, token_b: str, fee: int, signature: str
    ) -> str: ...

    async def get_current_tick(self, pool: str) -> int: ...
