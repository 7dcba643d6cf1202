"""Pool locator protocol: token pair + fee tier to pool address."""
from typing import Protocol


class PoolLocator(Protocol):
    async def locate(self, token0: str, token1: str, fee: int) -> str: ...
