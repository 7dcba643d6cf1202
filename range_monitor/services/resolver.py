"""Proxy wallet lookup through the network's wallet factory."""
from __future__ import annotations

from ..config import ZERO_ADDRESS
from ..interfaces.chain import ChainGateway


class ProxyWalletResolver:
    """Map an owned address to its deployed proxy wallet, if any."""

    def __init__(self, gateway: ChainGateway) -> None:
        self._gateway = gateway

    async def resolve(self, owner: str) -> str | None:
        """Return the proxy wallet address, or ``None`` when none is deployed."""
        wallet = await self._gateway.get_proxy_wallet(owner)
        if int(wallet, 16) == int(ZERO_ADDRESS, 16):
            return None
        return wallet
