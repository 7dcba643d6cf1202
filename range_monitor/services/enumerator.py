"""Position discovery strategies for proxy wallets."""
from __future__ import annotations

import logging

from ..chains.evm import ChainCallError
from ..interfaces.chain import ChainGateway
from ..interfaces.position_source import PositionSource

logger = logging.getLogger(__name__)


def _unique(token_ids: list[int]) -> list[int]:
    return list(dict.fromkeys(token_ids))


class TransferLogSource:
    """Every token id ever transferred into the wallet.

    Over-approximates current ownership; positions that left the wallet are
    filtered downstream by their liquidity.
    """

    def __init__(self, gateway: ChainGateway) -> None:
        self._gateway = gateway

    async def list_token_ids(self, wallet: str) -> list[int]:
        return _unique(await self._gateway.get_transferred_token_ids(wallet))


class IndexedOwnershipSource:
    """ERC-721 enumerable lookup: ``balanceOf`` then one call per index."""

    def __init__(self, gateway: ChainGateway) -> None:
        self._gateway = gateway

    async def list_token_ids(self, wallet: str) -> list[int]:
        balance = await self._gateway.balance_of(wallet)
        token_ids: list[int] = []
        for index in range(balance):
            token_ids.append(
                await self._gateway.token_of_owner_by_index(wallet, index)
            )
        return _unique(token_ids)


class PositionEnumerator:
    """Primary discovery strategy with a fallback on chain call failure."""

    def __init__(self, primary: PositionSource, fallback: PositionSource) -> None:
        self._primary = primary
        self._fallback = fallback

    @classmethod
    def for_gateway(cls, gateway: ChainGateway) -> PositionEnumerator:
        return cls(TransferLogSource(gateway), IndexedOwnershipSource(gateway))

    async def list_token_ids(self, wallet: str) -> list[int]:
        try:
            return await self._primary.list_token_ids(wallet)
        except ChainCallError as e:
            logger.warning(
                "Transfer log query failed for %s, falling back to index lookup: %s",
                wallet,
                e,
            )
        return await self._fallback.list_token_ids(wallet)
