"""Named view calls for proxy-wallet factory, position manager, pools."""
from __future__ import annotations

import logging

from eth_utils import keccak, to_checksum_address

from ...config import ContractsConfig
from ...models import PositionRecord
from .client import ChainCallError, EvmClient

logger = logging.getLogger(__name__)

TRANSFER_TOPIC = "0x" + keccak(text="Transfer(address,address,uint256)").hex()

# positions(uint256) return layout shared by Uniswap V3 style managers
POSITION_OUTPUT_TYPES = (
    "uint96",   # nonce
    "address",  # operator
    "address",  # token0
    "address",  # token1
    "uint24",   # fee (tick spacing on Slipstream forks)
    "int24",    # tickLower
    "int24",    # tickUpper
    "uint128",  # liquidity
    "uint256",
    "uint256",
    "uint128",
    "uint128",
)


def address_topic(address: str) -> str:
    """Left-pad an address to a 32-byte indexed topic."""
    return "0x" + address.lower().replace("0x", "").rjust(64, "0")


class EvmGateway:
    """Read-only access to one network's contracts."""

    def __init__(
        self,
        client: EvmClient,
        contracts: ContractsConfig,
        proxy_lookup_function: str = "getSickleAddress(address)",
    ) -> None:
        self._client = client
        self._contracts = contracts
        self._proxy_lookup_function = proxy_lookup_function
        self.network = client.network

    async def get_proxy_wallet(self, owner: str) -> str:
        (wallet,) = await self._client.eth_call(
            self._contracts.proxy_wallet_factory,
            self._proxy_lookup_function,
            ["address"],
            [to_checksum_address(owner)],
        )
        return to_checksum_address(wallet)

    async def get_transferred_token_ids(self, wallet: str) -> list[int]:
        """Token ids of every Transfer(*, wallet, id) log since genesis."""
        logs = await self._client.get_logs(
            self._contracts.position_manager,
            [TRANSFER_TOPIC, None, address_topic(wallet)],
        )
        token_ids: list[int] = []
        for log in logs:
            topics = log.get("topics", [])
            if len(topics) < 4:
                raise ChainCallError(
                    self.network, "eth_getLogs", f"unexpected Transfer log {log!r}"
                )
            token_ids.append(int(topics[3], 16))
        return token_ids

    async def balance_of(self, wallet: str) -> int:
        (balance,) = await self._client.eth_call(
            self._contracts.position_manager,
            "balanceOf(address)",
            ["uint256"],
            [to_checksum_address(wallet)],
        )
        return balance

    async def token_of_owner_by_index(self, wallet: str, index: int) -> int:
        (token_id,) = await self._client.eth_call(
            self._contracts.position_manager,
            "tokenOfOwnerByIndex(address,uint256)",
            ["uint256"],
            [to_checksum_address(wallet), index],
        )
        return token_id

    async def get_position(self, token_id: int) -> PositionRecord:
        out = await self._client.eth_call(
            self._contracts.position_manager,
            "positions(uint256)",
            POSITION_OUTPUT_TYPES,
            [token_id],
        )
        return PositionRecord(
            token_id=token_id,
            token0=to_checksum_address(out[2]),
            token1=to_checksum_address(out[3]),
            fee=out[4],
            tick_lower=out[5],
            tick_upper=out[6],
            liquidity=out[7],
        )

    async def get_pool(
        self, token_a: str, token_b: str, fee: int, signature: str
    ) -> str:
        (pool,) = await self._client.eth_call(
            self._contracts.pool_factory,
            signature,
            ["address"],
            [to_checksum_address(token_a), to_checksum_address(token_b), fee],
        )
        return to_checksum_address(pool)

    async def get_current_tick(self, pool: str) -> int:
        _sqrt_price_x96, tick = await self._client.eth_call(
            pool, "slot0()", ["uint160", "int24"]
        )
        return tick
