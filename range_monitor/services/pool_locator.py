"""Pool address discovery: CREATE2 derivation or factory lookup."""
from __future__ import annotations

from eth_abi import encode
from eth_utils import keccak, to_checksum_address

from ..config import NetworkConfig, ZERO_ADDRESS
from ..interfaces.chain import ChainGateway
from ..interfaces.pool_locator import PoolLocator


class PoolNotFoundError(LookupError):
    """The factory has no pool for the requested pair and fee tier."""


def sort_tokens(token_a: str, token_b: str) -> tuple[str, str]:
    """Order two token addresses by numeric value, as pool factories do."""
    if int(token_a, 16) <= int(token_b, 16):
        return token_a, token_b
    return token_b, token_a


def compute_pool_address(
    factory: str, token_a: str, token_b: str, fee: int, init_code_hash: str
) -> str:
    """CREATE2 address of a Uniswap V3 style pool."""
    token0, token1 = sort_tokens(token_a, token_b)
    salt = keccak(
        encode(
            ["address", "address", "uint24"],
            [to_checksum_address(token0), to_checksum_address(token1), fee],
        )
    )
    digest = keccak(
        b"\xff"
        + bytes.fromhex(factory[2:])
        + salt
        + bytes.fromhex(init_code_hash.removeprefix("0x"))
    )
    return to_checksum_address(digest[12:])


class Create2PoolLocator:
    """Offline derivation from the factory address and pool init code hash."""

    def __init__(self, factory: str, init_code_hash: str) -> None:
        self._factory = factory
        self._init_code_hash = init_code_hash

    async def locate(self, token0: str, token1: str, fee: int) -> str:
        return compute_pool_address(
            self._factory, token0, token1, fee, self._init_code_hash
        )


class FactoryPoolLocator:
    """Query the pool factory with tokens in canonical ascending order."""

    def __init__(self, gateway: ChainGateway, signature: str) -> None:
        self._gateway = gateway
        self._signature = signature

    async def locate(self, token0: str, token1: str, fee: int) -> str:
        token_a, token_b = sort_tokens(token0, token1)
        pool = await self._gateway.get_pool(token_a, token_b, fee, self._signature)
        if int(pool, 16) == int(ZERO_ADDRESS, 16):
            raise PoolNotFoundError(
                f"No pool for {token_a}/{token_b} fee {fee} on {self._gateway.network}"
            )
        return pool


# Keys must match config.SUPPORTED_PROTOCOLS
_FACTORY_LOOKUP_SIGNATURES = {
    "aerodrome": "getPool(address,address,int24)",
    "shadow": "getPool(address,address,int24)",
    "uniswap_v3_factory": "getPool(address,address,uint24)",
}


def build_pool_locator(network: NetworkConfig, gateway: ChainGateway) -> PoolLocator:
    """Select the pool discovery strategy for a network's protocol tag."""
    if network.protocol == "uniswap_v3":
        return Create2PoolLocator(
            network.contracts.pool_factory, network.pool_init_code_hash
        )
    signature = _FACTORY_LOOKUP_SIGNATURES.get(network.protocol)
    if signature is None:
        raise ValueError(
            f"Unsupported protocol '{network.protocol}' for network '{network.name}'"
        )
    return FactoryPoolLocator(gateway, signature)
