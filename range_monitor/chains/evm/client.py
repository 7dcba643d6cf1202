"""EVM JSON-RPC client — eth_call and eth_getLogs over aiohttp."""
from __future__ import annotations

import asyncio
import logging
import re
import ssl
from typing import Any, Sequence

import aiohttp
import certifi
from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import keccak

from ...config import NetworkConfig

logger = logging.getLogger(__name__)

_SIGNATURE_RE = re.compile(r"^\w+\((.*)\)$")


class ChainCallError(RuntimeError):
    """A single RPC call failed (transport, timeout, node error or revert)."""

    def __init__(self, network: str, call: str, detail: Any) -> None:
        self.network = network
        self.call = call
        self.detail = detail
        super().__init__(f"[{network}] {call} failed: {detail}")


def function_selector(signature: str) -> bytes:
    """First four bytes of keccak(signature), e.g. ``balanceOf(address)``."""
    return keccak(text=signature)[:4]


def argument_types(signature: str) -> list[str]:
    """Parse ``name(type1,type2)`` into ``["type1", "type2"]``."""
    match = _SIGNATURE_RE.match(signature.replace(" ", ""))
    if not match:
        raise ValueError(f"Malformed function signature: {signature}")
    inner = match.group(1)
    return inner.split(",") if inner else []


def encode_call(signature: str, args: Sequence[Any] = ()) -> str:
    """ABI-encode a call to ``signature`` with ``args`` as 0x-prefixed hex."""
    data = function_selector(signature) + encode(argument_types(signature), list(args))
    return "0x" + data.hex()


class EvmClient:
    """Read-only JSON-RPC client bound to one network endpoint.

    No retries are performed here; every failure surfaces as a
    ``ChainCallError`` carrying the network name and the call that failed.
    In-flight requests are bounded by ``max_concurrent_calls``.
    """

    def __init__(self, config: NetworkConfig) -> None:
        self.network = config.name
        self.rpc_url = config.rpc_url
        self.timeout = config.rpc_timeout
        self._semaphore = asyncio.Semaphore(config.max_concurrent_calls)
        self._request_id = 0

    async def rpc_call(self, method: str, params: list[Any]) -> Any:
        """Make a single JSON-RPC call and return its ``result``."""
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())

        async with self._semaphore:
            try:
                connector = aiohttp.TCPConnector(ssl=ssl_context)
                async with aiohttp.ClientSession(connector=connector) as session:
                    async with session.post(
                        self.rpc_url,
                        json=payload,
                        timeout=aiohttp.ClientTimeout(total=self.timeout),
                    ) as response:
                        if response.status != 200:
                            raise ChainCallError(
                                self.network, method, f"HTTP {response.status}"
                            )
                        result = await response.json()
            except ChainCallError:
                raise
            except asyncio.TimeoutError as e:
                raise ChainCallError(
                    self.network, method, f"timed out after {self.timeout}s"
                ) from e
            except (aiohttp.ClientError, ValueError, OSError) as e:
                raise ChainCallError(self.network, method, e) from e

        if not isinstance(result, dict):
            raise ChainCallError(self.network, method, "malformed response")
        if "error" in result:
            raise ChainCallError(self.network, method, result["error"])
        if "result" not in result:
            raise ChainCallError(self.network, method, "response has no result")

        return result["result"]

    async def eth_call(
        self,
        to: str,
        signature: str,
        output_types: Sequence[str],
        args: Sequence[Any] = (),
    ) -> tuple[Any, ...]:
        """Invoke a view function and return its decoded outputs.

        ``output_types`` must be static ABI types; only the leading words are
        decoded, so a prefix of a longer return tuple may be requested (pool
        ``slot0()`` layouts differ between forks after the tick field).
        """
        try:
            data = encode_call(signature, args)
        except (EncodingError, ValueError, TypeError) as e:
            raise ChainCallError(self.network, signature, f"cannot encode: {e}") from e

        raw = await self.rpc_call("eth_call", [{"to": to, "data": data}, "latest"])
        logger.debug("[%s] eth_call %s on %s -> %s", self.network, signature, to, raw)

        try:
            payload = bytes.fromhex(raw[2:] if raw.startswith("0x") else raw)
            payload = payload[: 32 * len(output_types)]
            return tuple(decode(list(output_types), payload))
        except (DecodingError, ValueError, TypeError, AttributeError) as e:
            raise ChainCallError(
                self.network, signature, f"cannot decode result {raw!r}: {e}"
            ) from e

    async def get_logs(
        self,
        address: str,
        topics: list[str | None],
        from_block: str = "0x0",
        to_block: str = "latest",
    ) -> list[dict[str, Any]]:
        """Fetch event logs emitted by ``address`` matching ``topics``."""
        result = await self.rpc_call(
            "eth_getLogs",
            [
                {
                    "address": address,
                    "topics": topics,
                    "fromBlock": from_block,
                    "toBlock": to_block,
                }
            ],
        )
        if not isinstance(result, list):
            raise ChainCallError(self.network, "eth_getLogs", "malformed log list")
        return result
