from .client import ChainCallError, EvmClient
from .gateway import EvmGateway

__all__ = ["ChainCallError", "EvmClient", "EvmGateway"]
