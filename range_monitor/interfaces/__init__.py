"""Protocol interfaces for the LP range monitor."""
from .chain import ChainGateway
from .notifier import Notifier
from .pool_locator import PoolLocator
from .position_source import PositionSource

__all__ = ["ChainGateway", "Notifier", "PoolLocator", "PositionSource"]
