"""In/out-of-range decision for a position against its pool's tick."""
from __future__ import annotations

from ..interfaces.chain import ChainGateway
from ..models import PositionRecord, RangeCheck


def is_in_range(tick_lower: int, tick_upper: int, current_tick: int) -> bool:
    return tick_lower <= current_tick <= tick_upper


class RangeEvaluator:
    def __init__(self, gateway: ChainGateway) -> None:
        self._gateway = gateway

    async def evaluate(self, position: PositionRecord, pool: str) -> RangeCheck | None:
        """Compare the pool tick to the position bounds.

        Returns ``None`` for closed positions (zero liquidity) without
        touching the chain.
        """
        if not position.is_active:
            return None
        tick = await self._gateway.get_current_tick(pool)
        return RangeCheck(
            current_tick=tick,
            in_range=is_in_range(position.tick_lower, position.tick_upper, tick),
        )
