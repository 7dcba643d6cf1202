"""Position source protocol: discovery of position ids held by a wallet."""
from typing import Protocol


class PositionSource(Protocol):
    """Strategy for listing the position token ids owned by a wallet."""

    async def list_token_ids(self, wallet: str) -> list[int]: ...
