"""Per-user out-of-range alert batching with a notification cooldown."""
from __future__ import annotations

import logging

from ..interfaces.notifier import Notifier
from ..models import OutOfRangeEntry
from .state import MonitorState

logger = logging.getLogger(__name__)


def render_alert(username: str, entries: list[OutOfRangeEntry]) -> str:
    """Human-readable summary, one block per out-of-range position."""
    blocks = [
        f"Hello {username},\n"
        f"The following liquidity pool positions are out of range:"
    ]
    for e in sorted(
        entries, key=lambda e: (e.network, e.address, len(e.token_id), e.token_id)
    ):
        blocks.append(
            f"Network: {e.network}\n"
            f"Protocol: {e.protocol}\n"
            f"Address: {e.address}\n"
            f"Proxy Wallet: {e.proxy_wallet}\n"
            f"Token ID: {e.token_id}\n"
            f"Pool: {e.token0}/{e.token1}\n"
            f"Tick Range: {e.tick_lower} to {e.tick_upper}\n"
            f"Current Tick: {e.current_tick}"
        )
    return "\n\n".join(blocks) + "\n"


class AlertDispatcher:
    """Send at most one batched alert per user per cooldown window."""

    def __init__(self, notifier: Notifier, cooldown: float) -> None:
        self._notifier = notifier
        self._cooldown = cooldown

    async def dispatch(self, state: MonitorState, now: float) -> list[str]:
        """Notify every due user with live entries; return who was notified.

        Cooldowns are recorded only for successful sends, so a failed user
        stays eligible on the next sweep.
        """
        notified: list[str] = []

        for username, entries in sorted(state.entries_by_user().items()):
            if not entries:
                continue
            if not state.due_for_notification(username, now, self._cooldown):
                logger.info(
                    "Skipping notification for %s: already notified within cooldown",
                    username,
                )
                continue

            destination = max(entries, key=lambda e: e.detected_at).chat_id
            message = render_alert(username, entries)

            try:
                sent = await self._notifier.send_message(destination, message)
            except Exception as e:
                logger.error("Failed to send notification to %s: %s", username, e)
                continue

            if not sent:
                logger.error(
                    "Notification to %s (%s) was not delivered", username, destination
                )
                continue

            state.record_sent(username, now)
            notified.append(username)
            logger.info(
                "Notification sent to %s (%s): %d positions",
                username,
                destination,
                len(entries),
            )

        return notified
