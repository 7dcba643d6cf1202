"""Out-of-range dedup state and per-user notification cooldowns.

The whole document is read once at sweep start and replaced atomically at
sweep end. Two overlapping sweeps race: the one that saves last wins and the
other's updates are lost. Sweeps are expected to run one at a time.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
from collections import defaultdict
from pathlib import Path
from typing import Any

from ..models import EntryKey, OutOfRangeEntry

logger = logging.getLogger(__name__)


class MonitorState:
    """In-memory view of the persisted state document."""

    def __init__(
        self,
        entries: list[OutOfRangeEntry] | None = None,
        last_notified: dict[str, float] | None = None,
    ) -> None:
        self._entries: dict[EntryKey, OutOfRangeEntry] = {}
        for entry in entries or []:
            self.upsert_out_of_range(entry)
        self.last_notified: dict[str, float] = dict(last_notified or {})

    @property
    def entries(self) -> list[OutOfRangeEntry]:
        return list(self._entries.values())

    def get(self, key: EntryKey) -> OutOfRangeEntry | None:
        return self._entries.get(key)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def upsert_out_of_range(self, entry: OutOfRangeEntry) -> None:
        """Insert or replace the entry for its key; timestamps never go back."""
        existing = self._entries.get(entry.key)
        if existing is not None and existing.detected_at > entry.detected_at:
            entry = OutOfRangeEntry(
                **{**entry.to_dict(), "detected_at": existing.detected_at}
            )
        self._entries[entry.key] = entry

    def clear_in_range(self, key: EntryKey) -> bool:
        """Drop the entry for ``key``; returns whether one existed."""
        return self._entries.pop(key, None) is not None

    def evict_stale(self, now: float, max_age: float) -> int:
        """Remove entries older than ``max_age`` seconds, in range or not."""
        stale = [k for k, e in self._entries.items() if now - e.detected_at > max_age]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def due_for_notification(self, username: str, now: float, cooldown: float) -> bool:
        last = self.last_notified.get(username)
        return last is None or now - last >= cooldown

    def record_sent(self, username: str, now: float) -> None:
        self.last_notified[username] = now

    def entries_by_user(self) -> dict[str, list[OutOfRangeEntry]]:
        grouped: dict[str, list[OutOfRangeEntry]] = defaultdict(list)
        for entry in self._entries.values():
            grouped[entry.username].append(entry)
        return dict(grouped)

    def to_dict(self) -> dict[str, Any]:
        return {
            "out_of_range": [e.to_dict() for e in self._entries.values()],
            "last_notified": dict(self.last_notified),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> MonitorState:
        entries = [OutOfRangeEntry.from_dict(e) for e in raw.get("out_of_range", [])]
        last_notified = {
            str(user): float(ts) for user, ts in raw.get("last_notified", {}).items()
        }
        return cls(entries, last_notified)


class StateStore:
    """JSON file persistence for ``MonitorState``."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> MonitorState:
        """Read the state document; any read problem yields an empty state."""
        if not self.path.exists():
            logger.info("No state file at %s, starting empty", self.path)
            return MonitorState()

        try:
            with open(self.path) as f:
                raw = json.load(f)
            if not isinstance(raw, dict):
                raise ValueError("state document is not an object")
            state = MonitorState.from_dict(raw)
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(
                "State file %s is unreadable (%s), starting empty", self.path, e
            )
            return MonitorState()

        logger.debug(
            "Loaded %d out-of-range entries and %d cooldown records",
            len(state),
            len(state.last_notified),
        )
        return state

    def save(self, state: MonitorState) -> None:
        """Replace the state document atomically (temp file + rename)."""
        payload = json.dumps(state.to_dict(), indent=2).encode("utf-8")
        parent = self.path.parent
        parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(parent)
        )
        tmp_file = Path(tmp_path)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_file, self.path)
        finally:
            if tmp_file.exists():
                tmp_file.unlink()

        logger.debug("Saved state to %s", self.path)
