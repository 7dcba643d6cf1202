"""Sweep orchestration — iterates users x addresses x networks."""
from __future__ import annotations

import asyncio
import logging
import time
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from ..chains.evm import EvmClient, EvmGateway
from ..config import AppConfig, NetworkConfig
from ..interfaces.chain import ChainGateway
from ..interfaces.notifier import Notifier
from ..interfaces.pool_locator import PoolLocator
from ..interfaces.position_source import PositionSource
from ..models import EntryKey, MonitoredTarget, OutOfRangeEntry, SweepSummary
from ..notifications import LogNotifier, TelegramNotifier
from .alerts import AlertDispatcher
from .enumerator import PositionEnumerator
from .pool_locator import build_pool_locator
from .range_evaluator import RangeEvaluator
from .resolver import ProxyWalletResolver
from .state import MonitorState, StateStore

logger = logging.getLogger(__name__)


@dataclass
class NetworkServices:
    """Per-network collaborators built once at startup."""

    config: NetworkConfig
    gateway: ChainGateway
    resolver: ProxyWalletResolver
    enumerator: PositionSource
    pool_locator: PoolLocator
    evaluator: RangeEvaluator

    @classmethod
    def build(cls, config: NetworkConfig) -> NetworkServices:
        gateway = EvmGateway(
            EvmClient(config), config.contracts, config.proxy_lookup_function
        )
        return cls.for_gateway(config, gateway)

    @classmethod
    def for_gateway(cls, config: NetworkConfig, gateway: ChainGateway) -> NetworkServices:
        return cls(
            config=config,
            gateway=gateway,
            resolver=ProxyWalletResolver(gateway),
            enumerator=PositionEnumerator.for_gateway(gateway),
            pool_locator=build_pool_locator(config, gateway),
            evaluator=RangeEvaluator(gateway),
        )


class Monitor:
    """Runs sweeps over every configured target and dispatches alerts."""

    def __init__(
        self,
        config: AppConfig,
        store: StateStore | None = None,
        notifier: Notifier | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._clock = clock
        self._store = store or StateStore(Path(config.monitor.state_file))

        self._networks: dict[str, NetworkServices] = {
            name: NetworkServices.build(net_cfg)
            for name, net_cfg in config.networks.items()
        }

        if notifier is None:
            if config.notifications.telegram.enabled:
                notifier = TelegramNotifier(config.notifications.telegram)
            else:
                logger.warning("Telegram notifications disabled, alerts go to the log")
                notifier = LogNotifier()
        self._alerts = AlertDispatcher(notifier, config.monitor.cooldown_seconds)

    @property
    def store(self) -> StateStore:
        return self._store

    def targets(self) -> list[MonitoredTarget]:
        """Every (user, address, network) combination to check."""
        return [
            MonitoredTarget(
                username=user.username,
                chat_id=user.chat_id,
                address=address,
                network=name,
                protocol=services.config.protocol,
            )
            for user in self._config.users
            for address in user.addresses
            for name, services in self._networks.items()
        ]

    # ------------------------------------------------------------------
    # Core workflows
    # ------------------------------------------------------------------

    async def run_sweep(self) -> SweepSummary:
        """Check all targets, evict stale entries, notify, persist state.

        Chain and notification failures are contained per unit of work; only
        a failure to persist the state propagates.
        """
        now = self._clock()
        logger.info("Starting sweep over %d networks", len(self._networks))

        state = self._store.load()
        stats: Counter[str] = Counter()
        targets = self.targets()

        await asyncio.gather(
            *(self._check_target(target, state, now, stats) for target in targets)
        )

        evicted = state.evict_stale(now, self._config.monitor.retention_seconds)
        if evicted:
            logger.info("Evicted %d stale out-of-range entries", evicted)

        notified = await self._alerts.dispatch(state, now)

        self._store.save(state)

        summary = SweepSummary(
            started_at=now,
            units=len(targets),
            units_failed=stats["units_failed"],
            positions_checked=stats["positions_checked"],
            positions_failed=stats["positions_failed"],
            out_of_range=stats["out_of_range"],
            cleared=stats["cleared"],
            evicted=evicted,
            notified=tuple(notified),
        )
        logger.info(
            "Sweep finished: %d units (%d failed), %d positions checked "
            "(%d failed), %d out of range, %d cleared, %d evicted, %d notified",
            summary.units,
            summary.units_failed,
            summary.positions_checked,
            summary.positions_failed,
            summary.out_of_range,
            summary.cleared,
            summary.evicted,
            len(summary.notified),
        )
        return summary

    async def _check_target(
        self,
        target: MonitoredTarget,
        state: MonitorState,
        now: float,
        stats: Counter[str],
    ) -> None:
        services = self._networks[target.network]
        try:
            proxy_wallet = await services.resolver.resolve(target.address)
            if proxy_wallet is None:
                logger.info(
                    "No proxy wallet for %s on %s", target.address, target.network
                )
                return

            token_ids = await services.enumerator.list_token_ids(proxy_wallet)
            if not token_ids:
                logger.info(
                    "No LP positions for %s on %s", proxy_wallet, target.network
                )
                return
        except Exception as e:
            stats["units_failed"] += 1
            logger.error(
                "Error on %s for %s (user %s): %s",
                target.network,
                target.address,
                target.username,
                e,
            )
            return

        await asyncio.gather(
            *(
                self._check_position(
                    target, services, proxy_wallet, token_id, state, now, stats
                )
                for token_id in token_ids
            )
        )

    async def _check_position(
        self,
        target: MonitoredTarget,
        services: NetworkServices,
        proxy_wallet: str,
        token_id: int,
        state: MonitorState,
        now: float,
        stats: Counter[str],
    ) -> None:
        try:
            position = await services.gateway.get_position(token_id)
            if not position.is_active:
                logger.info("Position %s has zero liquidity, skipping", token_id)
                return

            pool = await services.pool_locator.locate(
                position.token0, position.token1, position.fee
            )
            check = await services.evaluator.evaluate(position, pool)
        except Exception as e:
            stats["positions_failed"] += 1
            logger.error(
                "Error checking position %s on %s for %s (user %s): %s",
                token_id,
                target.network,
                target.address,
                target.username,
                e,
            )
            return

        stats["positions_checked"] += 1
        if check is None:
            return

        key = EntryKey(target.username, target.address, target.network, str(token_id))
        if check.in_range:
            if state.clear_in_range(key):
                stats["cleared"] += 1
                logger.info(
                    "Back in range: %s, %s, %s, token %s",
                    target.username,
                    target.address,
                    target.network,
                    token_id,
                )
            return

        stats["out_of_range"] += 1
        logger.info(
            "Out of range: %s, %s, %s, %s, token %s (tick %d not in [%d, %d])",
            target.username,
            target.address,
            target.network,
            target.protocol,
            token_id,
            check.current_tick,
            position.tick_lower,
            position.tick_upper,
        )
        state.upsert_out_of_range(
            OutOfRangeEntry(
                username=target.username,
                chat_id=target.chat_id,
                address=target.address,
                network=target.network,
                protocol=target.protocol,
                proxy_wallet=proxy_wallet,
                token_id=str(token_id),
                token0=position.token0,
                token1=position.token1,
                fee=position.fee,
                tick_lower=position.tick_lower,
                tick_upper=position.tick_upper,
                current_tick=check.current_tick,
                detected_at=now,
            )
        )

    async def run_continuous(self, check_interval_minutes: int | None = None) -> None:
        """Run a sweep every interval until cancelled."""
        interval = check_interval_minutes or self._config.monitor.check_interval_minutes
        logger.info("Starting continuous monitoring (sweeping every %d minutes)", interval)

        while True:
            try:
                await self.run_sweep()
            except Exception as e:
                logger.error("Sweep failed: %s", e)
            await asyncio.sleep(interval * 60)
