from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from .config import Settings
from .fetcher import EventFetcher
from .views import (
    Fetcher,
    RecentTransfersView,
    TopWalletsView,
    TransactionCountView,
    TransferView,
    VolumeChartView,
)

logger = logging.getLogger(__name__)


@dataclass
class Metrics:
    refreshes_started: int = 0
    refreshes_ready: int = 0
    refreshes_failed: int = 0
    refreshes_skipped: int = 0
    stale_discarded: int = 0


class Dashboard:
    def __init__(self, settings: Settings, fetcher: Fetcher | None = None) -> None:
        self.settings = settings
        self.metrics = Metrics()
        self._owned_fetcher: EventFetcher | None = None
        if fetcher is None:
            fetcher = self._owned_fetcher = EventFetcher(
                api_base=settings.insight_api_base,
                client_id=settings.insight_client_id,
                contract_address=settings.token_contract,
                event_signature=settings.event_signature,
                timeout=settings.http_timeout_seconds,
            )
        self.fetcher = fetcher

        common = {
            "decimals": settings.token_decimals,
            "symbol": settings.token_symbol,
            "tz": settings.timezone,
        }
        self.views: dict[str, TransferView] = {
            view.name: view
            for view in (
                VolumeChartView(fetcher, settings.volume_chart_limit, **common),
                RecentTransfersView(fetcher, settings.recent_transfers_limit, **common),
                TopWalletsView(
                    fetcher,
                    settings.top_wallets_limit,
                    top_n=settings.top_wallets_count,
                    **common,
                ),
                TransactionCountView(fetcher, settings.tx_count_chart_limit, **common),
            )
        }

    async def close(self) -> None:
        if self._owned_fetcher is not None:
            await self._owned_fetcher.close()

    async def refresh(self, name: str) -> bool:
        """Manual refresh of one view. Refused while that view is still loading."""
        view = self.views.get(name)
        if view is None:
            raise KeyError(f"Unknown view: {name}")
        if not view.can_refresh:
            self.metrics.refreshes_skipped += 1
            logger.info("%s is still loading, refresh ignored", name)
            return False
        await self._refresh_view(view)
        return True

    async def refresh_all(self) -> None:
        await asyncio.gather(*(self.refresh(name) for name in self.views))
        self._log_metrics()

    async def _refresh_view(self, view: TransferView) -> None:
        self.metrics.refreshes_started += 1
        applied = await view.refresh()
        if not applied:
            self.metrics.stale_discarded += 1
        elif view.error:
            self.metrics.refreshes_failed += 1
        else:
            self.metrics.refreshes_ready += 1

    def render(self) -> str:
        return "\n\n".join(view.render() for view in self.views.values())

    async def run(
        self,
        prompt: Callable[[str], Awaitable[str]],
        output: Callable[[str], None],
    ) -> None:
        await self.refresh_all()
        output(self.render())
        names = ", ".join(self.views)
        while True:
            command = (await prompt(f"[Enter] refresh all, {names}, or q to quit > ")).strip()
            if command.lower() in ("q", "quit", "exit"):
                return
            if not command:
                await self.refresh_all()
            elif command in self.views:
                await self.refresh(command)
            else:
                output(f"Unknown command: {command}")
                continue
            output(self.render())

    def _log_metrics(self) -> None:
        logger.info(
            (
                "refresh started=%d ready=%d failed=%d "
                "skipped=%d stale_discarded=%d"
            ),
            self.metrics.refreshes_started,
            self.metrics.refreshes_ready,
            self.metrics.refreshes_failed,
            self.metrics.refreshes_skipped,
            self.metrics.stale_discarded,
        )
