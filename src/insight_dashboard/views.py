from __future__ import annotations

import itertools
import logging
import time
from abc import ABC, abstractmethod
from datetime import tzinfo
from typing import Any, Protocol

from .aggregate import aggregate_wallets, count_by_minute, sort_by_amount, volume_by_minute
from .decode import decode_events
from .errors import DashboardError
from .fetcher import EventQuery
from .formatting import (
    render_bar_chart,
    render_panel,
    render_transfers_table,
    render_view_status,
    render_wallets_table,
)
from .types import TransferEvent, ViewState

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    async def fetch(self, query: EventQuery) -> list[dict[str, Any]]: ...


class TransferView(ABC):
    """One dashboard panel: fetch a page of events, aggregate, render.

    ``refresh`` walks Idle/Ready/Failed -> Loading -> Ready|Failed. Every call
    draws a new request token; a response that completes after a newer refresh
    was issued is dropped so the panel always reflects the latest request.
    """

    name = "view"
    title = "Transfers"

    def __init__(
        self,
        fetcher: Fetcher,
        limit: int,
        decimals: int = 6,
        symbol: str = "USDC",
        tz: tzinfo | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.query = EventQuery(limit=limit)
        self.decimals = decimals
        self.symbol = symbol
        self.tz = tz
        self.state = ViewState.IDLE
        self.result: list[Any] = []
        self.error: str | None = None
        self.last_updated: float | None = None
        self.stale_discarded = 0
        self._tokens = itertools.count(1)
        self._latest_token = 0

    @property
    def is_loading(self) -> bool:
        return self.state is ViewState.LOADING

    @property
    def can_refresh(self) -> bool:
        return not self.is_loading

    async def refresh(self) -> bool:
        """Fetch and rebuild the result. Returns False if the outcome was dropped as stale."""
        token = next(self._tokens)
        self._latest_token = token
        self.state = ViewState.LOADING
        self.error = None

        try:
            records = await self.fetcher.fetch(self.query)
            events = decode_events(records, self.decimals)
            result = self._build(events)
        except DashboardError as exc:
            if token != self._latest_token:
                return self._discard(token)
            logger.warning("%s refresh failed: %s", self.name, exc)
            return self._fail(str(exc))
        except Exception as exc:
            if token != self._latest_token:
                return self._discard(token)
            logger.exception("%s refresh failed unexpectedly", self.name)
            return self._fail(f"Unexpected error: {exc}")

        if token != self._latest_token:
            return self._discard(token)
        self.result = result
        self.state = ViewState.READY
        self.last_updated = time.time()
        logger.info("%s refreshed rows=%d", self.name, len(result))
        return True

    def _fail(self, message: str) -> bool:
        self.result = []
        self.error = message
        self.state = ViewState.FAILED
        return True

    def _discard(self, token: int) -> bool:
        self.stale_discarded += 1
        logger.debug(
            "%s dropped stale response token=%d latest=%d", self.name, token, self._latest_token
        )
        return False

    @abstractmethod
    def _build(self, events: list[TransferEvent]) -> list[Any]: ...

    @abstractmethod
    def _render_result(self) -> str: ...

    def render(self) -> str:
        status = render_view_status(
            loading=self.is_loading or self.state is ViewState.IDLE,
            error=self.error,
            empty=not self.result,
        )
        return render_panel(self.title, status or self._render_result())


class RecentTransfersView(TransferView):
    name = "transfers"
    title = "Latest Transfers"

    def __init__(self, fetcher: Fetcher, limit: int = 10, **kwargs: Any) -> None:
        super().__init__(fetcher, limit, **kwargs)

    def _build(self, events: list[TransferEvent]) -> list[TransferEvent]:
        return sort_by_amount(events)

    def _render_result(self) -> str:
        return render_transfers_table(self.result, self.symbol, self.tz)


class VolumeChartView(TransferView):
    name = "volume"
    title = "Volume (per minute)"

    def __init__(self, fetcher: Fetcher, limit: int = 2500, **kwargs: Any) -> None:
        super().__init__(fetcher, limit, **kwargs)

    def _build(self, events: list[TransferEvent]) -> list[Any]:
        return volume_by_minute(events, self.tz)

    def _render_result(self) -> str:
        return render_bar_chart(self.result, self.symbol)


class TransactionCountView(TransferView):
    name = "transactions"
    title = "Total Transactions (per minute)"

    def __init__(self, fetcher: Fetcher, limit: int = 5000, **kwargs: Any) -> None:
        super().__init__(fetcher, limit, **kwargs)

    def _build(self, events: list[TransferEvent]) -> list[Any]:
        return count_by_minute(events, self.tz)

    def _render_result(self) -> str:
        return render_bar_chart(self.result, "transfers")


class TopWalletsView(TransferView):
    name = "wallets"
    title = "Top Volume (by wallet)"

    def __init__(
        self, fetcher: Fetcher, limit: int = 2500, top_n: int = 10, **kwargs: Any
    ) -> None:
        super().__init__(fetcher, limit, **kwargs)
        self.top_n = top_n

    def _build(self, events: list[TransferEvent]) -> list[Any]:
        return aggregate_wallets(events, self.top_n)

    def _render_result(self) -> str:
        return render_wallets_table(self.result, self.symbol)
