import asyncio
from datetime import timezone

import pytest

from insight_dashboard.errors import EmptyResponse, NetworkError
from insight_dashboard.types import ViewState
from insight_dashboard.views import (
    RecentTransfersView,
    TopWalletsView,
    TransactionCountView,
    TransferView,
    VolumeChartView,
)

A = "0x" + "aa" * 20
B = "0x" + "bb" * 20


def _topic(address: str) -> str:
    return "0x" + "0" * 24 + address[2:]


def _record(amount: int, ts: int = 1730000000, sender: str = A, receiver: str = B) -> dict:
    return {
        "block_timestamp": ts,
        "transaction_hash": f"0x{amount:x}",
        "data": hex(amount * 10**6),
        "topics": ["0xddf252ad", _topic(sender), _topic(receiver)],
    }


class DummyFetcher:
    def __init__(self, rows=None, error: Exception | None = None) -> None:
        self.rows = rows or []
        self.error = error
        self.queries = []

    async def fetch(self, query):
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return self.rows


class GatedFetcher:
    def __init__(self, responses) -> None:
        self.responses = responses
        self.gates = []

    async def fetch(self, query):
        gate = asyncio.Event()
        index = len(self.gates)
        self.gates.append(gate)
        await gate.wait()
        response = self.responses[index]
        if isinstance(response, Exception):
            raise response
        return response


def test_recent_transfers_sorted_by_amount() -> None:
    fetcher = DummyFetcher([_record(5), _record(50), _record(20)])
    view = RecentTransfersView(fetcher, tz=timezone.utc)

    assert view.state is ViewState.IDLE
    asyncio.run(view.refresh())

    assert fetcher.queries[0].limit == 10
    assert view.state is ViewState.READY
    assert [e.amount for e in view.result] == [50, 20, 5]
    assert "50.00" in view.render()


def test_volume_and_count_views_bucket_by_minute() -> None:
    rows = [_record(3, 1730000010), _record(4, 1730000020), _record(1, 1730000070)]
    volume = VolumeChartView(DummyFetcher(rows), tz=timezone.utc)
    count = TransactionCountView(DummyFetcher(rows), tz=timezone.utc)

    asyncio.run(volume.refresh())
    asyncio.run(count.refresh())

    assert [(b.label, b.value) for b in volume.result] == [("03:33", 7), ("03:34", 1)]
    assert [(b.label, b.value) for b in count.result] == [("03:33", 2), ("03:34", 1)]
    assert volume.query.limit == 2500
    assert count.query.limit == 5000


def test_top_wallets_view() -> None:
    view = TopWalletsView(DummyFetcher([_record(10), _record(30)]), top_n=1)
    asyncio.run(view.refresh())

    assert len(view.result) == 1
    assert view.result[0].total_amount == 40
    assert "Top Volume" in view.render()


def test_empty_response_sets_failed_state() -> None:
    view = TopWalletsView(DummyFetcher(error=EmptyResponse("No transfer data received")))
    asyncio.run(view.refresh())

    assert view.state is ViewState.FAILED
    assert view.result == []
    assert view.error == "No transfer data received"
    assert "Error: No transfer data received" in view.render()


def test_malformed_record_fails_without_partial_result() -> None:
    bad = _record(1)
    bad["topics"] = bad["topics"][:2]
    view = TopWalletsView(DummyFetcher([_record(10), bad]))
    asyncio.run(view.refresh())

    assert view.state is ViewState.FAILED
    assert view.result == []
    assert "Event #1" in view.error


def test_failure_clears_previous_result() -> None:
    fetcher = DummyFetcher([_record(10)])
    view = RecentTransfersView(fetcher)
    asyncio.run(view.refresh())
    assert view.result

    fetcher.error = NetworkError("Events API returned HTTP 500")
    asyncio.run(view.refresh())

    assert view.state is ViewState.FAILED
    assert view.result == []


def test_out_of_order_response_is_discarded() -> None:
    fetcher = GatedFetcher([[_record(1)], [_record(99)]])
    view = RecentTransfersView(fetcher)

    async def scenario():
        first = asyncio.create_task(view.refresh())
        await asyncio.sleep(0)
        second = asyncio.create_task(view.refresh())
        await asyncio.sleep(0)
        assert view.is_loading

        fetcher.gates[1].set()
        assert await second is True
        fetcher.gates[0].set()
        assert await first is False

    asyncio.run(scenario())

    assert view.state is ViewState.READY
    assert [e.amount for e in view.result] == [99]
    assert view.stale_discarded == 1


def test_stale_failure_does_not_override_newer_result() -> None:
    fetcher = GatedFetcher([NetworkError("boom"), [_record(7)]])
    view = RecentTransfersView(fetcher)

    async def scenario():
        first = asyncio.create_task(view.refresh())
        await asyncio.sleep(0)
        second = asyncio.create_task(view.refresh())
        await asyncio.sleep(0)
        fetcher.gates[1].set()
        await second
        fetcher.gates[0].set()
        assert await first is False

    asyncio.run(scenario())

    assert view.error is None
    assert view.state is ViewState.READY


def test_oversized_amount_fails_and_allows_retry() -> None:
    huge = _record(1)
    huge["data"] = "0x" + "f" * 300
    view = TopWalletsView(DummyFetcher([huge]))
    asyncio.run(view.refresh())

    assert view.state is ViewState.FAILED
    assert view.can_refresh
    assert view.result == []


def test_unexpected_error_is_reduced_to_failed_state() -> None:
    view = VolumeChartView(DummyFetcher(error=RuntimeError("socket closed")))
    asyncio.run(view.refresh())

    assert view.state is ViewState.FAILED
    assert view.can_refresh
    assert view.error == "Unexpected error: socket closed"
    assert "Error: Unexpected error: socket closed" in view.render()


def test_view_without_build_cannot_be_created() -> None:
    class Incomplete(TransferView):
        def _render_result(self) -> str:
            return ""

    with pytest.raises(TypeError):
        Incomplete(DummyFetcher(), limit=10)
