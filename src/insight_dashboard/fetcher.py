from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from .errors import EmptyResponse, MalformedEvent, NetworkError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EventQuery:
    limit: int
    sort_by: str = "block_number"
    sort_order: str = "desc"

    def __post_init__(self) -> None:
        if isinstance(self.limit, bool) or not isinstance(self.limit, int) or self.limit <= 0:
            raise ValueError(f"limit must be a positive integer, got {self.limit!r}")
        if self.sort_order not in ("asc", "desc"):
            raise ValueError(f"sort_order must be 'asc' or 'desc', got {self.sort_order!r}")

    def params(self) -> dict[str, Any]:
        return {"sort_by": self.sort_by, "sort_order": self.sort_order, "limit": self.limit}


def build_events_url(
    api_base: str, client_id: str, contract_address: str, event_signature: str
) -> str:
    # Signature keeps its parentheses and commas, the API matches on them verbatim.
    signature = quote(event_signature, safe="(),")
    return f"{api_base.rstrip('/')}/v1/{client_id}/events/{contract_address}/{signature}"


class EventFetcher:
    def __init__(
        self,
        api_base: str,
        client_id: str,
        contract_address: str,
        event_signature: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 15.0,
    ) -> None:
        self.url = build_events_url(api_base, client_id, contract_address, event_signature)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch(self, query: EventQuery) -> list[dict[str, Any]]:
        logger.debug("Fetching events from %s limit=%d", self.url, query.limit)
        try:
            resp = await self._client.get(self.url, params=query.params())
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPStatusError as exc:
            raise NetworkError(
                f"Events API returned HTTP {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise NetworkError(f"Events API request failed: {exc}") from exc
        except ValueError as exc:
            raise NetworkError("Events API returned a non-JSON body") from exc

        rows = payload.get("data") if isinstance(payload, dict) else None
        if not rows:
            raise EmptyResponse("No transfer data received")
        if not isinstance(rows, list):
            raise MalformedEvent(f"Expected a list of events, got {type(rows).__name__}")

        logger.info("Fetched %d events (limit=%d)", len(rows), query.limit)
        return rows
