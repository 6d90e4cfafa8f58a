from __future__ import annotations

import string
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from .errors import MalformedEvent
from .types import TransferEvent

TOPIC_LENGTH = 66
# A uint256 is at most 64 hex digits.
MAX_AMOUNT_DIGITS = 64
# "0x" plus 24 hex characters of left padding in front of a 20-byte address.
ADDRESS_OFFSET = 26

_HEX_DIGITS = frozenset(string.hexdigits)


def _is_hex(text: str) -> bool:
    return bool(text) and all(ch in _HEX_DIGITS for ch in text)


def decode_raw_amount(data: Any) -> int:
    if (
        not isinstance(data, str)
        or not _is_hex(data[2:])
        or len(data) - 2 > MAX_AMOUNT_DIGITS
    ):
        raise MalformedEvent(f"Invalid amount data: {data!r}")
    return int(data[2:], 16)


def decode_amount(data: Any, decimals: int = 6) -> float:
    return decode_raw_amount(data) / 10**decimals


def decode_address(topic: Any) -> str:
    if (
        not isinstance(topic, str)
        or len(topic) != TOPIC_LENGTH
        or not topic.startswith("0x")
        or not _is_hex(topic[2:])
    ):
        raise MalformedEvent(f"Invalid address topic: {topic!r}")
    return f"0x{topic[ADDRESS_OFFSET:].lower()}"


def decode_event(record: Any, decimals: int = 6) -> TransferEvent:
    if not isinstance(record, dict):
        raise MalformedEvent(f"Event record is not an object: {record!r}")

    topics = record.get("topics")
    if not isinstance(topics, list) or len(topics) < 3:
        raise MalformedEvent("Event is missing sender/receiver topics")

    try:
        timestamp = int(record["block_timestamp"])
        datetime.fromtimestamp(timestamp)
    except (KeyError, TypeError, ValueError, OverflowError, OSError) as exc:
        raise MalformedEvent(
            f"Invalid block_timestamp: {record.get('block_timestamp')!r}"
        ) from exc

    amount_raw = decode_raw_amount(record.get("data"))
    tx_hash = record.get("transaction_hash")

    return TransferEvent(
        block_timestamp=timestamp,
        transaction_hash=str(tx_hash) if tx_hash else "",
        amount_raw=amount_raw,
        amount=amount_raw / 10**decimals,
        from_address=decode_address(topics[1]),
        to_address=decode_address(topics[2]),
    )


def decode_events(records: Iterable[Any], decimals: int = 6) -> list[TransferEvent]:
    """Decode a batch of raw records.

    A single bad record fails the whole batch: views never render a partial
    table or chart.
    """
    events: list[TransferEvent] = []
    for index, record in enumerate(records):
        try:
            events.append(decode_event(record, decimals))
        except MalformedEvent as exc:
            raise MalformedEvent(f"Event #{index}: {exc}") from exc
    return events
