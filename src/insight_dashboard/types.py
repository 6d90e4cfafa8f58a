from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class TransferEvent:
    block_timestamp: int
    transaction_hash: str
    amount_raw: int
    amount: float
    from_address: str
    to_address: str


@dataclass
class WalletSummary:
    address: str
    total_amount: float = 0.0
    transfer_count: int = 0
    average_amount: float = 0.0

    def add(self, amount: float) -> None:
        self.total_amount += amount
        self.transfer_count += 1
        self.average_amount = self.total_amount / self.transfer_count


@dataclass(frozen=True)
class TimeBucket:
    label: str
    value: float

    @property
    def minute_of_day(self) -> int:
        hour, minute = self.label.split(":")
        return int(hour) * 60 + int(minute)


class ViewState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"
