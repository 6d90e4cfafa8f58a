from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, tzinfo

from .types import TimeBucket, TransferEvent, WalletSummary


def short_address(address: str | None) -> str:
    if not address:
        return "Unknown"
    addr = address.strip()
    if len(addr) <= 12:
        return addr
    return f"{addr[:6]}...{addr[-4:]}"


def format_amount(value: float, fixed: bool = False) -> str:
    """Thousands-separated amount with two decimals.

    Without ``fixed`` trailing zeros are dropped, so ``1500.0`` reads ``1,500``.
    """
    text = f"{value:,.2f}"
    if fixed:
        return text
    return text.rstrip("0").rstrip(".")


def format_local_time(ts: int, tz: tzinfo | None = None) -> str:
    return datetime.fromtimestamp(ts, tz=tz).strftime("%Y-%m-%d %H:%M:%S")


def format_compact(value: float) -> str:
    if abs(value) >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if abs(value) >= 1_000:
        return f"{value / 1_000:.1f}K"
    return format_amount(value)


def render_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    widths = [len(h) for h in headers]
    for row in rows:
        for idx, cell in enumerate(row):
            widths[idx] = max(widths[idx], len(cell))

    def line(cells: Sequence[str]) -> str:
        return "  ".join(cell.ljust(widths[idx]) for idx, cell in enumerate(cells)).rstrip()

    out = [line(headers), "  ".join("-" * w for w in widths)]
    out.extend(line(row) for row in rows)
    return "\n".join(out)


def render_transfers_table(
    events: Sequence[TransferEvent], symbol: str = "USDC", tz: tzinfo | None = None
) -> str:
    rows = [
        (
            short_address(e.from_address),
            short_address(e.to_address),
            format_amount(e.amount, fixed=True),
            format_local_time(e.block_timestamp, tz),
        )
        for e in events
    ]
    return render_table(("From", "To", f"Amount ({symbol})", "Time"), rows)


def render_wallets_table(summaries: Sequence[WalletSummary], symbol: str = "USDC") -> str:
    rows = [
        (
            short_address(s.address),
            format_amount(s.total_amount),
            str(s.transfer_count),
            format_amount(s.average_amount),
        )
        for s in summaries
    ]
    return render_table(("Wallet", f"Total Volume ({symbol})", "Transfers", "Avg. Amount"), rows)


def render_bar_chart(buckets: Sequence[TimeBucket], unit: str, width: int = 40) -> str:
    if not buckets:
        return ""
    peak = max(b.value for b in buckets)
    lines: list[str] = []
    for bucket in buckets:
        size = round(bucket.value / peak * width) if peak > 0 else 0
        lines.append(f"{bucket.label} | {'#' * size} {format_compact(bucket.value)} {unit}".rstrip())
    return "\n".join(lines)


def render_view_status(loading: bool, error: str | None, empty: bool) -> str | None:
    if loading:
        return "Loading transfer data..."
    if error:
        return f"Error: {error}"
    if empty:
        return "No transfer data available"
    return None


def render_panel(title: str, body: str) -> str:
    return f"== {title} ==\n{body}"
