from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import tzinfo
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

USDC_CONTRACT = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
TRANSFER_SIGNATURE = "Transfer(address,address,uint256)"


@dataclass(frozen=True)
class Settings:
    insight_client_id: str
    insight_api_base: str
    token_contract: str
    event_signature: str
    token_decimals: int
    token_symbol: str
    recent_transfers_limit: int
    volume_chart_limit: int
    tx_count_chart_limit: int
    top_wallets_limit: int
    top_wallets_count: int
    http_timeout_seconds: float
    timezone: tzinfo | None
    log_level: str


def _optional_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def _positive_int(name: str, default: int) -> int:
    value = _optional_int(name, default)
    if value <= 0:
        raise ValueError(f"{name} must be a positive integer, got {value}")
    return value


def _optional_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


def _optional_timezone(name: str) -> tzinfo | None:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    return ZoneInfo(raw)


def load_settings() -> Settings:
    load_dotenv()
    client_id = os.getenv("INSIGHT_CLIENT_ID", "").strip()
    if not client_id:
        # Requests still go out; the API rejects them and views show the error.
        logger.warning("INSIGHT_CLIENT_ID is not set")

    return Settings(
        insight_client_id=client_id,
        insight_api_base=os.getenv("INSIGHT_API_BASE", "https://1.insight.thirdweb.com").strip(),
        token_contract=os.getenv("TOKEN_CONTRACT", USDC_CONTRACT).strip(),
        event_signature=os.getenv("EVENT_SIGNATURE", TRANSFER_SIGNATURE).strip(),
        token_decimals=_optional_int("TOKEN_DECIMALS", 6),
        token_symbol=os.getenv("TOKEN_SYMBOL", "USDC").strip(),
        recent_transfers_limit=_positive_int("RECENT_TRANSFERS_LIMIT", 10),
        volume_chart_limit=_positive_int("VOLUME_CHART_LIMIT", 2500),
        tx_count_chart_limit=_positive_int("TX_COUNT_CHART_LIMIT", 5000),
        top_wallets_limit=_positive_int("TOP_WALLETS_LIMIT", 2500),
        top_wallets_count=_positive_int("TOP_WALLETS_COUNT", 10),
        http_timeout_seconds=_optional_float("HTTP_TIMEOUT_SECONDS", 15.0),
        timezone=_optional_timezone("DASHBOARD_TIMEZONE"),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
    )
