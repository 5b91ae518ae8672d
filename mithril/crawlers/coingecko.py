# CoinGecko API crawler
# https://www.coingecko.com/en/api/documentation
import logging
from datetime import datetime, timezone
from typing import Iterable, List, Tuple

import requests

from mithril.constants import SECONDS_IN_A_DAY
from mithril.types import Currency, Timestamp


COINGEKO_BASE_URL = "https://api.coingecko.com/api/v3"


def coin_ids() -> Iterable[str]:
    response = requests.get(f"{COINGEKO_BASE_URL}/coins/list")
    response.raise_for_status()
    for coin in response.json():
        yield coin["id"]


def _format_timestamp(timestamp: Timestamp) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def market_chart_range(
    coin_id: Currency,
    vs_currency: Currency,
    from_timestamp: Timestamp,
    to_timestamp: Timestamp,
) -> List[Tuple[Timestamp, float]]:
    """
    Returns (timestamp in seconds, USD price) samples sorted by time.
    Requests are split in 30 days chunks so that CoinGecko keeps an hourly granularity.
    """
    days = int((to_timestamp - from_timestamp) / SECONDS_IN_A_DAY)
    days_per_api_call = 30
    periods = (
        int(days / days_per_api_call) + 1
    )  # Add an extra chunk to also download the rest
    date_ranges = [
        (
            from_timestamp + (n * days_per_api_call * SECONDS_IN_A_DAY),
            min(to_timestamp, from_timestamp + ((n + 1) * days_per_api_call * SECONDS_IN_A_DAY)),
        )
        for n in range(periods)
    ]

    prices = {}  # Keyed by timestamp to drop duplicate samples at chunk edges
    for start, end in date_ranges:
        logging.info(
            f"Downloading {coin_id} prices {_format_timestamp(start)} => {_format_timestamp(end)}"
        )
        response = requests.get(
            f"{COINGEKO_BASE_URL}/coins/{coin_id}/market_chart/range",
            params={"vs_currency": vs_currency, "from": start, "to": end},
        )
        response.raise_for_status()
        data = response.json()
        # CoinGecko timestamps are in milliseconds
        prices.update({Timestamp(timestamp // 1000): price for timestamp, price in data["prices"]})

    return sorted(prices.items(), key=lambda x: x[0])
