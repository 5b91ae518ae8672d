import logging
import time
from decimal import Decimal
from typing import Iterable, List, Set, Union

import names

from mithril.constants import DB_URL, PRECISION, SECONDS_IN_AN_HOUR, VS_CURRENCY
from mithril.crawlers.coingecko import (
    coin_ids,
    market_chart_range,
)
from mithril.db import drop_all, init_db, Quote
from mithril.types import (
    Currency,
    Timestamp,
)


class Percent:
    def __init__(self, percentage: int):
        self.percentage = percentage

    def of(self, total: int) -> int:
        return self.percentage * total // 100


def to_wei(amount: Union[int, float, str, Decimal]) -> int:
    """Converts a human readable amount to 18-decimal fixed point."""
    return int(Decimal(str(amount)) * PRECISION)


def from_wei(amount: int) -> float:
    return amount / PRECISION


def download_price_data(token: Currency, hours: int, url: str = DB_URL) -> None:
    logging.info(f"Download {hours} price points for {token}")
    valid_coin_ids = list(coin_ids())
    valid_coin_ids_msg = f"Coin should be one of {valid_coin_ids}"

    assert token in valid_coin_ids, valid_coin_ids_msg

    now = Timestamp(int(time.time()))
    prices = market_chart_range(
        coin_id=token,
        vs_currency=Currency(VS_CURRENCY),
        from_timestamp=now - hours * SECONDS_IN_AN_HOUR,
        to_timestamp=now,
    )

    quotes = [
        Quote(coin=token, vs_currency=VS_CURRENCY, timestamp=timestamp, price=price)
        for timestamp, price in prices
    ]

    db = init_db(url)

    for quote in quotes:
        db.add(quote)

    db.commit()
    db.close()


def init_price_db(tokens: Iterable[Currency], hours: int, url: str = DB_URL):
    db = init_db(url)

    if not all(
        db.query(Quote).filter(Quote.coin == token).count() >= hours for token in tokens
    ):
        db.close()
        drop_all(url)
        for token in tokens:
            download_price_data(token, hours, url)
        db = init_db(url)

    return db


def make_account_names(n: int) -> Set[str]:
    account_names = set()
    while len(account_names) < n:
        name = names.get_full_name()
        account_names.add(name)

    return account_names


def read_quotes_from_db(db, token: Currency, hours: int) -> List[Quote]:
    return list(
        db.query(Quote).filter(Quote.coin == token).order_by(Quote.timestamp).all()
    )[-hours:]
