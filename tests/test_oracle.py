from typing import List

import pytest

from conftest import AMOUNT_TO_MINT, ETH_USD, ETH_USD_PRICE, USER, WETH
from mithril.clock import Clock
from mithril.constants import TIMEOUT
from mithril.db import Quote
from mithril.errors import InvalidPrice, StaleData
from mithril.oracle import MockPriceFeed, PriceOracle, QuotePriceFeed
from mithril.types import FeedId
from mithril.util import to_wei


def make_test_quotes_from_prices(prices: List[float]) -> List[Quote]:
    return [
        Quote(id=0, coin='', vs_currency='usd', timestamp=0, price=price)
        for price in prices
    ]


def test_get_latest_price(d):
    price, updated_at = d.engine.oracle.get_latest_price(ETH_USD)

    assert price == ETH_USD_PRICE
    assert updated_at == d.clock.now


def test_timeout_is_three_hours(d):
    assert d.engine.oracle.get_timeout() == TIMEOUT == 10800


def test_price_exactly_at_timeout_is_accepted(d):
    for _ in range(3):
        d.clock.step()

    assert d.clock.now == TIMEOUT
    price, _ = d.engine.oracle.get_latest_price(ETH_USD)
    assert price == ETH_USD_PRICE


def test_stale_price_is_rejected(d):
    for _ in range(4):
        d.clock.step()

    with pytest.raises(StaleData):
        d.engine.oracle.get_latest_price(ETH_USD)


def test_stale_price_freezes_the_engine(minted):
    d = minted
    for _ in range(4):
        d.clock.step()
    # Only one feed is refreshed, every account value still depends on both
    d.btc_usd.update_answer(d.btc_usd.latest_round_data().answer)

    with pytest.raises(StaleData):
        d.engine.get_usd_value(WETH, to_wei(1))
    with pytest.raises(StaleData):
        d.engine.get_token_amount_from_usd(WETH, to_wei(1))
    with pytest.raises(StaleData):
        d.engine.get_health_factor(USER)
    with pytest.raises(StaleData):
        d.engine.mint_msd(USER, AMOUNT_TO_MINT)
    with pytest.raises(StaleData):
        d.engine.redeem_collateral(USER, WETH, to_wei(1))

    assert d.engine.get_msd_minted(USER) == AMOUNT_TO_MINT
    assert d.msd.balance_of(USER) == AMOUNT_TO_MINT


def test_fresh_round_unfreezes_the_engine(minted):
    d = minted
    for _ in range(4):
        d.clock.step()
    d.eth_usd.update_answer(ETH_USD_PRICE)
    d.btc_usd.update_answer(d.btc_usd.latest_round_data().answer)

    d.engine.mint_msd(USER, AMOUNT_TO_MINT)

    assert d.engine.get_msd_minted(USER) == 2 * AMOUNT_TO_MINT


def test_mock_feed_opens_new_rounds():
    clock = Clock(periods=10)
    feed = MockPriceFeed(clock, 2000 * 10 ** 8)
    clock.step()
    feed.update_answer(1900 * 10 ** 8)

    round_data = feed.latest_round_data()
    assert round_data.round_id == 2
    assert round_data.answered_in_round == 2
    assert round_data.answer == 1900 * 10 ** 8
    assert round_data.updated_at == clock.now
    assert feed.decimals == 8


def test_non_positive_price_is_rejected():
    clock = Clock(periods=10)
    oracle = PriceOracle(clock=clock, feeds={FeedId("eth-usd"): MockPriceFeed(clock, 0)})

    with pytest.raises(InvalidPrice):
        oracle.get_latest_price(FeedId("eth-usd"))


def test_quote_feed_follows_the_clock():
    clock = Clock(periods=2)
    feed = QuotePriceFeed(clock, make_test_quotes_from_prices([2000.5, 1999.0]))

    assert feed.latest_round_data().answer == 200_050_000_000

    clock.step()

    round_data = feed.latest_round_data()
    assert round_data.answer == 199_900_000_000
    assert round_data.round_id == 2
    assert round_data.updated_at == clock.now


def test_quote_feed_needs_a_quote_per_period():
    clock = Clock(periods=3)

    with pytest.raises(AssertionError):
        QuotePriceFeed(clock, make_test_quotes_from_prices([1.0, 1.0]))


def test_quote_feed_keeps_the_last_quote_past_the_end():
    clock = Clock(periods=2)
    feed = QuotePriceFeed(clock, make_test_quotes_from_prices([2000.5, 1999.0]))
    oracle = PriceOracle(clock=clock, feeds={FeedId("eth-usd"): feed})

    while clock.step():
        pass
    clock.step()

    round_data = feed.latest_round_data()
    assert round_data.answer == 199_900_000_000
    assert round_data.round_id == 2
    assert round_data.updated_at == clock.time_at(1)
    assert oracle.get_latest_price(FeedId("eth-usd")) == (199_900_000_000, clock.time_at(1))

    # Three hours after the last quote the reading is still accepted, one more period is too late
    clock.step()
    assert clock.now - round_data.updated_at == TIMEOUT
    oracle.get_latest_price(FeedId("eth-usd"))

    clock.step()
    with pytest.raises(StaleData):
        oracle.get_latest_price(FeedId("eth-usd"))
