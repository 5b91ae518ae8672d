from typing import Dict, List, Tuple

from mithril.clock import Clock
from mithril.constants import FEED_DECIMALS, TIMEOUT
from mithril.db import Quote
from mithril.errors import InvalidPrice, StaleData
from mithril.types import FeedId, Price, RoundData, Timestamp


class PriceFeed:
    decimals: int = FEED_DECIMALS

    def latest_round_data(self) -> RoundData:
        ...


class MockPriceFeed(PriceFeed):
    """
    Feed with a manually set answer. Every update opens a new round stamped
    with the current clock time.
    """
    clock: Clock
    rounds: List[RoundData]

    def __init__(self, clock: Clock, answer: Price):
        self.clock = clock
        self.rounds = []
        self.update_answer(answer)

    def update_answer(self, answer: Price) -> None:
        round_id = len(self.rounds) + 1
        self.rounds.append(
            RoundData(
                round_id=round_id,
                answer=answer,
                started_at=self.clock.now,
                updated_at=self.clock.now,
                answered_in_round=round_id,
            )
        )

    def latest_round_data(self) -> RoundData:
        return self.rounds[-1]


class QuotePriceFeed(PriceFeed):
    """
    Replays a historical USD quote series, one quote per clock period.
    Past the end of the series the last quote keeps its own timestamp, so it
    goes stale like any feed that stopped updating.
    """
    clock: Clock
    quotes: List[Quote]

    def __init__(self, clock: Clock, quotes: List[Quote]):
        assert len(quotes) >= clock.periods, "Quote series is shorter than the simulation"

        self.clock = clock
        self.quotes = quotes

    def latest_round_data(self) -> RoundData:
        t = min(self.clock.time, len(self.quotes) - 1)
        answer = Price(round(self.quotes[t].price * 10 ** self.decimals))
        return RoundData(
            round_id=t + 1,
            answer=answer,
            started_at=self.clock.time_at(t),
            updated_at=self.clock.time_at(t),
            answered_in_round=t + 1,
        )


class PriceOracle:
    """
    Reads price feeds and refuses readings older than TIMEOUT: it is safer to
    freeze every price dependent operation than to act on a stale price.
    """
    clock: Clock
    feeds: Dict[FeedId, PriceFeed]

    def __init__(self, clock: Clock, feeds: Dict[FeedId, PriceFeed]):
        self.clock = clock
        self.feeds = feeds

    def get_round_data(self, feed_id: FeedId) -> RoundData:
        round_data = self.feeds[feed_id].latest_round_data()

        seconds_since = self.clock.now - round_data.updated_at
        if seconds_since > TIMEOUT:
            raise StaleData(
                f"Price feed {feed_id} last updated {seconds_since}s ago (timeout {TIMEOUT}s)"
            )
        if round_data.answer <= 0:
            raise InvalidPrice(f"Price feed {feed_id} answered {round_data.answer}")

        return round_data

    def get_latest_price(self, feed_id: FeedId) -> Tuple[Price, Timestamp]:
        round_data = self.get_round_data(feed_id)
        return round_data.answer, round_data.updated_at

    def get_timeout(self) -> int:
        return TIMEOUT
