import functools
import logging
import sys
from random import gauss, uniform
from typing import Dict, List

from argparse import ArgumentParser

from mithril.borrower import Borrower
from mithril.clock import Clock
from mithril.constants import DB_URL, ENGINE_ACCOUNT
from mithril.crawlers.coingecko import (
    coin_ids,
)
from mithril.db import Quote
from mithril.engine import MithrilEngine
from mithril.liquidator import Liquidator
from mithril.metrics import (
    Metric,
    MetricsAggregatorLast,
    MetricsAggregatorSum,
    MetricsLogger,
    make_timeseries,
)
from mithril.mithril import Mithril
from mithril.oracle import PriceOracle, QuotePriceFeed
from mithril.simulation import Simulation
from mithril.tokens import StableCoin, TokenLedger
from mithril.types import Account, Currency, FeedId, Token
from mithril.util import (
    download_price_data,
    init_price_db,
    make_account_names,
    read_quotes_from_db,
    to_wei,
)


def setup_logger() -> None:
    root = logging.getLogger()
    root.setLevel(logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.INFO)
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    handler.setFormatter(formatter)
    root.addHandler(handler)


def run_crawler():
    """
    Download price data for coin `token` for the last `days` days from Coingeko API
    """
    setup_logger()

    parser = ArgumentParser()
    parser.add_argument(
        "token", metavar="token", type=str, help="The token we need prices for"
    )
    parser.add_argument(
        "days", metavar="days", type=int, help="Number of days of historical data"
    )
    parser.add_argument(
        "--db", type=str, default=DB_URL, help="Database URL where quotes are stored"
    )
    args = parser.parse_args()

    valid_coin_ids = list(coin_ids())
    valid_coin_ids_msg = f"Coin should be one of {valid_coin_ids}"

    token = args.token
    assert token in valid_coin_ids, valid_coin_ids_msg

    download_price_data(token=Currency(token), hours=args.days * 24, url=args.db)


HOURS = 2000
DEPLOYER = Account("deployer")
# Collateral token => CoinGecko coin its price follows
COLLATERAL: Dict[Token, Currency] = {
    Token("weth"): Currency("ethereum"),
    Token("wbtc"): Currency("bitcoin"),
}


def calculate_collateral_usd() -> int:
    return to_wei(round(abs(gauss(mu=3000, sigma=5000)) + 100.0, 2))


def calculate_target_health_factor() -> int:
    # Most borrowers keep a safety margin, a few mint right at the limit
    return to_wei(round(uniform(1.0, 2.5), 4))


def build_simulation(
    quotes: Dict[Currency, List[Quote]],
    periods: int,
    borrowers_number: int,
    liquidators_number: int,
) -> Simulation:
    clock = Clock(periods)
    metrics_logger = MetricsLogger(clock)

    feed_ids = [FeedId(f"{coin}-usd") for coin in COLLATERAL.values()]
    price_oracle = PriceOracle(
        clock=clock,
        feeds={
            feed_id: QuotePriceFeed(clock, quotes[coin])
            for feed_id, coin in zip(feed_ids, COLLATERAL.values())
        },
    )

    token_ledgers = [TokenLedger(token) for token in COLLATERAL]
    msd = StableCoin(Token("msd"), owner=DEPLOYER)
    engine = MithrilEngine(
        token_addresses=token_ledgers,
        price_feed_addresses=feed_ids,
        msd=msd,
        oracle=price_oracle,
        address=Account(ENGINE_ACCOUNT),
    )
    msd.transfer_ownership(DEPLOYER, engine.address)

    def fund(account: Account, usd_per_token: int) -> None:
        for ledger in token_ledgers:
            ledger.mint_to(account, engine.get_token_amount_from_usd(ledger.address, usd_per_token))

    borrowers = []
    for name in make_account_names(borrowers_number):
        account = Account(name)
        fund(account, to_wei(20000))
        borrowers.append(
            Borrower(
                account=account,
                engine=engine,
                metrics_logger=metrics_logger,
                open_position_probability=0.1,
                close_position_probability=0.05,
                calculate_collateral_usd=calculate_collateral_usd,
                calculate_target_health_factor=calculate_target_health_factor,
            )
        )

    liquidators = []
    for n in range(liquidators_number):
        account = Account(f"liquidator-{n}")
        fund(account, to_wei(100000))
        liquidator = Liquidator(
            account=account,
            engine=engine,
            metrics_logger=metrics_logger,
            liquidation_probability=0.5,
        )
        ledger = token_ledgers[n % len(token_ledgers)]
        liquidator.provision(
            ledger.address,
            amount_collateral=ledger.balance_of(account),
            amount_msd=to_wei(10000),
        )
        liquidators.append(liquidator)

    return Simulation(
        clock=clock,
        engine=engine,
        metrics_logger=metrics_logger,
        borrowers=borrowers,
        liquidators=liquidators,
    )


def run_simulation():
    setup_logger()

    parser = ArgumentParser()
    parser.add_argument("--hours", type=int, default=HOURS, help="Simulated hours")
    parser.add_argument("--borrowers", type=int, default=10, help="Number of borrowers")
    parser.add_argument("--liquidators", type=int, default=2, help="Number of liquidators")
    parser.add_argument("--simulations", type=int, default=1, help="Number of simulations to run")
    parser.add_argument("--db", type=str, default=DB_URL, help="Database URL where quotes are stored")
    args = parser.parse_args()

    coins = list(COLLATERAL.values())
    db = init_price_db(coins, args.hours, args.db)
    quotes = {coin: read_quotes_from_db(db, coin, args.hours) for coin in coins}
    db.close()

    periods = min(len(series) for series in quotes.values())

    mithril = Mithril(
        simulation_factory=functools.partial(
            build_simulation,
            quotes,
            periods,
            args.borrowers,
            args.liquidators,
        ),
        simulations_number=args.simulations,
    )

    simulations_metrics = mithril.run()
    metrics = simulations_metrics[0]

    liquidations = make_timeseries(metrics, Metric.LIQUIDATION, MetricsAggregatorSum(), periods)
    msd_supply = make_timeseries(metrics, Metric.MSD_SUPPLY, MetricsAggregatorLast(), periods)
    undercollateralized = make_timeseries(
        metrics, Metric.UNDERCOLLATERALIZED_ACCOUNTS, MetricsAggregatorLast(), periods
    )

    print(f"LIQUIDATIONS => {liquidations}")
    print(f"MSD_SUPPLY => {msd_supply}")
    print(f"UNDERCOLLATERALIZED_ACCOUNTS => {undercollateralized}")
