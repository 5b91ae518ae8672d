from dataclasses import dataclass

import pytest

from mithril.clock import Clock
from mithril.engine import MithrilEngine
from mithril.oracle import MockPriceFeed, PriceOracle
from mithril.tokens import StableCoin, TokenLedger
from mithril.types import Account, FeedId, Token
from mithril.util import to_wei


ETH_USD_PRICE = 2000 * 10 ** 8
BTC_USD_PRICE = 1000 * 10 ** 8
STARTING_BALANCE = to_wei(10)
COLLATERAL_AMOUNT = to_wei(10)
AMOUNT_TO_MINT = to_wei(100)

DEPLOYER = Account("deployer")
USER = Account("user")
LIQUIDATOR = Account("liquidator")

WETH = Token("weth")
WBTC = Token("wbtc")
ETH_USD = FeedId("eth-usd")
BTC_USD = FeedId("btc-usd")


@dataclass
class Deployment:
    clock: Clock
    engine: MithrilEngine
    msd: StableCoin
    weth: TokenLedger
    wbtc: TokenLedger
    eth_usd: MockPriceFeed
    btc_usd: MockPriceFeed


def deploy(weth: TokenLedger = None, wbtc: TokenLedger = None) -> Deployment:
    clock = Clock(periods=100)
    eth_usd = MockPriceFeed(clock, ETH_USD_PRICE)
    btc_usd = MockPriceFeed(clock, BTC_USD_PRICE)
    oracle = PriceOracle(clock=clock, feeds={ETH_USD: eth_usd, BTC_USD: btc_usd})

    weth = weth or TokenLedger(WETH)
    wbtc = wbtc or TokenLedger(WBTC)
    msd = StableCoin(Token("msd"), owner=DEPLOYER)
    engine = MithrilEngine([weth, wbtc], [ETH_USD, BTC_USD], msd, oracle)
    msd.transfer_ownership(DEPLOYER, engine.address)

    for account in (USER, LIQUIDATOR):
        weth.mint_to(account, STARTING_BALANCE)
        wbtc.mint_to(account, STARTING_BALANCE)

    return Deployment(
        clock=clock,
        engine=engine,
        msd=msd,
        weth=weth,
        wbtc=wbtc,
        eth_usd=eth_usd,
        btc_usd=btc_usd,
    )


@pytest.fixture
def d() -> Deployment:
    return deploy()


@pytest.fixture
def deposited(d: Deployment) -> Deployment:
    d.weth.approve(USER, d.engine.address, COLLATERAL_AMOUNT)
    d.engine.deposit_collateral(USER, WETH, COLLATERAL_AMOUNT)
    return d


@pytest.fixture
def minted(d: Deployment) -> Deployment:
    d.weth.approve(USER, d.engine.address, COLLATERAL_AMOUNT)
    d.engine.deposit_collateral_and_mint_msd(USER, WETH, COLLATERAL_AMOUNT, AMOUNT_TO_MINT)
    return d
