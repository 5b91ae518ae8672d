from dataclasses import dataclass

from mithril.types import Account, Token


@dataclass(frozen=True)
class Event:
    pass


@dataclass(frozen=True)
class CollateralDeposited(Event):
    user: Account
    token: Token
    amount: int


@dataclass(frozen=True)
class CollateralRedeemed(Event):
    # redeemed_from != redeemed_to when the collateral was seized by a liquidator
    redeemed_from: Account
    redeemed_to: Account
    token: Token
    amount: int


@dataclass(frozen=True)
class MsdMinted(Event):
    minter: Account
    amount: int


@dataclass(frozen=True)
class MsdBurned(Event):
    on_behalf_of: Account
    payer: Account
    amount: int


@dataclass(frozen=True)
class Liquidated(Event):
    liquidator: Account
    user: Account
    token: Token
    debt_covered: int
    collateral_seized: int
