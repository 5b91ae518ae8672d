import pytest

from mithril.constants import NULL_ACCOUNT
from mithril.errors import BurnAmountExceedsBalance, NotOwner, NotZeroAddress, ZeroAmount
from mithril.tokens import StableCoin, TokenLedger
from mithril.types import Account, Token


ALICE = Account("alice")
BOB = Account("bob")
OWNER = Account("owner")


def test_transfer():
    token = TokenLedger(Token("weth"))
    token.mint_to(ALICE, 100)

    assert token.transfer(ALICE, BOB, 40)
    assert token.balance_of(ALICE) == 60
    assert token.balance_of(BOB) == 40
    assert token.total_supply == 100


def test_transfer_more_than_balance_reports_failure():
    token = TokenLedger(Token("weth"))
    token.mint_to(ALICE, 100)

    assert not token.transfer(ALICE, BOB, 101)
    assert token.balance_of(ALICE) == 100
    assert token.balance_of(BOB) == 0


def test_transfer_from_spends_allowance():
    token = TokenLedger(Token("weth"))
    token.mint_to(ALICE, 100)
    token.approve(ALICE, BOB, 50)

    assert not token.transfer_from(BOB, ALICE, BOB, 51)
    assert token.transfer_from(BOB, ALICE, BOB, 30)
    assert token.allowance(ALICE, BOB) == 20
    assert token.balance_of(BOB) == 30


def test_transfer_from_without_balance_keeps_allowance():
    token = TokenLedger(Token("weth"))
    token.approve(ALICE, BOB, 50)

    assert not token.transfer_from(BOB, ALICE, BOB, 10)
    assert token.allowance(ALICE, BOB) == 50


def test_snapshot_and_restore():
    token = TokenLedger(Token("weth"))
    token.mint_to(ALICE, 100)
    snapshot = token.snapshot()

    token.approve(ALICE, BOB, 10)
    token.transfer(ALICE, BOB, 10)
    token.mint_to(BOB, 5)
    token.restore(snapshot)

    assert token.balance_of(ALICE) == 100
    assert token.balance_of(BOB) == 0
    assert token.allowance(ALICE, BOB) == 0
    assert token.total_supply == 100


def test_only_owner_can_mint_and_burn():
    msd = StableCoin(Token("msd"), owner=OWNER)

    with pytest.raises(NotOwner):
        msd.mint(ALICE, ALICE, 100)

    msd.mint(OWNER, OWNER, 100)
    with pytest.raises(NotOwner):
        msd.burn(ALICE, 100)


def test_stablecoin_mint_and_burn():
    msd = StableCoin(Token("msd"), owner=OWNER)

    assert msd.mint(OWNER, ALICE, 100)
    msd.transfer(ALICE, OWNER, 40)
    msd.burn(OWNER, 40)

    assert msd.balance_of(ALICE) == 60
    assert msd.balance_of(OWNER) == 0
    assert msd.total_supply == 60


def test_stablecoin_rejects_bad_amounts():
    msd = StableCoin(Token("msd"), owner=OWNER)

    with pytest.raises(ZeroAmount):
        msd.mint(OWNER, ALICE, 0)
    with pytest.raises(NotZeroAddress):
        msd.mint(OWNER, Account(NULL_ACCOUNT), 100)
    with pytest.raises(ZeroAmount):
        msd.burn(OWNER, 0)
    with pytest.raises(BurnAmountExceedsBalance):
        msd.burn(OWNER, 1)


def test_transfer_ownership():
    msd = StableCoin(Token("msd"), owner=OWNER)
    msd.transfer_ownership(OWNER, BOB)

    assert msd.owner == BOB
    with pytest.raises(NotOwner):
        msd.transfer_ownership(OWNER, ALICE)
