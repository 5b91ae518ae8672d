import copy
from collections import defaultdict
from typing import Any, Dict, Tuple

from mithril.constants import NULL_ACCOUNT
from mithril.errors import (
    BurnAmountExceedsBalance,
    NotOwner,
    NotZeroAddress,
    ZeroAmount,
)
from mithril.types import Account, Token


class TokenLedger:
    """
    Fungible balance ledger with allowances.

    Transfers signal failure by returning False, callers decide whether that
    is fatal.
    """
    address: Token
    balances: Dict[Account, int]
    allowances: Dict[Tuple[Account, Account], int]
    decimals: int = 18
    total_supply: int

    def __init__(self, address: Token, name: str = "", decimals: int = 18):
        self.address = address
        self.name = name or address
        self.decimals = decimals
        self.balances = defaultdict(int)
        self.allowances = defaultdict(int)
        self.total_supply = 0

    def balance_of(self, account: Account) -> int:
        return self.balances.get(account, 0)

    def allowance(self, owner: Account, spender: Account) -> int:
        return self.allowances.get((owner, spender), 0)

    def approve(self, sender: Account, spender: Account, amount: int) -> bool:
        self.allowances[(sender, spender)] = amount
        return True

    def transfer(self, sender: Account, to: Account, amount: int) -> bool:
        return self._move(sender, to, amount)

    def transfer_from(self, sender: Account, owner: Account, to: Account, amount: int) -> bool:
        if self.allowance(owner, sender) < amount:
            return False
        if not self._move(owner, to, amount):
            return False
        self.allowances[(owner, sender)] -= amount
        return True

    def mint_to(self, account: Account, amount: int) -> None:
        """Faucet used to fund accounts in tests and simulations."""
        self.balances[account] += amount
        self.total_supply += amount

    def snapshot(self) -> Any:
        return copy.deepcopy((dict(self.balances), dict(self.allowances), self.total_supply))

    def restore(self, snapshot: Any) -> None:
        balances, allowances, total_supply = copy.deepcopy(snapshot)
        self.balances = defaultdict(int, balances)
        self.allowances = defaultdict(int, allowances)
        self.total_supply = total_supply

    def _move(self, owner: Account, to: Account, amount: int) -> bool:
        if amount < 0 or self.balance_of(owner) < amount:
            return False
        self.balances[owner] -= amount
        self.balances[to] += amount
        return True

    def __repr__(self) -> str:
        return f"TokenLedger({self.address})"


class StableCoin(TokenLedger):
    """
    The issued stable dollar. Only the owner (the engine, once ownership is
    transferred) can mint and burn.
    """
    owner: Account

    def __init__(self, address: Token, owner: Account, name: str = "Mithril Stable Dollar"):
        super().__init__(address, name)
        self.owner = owner

    def transfer_ownership(self, sender: Account, new_owner: Account) -> None:
        self._only_owner(sender)
        self.owner = new_owner

    def mint(self, sender: Account, to: Account, amount: int) -> bool:
        self._only_owner(sender)
        if to == NULL_ACCOUNT:
            raise NotZeroAddress("Cannot mint to the null account")
        if amount <= 0:
            raise ZeroAmount("Mint amount must be more than zero")
        self.mint_to(to, amount)
        return True

    def burn(self, sender: Account, amount: int) -> None:
        self._only_owner(sender)
        if amount <= 0:
            raise ZeroAmount("Burn amount must be more than zero")
        if self.balance_of(sender) < amount:
            raise BurnAmountExceedsBalance(
                f"Cannot burn {amount}, balance is {self.balance_of(sender)}"
            )
        self.balances[sender] -= amount
        self.total_supply -= amount

    def _only_owner(self, sender: Account) -> None:
        if sender != self.owner:
            raise NotOwner(f"{sender} is not the owner of {self.address}")

    def __repr__(self) -> str:
        return f"StableCoin({self.address})"
