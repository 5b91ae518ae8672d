import copy
import functools
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List, Sequence

from mithril.constants import (
    ADDITIONAL_FEED_PRECISION,
    ENGINE_ACCOUNT,
    LIQUIDATION_BONUS,
    LIQUIDATION_PRECISION,
    LIQUIDATION_THRESHOLD,
    MAX_HEALTH_FACTOR,
    MIN_HEALTH_FACTOR,
    PRECISION,
)
from mithril.errors import (
    BreaksHealthFactor,
    HealthFactorNotImproved,
    HealthFactorOk,
    InsufficientCollateral,
    InsufficientDebt,
    LengthMismatch,
    MintFailed,
    ReentrancyViolation,
    TokenNotAllowed,
    TransferFailed,
    ZeroAmount,
)
from mithril.events import (
    CollateralDeposited,
    CollateralRedeemed,
    Event,
    Liquidated,
    MsdBurned,
    MsdMinted,
)
from mithril.oracle import PriceOracle
from mithril.tokens import StableCoin, TokenLedger
from mithril.types import (
    Account,
    AccountInformation,
    FeedId,
    Token,
)


def non_reentrant(method: Callable) -> Callable:
    """
    Runs a mutating entry point as a single all-or-nothing unit.

    Entering any guarded method while another one is executing on the same
    engine fails straight away. If the method raises, the engine ledgers, the
    event log and every token ledger the engine custodies are restored to
    their state before the call.
    """
    @functools.wraps(method)
    def guarded(self: "MithrilEngine", *args, **kwargs):
        if self._entered:
            raise ReentrancyViolation(f"{method.__name__} called while the engine is executing")

        snapshot = self._snapshot()
        self._entered = True
        try:
            return method(self, *args, **kwargs)
        except Exception as e:
            logging.warning(f"Revert\t => {method.__name__}{args}: {e!r}")
            self._restore(snapshot)
            raise
        finally:
            self._entered = False

    return guarded


class MithrilEngine:
    """
    Issues MSD against over-collateralized deposits and keeps every account's
    collateral worth at least twice its debt. Accounts that drift below that
    can be liquidated by anyone holding enough MSD to repay part of their debt,
    in exchange for the equivalent collateral plus a bonus.
    """
    address: Account
    collateral_deposited: Dict[Account, Dict[Token, int]]
    collateral_tokens: List[Token]
    events: List[Event]
    msd: StableCoin
    msd_minted: Dict[Account, int]
    oracle: PriceOracle
    price_feeds: Dict[Token, FeedId]
    token_ledgers: Dict[Token, TokenLedger]

    def __init__(
        self,
        token_addresses: Sequence[TokenLedger],
        price_feed_addresses: Sequence[FeedId],
        msd: StableCoin,
        oracle: PriceOracle,
        address: Account = Account(ENGINE_ACCOUNT),
    ):
        """
        - token_addresses: ledgers of the tokens accepted as collateral.
        - price_feed_addresses: USD price feed of each collateral token, in the same order.
        - msd: the stablecoin ledger, its ownership is expected to be handed to this engine.
        - oracle: reads the price feeds and rejects stale prices.
        - address: the account holding collateral in custody.
        """
        if len(token_addresses) != len(price_feed_addresses):
            raise LengthMismatch(
                f"{len(token_addresses)} tokens but {len(price_feed_addresses)} price feeds"
            )

        self.address = address
        self.collateral_deposited = defaultdict(lambda: defaultdict(int))
        self.collateral_tokens = []
        self.events = []
        self.msd = msd
        self.msd_minted = defaultdict(int)
        self.oracle = oracle
        self.price_feeds = {}
        self.token_ledgers = {}
        self._entered = False

        for ledger, feed_id in zip(token_addresses, price_feed_addresses):
            self.collateral_tokens.append(ledger.address)
            self.price_feeds[ledger.address] = feed_id
            self.token_ledgers[ledger.address] = ledger

    # Public mutating operations

    @non_reentrant
    def deposit_collateral_and_mint_msd(
        self,
        sender: Account,
        token: Token,
        amount_collateral: int,
        amount_msd_to_mint: int,
    ) -> None:
        self._deposit_collateral(sender, token, amount_collateral)
        self._mint_msd(sender, amount_msd_to_mint)

    @non_reentrant
    def deposit_collateral(self, sender: Account, token: Token, amount: int) -> None:
        self._deposit_collateral(sender, token, amount)

    @non_reentrant
    def redeem_collateral_for_msd(
        self,
        sender: Account,
        token: Token,
        amount_collateral: int,
        amount_msd_to_burn: int,
    ) -> None:
        self._require_more_than_zero(amount_collateral)
        self._require_more_than_zero(amount_msd_to_burn)
        self._require_allowed_token(token)

        self._burn_msd(amount_msd_to_burn, on_behalf_of=sender, msd_from=sender)
        self._redeem_collateral(token, amount_collateral, from_=sender, to=sender)
        self._revert_if_health_factor_is_broken(sender)

    @non_reentrant
    def redeem_collateral(self, sender: Account, token: Token, amount: int) -> None:
        self._require_more_than_zero(amount)
        self._require_allowed_token(token)

        self._redeem_collateral(token, amount, from_=sender, to=sender)
        self._revert_if_health_factor_is_broken(sender)

    @non_reentrant
    def mint_msd(self, sender: Account, amount: int) -> None:
        self._mint_msd(sender, amount)

    @non_reentrant
    def burn_msd(self, sender: Account, amount: int) -> None:
        self._require_more_than_zero(amount)

        self._burn_msd(amount, on_behalf_of=sender, msd_from=sender)
        # Burning debt cannot lower the health factor, checked anyway
        self._revert_if_health_factor_is_broken(sender)

    @non_reentrant
    def liquidate(
        self,
        sender: Account,
        collateral: Token,
        user: Account,
        debt_to_cover: int,
    ) -> int:
        """
        Repays `debt_to_cover` of `user`'s debt with the sender's MSD and pays the
        sender the same value in `collateral` plus a LIQUIDATION_BONUS percent
        bonus. Returns the amount of collateral seized.

        The reward is capped at the user's total collateral value, across all
        tokens, expressed in `collateral`. Once an account is at or below 100%
        collateralization the bonus cannot be paid in full.
        """
        self._require_more_than_zero(debt_to_cover)
        self._require_allowed_token(collateral)

        starting_user_health_factor = self._health_factor(user)
        if starting_user_health_factor >= MIN_HEALTH_FACTOR:
            raise HealthFactorOk(
                f"{user} has health factor {starting_user_health_factor}, cannot liquidate"
            )

        token_amount_from_debt_covered = self.get_token_amount_from_usd(collateral, debt_to_cover)
        bonus_collateral = token_amount_from_debt_covered * LIQUIDATION_BONUS // LIQUIDATION_PRECISION
        total_collateral_to_redeem = token_amount_from_debt_covered + bonus_collateral

        max_collateral_to_redeem = self.get_token_amount_from_usd(
            collateral, self.get_account_collateral_value(user)
        )
        total_collateral_to_redeem = min(total_collateral_to_redeem, max_collateral_to_redeem)

        self._redeem_collateral(collateral, total_collateral_to_redeem, from_=user, to=sender)
        self._burn_msd(debt_to_cover, on_behalf_of=user, msd_from=sender)

        ending_user_health_factor = self._health_factor(user)
        if ending_user_health_factor <= starting_user_health_factor:
            raise HealthFactorNotImproved(
                f"{user} health factor went from {starting_user_health_factor} to {ending_user_health_factor}"
            )

        self._revert_if_health_factor_is_broken(sender)

        self._emit(
            Liquidated(
                liquidator=sender,
                user=user,
                token=collateral,
                debt_covered=debt_to_cover,
                collateral_seized=total_collateral_to_redeem,
            )
        )
        logging.info(
            f"Liquidate\t => {sender} covered {debt_to_cover} of {user} debt for {total_collateral_to_redeem} {collateral}"
        )

        return total_collateral_to_redeem

    # Internal primitives, only called from guarded methods

    def _deposit_collateral(self, sender: Account, token: Token, amount: int) -> None:
        self._require_more_than_zero(amount)
        self._require_allowed_token(token)

        self.collateral_deposited[sender][token] += amount
        self._emit(CollateralDeposited(user=sender, token=token, amount=amount))

        success = self.token_ledgers[token].transfer_from(self.address, sender, self.address, amount)
        if not success:
            raise TransferFailed(f"Could not pull {amount} {token} from {sender}")

        logging.info(f"DepositCollateral\t => {sender} {amount} {token}")

    def _redeem_collateral(self, token: Token, amount: int, from_: Account, to: Account) -> None:
        deposited = self.get_collateral_balance_of_user(from_, token)
        if deposited < amount:
            raise InsufficientCollateral(f"{from_} has {deposited} {token}, cannot redeem {amount}")

        self.collateral_deposited[from_][token] = deposited - amount
        self._emit(CollateralRedeemed(redeemed_from=from_, redeemed_to=to, token=token, amount=amount))

        success = self.token_ledgers[token].transfer(self.address, to, amount)
        if not success:
            raise TransferFailed(f"Could not send {amount} {token} to {to}")

        logging.info(f"RedeemCollateral\t => {from_} -> {to} {amount} {token}")

    def _mint_msd(self, sender: Account, amount: int) -> None:
        self._require_more_than_zero(amount)

        self.msd_minted[sender] += amount
        self._revert_if_health_factor_is_broken(sender)

        minted = self.msd.mint(self.address, sender, amount)
        if not minted:
            raise MintFailed(f"Could not mint {amount} MSD to {sender}")

        self._emit(MsdMinted(minter=sender, amount=amount))
        logging.info(f"MintMsd\t => {sender} {amount}")

    def _burn_msd(self, amount: int, on_behalf_of: Account, msd_from: Account) -> None:
        minted = self.get_msd_minted(on_behalf_of)
        if minted < amount:
            raise InsufficientDebt(f"{on_behalf_of} owes {minted} MSD, cannot burn {amount}")

        self.msd_minted[on_behalf_of] = minted - amount

        success = self.msd.transfer_from(self.address, msd_from, self.address, amount)
        if not success:
            raise TransferFailed(f"Could not pull {amount} MSD from {msd_from}")
        self.msd.burn(self.address, amount)

        self._emit(MsdBurned(on_behalf_of=on_behalf_of, payer=msd_from, amount=amount))
        logging.info(f"BurnMsd\t => {msd_from} repaid {amount} for {on_behalf_of}")

    def _health_factor(self, user: Account) -> int:
        info = self.get_account_information(user)
        return self.calculate_health_factor(info.total_msd_minted, info.collateral_value_in_usd)

    def _revert_if_health_factor_is_broken(self, user: Account) -> None:
        user_health_factor = self._health_factor(user)
        if user_health_factor < MIN_HEALTH_FACTOR:
            raise BreaksHealthFactor(user_health_factor)

    def _require_more_than_zero(self, amount: int) -> None:
        if amount <= 0:
            raise ZeroAmount("Amount must be more than zero")

    def _require_allowed_token(self, token: Token) -> None:
        if token not in self.price_feeds:
            raise TokenNotAllowed(f"{token} is not accepted as collateral")

    def _emit(self, event: Event) -> None:
        self.events.append(event)

    def _snapshot(self) -> Any:
        return (
            copy.deepcopy(self.collateral_deposited),
            copy.deepcopy(self.msd_minted),
            len(self.events),
            {token: ledger.snapshot() for token, ledger in self.token_ledgers.items()},
            self.msd.snapshot(),
        )

    def _restore(self, snapshot: Any) -> None:
        collateral_deposited, msd_minted, events_count, token_snapshots, msd_snapshot = snapshot

        self.collateral_deposited = collateral_deposited
        self.msd_minted = msd_minted
        del self.events[events_count:]
        for token, token_snapshot in token_snapshots.items():
            self.token_ledgers[token].restore(token_snapshot)
        self.msd.restore(msd_snapshot)

    # Queries

    def calculate_health_factor(self, total_msd_minted: int, collateral_value_in_usd: int) -> int:
        if total_msd_minted == 0:
            return MAX_HEALTH_FACTOR
        collateral_adjusted_for_threshold = (
            collateral_value_in_usd * LIQUIDATION_THRESHOLD // LIQUIDATION_PRECISION
        )
        return collateral_adjusted_for_threshold * PRECISION // total_msd_minted

    def get_health_factor(self, user: Account) -> int:
        return self._health_factor(user)

    def get_account_information(self, user: Account) -> AccountInformation:
        return AccountInformation(
            total_msd_minted=self.get_msd_minted(user),
            collateral_value_in_usd=self.get_account_collateral_value(user),
        )

    def get_account_collateral_value(self, user: Account) -> int:
        return sum(
            self.get_usd_value(token, self.get_collateral_balance_of_user(user, token))
            for token in self.collateral_tokens
        )

    def get_usd_value(self, token: Token, amount: int) -> int:
        self._require_allowed_token(token)
        price, _ = self.oracle.get_latest_price(self.price_feeds[token])
        return price * ADDITIONAL_FEED_PRECISION * amount // PRECISION

    def get_token_amount_from_usd(self, token: Token, usd_amount_in_wei: int) -> int:
        self._require_allowed_token(token)
        price, _ = self.oracle.get_latest_price(self.price_feeds[token])
        return usd_amount_in_wei * PRECISION // (price * ADDITIONAL_FEED_PRECISION)

    def get_collateral_balance_of_user(self, user: Account, token: Token) -> int:
        return self.collateral_deposited.get(user, {}).get(token, 0)

    def get_msd_minted(self, user: Account) -> int:
        return self.msd_minted.get(user, 0)

    def get_collateral_tokens(self) -> List[Token]:
        return list(self.collateral_tokens)

    def get_collateral_token_price_feed(self, token: Token) -> FeedId:
        self._require_allowed_token(token)
        return self.price_feeds[token]

    def get_msd(self) -> StableCoin:
        return self.msd

    def get_precision(self) -> int:
        return PRECISION

    def get_additional_feed_precision(self) -> int:
        return ADDITIONAL_FEED_PRECISION

    def get_liquidation_threshold(self) -> int:
        return LIQUIDATION_THRESHOLD

    def get_liquidation_bonus(self) -> int:
        return LIQUIDATION_BONUS

    def get_liquidation_precision(self) -> int:
        return LIQUIDATION_PRECISION

    def get_min_health_factor(self) -> int:
        return MIN_HEALTH_FACTOR
