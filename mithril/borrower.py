import logging
import random
from typing import Callable

from mithril.constants import LIQUIDATION_PRECISION, LIQUIDATION_THRESHOLD, PRECISION
from mithril.engine import MithrilEngine
from mithril.errors import MithrilError, OracleError
from mithril.metrics import Metric, MetricsLogger
from mithril.types import Account


class Borrower:
    """
    We model borrowers as independent agents who occasionally lock collateral to
    mint MSD, or repay their whole debt and take their collateral back, according
    to fixed probabilities.
    Each borrower picks how much collateral to lock and how close to the
    liquidation threshold to mint, some borrowers are more reckless than others.
    """
    account: Account
    close_position_probability: float
    engine: MithrilEngine
    metrics_logger: MetricsLogger
    open_position_probability: float

    def __init__(
        self,
        account: Account,
        engine: MithrilEngine,
        metrics_logger: MetricsLogger,
        open_position_probability: float,
        close_position_probability: float,
        calculate_collateral_usd: Callable[[], int],
        calculate_target_health_factor: Callable[[], int],
    ):
        """
        - calculate_collateral_usd: USD value (18 decimals) of the collateral to lock in a new position.
        - calculate_target_health_factor: health factor (18 decimals) the new debt should leave the position at.
        """
        self.account = account
        self.calculate_collateral_usd = calculate_collateral_usd
        self.calculate_target_health_factor = calculate_target_health_factor
        self.close_position_probability = close_position_probability
        self.engine = engine
        self.metrics_logger = metrics_logger
        self.open_position_probability = open_position_probability

    def act(self) -> None:
        if self._want_open_position():
            self.open_position()
        if self.engine.get_msd_minted(self.account) > 0 and self._want_close_position():
            self.close_position()

    def open_position(self) -> bool:
        token = random.choice(self.engine.get_collateral_tokens())
        ledger = self.engine.token_ledgers[token]
        try:
            collateral_usd = self.calculate_collateral_usd()
            amount_collateral = self.engine.get_token_amount_from_usd(token, collateral_usd)
        except OracleError as e:
            self._failed(e)
            return False

        if amount_collateral == 0 or ledger.balance_of(self.account) < amount_collateral:
            return False

        amount_to_mint = self._debt_for_health_factor(collateral_usd, self.calculate_target_health_factor())
        if amount_to_mint == 0:
            return False

        ledger.approve(self.account, self.engine.address, amount_collateral)
        return self._try(
            self.engine.deposit_collateral_and_mint_msd,
            self.account,
            token,
            amount_collateral,
            amount_to_mint,
        )

    def close_position(self) -> bool:
        msd = self.engine.get_msd()
        amount_to_burn = min(self.engine.get_msd_minted(self.account), msd.balance_of(self.account))
        if amount_to_burn > 0:
            msd.approve(self.account, self.engine.address, amount_to_burn)
            if not self._try(self.engine.burn_msd, self.account, amount_to_burn):
                return False

        for token in self.engine.get_collateral_tokens():
            amount = self.engine.get_collateral_balance_of_user(self.account, token)
            if amount > 0 and not self._try(self.engine.redeem_collateral, self.account, token, amount):
                return False

        return True

    def _debt_for_health_factor(self, collateral_usd: int, health_factor: int) -> int:
        collateral_adjusted_for_threshold = collateral_usd * LIQUIDATION_THRESHOLD // LIQUIDATION_PRECISION
        return collateral_adjusted_for_threshold * PRECISION // health_factor

    def _try(self, operation: Callable, *args) -> bool:
        try:
            operation(*args)
        except MithrilError as e:
            self._failed(e)
            return False
        return True

    def _failed(self, error: MithrilError) -> None:
        logging.info(f"ActionFailed\t => {self.account}: {error!r}")
        self.metrics_logger.log(Metric.ACTION_FAILED)
        if isinstance(error, OracleError):
            self.metrics_logger.log(Metric.STALE_PRICE)

    def _want_open_position(self) -> bool:
        r = random.random()
        return r < self.open_position_probability

    def _want_close_position(self) -> bool:
        r = random.random()
        return r < self.close_position_probability
