import logging
import random
from typing import List

from mithril.constants import MIN_HEALTH_FACTOR
from mithril.engine import MithrilEngine
from mithril.errors import MithrilError
from mithril.metrics import Metric, MetricsLogger
from mithril.types import Account, Token
from mithril.util import Percent


class Liquidator:
    """
    We model liquidators as independent agents who will try to liquidate
    undercollateralized accounts with a fixed probability, repaying a fixed
    share (half by default) of the account's debt with their own MSD.
    """

    account: Account
    close_factor: Percent
    engine: MithrilEngine
    liquidation_probability: float
    metrics_logger: MetricsLogger

    def __init__(
        self,
        account: Account,
        engine: MithrilEngine,
        metrics_logger: MetricsLogger,
        liquidation_probability: float,
        close_factor_percent: int = 50,
    ):

        self.account = account
        self.close_factor = Percent(close_factor_percent)
        self.engine = engine
        self.liquidation_probability = liquidation_probability
        self.metrics_logger = metrics_logger

    def provision(self, token: Token, amount_collateral: int, amount_msd: int) -> bool:
        """
        Lock collateral and mint the MSD inventory used to repay other accounts' debt.
        """
        self.engine.token_ledgers[token].approve(self.account, self.engine.address, amount_collateral)
        try:
            self.engine.deposit_collateral_and_mint_msd(self.account, token, amount_collateral, amount_msd)
        except MithrilError as e:
            logging.info(f"ProvisionFailed\t => {self.account}: {e!r}")
            return False
        return True

    def liquidable_accounts(self) -> List[Account]:
        return [
            user
            for user in list(self.engine.msd_minted.keys())
            if user != self.account
            and self.engine.get_msd_minted(user) > 0
            and self.engine.get_health_factor(user) < MIN_HEALTH_FACTOR
        ]

    def liquidate(self) -> int:
        """
        Returns the amount of collateral seized, 0 if nothing was liquidated.
        """
        if not self._will_liquidate_position():
            return 0

        msd = self.engine.get_msd()
        try:
            liquidable_accounts = self.liquidable_accounts()
            if not liquidable_accounts:
                return 0

            user = random.choice(liquidable_accounts)
            debt_to_cover = min(self.close_factor.of(self.engine.get_msd_minted(user)) or 1, msd.balance_of(self.account))
            if debt_to_cover == 0:
                return 0

            collateral = max(
                self.engine.get_collateral_tokens(),
                key=lambda token: self.engine.get_usd_value(
                    token, self.engine.get_collateral_balance_of_user(user, token)
                ),
            )

            msd.approve(self.account, self.engine.address, debt_to_cover)
            seized = self.engine.liquidate(self.account, collateral, user, debt_to_cover)
        except MithrilError as e:
            logging.info(f"LiquidationFailed\t => {self.account}: {e!r}")
            self.metrics_logger.log(Metric.ACTION_FAILED)
            return 0

        return seized

    def _will_liquidate_position(self) -> bool:
        return random.random() < self.liquidation_probability
