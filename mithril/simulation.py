import logging
from typing import List

from mithril.clock import Clock
from mithril.borrower import Borrower
from mithril.constants import MIN_HEALTH_FACTOR
from mithril.engine import MithrilEngine
from mithril.errors import OracleError
from mithril.events import (
    CollateralDeposited,
    CollateralRedeemed,
    Event,
    Liquidated,
    MsdBurned,
    MsdMinted,
)
from mithril.liquidator import Liquidator
from mithril.metrics import Metric, Metrics, MetricsLogger
from mithril.util import from_wei


class Simulation:
    borrowers: List[Borrower]
    clock: Clock
    engine: MithrilEngine
    liquidators: List[Liquidator]
    metrics_logger: MetricsLogger

    def __init__(
        self,
        clock: Clock,
        engine: MithrilEngine,
        metrics_logger: MetricsLogger,
        borrowers: List[Borrower],
        liquidators: List[Liquidator],
    ):
        self.borrowers = borrowers
        self.clock = clock
        self.engine = engine
        self.liquidators = liquidators
        self.metrics_logger = metrics_logger

    def run(self) -> Metrics:
        while True:
            logging.info(f"TIME: {self.clock.time}")
            events_seen = len(self.engine.events)

            for borrower in self.borrowers:
                borrower.act()
            for liquidator in self.liquidators:
                liquidator.liquidate()

            for event in self.engine.events[events_seen:]:
                try:
                    self._log_event(event)
                except OracleError:
                    self.metrics_logger.log(Metric.STALE_PRICE)
            self._log_protocol_state()

            should_continue = self.clock.step()
            if not should_continue:
                break

        return self.metrics_logger.metrics

    def _log_event(self, event: Event) -> None:
        if isinstance(event, CollateralDeposited):
            self.metrics_logger.log(
                Metric.COLLATERAL_DEPOSITED_USD,
                from_wei(self.engine.get_usd_value(event.token, event.amount)),
            )
        elif isinstance(event, CollateralRedeemed):
            self.metrics_logger.log(
                Metric.COLLATERAL_REDEEMED_USD,
                from_wei(self.engine.get_usd_value(event.token, event.amount)),
            )
        elif isinstance(event, MsdMinted):
            self.metrics_logger.log(Metric.MSD_MINTED, from_wei(event.amount))
        elif isinstance(event, MsdBurned):
            self.metrics_logger.log(Metric.MSD_BURNED, from_wei(event.amount))
        elif isinstance(event, Liquidated):
            self.metrics_logger.log(Metric.LIQUIDATION)
            self.metrics_logger.log(Metric.LIQUIDATION_DEBT_COVERED, from_wei(event.debt_covered))

    def _log_protocol_state(self) -> None:
        self.metrics_logger.log(Metric.MSD_SUPPLY, from_wei(self.engine.get_msd().total_supply))

        try:
            total_collateral_usd = sum(
                self.engine.get_usd_value(token, ledger.balance_of(self.engine.address))
                for token, ledger in self.engine.token_ledgers.items()
            )
            undercollateralized = [
                user
                for user in list(self.engine.msd_minted.keys())
                if self.engine.get_msd_minted(user) > 0
                and self.engine.get_health_factor(user) < MIN_HEALTH_FACTOR
            ]
        except OracleError:
            self.metrics_logger.log(Metric.STALE_PRICE)
            return

        self.metrics_logger.log(Metric.TOTAL_COLLATERAL_USD, from_wei(total_collateral_usd))
        self.metrics_logger.log(Metric.UNDERCOLLATERALIZED_ACCOUNTS, len(undercollateralized))
