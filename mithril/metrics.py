from enum import Enum
from typing import Dict, List, NewType

from mithril.clock import Clock
from mithril.types import Timestamp


class Metric(Enum):
    ACTION_FAILED = "action_failed"
    COLLATERAL_DEPOSITED_USD = "collateral_deposited_usd"
    COLLATERAL_REDEEMED_USD = "collateral_redeemed_usd"
    LIQUIDATION = "liquidation"
    LIQUIDATION_DEBT_COVERED = "liquidation_debt_covered"
    MSD_BURNED = "msd_burned"
    MSD_MINTED = "msd_minted"
    MSD_SUPPLY = "msd_supply"
    STALE_PRICE = "stale_price"
    TOTAL_COLLATERAL_USD = "total_collateral_usd"
    UNDERCOLLATERALIZED_ACCOUNTS = "undercollateralized_accounts"


Metrics = NewType("Metrics", Dict[Metric, Dict[Timestamp, List[float]]])


class MetricsAggregator:
    def aggregate(self, samples: List[float]) -> float:
        ...


class MetricsAggregatorSum(MetricsAggregator):
    def aggregate(self, samples: List[float]) -> float:
        return sum(samples)


class MetricsAggregatorAvg(MetricsAggregator):
    def aggregate(self, samples: List[float]) -> float:
        return sum(samples) / len(samples)


class MetricsAggregatorMax(MetricsAggregator):
    def aggregate(self, samples: List[float]) -> float:
        return max(samples)


class MetricsAggregatorMin(MetricsAggregator):
    def aggregate(self, samples: List[float]) -> float:
        return min(samples)


class MetricsAggregatorLast(MetricsAggregator):
    def aggregate(self, samples: List[float]) -> float:
        return samples[-1]


def make_timeseries(metrics: Metrics, metric: Metric, aggregator: MetricsAggregator, periods: int) -> List[float]:
    return [
        aggregator.aggregate(metrics[metric][t])
        if metric in metrics and t in metrics[metric] else 0.0
        for t in range(periods)
    ]


class MetricsLogger:
    clock: Clock
    metrics: Metrics

    def __init__(self, clock: Clock):
        self.clock = clock
        self.metrics = Metrics({})

    def log(self, metric: Metric, sample: float=1.0) -> None:
        if metric not in self.metrics:
            self.metrics[metric] = {}

        if self.clock.time not in self.metrics[metric]:
            self.metrics[metric][self.clock.time] = []

        self.metrics[metric][self.clock.time].append(sample)
