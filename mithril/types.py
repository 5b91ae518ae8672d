from dataclasses import dataclass
from typing import NewType


Account = NewType("Account", str)


Token = NewType("Token", str)


FeedId = NewType("FeedId", str)


Currency = NewType("Currency", str)


# 8-decimal signed fixed point, as reported by price feeds
Price = int


Timestamp = int


@dataclass(frozen=True)
class RoundData:
    round_id: int
    answer: Price
    started_at: Timestamp
    updated_at: Timestamp
    answered_in_round: int


@dataclass(frozen=True)
class AccountInformation:
    total_msd_minted: int
    collateral_value_in_usd: int
