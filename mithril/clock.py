from mithril.constants import SECONDS_IN_AN_HOUR
from mithril.types import Timestamp


class Clock:
    """
    Discrete clock. `time` counts elapsed periods, `now` is the wall time in
    seconds used to stamp and age price readings.
    """
    _time: int = 0
    _periods: int
    _period_seconds: int
    _start: Timestamp

    def __init__(
        self,
        periods: int,
        period_seconds: int = SECONDS_IN_AN_HOUR,
        start: Timestamp = 0,
    ):
        self._time = 0
        self._periods = periods
        self._period_seconds = period_seconds
        self._start = start

    def step(self) -> bool:
        self._time += 1
        return self._time < self._periods

    @property
    def periods(self) -> int:
        return self._periods

    @property
    def time(self) -> int:
        return self._time

    @property
    def now(self) -> Timestamp:
        return self.time_at(self._time)

    def time_at(self, period: int) -> Timestamp:
        return self._start + period * self._period_seconds
