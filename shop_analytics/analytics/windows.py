"""
Time Window Resolution

Computes the current analysis window and its comparison window for a
period selector. The reference instant is always passed in explicitly.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Optional, Union

import structlog

from shop_analytics.models.snapshot import WindowInfo
from shop_analytics.transformation.normalizers import to_naive_utc

logger = structlog.get_logger(__name__)

ONE_INSTANT = timedelta(microseconds=1)

DateLike = Union[date, datetime]


class Period(str, Enum):
    """Supported period selectors"""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    CUSTOM = "custom"


_PRESET_LABELS = {
    Period.DAY: ("Today", "Yesterday"),
    Period.WEEK: ("This week", "Last week"),
    Period.MONTH: ("This month", "Last month"),
    Period.YEAR: ("This year", "Last year"),
}


@dataclass(frozen=True)
class TimeWindow:
    """A bounded time range plus its paired previous range (bounds inclusive)"""
    period: Period
    start: datetime
    end: datetime
    prev_start: datetime
    prev_end: datetime
    label: str
    prev_label: str

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end

    def contains_previous(self, moment: datetime) -> bool:
        return self.prev_start <= moment <= self.prev_end

    def to_info(self) -> WindowInfo:
        return WindowInfo(
            period=self.period.value,
            start=self.start,
            end=self.end,
            prev_start=self.prev_start,
            prev_end=self.prev_end,
            label=self.label,
            prev_label=self.prev_label,
        )


def _as_datetime(value: DateLike) -> datetime:
    if isinstance(value, datetime):
        return to_naive_utc(value)
    return datetime.combine(value, time.min)


def _shift_months(moment: datetime, months: int) -> datetime:
    """First day of the month ``months`` away from ``moment``'s month"""
    index = moment.year * 12 + (moment.month - 1) + months
    return moment.replace(year=index // 12, month=index % 12 + 1, day=1)


class TimeWindowResolver:
    """
    Resolves period selectors into comparison windows.

    Args:
        week_start: Weekday that opens a week (0 = Monday ... 6 = Sunday)
        default_period: Preset used for unrecognized selectors
    """

    def __init__(self, week_start: int = 0, default_period: Period = Period.MONTH):
        if not 0 <= week_start <= 6:
            raise ValueError(f"week_start must be in 0..6, got {week_start}")
        if default_period is Period.CUSTOM:
            raise ValueError("default_period must be a preset")
        self.week_start = week_start
        self.default_period = default_period

    def _period_start(self, period: Period, now: datetime) -> datetime:
        midnight = datetime.combine(now.date(), time.min)
        if period is Period.DAY:
            return midnight
        if period is Period.WEEK:
            return midnight - timedelta(days=(now.weekday() - self.week_start) % 7)
        if period is Period.MONTH:
            return midnight.replace(day=1)
        return midnight.replace(month=1, day=1)

    def _previous_start(self, period: Period, start: datetime) -> datetime:
        if period is Period.DAY:
            return start - timedelta(days=1)
        if period is Period.WEEK:
            return start - timedelta(days=7)
        if period is Period.MONTH:
            return _shift_months(start, -1)
        return start.replace(year=start.year - 1)

    def preset(self, period: Period, now: datetime) -> TimeWindow:
        """Window from the start of the current unit up to ``now``"""
        now = to_naive_utc(now)
        start = self._period_start(period, now)
        label, prev_label = _PRESET_LABELS[period]
        return TimeWindow(
            period=period,
            start=start,
            end=now,
            prev_start=self._previous_start(period, start),
            prev_end=start - ONE_INSTANT,
            label=label,
            prev_label=prev_label,
        )

    def custom(self, start: DateLike, end: DateLike) -> TimeWindow:
        """Whole-day window between two dates, compared to the same span before it"""
        start_dt, end_dt = _as_datetime(start), _as_datetime(end)
        if end_dt < start_dt:
            start_dt, end_dt = end_dt, start_dt

        first_day, last_day = start_dt.date(), end_dt.date()
        days = max(1, (last_day - first_day).days + 1)

        window_start = datetime.combine(first_day, time.min)
        window_end = datetime.combine(last_day, time.max)
        prev_start = window_start - timedelta(days=days)
        prev_end = window_start - ONE_INSTANT

        return TimeWindow(
            period=Period.CUSTOM,
            start=window_start,
            end=window_end,
            prev_start=prev_start,
            prev_end=prev_end,
            label=f"{first_day:%Y-%m-%d} to {last_day:%Y-%m-%d}",
            prev_label=f"{prev_start:%Y-%m-%d} to {prev_end:%Y-%m-%d}",
        )

    def resolve(
        self,
        period: Union[Period, str, None],
        now: datetime,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
    ) -> TimeWindow:
        """
        Resolve a period selector into a TimeWindow.

        Unrecognized selectors, and custom requests missing a bound, fall back
        to the default preset so the dashboard always renders.

        Args:
            period: ``day | week | month | year | custom``
            now: Reference instant
            start: Custom range start
            end: Custom range end
        """
        now = to_naive_utc(now)
        if period is None:
            return self.preset(self.default_period, now)
        try:
            selector = Period(str(getattr(period, "value", period)).strip().lower())
        except ValueError:
            logger.warning(
                "Unrecognized period selector, falling back",
                period=period,
                fallback=self.default_period.value,
            )
            selector = self.default_period

        if selector is Period.CUSTOM:
            if start is None or end is None:
                logger.warning(
                    "Custom period without explicit bounds, falling back",
                    start=str(start),
                    end=str(end),
                    fallback=self.default_period.value,
                )
                return self.preset(self.default_period, now)
            return self.custom(start, end)

        return self.preset(selector, now)


def resolve_window(
    period: Union[Period, str, None],
    now: datetime,
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
) -> TimeWindow:
    """Convenience wrapper around ``TimeWindowResolver().resolve``"""
    return TimeWindowResolver().resolve(period, now, start=start, end=end)
