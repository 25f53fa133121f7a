"""
Next-occurrence calculation for recurrence rules.

Pure functions: the caller passes "now", nothing here reads the clock or
touches storage. Candidates are built as wall-clock times in the group's zone
and compared as UTC instants, so DST transitions never shift a meeting to a
neighbouring day.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, Optional
from zoneinfo import ZoneInfo

from gatherly.core.exceptions import InvalidRuleError
from gatherly.models.recurrence import (
    BiweeklyRule,
    CustomRule,
    DailyRule,
    MonthlyRule,
    OrdinalRule,
    RuleBase,
    WeeklyRule,
    parse_rule,
)
from gatherly.utils.datetime_utils import UTC, ensure_utc, format_clock_time, get_zone, parse_clock_time

# Safety bound for ordinal rules; a 5th weekday shows up at least every few months.
_MAX_MONTHS_AHEAD = 14


@dataclass(frozen=True)
class Occurrence:
    """A concrete meeting slot."""

    date: date
    time: str
    timezone: str
    starts_at: datetime  # UTC


def next_occurrence(
    rule: Any,
    now: datetime,
    default_time: Optional[str],
    default_zone: Optional[str],
) -> Occurrence:
    """
    Compute the next occurrence of ``rule`` at or after ``now``.

    Args:
        rule: Typed rule or its raw dict form
        now: Reference instant (naive values are taken as UTC)
        default_time: Group meeting time, used where the rule has none
        default_zone: Group IANA zone, used where the rule has none

    Returns:
        Occurrence: earliest slot whose start is >= now

    Raises:
        InvalidRuleError: If the rule, a time string or a zone is malformed
    """
    rule = parse_rule(rule)
    now = ensure_utc(now)

    if isinstance(rule, CustomRule):
        best: Optional[Occurrence] = None
        for routine in rule.routines:
            candidate = _next_for_rule(
                routine,
                now,
                default_time=rule.time or default_time,
                default_zone=rule.timezone or default_zone,
                start_date=routine.start_date or rule.start_date,
            )
            # Strict comparison keeps the earlier routine on equal instants
            if best is None or candidate.starts_at < best.starts_at:
                best = candidate
        return best

    return _next_for_rule(rule, now, default_time, default_zone, rule.start_date)


# ===========================================
# Per-frequency resolution
# ===========================================


@dataclass(frozen=True)
class _Context:
    zone_name: str
    zone: ZoneInfo
    reference: datetime  # UTC, never before start_date
    local_today: date
    shared_time: Optional[str]
    start_date: Optional[date]

    def candidate(self, day: date, clock: Optional[str]) -> Occurrence:
        clock = clock or self.shared_time
        if not clock:
            raise InvalidRuleError(f"No time of day configured for {day.isoformat()}")
        wall = _parse_clock(clock)
        starts_at = datetime.combine(day, wall, tzinfo=self.zone).astimezone(UTC)
        return Occurrence(
            date=day,
            time=format_clock_time(wall),
            timezone=self.zone_name,
            starts_at=starts_at,
        )


def _next_for_rule(
    rule: RuleBase,
    now: datetime,
    default_time: Optional[str],
    default_zone: Optional[str],
    start_date: Optional[date],
) -> Occurrence:
    zone_name = rule.timezone or default_zone
    if not zone_name:
        raise InvalidRuleError("No timezone configured for schedule")
    try:
        zone = get_zone(zone_name)
    except ValueError as exc:
        raise InvalidRuleError(str(exc)) from exc

    reference = now
    if start_date is not None:
        start_instant = datetime.combine(start_date, time.min, tzinfo=zone).astimezone(UTC)
        reference = max(now, start_instant)

    ctx = _Context(
        zone_name=zone_name,
        zone=zone,
        reference=reference,
        local_today=reference.astimezone(zone).date(),
        shared_time=rule.time or default_time,
        start_date=start_date,
    )

    if isinstance(rule, DailyRule):
        return _next_weekly(ctx, [(day, None) for day in range(7)], interval_weeks=1)
    if isinstance(rule, WeeklyRule):
        return _next_weekly(ctx, [(e.day, e.time) for e in rule.day_times], interval_weeks=1)
    if isinstance(rule, BiweeklyRule):
        return _next_weekly(ctx, [(e.day, e.time) for e in rule.day_times], interval_weeks=2)
    if isinstance(rule, MonthlyRule):
        return _next_monthly(ctx, [(e.date, e.time) for e in rule.day_times])
    if isinstance(rule, OrdinalRule):
        return _next_ordinal(ctx, rule)

    raise InvalidRuleError(f"Unsupported frequency: {getattr(rule, 'frequency', None)!r}")


def _next_weekly(
    ctx: _Context,
    targets: list[tuple[int, Optional[str]]],
    interval_weeks: int,
) -> Occurrence:
    """Weekly / biweekly / daily. Weeks start on Sunday (day index 0)."""
    if not targets:
        raise InvalidRuleError("At least one weekday is required")

    week_start = _week_start(ctx.local_today)

    def week_candidates(start: date) -> list[Occurrence]:
        return [ctx.candidate(start + timedelta(days=day), clock) for day, clock in targets]

    if interval_weeks == 2 and ctx.start_date is not None:
        # Anchored biweekly: only weeks an even distance from the start week count
        anchor = _week_start(ctx.start_date)
        for offset in range(3):
            start = week_start + timedelta(weeks=offset)
            if ((start - anchor).days // 7) % 2:
                continue
            remaining = [c for c in week_candidates(start) if c.starts_at >= ctx.reference]
            if remaining:
                return _earliest(remaining)
        raise InvalidRuleError("Biweekly rule produced no occurrence")

    remaining = [c for c in week_candidates(week_start) if c.starts_at >= ctx.reference]
    if remaining:
        return _earliest(remaining)
    return _earliest(week_candidates(week_start + timedelta(weeks=interval_weeks)))


def _next_monthly(ctx: _Context, targets: list[tuple[int, Optional[str]]]) -> Occurrence:
    """Monthly by day-of-month; days past the month's end clamp to its last day."""
    if not targets:
        raise InvalidRuleError("At least one day of month is required")

    year, month = ctx.local_today.year, ctx.local_today.month
    next_year, next_month = _add_month(year, month)

    candidates = []
    for day_of_month, clock in targets:
        candidate = ctx.candidate(_clamped_date(year, month, day_of_month), clock)
        if candidate.starts_at < ctx.reference:
            candidate = ctx.candidate(_clamped_date(next_year, next_month, day_of_month), clock)
        candidates.append(candidate)
    return _earliest(candidates)


def _next_ordinal(ctx: _Context, rule: OrdinalRule) -> Occurrence:
    """Nth / last weekday of the month, rolling forward month by month."""
    year, month = ctx.local_today.year, ctx.local_today.month
    for _ in range(_MAX_MONTHS_AHEAD):
        day = _nth_weekday(year, month, rule.day, rule.occurrence.index)
        if day is not None:
            candidate = ctx.candidate(day, rule.time)
            if candidate.starts_at >= ctx.reference:
                return candidate
        year, month = _add_month(year, month)
    raise InvalidRuleError(f"No {rule.occurrence.value} weekday {rule.day} found")


# ===========================================
# Calendar helpers
# ===========================================


def _parse_clock(clock: str) -> time:
    try:
        return parse_clock_time(clock)
    except ValueError as exc:
        raise InvalidRuleError(str(exc)) from exc


def _earliest(candidates: Iterable[Occurrence]) -> Occurrence:
    return min(candidates, key=lambda c: c.starts_at)


def _week_start(day: date) -> date:
    """Sunday on or before ``day``."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def _add_month(year: int, month: int) -> tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def _clamped_date(year: int, month: int, day_of_month: int) -> date:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day_of_month, last_day))


def _nth_weekday(year: int, month: int, weekday: int, index: int) -> Optional[date]:
    """
    The ``index``-th ``weekday`` (0=Sunday) of a month, or the last one when
    ``index`` is -1. Returns None when the month has no such instance.
    """
    py_weekday = (weekday - 1) % 7  # date.weekday(): Monday=0
    if index == -1:
        last = date(year, month, calendar.monthrange(year, month)[1])
        return last - timedelta(days=(last.weekday() - py_weekday) % 7)

    first = date(year, month, 1)
    day = first + timedelta(days=(py_weekday - first.weekday()) % 7 + 7 * (index - 1))
    if day.month != month:
        return None
    return day
