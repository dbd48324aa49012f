"""
Ledger aggregation.

Pure functions that turn an owner's entries into the six statistics views.
Entries are any objects exposing id, event_date, event_type,
transaction_type, counterparty_name, relation and amount (ORM instances or
result rows).

RECEIVED and SENT amounts are always summed separately; differences,
balances and averages are derived from those sums. Averages use one
policy: Decimal division rounded half-up to a fixed number of places, and 0
when there is nothing to divide by.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import MAXYEAR, MINYEAR, date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional, Tuple

from giftbook.app.models.enums import TransactionType
from giftbook.app.schemas.statistics import (
    CounterpartyStatistics,
    EventTypeStatistics,
    MonthlyStatistics,
    OverallStatistics,
    RelationStatistics,
    YearlyStatistics,
)

UNSPECIFIED_RELATION = "미지정"
DEFAULT_AVERAGE_PLACES = 2


def average(total: Decimal, count: int, places: int = DEFAULT_AVERAGE_PLACES) -> Decimal:
    """total / count rounded half-up; 0 for an empty group."""
    quantum = Decimal(1).scaleb(-places)
    if count == 0:
        return Decimal(0).quantize(quantum)
    return (Decimal(total) / count).quantize(quantum, rounding=ROUND_HALF_UP)


def months_ago(today: date, months: int) -> date:
    """
    Same day ``months`` calendar months earlier, clamped to month end.

    Windows reaching before year 1 start at date.min.
    """
    month_index = today.year * 12 + (today.month - 1) - months
    year, month = divmod(month_index, 12)
    if year < MINYEAR:
        return date.min
    if year > MAXYEAR:
        return date.max
    month += 1
    day = min(today.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def normalize_relation(relation: Optional[str]) -> Optional[str]:
    if relation is None or not relation.strip():
        return None
    return relation


@dataclass
class _Tally:
    """Running RECEIVED/SENT sums for one group."""

    received_total: Decimal = field(default_factory=Decimal)
    received_count: int = 0
    sent_total: Decimal = field(default_factory=Decimal)
    sent_count: int = 0

    def add(self, entry: Any) -> None:
        amount = Decimal(entry.amount)
        if entry.transaction_type == TransactionType.SENT:
            self.sent_total += amount
            self.sent_count += 1
        else:
            self.received_total += amount
            self.received_count += 1

    @property
    def total(self) -> Decimal:
        return self.received_total + self.sent_total

    @property
    def count(self) -> int:
        return self.received_count + self.sent_count

    @property
    def balance(self) -> Decimal:
        return self.received_total - self.sent_total


def _group(entries: Iterable[Any], key: Callable[[Any], Hashable]) -> Dict[Hashable, _Tally]:
    groups: Dict[Hashable, _Tally] = {}
    for entry in entries:
        groups.setdefault(key(entry), _Tally()).add(entry)
    return groups


def overall_statistics(entries: Iterable[Any], places: int = DEFAULT_AVERAGE_PLACES) -> OverallStatistics:
    tally = _Tally()
    for entry in entries:
        tally.add(entry)

    return OverallStatistics(
        received_total=tally.received_total,
        received_count=tally.received_count,
        received_average=average(tally.received_total, tally.received_count, places),
        sent_total=tally.sent_total,
        sent_count=tally.sent_count,
        sent_average=average(tally.sent_total, tally.sent_count, places),
        total_amount=tally.total,
        total_count=tally.count,
        average_amount=average(tally.total, tally.count, places),
    )


def yearly_statistics(entries: Iterable[Any]) -> List[YearlyStatistics]:
    groups = _group(entries, lambda e: e.event_date.year)
    return [
        YearlyStatistics(
            year=year,
            received_total=tally.received_total,
            received_count=tally.received_count,
            sent_total=tally.sent_total,
            sent_count=tally.sent_count,
            difference=tally.balance,
        )
        for year, tally in sorted(groups.items(), key=lambda item: item[0], reverse=True)
    ]


def monthly_statistics(entries: Iterable[Any], since: date) -> List[MonthlyStatistics]:
    """Per (year, month) for entries dated on or after ``since``."""
    recent = (e for e in entries if e.event_date >= since)
    groups = _group(recent, lambda e: (e.event_date.year, e.event_date.month))
    return [
        MonthlyStatistics(
            year=year,
            month=month,
            received_total=tally.received_total,
            received_count=tally.received_count,
            sent_total=tally.sent_total,
            sent_count=tally.sent_count,
        )
        for (year, month), tally in sorted(groups.items(), key=lambda item: item[0], reverse=True)
    ]


def counterparty_statistics(entries: Iterable[Any]) -> List[CounterpartyStatistics]:
    """
    Per (counterparty_name, relation); blank relations count as none.

    last_event_type comes from the latest-dated entry of the group; when
    several share that date the one with the highest id wins.
    """
    tallies: Dict[Tuple[str, Optional[str]], _Tally] = {}
    latest: Dict[Tuple[str, Optional[str]], Tuple[date, int, str]] = {}

    for entry in entries:
        key = (entry.counterparty_name, normalize_relation(entry.relation))
        tallies.setdefault(key, _Tally()).add(entry)

        candidate = (entry.event_date, entry.id, entry.event_type)
        current = latest.get(key)
        if current is None or candidate[:2] > current[:2]:
            latest[key] = candidate

    stats = [
        CounterpartyStatistics(
            counterparty_name=name,
            relation=relation,
            received_total=tally.received_total,
            received_count=tally.received_count,
            sent_total=tally.sent_total,
            sent_count=tally.sent_count,
            balance=tally.balance,
            last_event_date=latest[(name, relation)][0],
            last_event_type=latest[(name, relation)][2],
        )
        for (name, relation), tally in tallies.items()
    ]
    stats.sort(key=lambda s: (-s.balance, s.counterparty_name, s.relation or ""))
    return stats


def _by_total_desc(groups: Dict[Hashable, _Tally]) -> List[Tuple[Hashable, _Tally]]:
    return sorted(groups.items(), key=lambda item: (-item[1].total, item[0]))


def event_type_statistics(entries: Iterable[Any], places: int = DEFAULT_AVERAGE_PLACES) -> List[EventTypeStatistics]:
    groups = _group(entries, lambda e: e.event_type)
    return [
        EventTypeStatistics(
            event_type=event_type,
            received_total=tally.received_total,
            received_count=tally.received_count,
            sent_total=tally.sent_total,
            sent_count=tally.sent_count,
            average_received=average(tally.received_total, tally.received_count, places),
            average_sent=average(tally.sent_total, tally.sent_count, places),
        )
        for event_type, tally in _by_total_desc(groups)
    ]


def relation_statistics(entries: Iterable[Any], places: int = DEFAULT_AVERAGE_PLACES) -> List[RelationStatistics]:
    """Per relation; None and blank relations share the UNSPECIFIED_RELATION bucket."""
    groups = _group(entries, lambda e: normalize_relation(e.relation) or UNSPECIFIED_RELATION)
    return [
        RelationStatistics(
            relation=relation,
            received_total=tally.received_total,
            received_count=tally.received_count,
            sent_total=tally.sent_total,
            sent_count=tally.sent_count,
            average_received=average(tally.received_total, tally.received_count, places),
            average_sent=average(tally.sent_total, tally.sent_count, places),
        )
        for relation, tally in _by_total_desc(groups)
    ]
