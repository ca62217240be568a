"""
Domain: operational statistics over the grading record set.

Pure functions of their inputs, recomputed on every request. Expected volumes
are hundreds to low thousands of records, so nothing is maintained incrementally.

Rules:
- total_orders counts grading records (one per submitted card).
- orders_by_status reports every status, including those with zero records.
- average_completion_time = mean(graded_at - created_at) over completed records,
  and is None when no record is completed (zero would imply instant grading).
- total_revenue sums paid orders when orders are supplied; otherwise it is
  re-derived from the records with the submission price function.
- The population report can be narrowed to a set or a card; percentages are
  0.0 for every grade of an empty report.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Sequence
from uuid import UUID

from .grade import FinalGrade
from .grading_record import GradingRecord, GradingStatus, HistoryEvent
from .order import Order
from .pricing import CENT, submission_price
from .time import require_utc_timestamp, same_utc_month


@dataclass(frozen=True, slots=True)
class GradingStats:
    total_orders: int
    orders_by_status: Mapping[GradingStatus, int]
    total_revenue: Decimal
    orders_this_month: int
    average_completion_time: Optional[timedelta]
    completed_this_month: int

    @property
    def average_completion_days(self) -> Optional[float]:
        """Average turnaround in days (None when nothing is completed)."""

        if self.average_completion_time is None:
            return None
        return self.average_completion_time / timedelta(days=1)


def _average_completion_time(records: Sequence[GradingRecord]) -> Optional[timedelta]:
    durations: List[timedelta] = [
        record.graded_at - record.created_at
        for record in records
        if record.status is GradingStatus.COMPLETED and record.graded_at is not None
    ]
    if not durations:
        return None
    return sum(durations, timedelta(0)) / len(durations)


def _revenue_from_orders(orders: Sequence[Order]) -> Decimal:
    total = sum((order.total_amount for order in orders if order.is_paid), Decimal("0"))
    return total.quantize(CENT)


def _revenue_from_records(records: Sequence[GradingRecord]) -> Decimal:
    by_order: Dict[UUID, List[GradingRecord]] = defaultdict(list)
    for record in records:
        by_order[record.order_id].append(record)

    total = Decimal("0")
    for cards in by_order.values():
        first = cards[0]
        total += submission_price(first.service_type, len(cards), first.shipping_method)
    return total.quantize(CENT)


def compute_stats(
    records: Sequence[GradingRecord],
    history: Sequence[HistoryEvent],
    orders: Sequence[Order] = (),
    *,
    as_of: datetime,
) -> GradingStats:
    """
    Compute dashboard statistics.

    Args:
        records: Every grading record
        history: Every history event (used for monthly throughput)
        orders: Submission orders; when empty, revenue is derived from records
        as_of: Reference time for "this month" figures (UTC)

    Returns:
        GradingStats
    """

    require_utc_timestamp("as_of", as_of)

    status_counts = Counter(record.status for record in records)
    orders_by_status = {status: status_counts.get(status, 0) for status in GradingStatus}

    orders_this_month = sum(1 for record in records if same_utc_month(record.created_at, as_of))
    completed_this_month = sum(
        1
        for event in history
        if event.status is GradingStatus.COMPLETED and same_utc_month(event.changed_at, as_of)
    )

    revenue = _revenue_from_orders(orders) if orders else _revenue_from_records(records)

    return GradingStats(
        total_orders=len(records),
        orders_by_status=orders_by_status,
        total_revenue=revenue,
        orders_this_month=orders_this_month,
        average_completion_time=_average_completion_time(records),
        completed_this_month=completed_this_month,
    )


def _matches(value: str, wanted: Optional[str]) -> bool:
    return wanted is None or value.strip().casefold() == wanted.strip().casefold()


def compute_grade_population(
    records: Sequence[GradingRecord],
    *,
    set_name: Optional[str] = None,
    card_name: Optional[str] = None,
) -> Dict[FinalGrade, int]:
    """
    Population report: number of completed cards per final grade.

    Every grade on the scale is present, highest grade first. set_name and
    card_name narrow the report to one set or one card (case-insensitive).
    """

    counts = Counter(
        record.grading.final_grade
        for record in records
        if record.status is GradingStatus.COMPLETED
        and record.grading is not None
        and _matches(record.card.set_name, set_name)
        and _matches(record.card.name, card_name)
    )
    return {grade: counts.get(grade, 0) for grade in reversed(list(FinalGrade))}


def population_percentages(population: Mapping[FinalGrade, int]) -> Dict[FinalGrade, float]:
    """Share of each grade in a population report, in percent to one decimal."""

    total = sum(population.values())
    if total == 0:
        return {grade: 0.0 for grade in population}
    return {grade: round(count * 100 / total, 1) for grade, count in population.items()}


__all__ = ["GradingStats", "compute_grade_population", "compute_stats", "population_percentages"]
