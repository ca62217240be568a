"""
Stats service for the admin dashboard.

Loads the full record set, history and orders from the store and hands them to
the pure aggregations in domain.stats. Nothing is cached; figures are
recomputed on every call.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

from domain.grade import FinalGrade
from domain.grading_record import GradingStatus
from domain.stats import GradingStats, compute_grade_population, compute_stats
from domain.time import utc_now
from repositories.grading_store import GradingStore


def get_dashboard_stats(store: GradingStore, *, as_of: Optional[datetime] = None) -> GradingStats:
    """
    Compute dashboard statistics from the current store contents.

    Args:
        store: Grading store to read from
        as_of: Reference time for monthly figures (default: current UTC time)

    Returns:
        GradingStats

    Example:
        stats = get_dashboard_stats(store)
        print(f"{stats.total_orders} cards, {stats.total_revenue} EUR revenue")
    """
    return compute_stats(
        store.list_records(),
        store.list_history(),
        store.list_orders(),
        as_of=as_of or utc_now(),
    )


def get_grade_population(
    store: GradingStore,
    *,
    set_name: Optional[str] = None,
    card_name: Optional[str] = None,
) -> Dict[FinalGrade, int]:
    """Number of completed cards per final grade, highest grade first, optionally for one set or card."""
    return compute_grade_population(
        store.list_records(status=GradingStatus.COMPLETED),
        set_name=set_name,
        card_name=card_name,
    )


__all__ = ["get_dashboard_stats", "get_grade_population"]
