"""
Queue service for picking the next card to grade.

Queued records are worked in service-priority order (premium, then express,
then standard) and, within a tier, oldest submission first.
"""

from __future__ import annotations

from typing import List, Mapping, Optional

from domain.grading_record import GradingRecord, GradingStatus, ServiceType
from repositories.grading_store import GradingStore

SERVICE_PRIORITY: Mapping[ServiceType, int] = {
    ServiceType.PREMIUM: 0,
    ServiceType.EXPRESS: 1,
    ServiceType.STANDARD: 2,
}


def list_queue(store: GradingStore) -> List[GradingRecord]:
    """All queued records in the order they should be graded."""
    queued = store.list_records(status=GradingStatus.QUEUED)
    return sorted(queued, key=lambda r: (SERVICE_PRIORITY[r.service_type], r.created_at))


def get_next_in_queue(store: GradingStore) -> Optional[GradingRecord]:
    """
    The next record a grader should pick up, or None if the queue is empty.

    Example:
        record = get_next_in_queue(store)
        if record is not None:
            service.start_grading(record.record_id, actor=grader)
    """
    queue = list_queue(store)
    return queue[0] if queue else None


__all__ = ["SERVICE_PRIORITY", "get_next_in_queue", "list_queue"]
