"""
Client-side shipment filters.

Admin table filtering (status, text search, creation-date range) and the
user dashboard's lifecycle buckets. Both work on already fetched rows.
"""

import enum
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, List, Optional

from postal.app.models.shipment_enums import ShipmentStatus
from postal.app.schemas.shipment import ShipmentRow


@dataclass
class ShipmentFilter:
    """
    Admin shipments-table filter.

    Every active predicate must hold. The date range applies only when both
    ends are set and includes the whole end day.
    """
    status: Optional[str] = None
    search: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @property
    def date_range_active(self) -> bool:
        return self.start_date is not None and self.end_date is not None

    def matches(self, row: ShipmentRow) -> bool:
        if self.status and row.status != self.status:
            return False

        if self.search:
            needle = self.search.lower()
            sender_email = row.sender.email if row.sender else ""
            haystacks = (str(row.id), sender_email.lower(), row.to_address.lower(), row.status.lower())
            if not any(needle in haystack for haystack in haystacks):
                return False

        if self.date_range_active:
            created = _naive(row.created_at)
            start = datetime.combine(self.start_date, time.min)
            end = datetime.combine(self.end_date + timedelta(days=1), time.min)
            if not (start <= created < end):
                return False

        return True

    def apply(self, rows: Iterable[ShipmentRow]) -> List[ShipmentRow]:
        return [row for row in rows if self.matches(row)]


def _naive(value: datetime) -> datetime:
    # Stored timestamps are UTC; SQLite hands them back without tzinfo
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.replace(tzinfo=None)


class LifecycleBucket(str, enum.Enum):
    ACTIVE = "active"
    HISTORY = "history"
    CANCELED = "canceled"


# out_for_delivery and failed_delivery belong to no bucket
BUCKET_STATUSES = {
    LifecycleBucket.ACTIVE: {ShipmentStatus.PENDING, ShipmentStatus.PICKED_UP, ShipmentStatus.IN_TRANSIT},
    LifecycleBucket.HISTORY: {ShipmentStatus.DELIVERED, ShipmentStatus.RETURNED},
    LifecycleBucket.CANCELED: {ShipmentStatus.CANCELLED},
}


def in_bucket(row: ShipmentRow, bucket: LifecycleBucket) -> bool:
    return row.status in {s.value for s in BUCKET_STATUSES[bucket]}
