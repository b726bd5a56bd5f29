"""Statistics service for time entries.
Pure aggregation over an already-scoped set of entries.
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional

from timesheet_engine.domain.models.time_entry import TimeEntry, TimeEntryStatus


@dataclass(frozen=True)
class UserHours:
    """Hours logged by one user."""
    user_id: str
    total_hours: float
    entry_count: int


@dataclass(frozen=True)
class TimeEntryStats:
    """Derived counts over a set of entries. Recomputed on every request."""
    total_hours: float = 0.0
    billable_hours: float = 0.0
    total_entries: int = 0
    draft_entries: int = 0
    submitted_entries: int = 0
    approved_entries: int = 0
    rejected_entries: int = 0
    total_billed_amount: float = 0.0
    top_users: List[UserHours] = field(default_factory=list)


@dataclass(frozen=True)
class TimesheetTotals:
    total_hours: float = 0.0
    billable_hours: float = 0.0
    total_entries: int = 0
    billed_amount: float = 0.0


@dataclass
class Timesheet:
    """One user's entries for a period, grouped by day."""
    user_id: str
    entries: List[TimeEntry]
    grouped_by_date: Dict[str, List[TimeEntry]]
    totals: TimesheetTotals


class StatisticsService:
    """
    Domain service computing statistics and timesheet views.
    Never reads from or writes to a store.
    """

    def aggregate(self, entries: List[TimeEntry], top_users_limit: int = 5) -> TimeEntryStats:
        """Compute stats over ``entries``."""
        status_counts = {status: 0 for status in TimeEntryStatus}
        total_hours = 0.0
        billable_hours = 0.0
        billed_amount = 0.0
        per_user: Dict[str, List[float]] = {}

        for entry in entries:
            status_counts[entry.status] += 1
            total_hours += entry.duration
            if entry.billable:
                billable_hours += entry.duration
            billed_amount += entry.billed_amount

            hours_and_count = per_user.setdefault(entry.user_id, [0.0, 0])
            hours_and_count[0] += entry.duration
            hours_and_count[1] += 1

        return TimeEntryStats(
            total_hours=round(total_hours, 2),
            billable_hours=round(billable_hours, 2),
            total_entries=len(entries),
            draft_entries=status_counts[TimeEntryStatus.DRAFT],
            submitted_entries=status_counts[TimeEntryStatus.SUBMITTED],
            approved_entries=status_counts[TimeEntryStatus.APPROVED],
            rejected_entries=status_counts[TimeEntryStatus.REJECTED],
            total_billed_amount=round(billed_amount, 2),
            top_users=self._top_users(per_user, top_users_limit),
        )

    def build_timesheet(
        self,
        user_id: str,
        entries: List[TimeEntry]
    ) -> Timesheet:
        """
        Build a timesheet for one user.
        Entries are ordered by date then creation time; groups follow that order.
        """
        ordered = sorted(entries, key=lambda e: (e.date, e.created_at))

        grouped: Dict[str, List[TimeEntry]] = OrderedDict()
        for entry in ordered:
            grouped.setdefault(entry.date.isoformat(), []).append(entry)

        totals = TimesheetTotals(
            total_hours=round(sum(e.duration for e in ordered), 2),
            billable_hours=round(sum(e.duration for e in ordered if e.billable), 2),
            total_entries=len(ordered),
            billed_amount=round(sum(e.billed_amount for e in ordered), 2),
        )

        return Timesheet(
            user_id=user_id,
            entries=ordered,
            grouped_by_date=grouped,
            totals=totals,
        )

    def _top_users(
        self,
        per_user: Dict[str, List[float]],
        limit: Optional[int]
    ) -> List[UserHours]:
        if not limit or limit <= 0:
            return []

        ranked = sorted(
            per_user.items(),
            key=lambda item: (-item[1][0], item[0])
        )
        return [
            UserHours(user_id=user_id, total_hours=round(hours, 2), entry_count=int(count))
            for user_id, (hours, count) in ranked[:limit]
        ]


def stats_to_dict(stats: TimeEntryStats) -> Dict[str, Any]:
    """Plain dictionary view of stats."""
    return {
        "total_hours": stats.total_hours,
        "billable_hours": stats.billable_hours,
        "total_entries": stats.total_entries,
        "draft_entries": stats.draft_entries,
        "submitted_entries": stats.submitted_entries,
        "approved_entries": stats.approved_entries,
        "rejected_entries": stats.rejected_entries,
        "total_billed_amount": stats.total_billed_amount,
        "top_users": [
            {"user_id": u.user_id, "total_hours": u.total_hours, "entry_count": u.entry_count}
            for u in stats.top_users
        ],
    }
