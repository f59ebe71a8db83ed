"""
Sales statistics for the admin, host and guest dashboards.

All three reports share one reduction: filter bookings to a scope, sum their
prices, and bucket the sums per calendar day into chart rows
``[["Day", label], ["D/M", total], ...]`` in chronological order.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pymongo.database import Database

from rooms import RoomStore
from schemas import AdminStats, ChartRow, GuestStats, HostStats
from users import UserStore


@dataclass(frozen=True)
class Scope:
    host_email: Optional[str] = None
    guest_email: Optional[str] = None

    def query(self) -> Dict[str, Any]:
        filter_: Dict[str, Any] = {}
        if self.host_email:
            filter_["host.email"] = self.host_email
        if self.guest_email:
            filter_["guest.email"] = self.guest_email
        return filter_

    def matches(self, event: Mapping[str, Any]) -> bool:
        if self.host_email and (event.get("host") or {}).get("email") != self.host_email:
            return False
        if self.guest_email and (event.get("guest") or {}).get("email") != self.guest_email:
            return False
        return True


@dataclass
class SalesSummary:
    total: float = 0
    count: int = 0
    chart_data: List[ChartRow] = field(default_factory=list)


def to_day(value: Union[str, date, datetime]) -> date:
    # ISO strings are cut at the date part; no offset is applied.
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def event_day(event: Mapping[str, Any]) -> date:
    # Stored bookings carry ``day``, the client's calendar day, next to the UTC ``date``.
    return to_day(event.get("day") or event["date"])


def day_label(day: date) -> str:
    return f"{day.day}/{day.month}"


def aggregate(events: Iterable[Mapping[str, Any]], label: str = "Sales", scope: Scope = Scope()) -> SalesSummary:
    summary = SalesSummary()
    daily: Dict[date, float] = defaultdict(float)
    for event in events:
        if not scope.matches(event):
            continue
        price = event.get("price") or 0
        summary.total += price
        summary.count += 1
        daily[event_day(event)] += price

    summary.chart_data = [["Day", label]]
    summary.chart_data.extend([day_label(day), daily[day]] for day in sorted(daily))
    return summary


def _bookings(db: Database, scope: Scope) -> List[Dict[str, Any]]:
    projection = {"date": 1, "day": 1, "price": 1, "host.email": 1, "guest.email": 1}
    return list(db["booking"].find(scope.query(), projection))


def admin_stats(db: Database) -> AdminStats:
    summary = aggregate(_bookings(db, Scope()))
    return AdminStats(
        total_users=UserStore(db).count(),
        total_rooms=RoomStore(db).count(),
        total_bookings=summary.count,
        total_sales=summary.total,
        chart_data=summary.chart_data,
    )


def host_stats(db: Database, email: str) -> HostStats:
    scope = Scope(host_email=email)
    summary = aggregate(_bookings(db, scope), scope=scope)
    user = UserStore(db).get(email)
    return HostStats(
        total_rooms=RoomStore(db).count(host_email=email),
        total_bookings=summary.count,
        total_sales=summary.total,
        host_since=user.get("created_at"),
        chart_data=summary.chart_data,
    )


def guest_stats(db: Database, email: str) -> GuestStats:
    scope = Scope(guest_email=email)
    summary = aggregate(_bookings(db, scope), label="Spend", scope=scope)
    user = UserStore(db).get(email)
    return GuestStats(
        total_bookings=summary.count,
        total_spent=summary.total,
        guest_since=user.get("created_at"),
        chart_data=summary.chart_data,
    )
