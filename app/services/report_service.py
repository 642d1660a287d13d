"""
Reporting aggregations

Revenue, booking and rating rollups over a date range, computed with
MongoDB aggregation pipelines and bucketed in the configured reports
time zone.
"""

import asyncio
import calendar
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from app.core.config import settings
from app.db.mongodb import db
from app.schemas.payment import PaymentStatus
from app.schemas.report import ReportPeriod

logger = logging.getLogger(__name__)

TOP_SERVICES_LIMIT = 10

def _end_of_day(value: datetime) -> datetime:
    return value.replace(hour=23, minute=59, second=59, microsecond=999000)

def _start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)

def normalize_date_range(
    period: ReportPeriod,
    from_date: Optional[datetime] = None,
    to_date: Optional[datetime] = None,
    now: Optional[datetime] = None
) -> Tuple[Optional[datetime], Optional[datetime], str]:
    """
    Resolve a report period into (start, end, label).

    Calendar periods are computed in server local time and returned as aware
    datetimes; a custom period passes the given bounds through, either of
    which may be missing.
    """
    period = ReportPeriod(period)

    if period == ReportPeriod.CUSTOM:
        label = (
            f"Custom {from_date.isoformat() if from_date else ''}"
            f" - {to_date.isoformat() if to_date else ''}"
        )
        return from_date, to_date, label

    now = now or datetime.now()

    if period == ReportPeriod.DAY:
        start = _start_of_day(now)
        end = _end_of_day(now)
        label = "Today"
    elif period == ReportPeriod.WEEK:
        # Weeks start on Monday
        start = _start_of_day(now - timedelta(days=now.weekday()))
        end = _end_of_day(start + timedelta(days=6))
        label = "Current week"
    elif period == ReportPeriod.MONTH:
        _, last_day = calendar.monthrange(now.year, now.month)
        start = _start_of_day(now.replace(day=1))
        end = _end_of_day(now.replace(day=last_day))
        label = "Current month"
    else:
        start = _start_of_day(now.replace(month=1, day=1))
        end = _end_of_day(now.replace(month=12, day=31))
        label = "Current year"

    return start.astimezone(), end.astimezone(), label

def get_period_group_id(period: ReportPeriod, timezone: Optional[str] = None) -> Dict[str, Any]:
    """
    Grouping expression that buckets "$reportDate" by the period's granularity
    """
    timezone = timezone or settings.REPORTS_TIMEZONE
    period = ReportPeriod(period)

    formats = {
        ReportPeriod.DAY: "%Y-%m-%d",
        ReportPeriod.CUSTOM: "%Y-%m-%d",
        ReportPeriod.MONTH: "%Y-%m",
        ReportPeriod.YEAR: "%Y",
    }
    if period in formats:
        return {
            "$dateToString": {
                "format": formats[period],
                "date": "$reportDate",
                "timezone": timezone
            }
        }

    # ISO week year + week number, e.g. 2024-W23
    iso_date = {"date": "$reportDate", "timezone": timezone}
    return {
        "$concat": [
            {"$toString": {"$isoWeekYear": iso_date}},
            "-W",
            {"$toString": {"$isoWeek": iso_date}}
        ]
    }

def _date_match(field: str, start: Optional[datetime], end: Optional[datetime]) -> List[Dict[str, Any]]:
    date_match = {}
    if start:
        date_match["$gte"] = start
    if end:
        date_match["$lte"] = end
    if not date_match:
        return []
    return [{"$match": {field: date_match}}]

def paid_payments_stages(start: Optional[datetime], end: Optional[datetime]) -> List[Dict[str, Any]]:
    """
    Leading stages shared by revenue pipelines: paid payments dated within the range.
    A payment is dated by paidAt, falling back to createdAt.
    """
    stages = [
        {
            "$addFields": {
                "reportDate": {"$ifNull": ["$paidAt", "$createdAt"]},
                "reportAmount": {"$ifNull": ["$amount", 0]}
            }
        },
        {"$match": {"status": PaymentStatus.PAID.value}}
    ]
    return stages + _date_match("reportDate", start, end)

def _full_name_expr(prefix: str) -> Dict[str, Any]:
    return {
        "$trim": {
            "input": {
                "$concat": [
                    {"$ifNull": [f"${prefix}.firstName", ""]},
                    " ",
                    {"$ifNull": [f"${prefix}.lastName", ""]}
                ]
            }
        }
    }

def _lookup_booking_stages() -> List[Dict[str, Any]]:
    return [
        {
            "$lookup": {
                "from": "bookings",
                "localField": "bookingId",
                "foreignField": "_id",
                "as": "booking"
            }
        },
        {"$unwind": "$booking"}
    ]

def build_revenue_by_period_pipeline(
    period: ReportPeriod,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None
) -> List[Dict[str, Any]]:
    return paid_payments_stages(start, end) + [
        {
            "$group": {
                "_id": get_period_group_id(period),
                "total": {"$sum": "$reportAmount"},
                "count": {"$sum": 1}
            }
        },
        {"$sort": {"_id": 1}}
    ]

def build_revenue_by_stylist_pipeline(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None
) -> List[Dict[str, Any]]:
    return paid_payments_stages(start, end) + _lookup_booking_stages() + [
        {
            "$lookup": {
                "from": "users",
                "localField": "booking.stylistId",
                "foreignField": "_id",
                "as": "stylist"
            }
        },
        {"$unwind": "$stylist"},
        {
            "$group": {
                "_id": "$stylist._id",
                "stylistName": {"$first": _full_name_expr("stylist")},
                "totalRevenue": {"$sum": "$reportAmount"},
                "bookingsCount": {"$sum": 1}
            }
        },
        {"$sort": {"totalRevenue": -1}},
        {
            "$project": {
                "_id": 0,
                "stylistId": {"$toString": "$_id"},
                "stylistName": 1,
                "totalRevenue": 1,
                "bookingsCount": 1
            }
        }
    ]

def build_top_services_pipeline(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    limit: int = TOP_SERVICES_LIMIT
) -> List[Dict[str, Any]]:
    return paid_payments_stages(start, end) + _lookup_booking_stages() + [
        {
            "$lookup": {
                "from": "services",
                "localField": "booking.serviceId",
                "foreignField": "_id",
                "as": "service"
            }
        },
        {"$unwind": "$service"},
        {
            "$group": {
                "_id": "$service._id",
                "serviceName": {"$first": "$service.name"},
                "totalRevenue": {"$sum": "$reportAmount"},
                "bookingsCount": {"$sum": 1}
            }
        },
        {"$sort": {"totalRevenue": -1}},
        {"$limit": limit},
        {
            "$project": {
                "_id": 0,
                "serviceId": {"$toString": "$_id"},
                "serviceName": 1,
                "totalRevenue": 1,
                "bookingsCount": 1
            }
        }
    ]

def build_bookings_by_status_pipeline(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None
) -> List[Dict[str, Any]]:
    return _date_match("start", start, end) + [
        {"$group": {"_id": "$status", "count": {"$sum": 1}}},
        {"$sort": {"count": -1}},
        {"$project": {"_id": 0, "status": "$_id", "count": 1}}
    ]

def build_ratings_by_stylist_pipeline(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None
) -> List[Dict[str, Any]]:
    return _date_match("createdAt", start, end) + [
        {
            "$lookup": {
                "from": "users",
                "localField": "stylistId",
                "foreignField": "_id",
                "as": "stylist"
            }
        },
        {"$unwind": "$stylist"},
        {
            "$group": {
                "_id": "$stylist._id",
                "stylistName": {"$first": _full_name_expr("stylist")},
                "avgRating": {"$avg": "$stars"},
                "ratingsCount": {"$sum": 1}
            }
        },
        {"$sort": {"avgRating": -1}},
        {
            "$project": {
                "_id": 0,
                "stylistId": {"$toString": "$_id"},
                "stylistName": 1,
                "avgRating": 1,
                "ratingsCount": 1
            }
        }
    ]

async def aggregate_revenue_by_period(
    period: ReportPeriod,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None
) -> List[Dict[str, Any]]:
    """
    Shop revenue grouped by day, ISO week, month or year
    """
    pipeline = build_revenue_by_period_pipeline(period, start, end)
    rows = await db.db.payments.aggregate(pipeline).to_list(length=None)
    return [
        {"period": row["_id"], "total": row["total"], "count": row["count"]}
        for row in rows
    ]

async def aggregate_revenue_by_stylist(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None
) -> List[Dict[str, Any]]:
    pipeline = build_revenue_by_stylist_pipeline(start, end)
    return await db.db.payments.aggregate(pipeline).to_list(length=None)

async def aggregate_top_services(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None
) -> List[Dict[str, Any]]:
    pipeline = build_top_services_pipeline(start, end)
    return await db.db.payments.aggregate(pipeline).to_list(length=None)

async def aggregate_bookings_by_status(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None
) -> List[Dict[str, Any]]:
    pipeline = build_bookings_by_status_pipeline(start, end)
    return await db.db.bookings.aggregate(pipeline).to_list(length=None)

async def aggregate_ratings_by_stylist(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None
) -> List[Dict[str, Any]]:
    pipeline = build_ratings_by_stylist_pipeline(start, end)
    return await db.db.ratings.aggregate(pipeline).to_list(length=None)

def build_range(period: ReportPeriod, start: Optional[datetime], end: Optional[datetime], label: str) -> Dict[str, Any]:
    return {"period": ReportPeriod(period).value, "from": start, "to": end, "label": label}

async def get_revenue_report(
    period: ReportPeriod,
    from_date: Optional[datetime] = None,
    to_date: Optional[datetime] = None
) -> Dict[str, Any]:
    start, end, label = normalize_date_range(period, from_date, to_date)
    revenue_by_period = await aggregate_revenue_by_period(period, start, end)
    return {"range": build_range(period, start, end, label), "revenueByPeriod": revenue_by_period}

async def get_stylist_revenue_report(
    period: ReportPeriod,
    from_date: Optional[datetime] = None,
    to_date: Optional[datetime] = None
) -> Dict[str, Any]:
    start, end, label = normalize_date_range(period, from_date, to_date)
    revenue_by_stylist = await aggregate_revenue_by_stylist(start, end)
    return {"range": build_range(period, start, end, label), "revenueByStylist": revenue_by_stylist}

async def get_summary_report(
    period: ReportPeriod,
    from_date: Optional[datetime] = None,
    to_date: Optional[datetime] = None
) -> Dict[str, Any]:
    """
    Every report for the range, plus revenue and paid booking totals
    """
    start, end, label = normalize_date_range(period, from_date, to_date)

    (
        revenue_by_period,
        revenue_by_stylist,
        top_services,
        bookings_by_status,
        ratings_by_stylist
    ) = await asyncio.gather(
        aggregate_revenue_by_period(period, start, end),
        aggregate_revenue_by_stylist(start, end),
        aggregate_top_services(start, end),
        aggregate_bookings_by_status(start, end),
        aggregate_ratings_by_stylist(start, end)
    )

    total_revenue = sum(row.get("total") or 0 for row in revenue_by_period)
    total_bookings = sum(row.get("bookingsCount") or 0 for row in revenue_by_stylist)
    logger.info(f"Summary report '{label}': revenue {total_revenue}, {total_bookings} paid bookings")

    return {
        "range": build_range(period, start, end, label),
        "totals": {
            "totalRevenue": total_revenue,
            "totalBookings": total_bookings
        },
        "revenueByPeriod": revenue_by_period,
        "revenueByStylist": revenue_by_stylist,
        "topServices": top_services,
        "bookingsByStatus": bookings_by_status,
        "ratingsByStylist": ratings_by_stylist
    }
