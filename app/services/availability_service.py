from typing import Dict, Any, List, Optional
from datetime import date, datetime, timedelta
from bson import ObjectId
import logging

from app.db.mongodb import db
from app.schemas.booking import ACTIVE_BOOKING_STATUSES
from app.schemas.slot import WEEKDAYS, DayOfWeek
from app.utils.time import parse_calendar_date, local_midnight, local_wall_clock, as_utc, to_iso_utc

logger = logging.getLogger(__name__)

def get_day_label(day_start: datetime) -> DayOfWeek:
    """
    Weekday label for a date, looked up with Sunday = 0
    """
    return WEEKDAYS[day_start.isoweekday() % 7]

def build_slot_datetime(day: date, minutes_from_midnight: int) -> datetime:
    return local_wall_clock(day, minutes_from_midnight)

def is_slot_taken(busy_list: List[Dict[str, datetime]], slot_start: datetime, slot_end: datetime) -> bool:
    # Touching endpoints are not an overlap
    return any(b["start"] < slot_end and b["end"] > slot_start for b in busy_list)

def stylist_display_name(stylist: Dict[str, Any]) -> str:
    return f"{stylist.get('firstName') or ''} {stylist.get('lastName') or ''}".strip()

async def get_slot_templates(
    service_id: str,
    day_label: DayOfWeek,
    stylist_id: Optional[str] = None
) -> List[Dict[str, Any]]:
    """
    Get active slot templates of a service for one weekday, ordered by start offset.
    Each template gets its stylist document under "stylist"; templates whose
    stylist no longer exists are left out.
    """
    query = {
        "serviceId": ObjectId(service_id),
        "dayOfWeek": day_label.value,
        "isActive": True
    }
    if stylist_id:
        query["stylistId"] = ObjectId(stylist_id)

    cursor = db.db.service_slots.find(query).sort("startMin", 1)
    slots = await cursor.to_list(length=None)
    if not slots:
        return []

    stylist_oids = list({slot["stylistId"] for slot in slots})
    stylists_cursor = db.db.users.find(
        {"_id": {"$in": stylist_oids}},
        {"firstName": 1, "lastName": 1}
    )
    stylists = {str(s["_id"]): s for s in await stylists_cursor.to_list(length=None)}

    templates = []
    for slot in slots:
        stylist = stylists.get(str(slot["stylistId"]))
        if not stylist:
            logger.warning(f"Slot {slot['_id']} references missing stylist {slot['stylistId']}")
            continue
        slot["stylist"] = stylist
        templates.append(slot)

    return templates

async def get_busy_intervals(
    stylist_ids: List[str],
    day_start: datetime,
    day_end: datetime
) -> Dict[str, List[Dict[str, datetime]]]:
    """
    Get the occupied intervals of each stylist for bookings starting within [day_start, day_end)
    """
    cursor = db.db.bookings.find(
        {
            "stylistId": {"$in": [ObjectId(s) for s in stylist_ids]},
            "start": {"$gte": day_start, "$lt": day_end},
            "status": {"$in": [s.value for s in ACTIVE_BOOKING_STATUSES]}
        },
        {"stylistId": 1, "start": 1, "end": 1}
    )
    bookings = await cursor.to_list(length=None)

    busy_by_stylist: Dict[str, List[Dict[str, datetime]]] = {}
    for booking in bookings:
        key = str(booking["stylistId"])
        busy_by_stylist.setdefault(key, []).append({
            "start": as_utc(booking["start"]),
            "end": as_utc(booking["end"])
        })

    return busy_by_stylist

async def compute_availability(
    date_str: str,
    service_id: str,
    stylist_id: Optional[str] = None
) -> List[Dict[str, str]]:
    """
    Compute the free appointment windows of a service on a date.

    Args:
        date_str: Day to check, "YYYY-MM-DD", interpreted in server local time
        service_id: Service whose slot templates are used
        stylist_id: Optional stylist to narrow the search to

    Returns:
        Windows ordered by start offset, each with slotId, stylistId,
        stylistName and ISO UTC start/end. Malformed ids or dates give an
        empty list; a malformed stylist_id is ignored.
    """
    if not ObjectId.is_valid(service_id):
        return []

    day = parse_calendar_date(date_str)
    if day is None:
        return []

    if stylist_id and not ObjectId.is_valid(stylist_id):
        stylist_id = None

    day_start = local_midnight(day)
    day_label = get_day_label(day_start)

    slots = await get_slot_templates(service_id, day_label, stylist_id)
    if not slots:
        return []

    stylist_ids = list({str(slot["stylistId"]) for slot in slots})
    day_end = day_start + timedelta(days=1)
    busy_by_stylist = await get_busy_intervals(stylist_ids, day_start, day_end)

    result = []
    for slot in slots:
        slot_start = build_slot_datetime(day, slot["startMin"])
        slot_end = build_slot_datetime(day, slot["endMin"])
        key = str(slot["stylistId"])
        if is_slot_taken(busy_by_stylist.get(key, []), slot_start, slot_end):
            continue
        result.append({
            "slotId": str(slot["_id"]),
            "stylistId": key,
            "stylistName": stylist_display_name(slot["stylist"]),
            "start": to_iso_utc(slot_start),
            "end": to_iso_utc(slot_end)
        })

    logger.debug(
        f"Availability for service {service_id} on {date_str}: "
        f"{len(result)} of {len(slots)} slots free"
    )
    return result
