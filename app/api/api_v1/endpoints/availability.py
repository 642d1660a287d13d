from fastapi import APIRouter, Query
from typing import List, Optional
import logging

from app.schemas.slot import AvailabilityWindow
from app.services.availability_service import compute_availability

router = APIRouter()
logger = logging.getLogger(__name__)

@router.get("/", response_model=List[AvailabilityWindow])
async def get_availability(
    date: str = Query(..., description="Date in YYYY-MM-DD format"),
    serviceId: str = Query(..., description="Service to book"),
    stylistId: Optional[str] = Query(None, description="Only this stylist's slots")
):
    """
    Get the free appointment windows of a service on a date.
    Unknown or malformed ids and dates give an empty list.
    """
    return await compute_availability(date, serviceId, stylistId)
