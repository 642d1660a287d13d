from pydantic import BaseModel, Field, model_validator
from enum import Enum

class DayOfWeek(str, Enum):
    SUNDAY = "sunday"
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"

# Indexed by day number with Sunday = 0, Saturday = 6
WEEKDAYS = (
    DayOfWeek.SUNDAY,
    DayOfWeek.MONDAY,
    DayOfWeek.TUESDAY,
    DayOfWeek.WEDNESDAY,
    DayOfWeek.THURSDAY,
    DayOfWeek.FRIDAY,
    DayOfWeek.SATURDAY,
)

MINUTES_PER_DAY = 24 * 60

class ServiceSlot(BaseModel):
    """Recurring weekly window in which a stylist offers a service."""
    id: str = Field(..., alias="_id")
    serviceId: str
    stylistId: str
    dayOfWeek: DayOfWeek
    startMin: int = Field(..., ge=0, le=MINUTES_PER_DAY)
    endMin: int = Field(..., ge=0, le=MINUTES_PER_DAY)
    isActive: bool = True

    @model_validator(mode="after")
    def check_offsets(self):
        if self.startMin >= self.endMin:
            raise ValueError("startMin must be lower than endMin")
        return self

    class Config:
        populate_by_name = True

class AvailabilityWindow(BaseModel):
    slotId: str
    stylistId: str
    stylistName: str
    start: str  # ISO-8601, UTC
    end: str  # ISO-8601, UTC
