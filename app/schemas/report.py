from pydantic import BaseModel
from typing import Optional, List
from enum import Enum

class ReportPeriod(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    CUSTOM = "custom"

class PeriodRevenue(BaseModel):
    period: Optional[str] = None
    total: float
    count: int

class StylistRevenue(BaseModel):
    stylistId: str
    stylistName: str
    totalRevenue: float
    bookingsCount: int

class ServiceRevenue(BaseModel):
    serviceId: str
    serviceName: str
    totalRevenue: float
    bookingsCount: int

class StatusCount(BaseModel):
    status: Optional[str] = None
    count: int

class StylistRating(BaseModel):
    stylistId: str
    stylistName: str
    avgRating: float
    ratingsCount: int

class ReportTotals(BaseModel):
    totalRevenue: float
    totalBookings: int

class RevenueReport(BaseModel):
    range: dict
    revenueByPeriod: List[PeriodRevenue]

class StylistRevenueReport(BaseModel):
    range: dict
    revenueByStylist: List[StylistRevenue]

class SummaryReport(BaseModel):
    range: dict
    totals: ReportTotals
    revenueByPeriod: List[PeriodRevenue]
    revenueByStylist: List[StylistRevenue]
    topServices: List[ServiceRevenue]
    bookingsByStatus: List[StatusCount]
    ratingsByStylist: List[StylistRating]
