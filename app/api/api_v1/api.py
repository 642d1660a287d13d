from fastapi import APIRouter
from app.api.api_v1.endpoints import availability, payments, reports

router = APIRouter()

# Include all routers
router.include_router(availability.router, prefix="/availability", tags=["Availability"])
router.include_router(payments.router, prefix="/payments", tags=["Payments"])
router.include_router(reports.router, prefix="/reports", tags=["Reports"])
