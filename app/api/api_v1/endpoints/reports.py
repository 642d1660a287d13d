from fastapi import APIRouter, Query, Response
from typing import Optional
from datetime import datetime

from app.schemas.report import ReportPeriod, SummaryReport, RevenueReport, StylistRevenueReport
from app.services.report_service import (
    get_summary_report, get_revenue_report, get_stylist_revenue_report
)
from app.services.report_pdf_service import render_report_pdf, report_filename

router = APIRouter()

@router.get("/summary", response_model=SummaryReport)
async def summary_report(
    period: ReportPeriod = Query(ReportPeriod.MONTH, description="day, week, month, year or custom"),
    from_date: Optional[datetime] = Query(None, alias="from", description="Start of a custom range (ISO)"),
    to_date: Optional[datetime] = Query(None, alias="to", description="End of a custom range (ISO)")
):
    """
    Full report: revenue by period, stylist and service, bookings by status and ratings
    """
    return await get_summary_report(period, from_date, to_date)

@router.get("/revenue", response_model=RevenueReport)
async def revenue_report(
    period: ReportPeriod = Query(ReportPeriod.MONTH),
    from_date: Optional[datetime] = Query(None, alias="from"),
    to_date: Optional[datetime] = Query(None, alias="to")
):
    """
    Shop revenue grouped by period
    """
    return await get_revenue_report(period, from_date, to_date)

@router.get("/stylists-revenue", response_model=StylistRevenueReport)
async def stylists_revenue_report(
    period: ReportPeriod = Query(ReportPeriod.MONTH),
    from_date: Optional[datetime] = Query(None, alias="from"),
    to_date: Optional[datetime] = Query(None, alias="to")
):
    """
    Revenue per stylist
    """
    return await get_stylist_revenue_report(period, from_date, to_date)

@router.get("/pdf")
async def download_report_pdf(
    period: ReportPeriod = Query(ReportPeriod.MONTH),
    from_date: Optional[datetime] = Query(None, alias="from"),
    to_date: Optional[datetime] = Query(None, alias="to")
):
    """
    Download the full report as a PDF
    """
    summary = await get_summary_report(period, from_date, to_date)
    pdf_bytes = render_report_pdf(summary)
    filename = report_filename(period.value)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )
