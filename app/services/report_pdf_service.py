import io
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from app.core.config import settings

logger = logging.getLogger(__name__)

TABLE_STYLE = TableStyle(
    [
        ("FONT", (0, 0), (-1, 0), "Helvetica-Bold", 10),
        ("FONT", (0, 1), (-1, -1), "Helvetica", 10),
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#f1f5f9")),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
        ("TOPPADDING", (0, 0), (-1, -1), 6),
    ]
)

def report_filename(period: str, now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"report-{period}-{int(now.timestamp() * 1000)}.pdf"

def status_distribution(bookings_by_status: List[Dict[str, Any]]) -> List[List[str]]:
    """
    Rows of [status, count, percentage] for the booking status breakdown
    """
    total = sum(row.get("count") or 0 for row in bookings_by_status) or 1
    rows = []
    for row in bookings_by_status:
        count = row.get("count") or 0
        rows.append([row.get("status") or "NO_STATUS", str(count), f"{count / total * 100:.1f}%"])
    return rows

def _table(header: List[str], rows: List[List[str]], col_widths: List[float]):
    if not rows:
        return None
    table = Table([header] + rows, colWidths=col_widths, repeatRows=1)
    table.setStyle(TABLE_STYLE)
    return table

def render_report_pdf(summary: Dict[str, Any], generated_at: Optional[datetime] = None) -> bytes:
    """
    Render the summary report (as returned by get_summary_report) to PDF bytes
    """
    generated_at = generated_at or datetime.now()
    label = summary["range"]["label"]
    logger.info(f"Rendering report PDF for '{label}'")

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=40,
        leftMargin=40,
        topMargin=40,
        bottomMargin=40,
        title=f"Report - {settings.SHOP_NAME}",
    )

    styles = getSampleStyleSheet()
    cover_style = ParagraphStyle("Cover", parent=styles["Title"], fontSize=22, alignment=TA_CENTER)
    centered_style = ParagraphStyle("Centered", parent=styles["Normal"], fontSize=14, alignment=TA_CENTER, leading=20)
    heading_style = ParagraphStyle("Section", parent=styles["Heading2"], fontSize=16, spaceBefore=16, spaceAfter=8)
    body_style = ParagraphStyle("Body", parent=styles["Normal"], fontSize=12, leading=16)
    empty_style = ParagraphStyle("Empty", parent=body_style, textColor=colors.grey)

    totals = summary["totals"]

    story = [
        Spacer(1, 2 * inch),
        Paragraph(f"Shop report - {escape(settings.SHOP_NAME)}", cover_style),
        Spacer(1, 0.3 * inch),
        Paragraph(f"Range: {escape(label)}", centered_style),
        Paragraph(f"Generated: {generated_at.strftime('%Y-%m-%d %H:%M')}", centered_style),
        PageBreak(),
        Paragraph("Overview", heading_style),
        Paragraph(f"Total revenue: ${float(totals['totalRevenue']):.2f}", body_style),
        Paragraph(f"Paid bookings: {totals['totalBookings']}", body_style),
    ]

    sections = [
        (
            "Revenue by period",
            ["Period", "Revenue", "Payments"],
            [
                [r.get("period") or "-", f"${float(r.get('total') or 0):.2f}", str(r["count"])]
                for r in summary["revenueByPeriod"]
            ],
            [3 * inch, 1.75 * inch, 1.75 * inch],
        ),
        (
            "Revenue by stylist",
            ["Stylist", "Revenue", "Bookings"],
            [
                [r["stylistName"], f"${float(r.get('totalRevenue') or 0):.2f}", str(r["bookingsCount"])]
                for r in summary["revenueByStylist"]
            ],
            [3 * inch, 1.75 * inch, 1.75 * inch],
        ),
        (
            "Top services by revenue",
            ["Service", "Revenue", "Bookings"],
            [
                [r["serviceName"], f"${float(r.get('totalRevenue') or 0):.2f}", str(r["bookingsCount"])]
                for r in summary["topServices"]
            ],
            [3 * inch, 1.75 * inch, 1.75 * inch],
        ),
        (
            "Bookings by status",
            ["Status", "Bookings", "Share"],
            status_distribution(summary["bookingsByStatus"]),
            [3 * inch, 1.75 * inch, 1.75 * inch],
        ),
        (
            "Average rating by stylist",
            ["Stylist", "Average", "Reviews"],
            [
                [r["stylistName"], f"{float(r['avgRating']):.2f}", str(r["ratingsCount"])]
                for r in summary["ratingsByStylist"]
            ],
            [3 * inch, 1.75 * inch, 1.75 * inch],
        ),
    ]

    for title, header, rows, widths in sections:
        story.append(Paragraph(title, heading_style))
        table = _table(header, rows, widths)
        story.append(table if table is not None else Paragraph("No data", empty_style))

    doc.build(story)
    pdf_bytes = buffer.getvalue()
    buffer.close()
    return pdf_bytes
