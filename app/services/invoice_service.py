"""
Invoice PDF generation

Builds the invoice (or transfer payment order) attached to payment emails.
"""

import io
import logging
from datetime import datetime
from typing import Any, Dict, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from app.core.config import settings
from app.schemas.payment import PAYMENT_METHOD_LABELS, PaymentMethod
from app.utils.time import format_local

logger = logging.getLogger(__name__)

def generate_invoice_number(booking_id: str, now: Optional[datetime] = None) -> str:
    """FCT-YYYYMMDD-<last 6 chars of the booking id>"""
    now = now or datetime.now()
    return f"FCT-{now.strftime('%Y%m%d')}-{booking_id[-6:].upper()}"

def generate_transfer_reference(booking_id: str) -> str:
    """Reference the client writes on the bank transfer."""
    return f"RES-{booking_id[-6:].upper()}"

def person_name(person: Optional[Dict[str, Any]]) -> str:
    if not person:
        return ""
    return f"{person.get('firstName') or ''} {person.get('lastName') or ''}".strip()

def generate_invoice_pdf(
    booking: Dict[str, Any],
    client: Optional[Dict[str, Any]],
    stylist: Optional[Dict[str, Any]],
    service: Dict[str, Any],
    payment: Dict[str, Any],
) -> bytes:
    """
    Render an invoice and return the PDF bytes.

    Args:
        booking: Booking document (needs "_id" and "start")
        client: Client user document, or None when it no longer exists
        stylist: Stylist user document, or None
        service: {"name", "durationMin", "price"}
        payment: {"invoiceNumber", "method", "paidAt", "amount"}
    """
    logger.info(f"Generating invoice {payment['invoiceNumber']} for booking {booking['_id']}")

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=50,
        leftMargin=50,
        topMargin=50,
        bottomMargin=50,
        title=f"Invoice {payment['invoiceNumber']}",
    )

    styles = getSampleStyleSheet()
    shop_style = ParagraphStyle("Shop", parent=styles["Heading1"], fontSize=20, spaceAfter=4)
    small_style = ParagraphStyle("Small", parent=styles["Normal"], fontSize=10)
    number_style = ParagraphStyle(
        "InvoiceNumber", parent=styles["Heading2"], fontSize=18, alignment=TA_RIGHT
    )
    heading_style = ParagraphStyle(
        "Section", parent=styles["Heading3"], fontSize=14, spaceBefore=14, spaceAfter=6
    )
    body_style = ParagraphStyle("Body", parent=styles["Normal"], fontSize=12, leading=16)
    total_style = ParagraphStyle(
        "Total", parent=styles["Heading2"], fontSize=14, alignment=TA_RIGHT, spaceBefore=18
    )

    method = PaymentMethod(payment["method"])
    amount = float(payment["amount"])

    story = [
        Paragraph(escape(settings.SHOP_NAME), shop_style),
        Paragraph(escape(settings.SHOP_ADDRESS), small_style),
        Paragraph(escape(settings.SHOP_TAX_ID), small_style),
        Paragraph(f"INVOICE #{escape(payment['invoiceNumber'])}", number_style),
        Spacer(1, 0.2 * inch),
        Paragraph(f"Issue date: {format_local(payment['paidAt'])}", body_style),
        Paragraph(f"Payment method: {PAYMENT_METHOD_LABELS[method]}", body_style),
        Paragraph(f"Booking ID: {booking['_id']}", body_style),
    ]

    story.append(Paragraph("Client", heading_style))
    if client:
        story.append(Paragraph(f"Name: {escape(person_name(client))}", body_style))
        story.append(Paragraph(f"Email: {escape(client.get('email') or '')}", body_style))
    else:
        story.append(Paragraph("Name: Client", body_style))

    story.append(Paragraph("Stylist", heading_style))
    if stylist:
        story.append(Paragraph(f"Name: {escape(person_name(stylist))}", body_style))
        story.append(Paragraph(f"Email: {escape(stylist.get('email') or '')}", body_style))

    story.append(Paragraph("Appointment", heading_style))
    story.append(Paragraph(f"Date and time: {format_local(booking['start'])}", body_style))
    story.append(Paragraph(f"Duration: {service['durationMin']} minutes", body_style))

    story.append(Paragraph("Services", heading_style))
    table = Table(
        [
            ["Service", "Duration (min)", "Price"],
            [service["name"], str(service["durationMin"]), f"${float(service['price']):.2f}"],
        ],
        colWidths=[3 * inch, 1.75 * inch, 1.75 * inch],
    )
    table.setStyle(
        TableStyle(
            [
                ("FONT", (0, 0), (-1, 0), "Helvetica-Bold", 12),
                ("FONT", (0, 1), (-1, -1), "Helvetica", 12),
                ("LINEBELOW", (0, 0), (-1, 0), 1, colors.black),
                ("ALIGN", (2, 0), (2, -1), "RIGHT"),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
            ]
        )
    )
    story.append(table)

    story.append(Paragraph(f"TOTAL: ${amount:.2f}", total_style))

    doc.build(story)
    pdf_bytes = buffer.getvalue()
    buffer.close()
    return pdf_bytes
