from typing import Dict, Any, Optional, Tuple
from datetime import datetime
from bson import ObjectId
import logging

from app.core.config import settings
from app.db.mongodb import db
from app.schemas.booking import BookingStatus, BookingPaymentStatus
from app.schemas.payment import PaymentMethod, PaymentStatus, CardPaymentCreate
from app.services.invoice_service import (
    generate_invoice_pdf, generate_invoice_number, generate_transfer_reference, person_name
)
from app.utils.email import send_email_with_attachment
from app.utils.time import format_local

logger = logging.getLogger(__name__)

CURRENCY = "USD"

async def get_booking_by_id(booking_id: str) -> Optional[Dict[str, Any]]:
    """
    Get a booking by ID
    """
    if not ObjectId.is_valid(booking_id):
        return None
    booking = await db.db.bookings.find_one({"_id": ObjectId(booking_id)})
    if booking:
        booking["id"] = str(booking["_id"])
    return booking

async def get_service_by_id(service_id: Any) -> Optional[Dict[str, Any]]:
    """
    Get a catalog service (name, durationMin, price) by ID
    """
    if not ObjectId.is_valid(service_id):
        return None
    return await db.db.services.find_one({"_id": ObjectId(service_id)})

async def get_user_by_id(user_id: Any) -> Optional[Dict[str, Any]]:
    if not ObjectId.is_valid(user_id):
        return None
    return await db.db.users.find_one(
        {"_id": ObjectId(user_id)},
        {"firstName": 1, "lastName": 1, "email": 1}
    )

async def get_booking_parties(booking: Dict[str, Any]) -> Tuple[Optional[Dict[str, Any]], Optional[Dict[str, Any]]]:
    """
    Get the client and stylist user documents of a booking
    """
    client = await get_user_by_id(booking.get("clientId"))
    stylist = await get_user_by_id(booking.get("stylistId"))
    return client, stylist

async def get_pending_transfer_payment(booking_id: ObjectId) -> Optional[Dict[str, Any]]:
    payment = await db.db.payments.find_one({
        "bookingId": booking_id,
        "method": PaymentMethod.TRANSFER.value,
        "status": PaymentStatus.PENDING.value
    })
    if payment:
        payment["id"] = str(payment["_id"])
    return payment

def get_bank_info(reference: str) -> Dict[str, str]:
    return {
        "bank": settings.BANK_NAME,
        "accountType": settings.BANK_ACCOUNT_TYPE,
        "accountNumber": settings.BANK_ACCOUNT_NUMBER,
        "accountHolder": settings.BANK_ACCOUNT_HOLDER,
        "reference": reference
    }

def service_line(service: Dict[str, Any], amount: float) -> Dict[str, Any]:
    return {
        "name": service.get("name", ""),
        "durationMin": service.get("durationMin", 0),
        "price": amount
    }

async def mark_booking_paid(
    booking: Dict[str, Any],
    method: PaymentMethod,
    amount: float,
    invoice_number: str,
    paid_at: datetime
) -> None:
    await db.db.bookings.update_one(
        {"_id": booking["_id"]},
        {"$set": {
            "price": amount,
            "paymentStatus": BookingPaymentStatus.PAID.value,
            "paymentMethod": method.value,
            "paidAt": paid_at,
            "invoiceNumber": invoice_number,
            "status": BookingStatus.CONFIRMED.value,
            "updatedAt": datetime.utcnow()
        }}
    )

async def send_invoice_to_client(
    booking: Dict[str, Any],
    service: Dict[str, Any],
    method: PaymentMethod,
    amount: float,
    invoice_number: str,
    paid_at: datetime,
    intro: str
) -> None:
    """
    Email the invoice PDF to the booking's client, when they have an email address
    """
    client, stylist = await get_booking_parties(booking)
    if not client or not client.get("email"):
        logger.info(f"Booking {booking['_id']} has no client email, invoice {invoice_number} not sent")
        return

    pdf_bytes = generate_invoice_pdf(
        booking=booking,
        client=client,
        stylist=stylist,
        service=service_line(service, amount),
        payment={
            "invoiceNumber": invoice_number,
            "method": method,
            "paidAt": paid_at,
            "amount": amount
        }
    )

    html = f"""
        <p>{intro}</p>
        <p><b>Service:</b> {service.get('name', '')}</p>
        <p><b>Appointment date and time:</b> {format_local(booking['start'])}</p>
        <p><b>Total paid:</b> ${amount:.2f}</p>
        <p><b>Invoice:</b> {invoice_number}</p>
        <p>Your invoice is attached as a PDF.</p>
    """

    await send_email_with_attachment(
        client["email"],
        "Payment confirmed and appointment booked",
        html,
        pdf_bytes,
        f"invoice-{invoice_number}.pdf"
    )

async def notify_admin_of_transfer(
    booking: Dict[str, Any],
    service: Dict[str, Any],
    payment: Dict[str, Any],
    amount: float,
    bank_info: Dict[str, str]
) -> None:
    """
    Email the admin a payment order PDF with a link to confirm the transfer
    """
    client, stylist = await get_booking_parties(booking)
    invoice_number = generate_invoice_number(booking["id"])

    pdf_bytes = generate_invoice_pdf(
        booking=booking,
        client=client,
        stylist=stylist,
        service=service_line(service, amount),
        payment={
            "invoiceNumber": invoice_number,
            "method": PaymentMethod.TRANSFER,
            "paidAt": datetime.utcnow(),
            "amount": amount
        }
    )

    confirm_url = (
        f"{settings.ADMIN_CONFIRM_URL_BASE}"
        f"?bookingId={booking['id']}&paymentId={payment['id']}"
    )
    client_name = person_name(client) or "Client"

    html = f"""
        <p>A <b>new bank transfer payment order</b> has been created.</p>
        <p><b>Client:</b> {client_name}</p>
        <p><b>Service:</b> {service.get('name', '')}</p>
        <p><b>Appointment date and time:</b> {format_local(booking['start'])}</p>
        <p><b>Amount due:</b> ${amount:.2f}</p>
        <p><b>Bank:</b> {bank_info['bank']}</p>
        <p><b>Account number:</b> {bank_info['accountNumber']}</p>
        <p><b>Account holder:</b> {bank_info['accountHolder']}</p>
        <p><b>Reference the client must use:</b> {bank_info['reference']}</p>
        <br/>
        <p>Once the transfer shows up in the account, confirm the payment here:</p>
        <p><a href="{confirm_url}">Confirm payment</a></p>
    """

    await send_email_with_attachment(
        settings.ADMIN_EMAIL,
        "New bank transfer payment order",
        html,
        pdf_bytes,
        f"payment-order-{invoice_number}.pdf"
    )

async def request_transfer_payment(
    booking: Dict[str, Any],
    service: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Create (or reuse) a pending transfer payment for a booking.

    Args:
        booking: Booking that is neither paid nor closed
        service: Booked service, with a positive price

    Returns:
        The payment id, amount and the bank details the client must transfer to
    """
    amount = float(service["price"])
    reference = generate_transfer_reference(booking["id"])

    payment = await get_pending_transfer_payment(booking["_id"])
    if not payment:
        payment_data = {
            "bookingId": booking["_id"],
            "amount": amount,
            "currency": CURRENCY,
            "method": PaymentMethod.TRANSFER.value,
            "status": PaymentStatus.PENDING.value,
            "transactionRef": reference,
            "createdAt": datetime.utcnow()
        }
        result = await db.db.payments.insert_one(payment_data)
        payment = await db.db.payments.find_one({"_id": result.inserted_id})
        payment["id"] = str(payment["_id"])
        logger.info(f"Created transfer payment {payment['id']} for booking {booking['id']}")

    bank_info = get_bank_info(reference)

    if settings.ADMIN_EMAIL:
        await notify_admin_of_transfer(booking, service, payment, amount, bank_info)

    return {
        "message": "Bank transfer payment request created",
        "bookingId": booking["id"],
        "paymentId": payment["id"],
        "amount": amount,
        "bankInfo": bank_info
    }

async def confirm_transfer_payment(
    booking: Dict[str, Any],
    payment: Dict[str, Any],
    service: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Mark a pending transfer as paid, confirm the booking and email the invoice to the client
    """
    amount = float(service["price"])
    invoice_number = generate_invoice_number(booking["id"])
    paid_at = datetime.utcnow()

    await db.db.payments.update_one(
        {"_id": payment["_id"]},
        {"$set": {
            "status": PaymentStatus.PAID.value,
            "amount": amount,
            "paidAt": paid_at,
            "updatedAt": paid_at
        }}
    )
    await mark_booking_paid(booking, PaymentMethod.TRANSFER, amount, invoice_number, paid_at)
    logger.info(f"Transfer payment {payment['id']} confirmed, invoice {invoice_number}")

    await send_invoice_to_client(
        booking, service, PaymentMethod.TRANSFER, amount, invoice_number, paid_at,
        "Your bank transfer payment has been <b>confirmed</b>."
    )

    return {
        "message": "Transfer confirmed, payment recorded and appointment confirmed",
        "bookingId": booking["id"],
        "paymentId": payment["id"],
        "invoiceNumber": invoice_number
    }

async def pay_booking_by_card(
    booking: Dict[str, Any],
    service: Dict[str, Any],
    card_in: CardPaymentCreate
) -> Dict[str, Any]:
    """
    Record an already-authorized card payment, confirm the booking and email the invoice
    """
    amount = float(service["price"])
    invoice_number = generate_invoice_number(booking["id"])
    paid_at = datetime.utcnow()

    payment_data = card_in.dict()
    payment_data.update({
        "bookingId": booking["_id"],
        "amount": amount,
        "currency": CURRENCY,
        "method": PaymentMethod.CARD.value,
        "status": PaymentStatus.PAID.value,
        "paidAt": paid_at,
        "createdAt": paid_at
    })
    result = await db.db.payments.insert_one(payment_data)
    payment_id = str(result.inserted_id)

    await mark_booking_paid(booking, PaymentMethod.CARD, amount, invoice_number, paid_at)
    logger.info(f"Card payment {payment_id} recorded for booking {booking['id']}")

    await send_invoice_to_client(
        booking, service, PaymentMethod.CARD, amount, invoice_number, paid_at,
        "Your card payment has been <b>received</b>."
    )

    return {
        "message": "Card payment recorded and appointment confirmed",
        "bookingId": booking["id"],
        "paymentId": payment_id,
        "invoiceNumber": invoice_number
    }
