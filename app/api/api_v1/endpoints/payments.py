from fastapi import APIRouter, HTTPException, status
from typing import Dict, Any
from bson import ObjectId
import logging

from app.schemas.booking import BookingPaymentStatus, CLOSED_BOOKING_STATUSES
from app.schemas.payment import (
    CardPaymentCreate, TransferRequestResponse, PaymentConfirmationResponse
)
from app.services.payment_service import (
    get_booking_by_id, get_service_by_id, get_pending_transfer_payment,
    request_transfer_payment, confirm_transfer_payment, pay_booking_by_card
)

router = APIRouter()
logger = logging.getLogger(__name__)

async def get_payable_booking(booking_id: str) -> Dict[str, Any]:
    """
    Load a booking that can still be paid, raising the matching HTTP error otherwise
    """
    if not ObjectId.is_valid(booking_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid booking ID"
        )

    booking = await get_booking_by_id(booking_id)
    if not booking:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Booking not found"
        )

    if booking.get("paymentStatus") == BookingPaymentStatus.PAID.value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This booking is already paid"
        )

    if booking.get("status") in [s.value for s in CLOSED_BOOKING_STATUSES]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot take payment for a cancelled or no-show booking"
        )

    return booking

async def get_priced_service(booking: Dict[str, Any]) -> Dict[str, Any]:
    service = await get_service_by_id(booking.get("serviceId"))
    if not service or not service.get("price"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid service or service without price"
        )

    if float(service["price"]) <= 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Service price must be greater than 0"
        )

    return service

@router.post("/booking/{booking_id}/transfer-request", response_model=TransferRequestResponse)
async def create_transfer_request(booking_id: str):
    """
    Create a bank transfer payment order for a booking and return the account details
    """
    try:
        booking = await get_payable_booking(booking_id)
        service = await get_priced_service(booking)
        return await request_transfer_payment(booking, service)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in create_transfer_request: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error occurred while creating the transfer request"
        )

@router.post("/booking/{booking_id}/confirm-transfer", response_model=PaymentConfirmationResponse)
async def confirm_transfer(booking_id: str):
    """
    Confirm a received bank transfer and send the invoice to the client
    """
    try:
        if not ObjectId.is_valid(booking_id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid booking ID"
            )

        booking = await get_booking_by_id(booking_id)
        if not booking:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Booking not found"
            )

        payment = await get_pending_transfer_payment(booking["_id"])
        if not payment:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No pending transfer payment for this booking"
            )

        service = await get_priced_service(booking)
        return await confirm_transfer_payment(booking, payment, service)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in confirm_transfer: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error occurred while confirming the transfer"
        )

@router.post("/booking/{booking_id}/card", response_model=PaymentConfirmationResponse)
async def pay_with_card(booking_id: str, card_in: CardPaymentCreate):
    """
    Record a card payment for a booking and send the invoice to the client
    """
    try:
        booking = await get_payable_booking(booking_id)
        service = await get_priced_service(booking)
        return await pay_booking_by_card(booking, service, card_in)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in pay_with_card: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error occurred while recording the card payment"
        )
