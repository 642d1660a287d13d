import pytest
from datetime import datetime, timezone
from bson.objectid import ObjectId
from httpx import AsyncClient, ASGITransport

# Import our FastAPI app
from main import app
from app.services import payment_service
from app.utils.email import EmailDeliveryError

CLIENT_ID = ObjectId()
STYLIST_ID = ObjectId()
SERVICE_ID = ObjectId()

test_client_user = {
    "_id": CLIENT_ID,
    "firstName": "Carla",
    "lastName": "Ruiz",
    "email": "carla@example.com"
}

test_stylist_user = {
    "_id": STYLIST_ID,
    "firstName": "Ana",
    "lastName": "Mora",
    "email": "ana@example.com"
}

test_service = {
    "_id": SERVICE_ID,
    "name": "Haircut",
    "durationMin": 45,
    "price": 25.0
}


def make_booking(**extra):
    booking = {
        "_id": ObjectId(),
        "clientId": CLIENT_ID,
        "stylistId": STYLIST_ID,
        "serviceId": SERVICE_ID,
        "start": datetime(2024, 6, 10, 14, 0, tzinfo=timezone.utc),
        "end": datetime(2024, 6, 10, 14, 45, tzinfo=timezone.utc),
        "status": "scheduled",
        "paymentStatus": "pending"
    }
    booking.update(extra)
    return booking


@pytest.fixture
def sent_emails(monkeypatch):
    sent = []

    async def fake_send(to, subject, html, attachment, filename, mime_type="application/pdf"):
        sent.append({"to": to, "subject": subject, "html": html, "attachment": attachment, "filename": filename})

    monkeypatch.setattr(payment_service, "send_email_with_attachment", fake_send)
    return sent


@pytest.fixture
def salon(fake_db):
    fake_db.users.seed(dict(test_client_user), dict(test_stylist_user))
    fake_db.services.seed(dict(test_service))
    return fake_db


def api_client():
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_transfer_payment_flow(salon, sent_emails, monkeypatch):
    """
    1. Client requests a bank transfer order (admin gets the order PDF)
    2. Requesting again reuses the pending payment
    3. Admin confirms the transfer (client gets the invoice)
    4. The booking can no longer be paid
    """
    monkeypatch.setattr(payment_service.settings, "ADMIN_EMAIL", "admin@example.com")
    booking = make_booking()
    salon.bookings.seed(booking)
    booking_id = str(booking["_id"])

    async with api_client() as client:
        response = await client.post(f"/api/v1/payments/booking/{booking_id}/transfer-request")
        assert response.status_code == 200
        order = response.json()
        assert order["bookingId"] == booking_id
        assert order["amount"] == 25.0
        assert order["bankInfo"]["reference"] == f"RES-{booking_id[-6:].upper()}"

        assert len(salon.payments.docs) == 1
        assert salon.payments.docs[0]["status"] == "pending"
        assert salon.payments.docs[0]["method"] == "transfer"

        assert sent_emails[0]["to"] == "admin@example.com"
        assert sent_emails[0]["attachment"].startswith(b"%PDF")
        assert f"paymentId={order['paymentId']}" in sent_emails[0]["html"]

        response = await client.post(f"/api/v1/payments/booking/{booking_id}/transfer-request")
        assert response.status_code == 200
        assert response.json()["paymentId"] == order["paymentId"]
        assert len(salon.payments.docs) == 1

        response = await client.post(f"/api/v1/payments/booking/{booking_id}/confirm-transfer")
        assert response.status_code == 200
        confirmation = response.json()
        assert confirmation["paymentId"] == order["paymentId"]
        assert confirmation["invoiceNumber"].startswith("FCT-")
        assert confirmation["invoiceNumber"].endswith(booking_id[-6:].upper())

        stored_payment = salon.payments.docs[0]
        assert stored_payment["status"] == "paid"
        assert stored_payment["paidAt"] == salon.bookings.docs[0]["paidAt"]
        assert stored_payment["paidAt"] >= stored_payment["createdAt"]
        stored_booking = salon.bookings.docs[0]
        assert stored_booking["paymentStatus"] == "paid"
        assert stored_booking["paymentMethod"] == "transfer"
        assert stored_booking["status"] == "confirmed"
        assert stored_booking["invoiceNumber"] == confirmation["invoiceNumber"]
        assert stored_booking["price"] == 25.0

        assert sent_emails[-1]["to"] == "carla@example.com"
        assert sent_emails[-1]["filename"] == f"invoice-{confirmation['invoiceNumber']}.pdf"

        response = await client.post(f"/api/v1/payments/booking/{booking_id}/transfer-request")
        assert response.status_code == 400
        assert response.json()["detail"] == "This booking is already paid"


@pytest.mark.asyncio
async def test_transfer_request_without_admin_email_sends_nothing(salon, sent_emails, monkeypatch):
    monkeypatch.setattr(payment_service.settings, "ADMIN_EMAIL", "")
    booking = make_booking()
    salon.bookings.seed(booking)

    async with api_client() as client:
        response = await client.post(f"/api/v1/payments/booking/{booking['_id']}/transfer-request")

    assert response.status_code == 200
    assert sent_emails == []


@pytest.mark.asyncio
async def test_card_payment(salon, sent_emails):
    booking = make_booking(status="pendingStylistConfirmation")
    salon.bookings.seed(booking)

    async with api_client() as client:
        response = await client.post(
            f"/api/v1/payments/booking/{booking['_id']}/card",
            json={"cardBrand": "VISA", "cardLast4": "4242", "transactionRef": "txn_123"}
        )

    assert response.status_code == 200
    payment = salon.payments.docs[0]
    assert payment["method"] == "card"
    assert payment["status"] == "paid"
    assert payment["paidAt"] == payment["createdAt"]
    assert payment["cardLast4"] == "4242"
    assert payment["amount"] == 25.0
    assert salon.bookings.docs[0]["status"] == "confirmed"
    assert sent_emails[0]["to"] == "carla@example.com"


@pytest.mark.asyncio
async def test_card_payment_rejects_bad_card_digits(salon, sent_emails):
    booking = make_booking()
    salon.bookings.seed(booking)

    async with api_client() as client:
        response = await client.post(
            f"/api/v1/payments/booking/{booking['_id']}/card",
            json={"cardBrand": "VISA", "cardLast4": "42"}
        )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_invoice_skipped_when_client_has_no_email(salon, sent_emails):
    client_id = ObjectId()
    salon.users.seed({"_id": client_id, "firstName": "Walk", "lastName": "In"})
    booking = make_booking(clientId=client_id)
    salon.bookings.seed(booking)

    async with api_client() as client:
        response = await client.post(
            f"/api/v1/payments/booking/{booking['_id']}/card",
            json={"cardBrand": "MASTERCARD", "cardLast4": "0001"}
        )

    assert response.status_code == 200
    assert sent_emails == []


@pytest.mark.asyncio
async def test_payment_errors(salon, sent_emails):
    cancelled = make_booking(status="cancelled")
    no_price = make_booking(serviceId=ObjectId())
    pending = make_booking()
    salon.bookings.seed(cancelled, no_price, pending)

    async with api_client() as client:
        response = await client.post("/api/v1/payments/booking/not-an-id/transfer-request")
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid booking ID"

        response = await client.post(f"/api/v1/payments/booking/{ObjectId()}/transfer-request")
        assert response.status_code == 404

        response = await client.post(f"/api/v1/payments/booking/{cancelled['_id']}/transfer-request")
        assert response.status_code == 400

        response = await client.post(f"/api/v1/payments/booking/{no_price['_id']}/transfer-request")
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid service or service without price"

        response = await client.post(f"/api/v1/payments/booking/{pending['_id']}/confirm-transfer")
        assert response.status_code == 400
        assert response.json()["detail"] == "No pending transfer payment for this booking"

        response = await client.post(f"/api/v1/payments/booking/{ObjectId()}/confirm-transfer")
        assert response.status_code == 404


@pytest.mark.asyncio
async def test_email_failure_is_reported(salon, monkeypatch):
    async def failing_send(*args, **kwargs):
        raise EmailDeliveryError("SMTP server unavailable")

    monkeypatch.setattr(payment_service, "send_email_with_attachment", failing_send)
    booking = make_booking()
    salon.bookings.seed(booking)

    async with api_client() as client:
        response = await client.post(
            f"/api/v1/payments/booking/{booking['_id']}/card",
            json={"cardBrand": "VISA", "cardLast4": "4242"}
        )

    assert response.status_code == 500
