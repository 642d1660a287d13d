from pydantic import BaseModel, Field
from typing import Optional

from enum import Enum

class PaymentMethod(str, Enum):
    CARD = "card"
    TRANSFER = "transfer"

class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"

PAYMENT_METHOD_LABELS = {
    PaymentMethod.CARD: "Card",
    PaymentMethod.TRANSFER: "Bank transfer",
}

class CardPaymentCreate(BaseModel):
    cardBrand: str = Field(..., min_length=2, max_length=30)
    cardLast4: str = Field(..., pattern=r"^\d{4}$")
    transactionRef: Optional[str] = None

class BankInfo(BaseModel):
    bank: str
    accountType: str
    accountNumber: str
    accountHolder: str
    reference: str

class TransferRequestResponse(BaseModel):
    message: str
    bookingId: str
    paymentId: str
    amount: float
    bankInfo: BankInfo

class PaymentConfirmationResponse(BaseModel):
    message: str
    bookingId: str
    paymentId: str
    invoiceNumber: str
