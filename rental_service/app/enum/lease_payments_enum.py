from enum import Enum


class PaymentStatus(str, Enum):
    pending = "pending"
    waiting_approval = "waiting_approval"
    paid = "paid"
    overdue = "overdue"


class PaymentType(str, Enum):
    rent = "rent"
    deposit = "deposit"
    utility = "utility"
    other = "other"


class PaymentMethod(str, Enum):
    cash = "cash"
    bank_transfer = "bank_transfer"
    cheque = "cheque"
    promptpay = "promptpay"
    other = "other"


# Statuses the notification sweep still has to look at
OPEN_PAYMENT_STATUSES = (
    PaymentStatus.pending,
    PaymentStatus.waiting_approval,
    PaymentStatus.overdue,
)
