from enum import Enum


class NotificationType(str, Enum):
    payment_due = "payment_due"
    payment_due_soon = "payment_due_soon"
    payment_overdue = "payment_overdue"
    payment_proof = "payment_proof"
    payment_rejected = "payment_rejected"
    payment_approved = "payment_approved"
    contract_expiring = "contract_expiring"
    maintenance_request = "maintenance_request"
    system = "system"


class NotificationStatus(str, Enum):
    unread = "unread"
    read = "read"
