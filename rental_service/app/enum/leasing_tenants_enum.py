from enum import Enum


class LeaseStatus(str, Enum):
    pending = "pending"
    active = "active"
    expired = "expired"
    terminated = "terminated"


class AssetStatus(str, Enum):
    available = "available"
    rented = "rented"
    maintenance = "maintenance"
