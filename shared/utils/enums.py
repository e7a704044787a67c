from enum import Enum


class UserRole(str, Enum):
    OWNER = "owner"
    TENANT = "tenant"
    ADMIN = "admin"


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
