# Import every model so Base.metadata knows all tables before create_all()
from shared.models import users  # noqa: F401
from .assets import assets  # noqa: F401
from .leasing_tenants import leases, lease_payments  # noqa: F401
from .system import notifications, scheduler_locks  # noqa: F401
