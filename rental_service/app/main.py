import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.core.config import settings
from shared.core.database import Base, RentalSessionLocal, rental_engine
from shared.exception_handler import setup_exception_handlers
from . import models  # noqa: F401
from .crud.scheduler.sweep_runner import NotificationSweepRunner
from .router.leasing_tenants import lease_payments_router, leases_router
from .router.system import notifications_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create all tables
    Base.metadata.create_all(bind=rental_engine)

    runner = None
    if settings.NOTIFICATION_SWEEP_ENABLED:
        runner = NotificationSweepRunner(
            RentalSessionLocal,
            interval_seconds=settings.NOTIFICATION_SWEEP_INTERVAL_MINUTES * 60,
            run_on_start=settings.NOTIFICATION_SWEEP_ON_STARTUP,
            max_run_seconds=settings.NOTIFICATION_SWEEP_MAX_SECONDS,
            use_db_lock=settings.NOTIFICATION_SWEEP_USE_DB_LOCK,
            lock_ttl=timedelta(minutes=settings.NOTIFICATION_SWEEP_LOCK_TTL_MINUTES),
        )
        runner.start()
    app.state.sweep_runner = runner

    yield

    if runner is not None:
        runner.stop()


app = FastAPI(title="Rental Service API", lifespan=lifespan)

origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)

# Include routers
app.include_router(leases_router.router)
app.include_router(lease_payments_router.router)
app.include_router(notifications_router.router)


@app.get("/health")
def health():
    return {"status": "ok"}
