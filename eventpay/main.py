import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from eventpay import models  # noqa: F401  registers tables on Base.metadata
from eventpay.config import settings
from eventpay.db import Base, engine
from eventpay.routers import (
    cron,
    deadlines,
    email_templates,
    event,
    guests,
    payments,
    reminder_schedules,
    reminders,
    signup,
)
from eventpay.services.scheduler import start_scheduler, stop_scheduler

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    start_scheduler()
    yield
    stop_scheduler()


app = FastAPI(title="Event Payments API", lifespan=lifespan)

app.include_router(cron.router)
app.include_router(email_templates.router)
app.include_router(reminder_schedules.router)
app.include_router(deadlines.router)
app.include_router(reminders.router)
app.include_router(payments.router)
app.include_router(payments.admin_router)
app.include_router(guests.router)
app.include_router(event.router)
app.include_router(signup.router)


@app.get("/health")
async def health():
    return {"status": "ok"}
