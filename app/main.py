# app/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.core.config import settings
from app.db.sql import engine, init_db
from app.routers import health, doctors, doctor, appointments, admin

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# Define lifespan event
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    The lifespan function is used to manage the FastAPI application lifecycle.
    """
    if settings.DB_CREATE_ALL:
        await init_db()
    logger.info("Booking API started (env=%s)", settings.APP_ENV)
    yield
    await engine.dispose()


app = FastAPI(
    title="Medical Appointment Booking API",
    lifespan=lifespan,
)

# Routing
app.include_router(health.router, prefix=settings.API_PREFIX, tags=["health"])
app.include_router(doctors.router, prefix=settings.API_PREFIX)
app.include_router(doctor.router, prefix=settings.API_PREFIX)
app.include_router(appointments.router, prefix=settings.API_PREFIX, tags=["appointments"])
app.include_router(admin.router, prefix=settings.API_PREFIX, tags=["admin"])


@app.get("/")
def root():
    return {"message": "Booking API running successfully"}
