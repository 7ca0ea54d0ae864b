import os
import uuid
from datetime import date, time
from decimal import Decimal

# Point the app at SQLite before app.core.config is imported
os.environ.setdefault("SQL_DSN", "sqlite+aiosqlite://")

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app import models
from app.core.security import create_access_token
from app.db.sql import get_session
from app.main import app
from app.modules.appointments.models import Appointment
from app.modules.doctors.models import AvailabilityRule, Service
from app.modules.users.schemas import Actor, Role

# Sunday; 2025-06-02 is the next Monday, 2025-06-10 a Tuesday
TODAY = date(2025, 6, 1)


@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False, class_=AsyncSession)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest_asyncio.fixture
async def client(session_factory):
    async def _override_session():
        async with session_factory() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_session] = _override_session
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def doctor():
    return Actor(user_id=uuid.uuid4(), role=Role.doctor)


@pytest.fixture
def patient():
    return Actor(user_id=uuid.uuid4(), role=Role.patient)


@pytest.fixture
def other_patient():
    return Actor(user_id=uuid.uuid4(), role=Role.patient)


@pytest.fixture
def admin():
    return Actor(user_id=uuid.uuid4(), role=Role.admin)


def auth_headers(actor: Actor) -> dict:
    token = create_access_token(subject=str(actor.user_id), role=actor.role.value)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def service(session, doctor):
    svc = Service(
        doctor_id=doctor.user_id,
        name="Consulta",
        price=Decimal("150.00"),
        duration=30,
        is_active=True,
    )
    session.add(svc)
    await session.commit()
    return svc


@pytest.fixture
def add_rule(session):
    async def _add(doctor_id, day_of_week, start, end, is_active=True):
        rule = AvailabilityRule(
            doctor_id=doctor_id,
            day_of_week=day_of_week,
            start_time=start,
            end_time=end,
            is_active=is_active,
        )
        session.add(rule)
        await session.commit()
        return rule

    return _add


@pytest.fixture
def count_rows(session):
    async def _count(**filters):
        stmt = select(func.count()).select_from(Appointment)
        for k, v in filters.items():
            stmt = stmt.where(getattr(Appointment, k) == v)
        return (await session.execute(stmt)).scalar_one()

    return _count


def hm(value: str) -> time:
    h, m = value.split(":")
    return time(int(h), int(m))
