# app/models.py
# Registry of every ORM model, so Base.metadata knows all tables
# (used by init_db, Alembic autogenerate and the test fixtures).
from app.db.base import Base
from app.modules.audit.models import AuditLog
from app.modules.doctors.models import AvailabilityRule, Service
from app.modules.appointments.models import Appointment, ApptStatus

__all__ = ["Base", "AuditLog", "AvailabilityRule", "Service", "Appointment", "ApptStatus"]
