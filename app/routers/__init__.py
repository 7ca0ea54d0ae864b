# app/routers/__init__.py
from . import health
from . import doctors
from . import doctor
from . import appointments
from . import admin

__all__ = ["health", "doctors", "doctor", "appointments", "admin"]
