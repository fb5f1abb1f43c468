"""
Database models module.

Imports every model so it is registered with SQLAlchemy's Base.metadata
before table creation and Alembic autogeneration.
"""
from app.db.models.user import User
from app.db.models.company import Company
from app.db.models.job import Job
from app.db.models.application import Application

__all__ = [
    "User",
    "Company",
    "Job",
    "Application",
]
