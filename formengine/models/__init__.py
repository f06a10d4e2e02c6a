"""Database models and session management.

This package contains all SQLAlchemy ORM models and database utilities.
"""

from formengine.models.database import Base, engine, SessionLocal, get_db
from formengine.models.form import Form, FormStep, FormField, FormFieldOption
from formengine.models.submission import FormSubmission

__all__ = [
    "Base",
    "engine",
    "SessionLocal",
    "get_db",
    "Form",
    "FormStep",
    "FormField",
    "FormFieldOption",
    "FormSubmission",
]
