"""Pytest configuration and shared fixtures.

This module provides fixtures and configuration used across all tests.
"""

import os
from typing import Generator

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set required environment variables for tests BEFORE importing formengine modules
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")

from formengine.models.database import Base, get_db
from formengine.schemas.form import FormDefinition


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine with SQLite in-memory database.

    Yields:
        Engine: SQLAlchemy engine for testing

    Note:
        StaticPool keeps one connection so the in-memory database is shared
        between the test and requests served by TestClient.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    # Enable foreign key support for SQLite
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session.

    Yields:
        Session: SQLAlchemy session for testing
    """
    TestSessionLocal = sessionmaker(
        bind=db_engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )

    session = TestSessionLocal()

    yield session

    session.rollback()
    session.close()


@pytest.fixture
def client(db_session):
    """FastAPI TestClient whose requests use the test session."""
    from fastapi.testclient import TestClient

    from formengine.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def contact_form_data() -> dict:
    """Single-step contact form in wire format."""
    return {
        "name": "Contact Us",
        "slug": "contact",
        "settings": {"success_message": "Thanks for reaching out!"},
        "steps": [
            {
                "name": "Contact",
                "fields": [
                    {"name": "name", "label": "Name", "type": "text", "required": True},
                    {"name": "email", "label": "Email", "type": "email", "required": True},
                    {
                        "name": "topic",
                        "label": "Topic",
                        "type": "select",
                        "options": [
                            {"label": "General", "value": "general"},
                            {"label": "Other", "value": "other"},
                        ],
                    },
                    {
                        "name": "topic_other",
                        "label": "Other Topic",
                        "type": "text",
                        "required": True,
                        "condition": {"field": "topic", "op": "eq", "value": "other"},
                    },
                ],
            }
        ],
    }


@pytest.fixture
def signup_form_data() -> dict:
    """Multi-step signup form with a conditional guardian step."""
    return {
        "name": "Signup",
        "slug": "signup",
        "steps": [
            {
                "name": "about",
                "fields": [
                    {"name": "intro", "label": "About you", "type": "heading"},
                    {"name": "first_name", "label": "First Name", "required": True},
                    {"name": "age", "label": "Age", "type": "number", "required": True},
                ],
            },
            {
                "name": "guardian",
                "condition": {"field": "age", "op": "lt", "value": 18},
                "fields": [
                    {"name": "guardian_name", "label": "Guardian Name", "required": True},
                ],
            },
            {
                "name": "contact",
                "fields": [
                    {"name": "email", "label": "Email", "type": "email", "required": True},
                ],
            },
        ],
    }


@pytest.fixture
def contact_form(contact_form_data) -> FormDefinition:
    return FormDefinition.model_validate(contact_form_data)


@pytest.fixture
def signup_form(signup_form_data) -> FormDefinition:
    return FormDefinition.model_validate(signup_form_data)
