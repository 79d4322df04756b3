"""
Global fixtures for all unit tests.

This conftest provides autouse fixtures that prevent real external service calls:
- MongoDB connection attempts (would cause 5-30s timeout per test)
- Environment variable isolation (prevents credential leakage)
- Repository singleton reset between tests

It also provides shared record factories for the metric builder tests.
"""

from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest

from src.analytics.models import CareerEvent, JobApplication, WorkExperience
from src.common.repositories import MongoCareerDataRepository, reset_career_repository


FIXED_NOW = datetime(2024, 6, 1, 12, 0, 0)


@pytest.fixture(autouse=True)
def mock_mongodb():
    """
    Prevent MongoDB connection attempts in all unit tests.

    MongoClient("") defaults to localhost:27017, causing 5-30s timeout per test.
    """
    with patch("src.common.repositories.mongo_repository.MongoClient") as mock_client:
        mock_instance = MagicMock()
        mock_db = MagicMock()
        mock_collection = MagicMock()

        # Setup chain: client["db"]["collection"]
        mock_instance.__getitem__ = MagicMock(return_value=mock_db)
        mock_db.__getitem__ = MagicMock(return_value=mock_collection)
        mock_collection.find = MagicMock(return_value=[])

        mock_client.return_value = mock_instance
        yield mock_client


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """
    Isolate test environment from real credentials and configurations.

    This prevents:
    - A developer's .env MONGODB_URI being used by the repository factory
    - Debug mode leaking in from the shell
    """
    monkeypatch.delenv("MONGODB_URI", raising=False)
    monkeypatch.delenv("CAREER_DB_NAME", raising=False)
    monkeypatch.delenv("STRICT_DECODING", raising=False)
    monkeypatch.setenv("DEBUG_MODE", "false")


@pytest.fixture(autouse=True)
def reset_repository_singletons():
    """Drop the repository singleton and pooled client around each test."""
    reset_career_repository()
    MongoCareerDataRepository.reset_connection()
    yield
    reset_career_repository()
    MongoCareerDataRepository.reset_connection()


# ===== RECORD FACTORIES =====


@pytest.fixture
def fixed_now():
    """Reference time shared by builder tests."""
    return FIXED_NOW


@pytest.fixture
def make_experience():
    """Factory for WorkExperience records."""

    def _make(**overrides) -> WorkExperience:
        data = {
            "company": "Acme",
            "role": "Engineer",
            "start_date": "2020-01-01",
            "end_date": None,
            "base_salary": 10000000,
        }
        data.update(overrides)
        return WorkExperience.model_validate(data)

    return _make


@pytest.fixture
def make_event():
    """Factory for CareerEvent records."""

    def _make(**overrides) -> CareerEvent:
        data = {"event_type": "raise", "event_date": "2023-01-01"}
        data.update(overrides)
        return CareerEvent.model_validate(data)

    return _make


@pytest.fixture
def make_application():
    """Factory for JobApplication records."""

    def _make(**overrides) -> JobApplication:
        data = {
            "position": "Engineer",
            "company": {"name": "Acme"},
            "status": "APPLIED",
            "application_date": "2024-05-01",
        }
        data.update(overrides)
        return JobApplication.model_validate(data)

    return _make


@pytest.fixture
def two_job_career(make_experience):
    """
    Job A 2020-01-01 -> 2021-12-31 at $80,000, then open-ended Job B from
    2022-01-01 at $120,000 raised to $130,000 on 2023-06-01.
    """
    job_a = make_experience(
        company="Initech",
        role="Engineer",
        start_date="2020-01-01",
        end_date="2021-12-31",
        base_salary=8000000,
        seniority_level="mid",
    )
    job_b = make_experience(
        company="Globex",
        role="Senior Engineer",
        start_date="2022-01-01",
        end_date=None,
        base_salary=12000000,
        seniority_level="senior",
        salary_adjustments=[
            {"effective_date": "2023-06-01", "new_salary": 13000000, "increase_percentage": 8.33}
        ],
    )
    return [job_a, job_b]
