"""
Unit tests for record models: decode-time validation of persisted documents.
"""

from datetime import datetime

import pytest
from bson import ObjectId
from pydantic import ValidationError

from src.analytics.models import (
    ApplicationStatus,
    CareerEvent,
    JobApplication,
    WorkExperience,
)


class TestWorkExperienceDecoding:
    """Tests for WorkExperience.model_validate on raw documents."""

    def test_decodes_json_string_columns(self):
        """Should decode adjustments, bonuses and metadata stored as JSON strings."""
        exp = WorkExperience.model_validate({
            "_id": ObjectId("507f1f77bcf86cd799439011"),
            "company": "Acme",
            "start_date": "2020-01-01",
            "base_salary": 10000000,
            "salary_adjustments": '[{"effective_date": "2021-01-01", "new_salary": 11000000}]',
            "bonus_history": '[{"date": "2021-12-01", "amount": 50000}]',
            "metadata": '{"technologies": ["Python"]}',
        })

        assert exp.id == "507f1f77bcf86cd799439011"
        assert exp.salary_adjustments[0].new_salary == 11000000
        assert exp.salary_adjustments[0].effective_date == datetime(2021, 1, 1)
        assert exp.bonus_history[0].amount == 50000
        assert exp.metadata.technologies == ["Python"]

    def test_invalid_json_column_falls_back_to_empty(self):
        """Should replace unparseable JSON with an empty list, not fail the record."""
        exp = WorkExperience.model_validate({
            "company": "Acme",
            "salary_adjustments": "{broken",
            "metadata": "not json either",
        })

        assert exp.salary_adjustments == []
        assert exp.metadata.technologies == []

    def test_malformed_entry_is_dropped(self, caplog):
        """Should drop only the entry missing required fields."""
        exp = WorkExperience.model_validate({
            "company": "Acme",
            "salary_adjustments": [
                {"effective_date": "2021-01-01", "new_salary": 11000000},
                {"new_salary": 12000000},
                {"effective_date": "garbage", "new_salary": 13000000},
            ],
        })

        assert [adj.new_salary for adj in exp.salary_adjustments] == [11000000]
        assert "Dropping malformed salary_adjustments[1]" in caplog.text

    def test_non_list_column_is_ignored(self):
        exp = WorkExperience.model_validate({"company": "Acme", "bonus_history": '{"amount": 1}'})

        assert exp.bonus_history == []

    def test_open_ended_is_current(self):
        exp = WorkExperience.model_validate({"company": "Acme", "start_date": "2020-01-01"})

        assert exp.is_current is True
        assert exp.currency == "USD"

    def test_records_are_immutable(self):
        exp = WorkExperience.model_validate({"company": "Acme"})

        with pytest.raises(ValidationError):
            exp.company = "Other"

    def test_ignores_unknown_fields(self):
        exp = WorkExperience.model_validate({"company": "Acme", "created_at": "2020-01-01"})

        assert exp.company == "Acme"


class TestCareerEventDecoding:
    """Tests for CareerEvent."""

    def test_numeric_percentage_is_stringified(self):
        event = CareerEvent.model_validate({
            "event_type": "promotion",
            "event_date": "2023-01-01T00:00:00Z",
            "increase_percentage": 12.5,
        })

        assert event.increase_percentage == "12.5"
        assert event.event_date == datetime(2023, 1, 1)

    def test_missing_event_date_fails(self):
        with pytest.raises(ValidationError):
            CareerEvent.model_validate({"event_type": "promotion"})


class TestJobApplicationDecoding:
    """Tests for JobApplication."""

    def test_status_is_upper_cased(self):
        app = JobApplication.model_validate({"status": "phone_screen"})

        assert app.status is ApplicationStatus.PHONE_SCREEN

    def test_unknown_status_fails(self):
        """Unknown statuses are rejected at the boundary."""
        with pytest.raises(ValidationError):
            JobApplication.model_validate({"status": "GHOSTED"})

    def test_source_defaults_to_unknown(self):
        assert JobApplication.model_validate({"status": "APPLIED"}).source == "unknown"
        assert JobApplication.model_validate({"status": "APPLIED", "source": "  "}).source == "unknown"

    def test_company_from_plain_name(self):
        app = JobApplication.model_validate({"status": "APPLIED", "company": "Hooli"})

        assert app.company_name == "Hooli"

    def test_missing_company(self):
        app = JobApplication.model_validate({"status": "APPLIED"})

        assert app.company_name is None

    def test_interview_dates_from_json_string(self):
        app = JobApplication.model_validate({
            "status": "INTERVIEW",
            "interview_dates": '["2024-03-10", "2024-03-17"]',
        })

        assert len(app.interview_dates) == 2

    def test_has_offer(self):
        assert JobApplication.model_validate({"status": "OFFER"}).has_offer is True
        assert JobApplication.model_validate({"status": "ACCEPTED"}).has_offer is True
        assert JobApplication.model_validate({"status": "REJECTED"}).has_offer is False
