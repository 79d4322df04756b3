"""
Tests for the career data repository layer.

Tests the read-only repository abstraction that keeps the metric builders
independent of a live database.
"""

from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest
from bson import ObjectId
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import AutoReconnect, OperationFailure
from tenacity import wait_none

from src.common.error_handling import RecordDecodeError
from src.common.repositories import (
    CareerDataRepositoryInterface,
    InMemoryCareerDataRepository,
    MongoCareerDataRepository,
    RepositoryConfig,
    decode_documents,
    get_career_repository,
    reset_career_repository,
)
from src.analytics.models import CareerEvent, WorkExperience


class TestRepositoryConfig:
    """Tests for RepositoryConfig."""

    def test_config_from_env_minimal(self):
        """Should load minimal config from environment."""
        with patch.dict("os.environ", {"MONGODB_URI": "mongodb://test"}, clear=True):
            config = RepositoryConfig.from_env()

            assert config.mongodb_uri == "mongodb://test"
            assert config.database == "craftd"
            assert config.strict_decoding is False

    def test_config_from_env_overrides(self):
        env = {
            "MONGODB_URI": "mongodb://test",
            "CAREER_DB_NAME": "careers",
            "STRICT_DECODING": "true",
        }
        with patch.dict("os.environ", env, clear=True):
            config = RepositoryConfig.from_env()

            assert config.database == "careers"
            assert config.strict_decoding is True

    def test_config_from_env_missing_uri(self):
        """Should raise ValueError if MONGODB_URI is not set."""
        with patch.dict("os.environ", {}, clear=True):
            with pytest.raises(ValueError, match="MONGODB_URI"):
                RepositoryConfig.from_env()


class TestRepositoryFactory:
    """Tests for get_career_repository / reset_career_repository."""

    def test_returns_singleton(self):
        with patch.dict("os.environ", {"MONGODB_URI": "mongodb://test"}, clear=True):
            first = get_career_repository()
            second = get_career_repository()

        assert first is second
        assert isinstance(first, MongoCareerDataRepository)
        assert isinstance(first, CareerDataRepositoryInterface)

    def test_reset_creates_new_instance(self):
        with patch.dict("os.environ", {"MONGODB_URI": "mongodb://test"}, clear=True):
            first = get_career_repository()
            reset_career_repository()
            second = get_career_repository()

        assert first is not second


class TestDecodeDocuments:
    """Tests for decode_documents."""

    def test_skips_invalid_documents(self, caplog):
        docs = [
            {"_id": "e1", "event_type": "promotion", "event_date": "2023-01-01"},
            {"_id": "e2", "event_type": "raise"},
        ]

        events = decode_documents(docs, CareerEvent, "career_events")

        assert [event.id for event in events] == ["e1"]
        assert "career_events[e2]" in caplog.text

    def test_strict_raises_record_decode_error(self):
        with pytest.raises(RecordDecodeError) as exc_info:
            decode_documents([{"_id": "e2"}], CareerEvent, "career_events", strict=True)

        assert exc_info.value.collection == "career_events"
        assert exc_info.value.document_id == "e2"

    def test_models_pass_through(self):
        event = CareerEvent(event_type="raise", event_date=datetime(2023, 1, 1))

        assert decode_documents([event], CareerEvent, "career_events") == [event]


class TestMongoCareerDataRepository:
    """Tests for MongoCareerDataRepository."""

    @pytest.fixture
    def collections(self):
        """Per-collection mocks behind a patched MongoClient."""
        with patch("src.common.repositories.mongo_repository.MongoClient") as mock_client:
            collections = {
                name: MagicMock(name=name)
                for name in ("portfolios", "work_experiences", "career_events", "job_applications")
            }
            mock_db = MagicMock()
            mock_db.__getitem__.side_effect = lambda name: collections[name]
            mock_client.return_value.__getitem__.return_value = mock_db
            yield collections

    @staticmethod
    def cursor(documents):
        cursor = MagicMock()
        cursor.sort.return_value = cursor
        cursor.limit.return_value = cursor
        cursor.__iter__ = lambda self: iter(documents)
        return cursor

    def test_fetch_work_experiences_joins_portfolios(self, collections):
        portfolio_id = ObjectId()
        collections["portfolios"].find.return_value = [{"_id": portfolio_id}]
        collections["work_experiences"].find.return_value = self.cursor([
            {"_id": ObjectId(), "portfolio_id": portfolio_id, "company": "Acme",
             "start_date": datetime(2020, 1, 1), "base_salary": 8000000},
        ])

        repo = MongoCareerDataRepository("mongodb://test")
        experiences = repo.fetch_work_experiences("user-1")

        collections["portfolios"].find.assert_called_once_with({"user_id": "user-1"}, {"_id": 1})
        collections["work_experiences"].find.assert_called_once_with(
            {"portfolio_id": {"$in": [portfolio_id]}}
        )
        collections["work_experiences"].find.return_value.sort.assert_called_once_with(
            [("start_date", ASCENDING)]
        )
        assert len(experiences) == 1
        assert isinstance(experiences[0], WorkExperience)
        assert experiences[0].portfolio_id == str(portfolio_id)

    def test_fetch_work_experiences_without_portfolio(self, collections):
        collections["portfolios"].find.return_value = []

        repo = MongoCareerDataRepository("mongodb://test")

        assert repo.fetch_work_experiences("user-1") == []
        collections["work_experiences"].find.assert_not_called()

    def test_fetch_career_events_sorted_and_limited(self, collections):
        cursor = self.cursor([
            {"_id": ObjectId(), "user_id": "user-1", "event_type": "promotion",
             "event_date": datetime(2023, 1, 1)},
        ])
        collections["career_events"].find.return_value = cursor

        repo = MongoCareerDataRepository("mongodb://test")
        events = repo.fetch_career_events("user-1", limit=10)

        cursor.sort.assert_called_once_with([("event_date", DESCENDING)])
        cursor.limit.assert_called_once_with(10)
        assert events[0].event_type == "promotion"

    def test_fetch_career_events_without_limit(self, collections):
        cursor = self.cursor([])
        collections["career_events"].find.return_value = cursor

        MongoCareerDataRepository("mongodb://test").fetch_career_events("user-1")

        cursor.limit.assert_not_called()

    def test_fetch_career_events_zero_limit(self, collections):
        """limit=0 means no events, not PyMongo's unlimited cursor."""
        repo = MongoCareerDataRepository("mongodb://test")

        assert repo.fetch_career_events("user-1", limit=0) == []
        collections["career_events"].find.assert_not_called()

    def test_fetch_job_applications_left_joins_company(self, collections):
        collections["job_applications"].aggregate.return_value = iter([
            {"_id": ObjectId(), "user_id": "user-1", "status": "OFFER",
             "company": {"_id": ObjectId(), "name": "Hooli"}},
            {"_id": ObjectId(), "user_id": "user-1", "status": "APPLIED"},
            {"_id": ObjectId(), "user_id": "user-1", "status": "GHOSTED"},
        ])

        repo = MongoCareerDataRepository("mongodb://test")
        applications = repo.fetch_job_applications("user-1")

        pipeline = collections["job_applications"].aggregate.call_args[0][0]
        assert pipeline[0] == {"$match": {"user_id": "user-1"}}
        assert pipeline[2]["$lookup"]["from"] == "companies"
        assert pipeline[3]["$unwind"]["preserveNullAndEmptyArrays"] is True
        # Unknown status is skipped
        assert [app.company_name for app in applications] == ["Hooli", None]

    def test_retries_transient_errors(self, collections):
        """Should retry AutoReconnect and succeed on a later attempt."""
        collections["career_events"].find.side_effect = [
            AutoReconnect("primary stepped down"),
            self.cursor([]),
        ]
        repo = MongoCareerDataRepository("mongodb://test")

        fetch = MongoCareerDataRepository.fetch_career_events.retry_with(wait=wait_none())

        assert fetch(repo, "user-1") == []
        assert collections["career_events"].find.call_count == 2

    def test_does_not_retry_query_errors(self, collections):
        """Non-transient errors propagate immediately (fail-fast)."""
        collections["career_events"].find.side_effect = OperationFailure("bad query")
        repo = MongoCareerDataRepository("mongodb://test")

        with pytest.raises(OperationFailure):
            repo.fetch_career_events("user-1")

        assert collections["career_events"].find.call_count == 1

    def test_client_is_pooled(self, collections):
        with patch("src.common.repositories.mongo_repository.MongoClient") as mock_client:
            MongoCareerDataRepository("mongodb://test")._get_db()
            MongoCareerDataRepository("mongodb://test")._get_db()

            assert mock_client.call_count == 1


class TestInMemoryCareerDataRepository:
    """Tests for InMemoryCareerDataRepository."""

    @pytest.fixture
    def repo(self):
        repository = InMemoryCareerDataRepository()
        repository.add_user_data(
            "user-1",
            work_experiences=[
                {"company": "B", "start_date": "2022-01-01"},
                {"company": "A", "start_date": "2020-01-01"},
            ],
            career_events=[
                {"event_type": "raise", "event_date": "2021-01-01"},
                {"event_type": "promotion", "event_date": "2023-01-01"},
                {"event_type": "bonus", "event_date": "2022-01-01"},
            ],
            job_applications=[
                {"status": "APPLIED", "application_date": "2024-01-01"},
                {"status": "APPLIED", "application_date": None},
                {"status": "OFFER", "application_date": "2024-03-01"},
            ],
        )
        return repository

    def test_work_experiences_ascending(self, repo):
        assert [exp.company for exp in repo.fetch_work_experiences("user-1")] == ["A", "B"]

    def test_career_events_descending_with_limit(self, repo):
        events = repo.fetch_career_events("user-1", limit=2)

        assert [event.event_type for event in events] == ["promotion", "bonus"]

    def test_career_events_zero_limit(self, repo):
        assert repo.fetch_career_events("user-1", limit=0) == []

    def test_job_applications_descending_undated_last(self, repo):
        statuses = [app.status.value for app in repo.fetch_job_applications("user-1")]
        dates = [app.application_date for app in repo.fetch_job_applications("user-1")]

        assert statuses[0] == "OFFER"
        assert dates[-1] is None

    def test_unknown_user_is_empty(self, repo):
        assert repo.fetch_work_experiences("nobody") == []
        assert repo.fetch_career_events("nobody") == []
        assert repo.fetch_job_applications("nobody") == []

    def test_from_fixture(self):
        repo = InMemoryCareerDataRepository.from_fixture(
            "user-2", {"work_experiences": [{"company": "Acme"}]}
        )

        assert [exp.company for exp in repo.fetch_work_experiences("user-2")] == ["Acme"]
        assert repo.fetch_career_events("user-2") == []
