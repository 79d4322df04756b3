"""
MongoDB Career Data Repository

Reads work experiences, career events and job applications for one user
from MongoDB and decodes them into record models.

Collections:
- portfolios:        {_id, user_id}
- work_experiences:  {portfolio_id, start_date, base_salary, salary_adjustments, ...}
- career_events:     {user_id, event_type, event_date, ...}
- job_applications:  {user_id, company_id, status, application_date, ...}
- companies:         {_id, name}
"""

import logging
import threading
from typing import List, Optional

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import ConnectionFailure
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from src.analytics.models import CareerEvent, JobApplication, WorkExperience
from src.common.error_handling import metrics_operation

from .base import CareerDataRepositoryInterface, decode_documents

logger = logging.getLogger(__name__)

# AutoReconnect and ServerSelectionTimeoutError are both ConnectionFailures
transient_retry = retry(
    retry=retry_if_exception_type(ConnectionFailure),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


class MongoCareerDataRepository(CareerDataRepositoryInterface):
    """
    MongoDB-backed career data repository.

    Connection Management:
    - Uses singleton MongoClient for connection pooling
    - Client is created once and reused across requests and threads
    - PyMongo handles connection pool internally

    Error Handling:
    - Transient connection errors are retried (3 attempts, exponential backoff)
    - Everything else propagates to the caller (fail-fast)
    - Invalid documents are logged and skipped, or raise RecordDecodeError
      when strict=True
    """

    _client: Optional[MongoClient] = None
    _db: Optional[Database] = None
    _lock = threading.Lock()

    def __init__(self, mongodb_uri: str, database: str = "craftd", strict: bool = False):
        """
        Initialize repository with connection parameters.

        Args:
            mongodb_uri: MongoDB connection string
            database: Database name (default: "craftd")
            strict: Raise RecordDecodeError instead of skipping invalid documents
        """
        self._mongodb_uri = mongodb_uri
        self._database_name = database
        self._strict = strict

    def _get_db(self) -> Database:
        """
        Get the MongoDB database, creating the client if needed.

        Uses class-level singleton for connection pooling. Creation is
        guarded by a lock so concurrent first fetches share one client.
        """
        # Fast path: already connected
        if MongoCareerDataRepository._db is not None:
            return MongoCareerDataRepository._db

        with MongoCareerDataRepository._lock:
            # Another thread may have connected while we waited
            if MongoCareerDataRepository._db is None:
                client = MongoClient(self._mongodb_uri)
                MongoCareerDataRepository._client = client
                MongoCareerDataRepository._db = client[self._database_name]
                logger.info(f"Career data repository connected: {self._database_name}")
        return MongoCareerDataRepository._db

    @metrics_operation("fetch work experiences", component="repository", critical=True)
    @transient_retry
    def fetch_work_experiences(self, user_id: str) -> List[WorkExperience]:
        db = self._get_db()

        portfolio_ids = [
            portfolio["_id"]
            for portfolio in db["portfolios"].find({"user_id": user_id}, {"_id": 1})
        ]
        if not portfolio_ids:
            return []

        cursor = db["work_experiences"].find(
            {"portfolio_id": {"$in": portfolio_ids}}
        ).sort([("start_date", ASCENDING)])

        return decode_documents(cursor, WorkExperience, "work_experiences", strict=self._strict)

    @metrics_operation("fetch career events", component="repository", critical=True)
    @transient_retry
    def fetch_career_events(
        self,
        user_id: str,
        limit: Optional[int] = None,
    ) -> List[CareerEvent]:
        # PyMongo treats limit(0) as unlimited
        if limit == 0:
            return []

        db = self._get_db()

        cursor = db["career_events"].find({"user_id": user_id}).sort([("event_date", DESCENDING)])
        if limit is not None:
            cursor = cursor.limit(limit)

        return decode_documents(cursor, CareerEvent, "career_events", strict=self._strict)

    @metrics_operation("fetch job applications", component="repository", critical=True)
    @transient_retry
    def fetch_job_applications(self, user_id: str) -> List[JobApplication]:
        db = self._get_db()

        pipeline = [
            {"$match": {"user_id": user_id}},
            {"$sort": {"application_date": DESCENDING}},
            {
                "$lookup": {
                    "from": "companies",
                    "localField": "company_id",
                    "foreignField": "_id",
                    "as": "company",
                }
            },
            # Left join: applications without a company keep company=None
            {"$unwind": {"path": "$company", "preserveNullAndEmptyArrays": True}},
        ]

        return decode_documents(
            db["job_applications"].aggregate(pipeline),
            JobApplication,
            "job_applications",
            strict=self._strict,
        )

    @classmethod
    def reset_connection(cls) -> None:
        """
        Reset the connection pool.

        Used for testing or connection recovery.
        """
        with cls._lock:
            if cls._client:
                cls._client.close()
            cls._client = None
            cls._db = None
        logger.info("Career data repository connection reset")
