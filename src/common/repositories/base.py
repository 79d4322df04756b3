"""
Repository Interface Definitions

Defines the read-only data access capability the career metrics engine
depends on. Builders only ever see the decoded record models; swapping
the implementation (MongoDB, in-memory fixtures) never touches them.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from src.analytics.models import CareerEvent, JobApplication, WorkExperience
from src.common.error_handling import RecordDecodeError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class CareerDataRepositoryInterface(ABC):
    """
    Abstract interface for reading one user's career data.

    Implementations:
    - MongoCareerDataRepository: MongoDB collections via pymongo
    - InMemoryCareerDataRepository: list-backed, for tests and fixtures

    All methods are blocking and follow fail-fast semantics: connection or
    query errors propagate to the caller. Documents that fail validation
    are logged and skipped, never returned half-decoded.
    """

    @abstractmethod
    def fetch_work_experiences(self, user_id: str) -> List[WorkExperience]:
        """
        Fetch all work experiences across the user's portfolios.

        Args:
            user_id: Owner of the portfolios

        Returns:
            Work experiences ordered by ascending start date
        """
        pass

    @abstractmethod
    def fetch_career_events(
        self,
        user_id: str,
        limit: Optional[int] = None,
    ) -> List[CareerEvent]:
        """
        Fetch the user's career events.

        Args:
            user_id: Owner of the events
            limit: Maximum events to return (None = no limit, 0 = none)

        Returns:
            Career events ordered by descending event date (most recent first)
        """
        pass

    @abstractmethod
    def fetch_job_applications(self, user_id: str) -> List[JobApplication]:
        """
        Fetch the user's job applications with their company joined in.

        Args:
            user_id: Owner of the applications

        Returns:
            Job applications ordered by descending application date
        """
        pass


def decode_documents(
    documents: Iterable[Any],
    model: Type[M],
    collection: str,
    strict: bool = False,
) -> List[M]:
    """
    Validate raw documents into record models.

    Already-decoded models pass through. Invalid documents are logged and
    skipped, or raise RecordDecodeError when strict=True.
    """
    records: List[M] = []
    for document in documents:
        if isinstance(document, model):
            records.append(document)
            continue
        try:
            records.append(model.model_validate(document))
        except ValidationError as e:
            document_id = document.get("_id") if isinstance(document, dict) else None
            error = RecordDecodeError(
                collection,
                document_id,
                f"{e.error_count()} validation error(s)",
            )
            if strict:
                raise error from e
            logger.warning(f"Skipping undecodable document {error}")
    return records
