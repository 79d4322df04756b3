"""
In-Memory Career Data Repository

List-backed implementation of CareerDataRepositoryInterface. Used by unit
tests and by the CLI's --fixture mode; applies the same ordering rules
as the MongoDB implementation.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from src.analytics.models import CareerEvent, JobApplication, WorkExperience

from .base import CareerDataRepositoryInterface, decode_documents

logger = logging.getLogger(__name__)


def _date_key(value: Optional[datetime]):
    # Missing dates sort before any real date, as in MongoDB
    return (value is not None, value or datetime.min)


@dataclass
class UserCareerData:
    """Decoded records held for one user."""

    work_experiences: List[WorkExperience] = field(default_factory=list)
    career_events: List[CareerEvent] = field(default_factory=list)
    job_applications: List[JobApplication] = field(default_factory=list)


class InMemoryCareerDataRepository(CareerDataRepositoryInterface):
    """
    Career data held in memory, keyed by user id.

    Records may be given as models or as raw documents; raw documents are
    decoded with the same rules as the MongoDB repository.
    """

    def __init__(self, strict: bool = False):
        self._strict = strict
        self._users: Dict[str, UserCareerData] = {}

    def add_user_data(
        self,
        user_id: str,
        work_experiences: Iterable[Any] = (),
        career_events: Iterable[Any] = (),
        job_applications: Iterable[Any] = (),
    ) -> None:
        """Append records for a user."""
        data = self._users.setdefault(user_id, UserCareerData())
        data.work_experiences.extend(
            decode_documents(work_experiences, WorkExperience, "work_experiences", strict=self._strict)
        )
        data.career_events.extend(
            decode_documents(career_events, CareerEvent, "career_events", strict=self._strict)
        )
        data.job_applications.extend(
            decode_documents(job_applications, JobApplication, "job_applications", strict=self._strict)
        )
        logger.debug(
            f"Loaded {len(data.work_experiences)} experiences, {len(data.career_events)} events, "
            f"{len(data.job_applications)} applications for user {user_id}"
        )

    @classmethod
    def from_fixture(cls, user_id: str, fixture: Dict[str, Any], strict: bool = False) -> "InMemoryCareerDataRepository":
        """
        Build a repository from a fixture dict with "work_experiences",
        "career_events" and "job_applications" lists (all optional).
        """
        repository = cls(strict=strict)
        repository.add_user_data(
            user_id,
            work_experiences=fixture.get("work_experiences", []),
            career_events=fixture.get("career_events", []),
            job_applications=fixture.get("job_applications", []),
        )
        return repository

    def _get(self, user_id: str) -> UserCareerData:
        return self._users.get(user_id, UserCareerData())

    def fetch_work_experiences(self, user_id: str) -> List[WorkExperience]:
        return sorted(self._get(user_id).work_experiences, key=lambda exp: _date_key(exp.start_date))

    def fetch_career_events(self, user_id: str, limit: Optional[int] = None) -> List[CareerEvent]:
        events = sorted(
            self._get(user_id).career_events,
            key=lambda event: _date_key(event.event_date),
            reverse=True,
        )
        return events if limit is None else events[:limit]

    def fetch_job_applications(self, user_id: str) -> List[JobApplication]:
        return sorted(
            self._get(user_id).job_applications,
            key=lambda app: _date_key(app.application_date),
            reverse=True,
        )
