"""
Repository Pattern for Career Data

Provides a read-only abstraction over the stores holding a user's work
experiences, career events and job applications, so the metric builders
never depend on a live database.

Public API:
- get_career_repository(): Factory to get the configured repository instance
- reset_career_repository(): Drop the singleton (tests, config changes)
- CareerDataRepositoryInterface: Abstract read interface
- MongoCareerDataRepository: pymongo implementation
- InMemoryCareerDataRepository: list-backed implementation
- RepositoryConfig: Environment-driven settings

Usage:
    from src.common.repositories import get_career_repository

    repo = get_career_repository()
    experiences = repo.fetch_work_experiences(user_id)
    recent = repo.fetch_career_events(user_id, limit=10)
"""

from .base import CareerDataRepositoryInterface, decode_documents
from .memory_repository import InMemoryCareerDataRepository
from .mongo_repository import MongoCareerDataRepository
from .config import (
    get_career_repository,
    reset_career_repository,
    RepositoryConfig,
)

__all__ = [
    "get_career_repository",
    "reset_career_repository",
    "CareerDataRepositoryInterface",
    "MongoCareerDataRepository",
    "InMemoryCareerDataRepository",
    "RepositoryConfig",
    "decode_documents",
]
