"""
Repository Configuration and Factory

Provides factory function to get the career data repository based on
environment configuration.
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

from .base import CareerDataRepositoryInterface

logger = logging.getLogger(__name__)


@dataclass
class RepositoryConfig:
    """
    Configuration for repository initialization.

    Loaded from environment variables with sensible defaults.
    """
    # MongoDB (required)
    mongodb_uri: str

    database: str = "craftd"

    # Raise on undecodable documents instead of skipping them
    strict_decoding: bool = False

    @classmethod
    def from_env(cls) -> "RepositoryConfig":
        """
        Load configuration from environment variables.

        Environment variables:
        - MONGODB_URI (required): MongoDB connection string
        - CAREER_DB_NAME: Database name (default: craftd)
        - STRICT_DECODING: Fail on invalid documents (true/false)

        Returns:
            RepositoryConfig instance

        Raises:
            ValueError: If MONGODB_URI is not set
        """
        mongodb_uri = os.getenv("MONGODB_URI")
        if not mongodb_uri:
            raise ValueError("MONGODB_URI environment variable is required")

        return cls(
            mongodb_uri=mongodb_uri,
            database=os.getenv("CAREER_DB_NAME", "craftd"),
            strict_decoding=os.getenv("STRICT_DECODING", "false").lower() == "true",
        )


# Singleton repository instance
_repository_instance: Optional[CareerDataRepositoryInterface] = None


def get_career_repository() -> CareerDataRepositoryInterface:
    """
    Get the career data repository instance.

    Uses singleton pattern for connection pooling.

    Returns:
        CareerDataRepositoryInterface implementation

    Raises:
        ValueError: If MongoDB URI is not configured
    """
    global _repository_instance

    if _repository_instance is None:
        config = RepositoryConfig.from_env()

        from .mongo_repository import MongoCareerDataRepository
        _repository_instance = MongoCareerDataRepository(
            mongodb_uri=config.mongodb_uri,
            database=config.database,
            strict=config.strict_decoding,
        )
        logger.info(f"Initialized MongoDB career data repository ({config.database})")

    return _repository_instance


def reset_career_repository() -> None:
    """
    Reset the repository singleton.

    Used for testing or when configuration changes.
    """
    global _repository_instance

    if _repository_instance is not None:
        from .mongo_repository import MongoCareerDataRepository
        if isinstance(_repository_instance, MongoCareerDataRepository):
            MongoCareerDataRepository.reset_connection()

    _repository_instance = None
    logger.info("Career repository singleton reset")
