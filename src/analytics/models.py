"""
Record models for the career metrics engine.

These are the read-only inputs the builders consume:
- WorkExperience: one employment period, with salary adjustments and bonuses
- CareerEvent: a dated milestone (promotion, raise, bonus, ...)
- JobApplication: one application to one Company

Documents are validated here, at the repository boundary. Loosely-typed
JSON columns (salary_adjustments, bonus_history, metadata, interview_dates)
are decoded with safe_parse_json; a malformed entry inside one of them is
logged and dropped instead of failing the whole record.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Any, FrozenSet, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from src.analytics.utils import safe_parse_json, to_datetime

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class RecordModel(BaseModel):
    """Base for all persisted records: immutable, tolerant of unknown fields."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


def coerce_id(value: Any) -> Optional[str]:
    # ObjectId and UUID both stringify cleanly
    return str(value) if value is not None else None


def decode_entries(value: Any, model: Type[M], field_name: str) -> List[M]:
    """Decode a JSON list column into models, dropping malformed entries."""
    items = safe_parse_json(value, [])
    if not isinstance(items, list):
        logger.warning(f"Expected a list for {field_name}, got {type(items).__name__}; ignoring")
        return []

    decoded: List[M] = []
    for index, item in enumerate(items):
        if isinstance(item, model):
            decoded.append(item)
            continue
        try:
            decoded.append(model.model_validate(item))
        except ValidationError as e:
            logger.warning(
                f"Dropping malformed {field_name}[{index}]: {e.error_count()} validation error(s)"
            )
    return decoded


# ===== Work experience =====


class SalaryAdjustment(RecordModel):
    """A raise or promotion within a single work experience."""

    effective_date: datetime
    new_salary: int                          # in cents
    previous_salary: Optional[int] = None    # in cents
    increase_amount: Optional[int] = None    # in cents
    increase_percentage: float = 0
    reason: Optional[str] = None             # promotion | merit_increase | market_adjustment | ...
    new_title: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("effective_date", mode="before")
    @classmethod
    def normalize_date(cls, value: Any) -> Optional[datetime]:
        return to_datetime(value)

    @field_validator("increase_percentage", mode="before")
    @classmethod
    def default_percentage(cls, value: Any) -> Any:
        return 0 if value is None or value == "" else value


class BonusEntry(RecordModel):
    """A single bonus payment."""

    date: datetime
    amount: int = 0                          # in cents
    type: Optional[str] = None               # annual | signing | performance | retention | spot
    description: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, value: Any) -> Optional[datetime]:
        return to_datetime(value)

    @field_validator("amount", mode="before")
    @classmethod
    def default_amount(cls, value: Any) -> Any:
        return 0 if value is None else value


class WorkExperienceMetadata(RecordModel):
    company_size: Optional[str] = None
    industry: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    achievements: List[str] = Field(default_factory=list)
    technologies: List[str] = Field(default_factory=list)
    projects: List[str] = Field(default_factory=list)
    certifications_earned: List[str] = Field(default_factory=list)


class WorkExperience(RecordModel):
    """
    One employment period for a portfolio owner.

    end_date=None marks the current (open-ended) job. All money is in cents.
    """

    id: Optional[str] = Field(default=None, alias="_id")
    portfolio_id: Optional[str] = None
    company: str = ""
    role: str = ""
    description: str = ""
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    base_salary: Optional[int] = None
    currency: str = "USD"
    total_compensation: Optional[int] = None
    equity_value: Optional[int] = None
    signing_bonus: Optional[int] = None
    annual_bonus: Optional[int] = None

    seniority_level: Optional[str] = None
    salary_adjustments: List[SalaryAdjustment] = Field(default_factory=list)
    bonus_history: List[BonusEntry] = Field(default_factory=list)
    metadata: WorkExperienceMetadata = Field(default_factory=WorkExperienceMetadata)
    reason_for_leaving: Optional[str] = None

    @field_validator("id", "portfolio_id", mode="before")
    @classmethod
    def normalize_ids(cls, value: Any) -> Optional[str]:
        return coerce_id(value)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def normalize_dates(cls, value: Any) -> Optional[datetime]:
        return to_datetime(value)

    @field_validator("salary_adjustments", mode="before")
    @classmethod
    def decode_adjustments(cls, value: Any) -> List[SalaryAdjustment]:
        return decode_entries(value, SalaryAdjustment, "salary_adjustments")

    @field_validator("bonus_history", mode="before")
    @classmethod
    def decode_bonuses(cls, value: Any) -> List[BonusEntry]:
        return decode_entries(value, BonusEntry, "bonus_history")

    @field_validator("metadata", mode="before")
    @classmethod
    def decode_metadata(cls, value: Any) -> Any:
        if isinstance(value, WorkExperienceMetadata):
            return value
        data = safe_parse_json(value, {})
        if not isinstance(data, dict):
            logger.warning(f"Expected an object for metadata, got {type(data).__name__}; ignoring")
            return {}
        try:
            return WorkExperienceMetadata.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Dropping malformed metadata: {e.error_count()} validation error(s)")
            return {}

    @property
    def is_current(self) -> bool:
        return self.end_date is None


# ===== Career events =====


class CareerEvent(RecordModel):
    """A point-in-time career milestone tied to a user."""

    id: Optional[str] = Field(default=None, alias="_id")
    user_id: Optional[str] = None
    work_experience_id: Optional[str] = None
    event_type: str                          # promotion | raise | bonus | equity_grant | ...
    event_date: datetime
    salary_increase: Optional[int] = None    # in cents
    increase_percentage: Optional[str] = None
    description: Optional[str] = None

    @field_validator("id", "user_id", "work_experience_id", mode="before")
    @classmethod
    def normalize_ids(cls, value: Any) -> Optional[str]:
        return coerce_id(value)

    @field_validator("event_date", mode="before")
    @classmethod
    def normalize_date(cls, value: Any) -> Optional[datetime]:
        return to_datetime(value)

    @field_validator("increase_percentage", mode="before")
    @classmethod
    def stringify_percentage(cls, value: Any) -> Optional[str]:
        # Stored as a decimal string; numeric documents are accepted too
        return None if value is None else str(value)


# ===== Job applications =====


class ApplicationStatus(str, Enum):
    """Pipeline state of a job application."""

    APPLIED = "APPLIED"
    PHONE_SCREEN = "PHONE_SCREEN"
    INTERVIEW = "INTERVIEW"
    FINAL_INTERVIEW = "FINAL_INTERVIEW"
    OFFER = "OFFER"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    WITHDRAWN = "WITHDRAWN"


# Statuses that count as "received an offer"
OFFER_STATUSES: FrozenSet[ApplicationStatus] = frozenset(
    {ApplicationStatus.OFFER, ApplicationStatus.ACCEPTED}
)

# Statuses that end an application's cycle
TERMINAL_STATUSES: FrozenSet[ApplicationStatus] = frozenset(
    {ApplicationStatus.ACCEPTED, ApplicationStatus.REJECTED, ApplicationStatus.WITHDRAWN}
)


class Company(RecordModel):
    id: Optional[str] = Field(default=None, alias="_id")
    name: str

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, value: Any) -> Optional[str]:
        return coerce_id(value)


class JobApplication(RecordModel):
    """
    One application to one company, with the company joined in.

    time_to_* fields are precomputed day counts and are trusted as-is.
    """

    id: Optional[str] = Field(default=None, alias="_id")
    user_id: Optional[str] = None
    position: str = ""
    company: Optional[Company] = None
    status: ApplicationStatus

    application_date: Optional[datetime] = None
    response_date: Optional[datetime] = None
    first_interview_date: Optional[datetime] = None
    offer_date: Optional[datetime] = None
    decision_date: Optional[datetime] = None

    salary_offered: Optional[int] = None     # in cents
    salary_negotiated: Optional[int] = None  # in cents
    salary_final: Optional[int] = None       # in cents

    source: str = "unknown"
    time_to_response: Optional[int] = None   # days
    time_to_offer: Optional[int] = None      # days
    time_to_decision: Optional[int] = None   # days
    interview_dates: List[Any] = Field(default_factory=list)

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def normalize_ids(cls, value: Any) -> Optional[str]:
        return coerce_id(value)

    @field_validator(
        "application_date",
        "response_date",
        "first_interview_date",
        "offer_date",
        "decision_date",
        mode="before",
    )
    @classmethod
    def normalize_dates(cls, value: Any) -> Optional[datetime]:
        return to_datetime(value)

    @field_validator("status", mode="before")
    @classmethod
    def upper_status(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value

    @field_validator("source", mode="before")
    @classmethod
    def default_source(cls, value: Any) -> str:
        if value is None or not str(value).strip():
            return "unknown"
        return str(value).strip()

    @field_validator("company", mode="before")
    @classmethod
    def company_from_name(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"name": value}
        return value

    @field_validator("interview_dates", mode="before")
    @classmethod
    def decode_interview_dates(cls, value: Any) -> List[Any]:
        entries = safe_parse_json(value, [])
        return entries if isinstance(entries, list) else []

    @property
    def company_name(self) -> Optional[str]:
        return self.company.name if self.company else None

    @property
    def has_offer(self) -> bool:
        return self.status in OFFER_STATUSES
