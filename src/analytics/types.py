"""
Output types for the career metrics engine.

These are the derived dashboard payloads produced by the builders:
- FinancialMetrics: compensation, growth, salary history, job change impact
- CareerProgressionSummary: experience, tenure, prorated salary by year, levels
- JobApplicationMetrics: funnel rates, cycle times, negotiation outcomes
- CareerDashboardData: everything above, composed for one user

Monetary fields stay in cents; percentages are floats in the 0-100 range.
Every type serializes with to_dict() (datetimes as ISO 8601 strings).
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from src.analytics.models import CareerEvent, WorkExperience


def serialize(value: Any) -> Any:
    """Convert a result value into JSON-compatible data."""
    if isinstance(value, SerializableResult):
        return value.to_dict()
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: serialize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize(item) for item in value]
    return value


class SerializableResult:
    """Mixin giving dataclass results a recursive to_dict()."""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {f.name: serialize(getattr(self, f.name)) for f in fields(self)}


# ===== Financial metrics =====


@dataclass(frozen=True)
class SalaryHistoryEntry(SerializableResult):
    """One calendar year of one experience (not prorated)."""

    year: int
    base_salary: int
    total_comp: int
    bonuses: int
    equity_value: int
    company: str
    role: str


@dataclass(frozen=True)
class JobChangeImpact(SerializableResult):
    change_date: Optional[datetime]
    from_company: str
    to_company: str
    salary_increase: int
    percentage_increase: float
    total_comp_increase: int


@dataclass(frozen=True)
class FinancialMetrics(SerializableResult):
    current_salary: int
    current_total_comp: int
    total_career_growth: float
    compound_annual_growth_rate: float
    salary_history: List[SalaryHistoryEntry] = field(default_factory=list)
    job_change_impact: List[JobChangeImpact] = field(default_factory=list)
    market_comparison: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "FinancialMetrics":
        return cls(
            current_salary=0,
            current_total_comp=0,
            total_career_growth=0,
            compound_annual_growth_rate=0,
        )


@dataclass(frozen=True)
class SalaryProgressionPoint(SerializableResult):
    """A point on the salary timeline chart (role start or adjustment)."""

    date: datetime
    base_salary: int
    total_comp: int
    company: str
    title: str


@dataclass(frozen=True)
class CompensationBreakdown(SerializableResult):
    company: str
    role: str
    start_date: Optional[datetime]
    end_date: Optional[datetime]
    base_salary: int
    signing_bonus: int
    annual_bonus: int
    total_bonuses: int
    equity_value: int
    total_compensation: int
    currency: str


# ===== Career progression =====


@dataclass(frozen=True)
class SalaryIncreaseRecord(SerializableResult):
    amount: int = 0
    percentage: float = 0
    reason: str = ""
    date: str = ""


@dataclass(frozen=True)
class SalaryByYearEntry(SerializableResult):
    """One calendar year of one experience, prorated by months worked."""

    year: int
    salary: int
    total_comp: int
    company: str
    title: str


@dataclass(frozen=True)
class LevelProgressionEntry(SerializableResult):
    level: str
    start_date: datetime
    end_date: Optional[datetime]
    duration_months: int


@dataclass(frozen=True)
class CareerProgressionSummary(SerializableResult):
    total_experience: float
    current_salary: int
    first_salary: int
    total_salary_growth: int
    salary_growth_percentage: float
    average_annual_growth: float
    promotion_count: int
    job_change_count: int
    average_tenure_per_job: float
    highest_salary_increase: SalaryIncreaseRecord = field(default_factory=SalaryIncreaseRecord)
    salary_by_year: List[SalaryByYearEntry] = field(default_factory=list)
    current_level: str = ""
    level_progression: List[LevelProgressionEntry] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "CareerProgressionSummary":
        return cls(
            total_experience=0,
            current_salary=0,
            first_salary=0,
            total_salary_growth=0,
            salary_growth_percentage=0,
            average_annual_growth=0,
            promotion_count=0,
            job_change_count=0,
            average_tenure_per_job=0,
        )


@dataclass(frozen=True)
class WorkExperienceWithFinancials(SerializableResult):
    experience: WorkExperience
    total_tenure: int                    # days
    current_annualized_salary: int
    total_compensation_received: float
    average_annual_raise: float
    promotion_count: int
    skills_acquired: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Flatten the experience fields alongside the derived ones."""
        data = self.experience.model_dump(mode="json")
        data.update({
            "total_tenure": self.total_tenure,
            "current_annualized_salary": self.current_annualized_salary,
            "total_compensation_received": self.total_compensation_received,
            "average_annual_raise": self.average_annual_raise,
            "promotion_count": self.promotion_count,
            "skills_acquired": list(self.skills_acquired),
        })
        return data


@dataclass(frozen=True)
class TimelineItem(SerializableResult):
    date: datetime
    type: str                            # job_start | job_end | <career event type>
    title: str
    description: str = ""
    company: Optional[str] = None
    role: Optional[str] = None
    salary: Optional[int] = None
    salary_change: Optional[int] = None
    percentage: Optional[str] = None


# ===== Job applications =====


@dataclass(frozen=True)
class SalaryMetrics(SerializableResult):
    average_offered: float = 0
    average_accepted: float = 0
    negotiation_success_rate: float = 0
    average_negotiation_increase: float = 0


@dataclass(frozen=True)
class SourceMetric(SerializableResult):
    source: str
    count: int
    response_rate: float
    offer_rate: float


@dataclass(frozen=True)
class StatusBreakdownEntry(SerializableResult):
    status: str
    count: int
    percentage: float


@dataclass(frozen=True)
class JobApplicationMetrics(SerializableResult):
    total_applications: int
    response_rate: float
    interview_rate: float
    offer_rate: float
    acceptance_rate: float
    average_time_to_response: float
    average_time_to_offer: float
    average_time_to_decision: float
    salary_metrics: SalaryMetrics = field(default_factory=SalaryMetrics)
    source_metrics: List[SourceMetric] = field(default_factory=list)
    status_breakdown: List[StatusBreakdownEntry] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "JobApplicationMetrics":
        return cls(
            total_applications=0,
            response_rate=0,
            interview_rate=0,
            offer_rate=0,
            acceptance_rate=0,
            average_time_to_response=0,
            average_time_to_offer=0,
            average_time_to_decision=0,
        )


@dataclass(frozen=True)
class FunnelStage(SerializableResult):
    stage: str
    count: int
    percentage: float


@dataclass(frozen=True)
class TopCompany(SerializableResult):
    company: str
    count: int
    offers: int
    interviews: int
    offer_rate: float
    interview_rate: float


# ===== Dashboard =====


@dataclass(frozen=True)
class CareerDashboardData(SerializableResult):
    financial: FinancialMetrics
    progression: CareerProgressionSummary
    job_applications: JobApplicationMetrics
    work_experiences: List[WorkExperienceWithFinancials]
    recent_events: List[CareerEvent]
    salary_chart: List[SalaryProgressionPoint]


@dataclass(frozen=True)
class DashboardMetrics(SerializableResult):
    """Pre-formatted values for the dashboard summary cards."""

    current_salary: str
    career_growth: str
    total_experience: str
    job_changes: int
    average_tenure: str
    response_rate: str
    offer_rate: str
    negotiation_success: str
    compound_growth_rate: str
    promotion_count: int
