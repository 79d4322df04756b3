"""
Career Dashboard Composer.

Fans out the independent metric computations for one user concurrently
and assembles them into dashboard payloads.

Each sub-task reads from the (blocking) repository in a worker thread and
runs a pure builder over the result. Composition is fail-fast: if any
sub-task fails, the whole request fails with DashboardDataError and no
partial payload is returned.

Usage:
    service = CareerDashboardService(repository)
    data = await service.get_career_dashboard_data(user_id)
    payload = data.to_dict()
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from src.analytics.applications import (
    build_application_funnel,
    build_job_application_metrics,
    build_top_companies,
    calculate_average_cycle_time,
    filter_applications_by_timeframe,
)
from src.analytics.financial import build_financial_metrics, build_salary_progression
from src.analytics.models import CareerEvent
from src.analytics.progression import (
    build_career_progression_summary,
    build_career_timeline,
    build_work_experiences_with_financials,
)
from src.analytics.types import (
    CareerDashboardData,
    CareerProgressionSummary,
    DashboardMetrics,
    FinancialMetrics,
    JobApplicationMetrics,
    SalaryProgressionPoint,
    WorkExperienceWithFinancials,
)
from src.analytics.utils import (
    cents_to_dollars,
    format_currency,
    format_percentage,
    round_half_up,
    utc_now,
)
from src.common.config import Config
from src.common.error_handling import DashboardDataError, log_on_exception
from src.common.logger import get_logger
from src.common.repositories import CareerDataRepositoryInterface, get_career_repository

logger = logging.getLogger(__name__)


class CareerDashboardService:
    """
    Composes career dashboard payloads from a career data repository.

    A single "now" is sampled per request and shared by every builder, so
    two requests over the same data at the same instant are identical.
    """

    def __init__(
        self,
        repository: Optional[CareerDataRepositoryInterface] = None,
        now_provider: Callable[[], datetime] = utc_now,
        recent_events_limit: Optional[int] = None,
        application_timeframe_days: Optional[int] = None,
        top_companies_limit: Optional[int] = None,
    ):
        """
        Args:
            repository: Data source (default: the configured singleton repository)
            now_provider: Clock used to sample the request's reference time
            recent_events_limit: Career events in the recent panel (default: Config)
            application_timeframe_days: Window for recent applications (default: Config)
            top_companies_limit: Companies in the top companies list (default: Config)
        """
        self.repository = repository or get_career_repository()
        self.now_provider = now_provider
        self.recent_events_limit = (
            Config.RECENT_EVENTS_LIMIT if recent_events_limit is None else recent_events_limit
        )
        self.application_timeframe_days = (
            Config.APPLICATION_TIMEFRAME_DAYS
            if application_timeframe_days is None
            else application_timeframe_days
        )
        self.top_companies_limit = (
            Config.TOP_COMPANIES_LIMIT if top_companies_limit is None else top_companies_limit
        )

    # ===== Sub-tasks (blocking, run in worker threads) =====

    def _financial_metrics(self, user_id: str, now: datetime) -> FinancialMetrics:
        return build_financial_metrics(self.repository.fetch_work_experiences(user_id), now=now)

    def _progression_summary(self, user_id: str, now: datetime) -> CareerProgressionSummary:
        return build_career_progression_summary(
            self.repository.fetch_work_experiences(user_id),
            self.repository.fetch_career_events(user_id),
            now=now,
        )

    def _job_application_metrics(self, user_id: str) -> JobApplicationMetrics:
        return build_job_application_metrics(self.repository.fetch_job_applications(user_id))

    def _work_experiences(self, user_id: str, now: datetime) -> List[WorkExperienceWithFinancials]:
        return build_work_experiences_with_financials(
            self.repository.fetch_work_experiences(user_id), now=now
        )

    def _recent_events(self, user_id: str) -> List[CareerEvent]:
        return self.repository.fetch_career_events(user_id, limit=self.recent_events_limit)

    def _salary_progression(self, user_id: str) -> List[SalaryProgressionPoint]:
        return build_salary_progression(self.repository.fetch_work_experiences(user_id))

    async def _gather(
        self,
        user_id: str,
        failure_message: str,
        tasks: Sequence[Awaitable[Any]],
    ) -> List[Any]:
        """Await all sub-tasks; any failure fails the whole request."""
        request_logger = get_logger(__name__, user_id=user_id, component="dashboard")
        try:
            with log_on_exception(logger, failure_message, level=logging.ERROR, include_traceback=True):
                results = await asyncio.gather(*tasks)
        except Exception as e:
            raise DashboardDataError(failure_message) from e

        request_logger.debug(f"Composed {len(results)} sub-results")
        return list(results)

    # ===== Public API =====

    async def get_career_dashboard_data(self, user_id: str) -> CareerDashboardData:
        """
        Fetch and compute everything the career dashboard shows.

        Raises:
            DashboardDataError: If any of the six sub-tasks fails
        """
        now = self.now_provider()

        (
            financial,
            progression,
            job_applications,
            work_experiences,
            recent_events,
            salary_chart,
        ) = await self._gather(
            user_id,
            "Failed to fetch career dashboard data",
            [
                asyncio.to_thread(self._financial_metrics, user_id, now),
                asyncio.to_thread(self._progression_summary, user_id, now),
                asyncio.to_thread(self._job_application_metrics, user_id),
                asyncio.to_thread(self._work_experiences, user_id, now),
                asyncio.to_thread(self._recent_events, user_id),
                asyncio.to_thread(self._salary_progression, user_id),
            ],
        )

        return CareerDashboardData(
            financial=financial,
            progression=progression,
            job_applications=job_applications,
            work_experiences=work_experiences,
            recent_events=recent_events,
            salary_chart=salary_chart,
        )

    async def get_dashboard_metrics(self, user_id: str) -> DashboardMetrics:
        """Pre-formatted values for the summary cards."""
        now = self.now_provider()

        financial, progression, job_applications = await self._gather(
            user_id,
            "Failed to fetch dashboard metrics",
            [
                asyncio.to_thread(self._financial_metrics, user_id, now),
                asyncio.to_thread(self._progression_summary, user_id, now),
                asyncio.to_thread(self._job_application_metrics, user_id),
            ],
        )

        return DashboardMetrics(
            current_salary=format_currency(financial.current_salary),
            career_growth=format_percentage(financial.total_career_growth),
            total_experience=f"{progression.total_experience:.1f} years",
            job_changes=progression.job_change_count,
            average_tenure=f"{progression.average_tenure_per_job:.1f} years",
            response_rate=format_percentage(job_applications.response_rate),
            offer_rate=format_percentage(job_applications.offer_rate),
            negotiation_success=format_percentage(
                job_applications.salary_metrics.negotiation_success_rate
            ),
            compound_growth_rate=format_percentage(financial.compound_annual_growth_rate),
            promotion_count=progression.promotion_count,
        )

    async def get_financial_chart_data(self, user_id: str) -> Dict[str, Any]:
        """Salary timeline, yearly bars and job change waterfall, in dollars."""
        now = self.now_provider()

        financial, salary_progression = await self._gather(
            user_id,
            "Failed to fetch financial chart data",
            [
                asyncio.to_thread(self._financial_metrics, user_id, now),
                asyncio.to_thread(self._salary_progression, user_id),
            ],
        )

        return {
            "salary_timeline": [
                {
                    "date": point.date.isoformat(),
                    "base_salary": cents_to_dollars(point.base_salary),
                    "total_comp": cents_to_dollars(point.total_comp),
                    "company": point.company,
                    "title": point.title,
                }
                for point in salary_progression
            ],
            "yearly_data": [
                {
                    "year": str(entry.year),
                    "base_salary": cents_to_dollars(entry.base_salary),
                    "total_comp": cents_to_dollars(entry.total_comp),
                    "bonuses": cents_to_dollars(entry.bonuses),
                    "equity": cents_to_dollars(entry.equity_value),
                    "company": entry.company,
                }
                for entry in financial.salary_history
            ],
            "job_change_data": [
                {
                    "change": f"{change.from_company} → {change.to_company}",
                    "date": change.change_date.isoformat() if change.change_date else None,
                    "salary_increase": cents_to_dollars(change.salary_increase),
                    "percentage_increase": f"{change.percentage_increase:.1f}",
                    "total_comp_increase": cents_to_dollars(change.total_comp_increase),
                }
                for change in financial.job_change_impact
            ],
            "current_salary": cents_to_dollars(financial.current_salary),
            "total_growth": financial.total_career_growth,
            "cagr": financial.compound_annual_growth_rate,
        }

    async def get_job_application_chart_data(self, user_id: str) -> Dict[str, Any]:
        """Conversion funnel, source effectiveness, status pie, timing and salary data."""
        (metrics,) = await self._gather(
            user_id,
            "Failed to fetch job application chart data",
            [asyncio.to_thread(self._job_application_metrics, user_id)],
        )

        total = metrics.total_applications
        accepted_rate = (metrics.offer_rate * metrics.acceptance_rate) / 100

        return {
            "conversion_funnel": [
                {"stage": "Applications", "count": total, "rate": 100},
                {
                    "stage": "Responses",
                    "count": round_half_up(total * metrics.response_rate / 100),
                    "rate": metrics.response_rate,
                },
                {
                    "stage": "Interviews",
                    "count": round_half_up(total * metrics.interview_rate / 100),
                    "rate": metrics.interview_rate,
                },
                {
                    "stage": "Offers",
                    "count": round_half_up(total * metrics.offer_rate / 100),
                    "rate": metrics.offer_rate,
                },
                {
                    "stage": "Accepted",
                    "count": round_half_up(total * accepted_rate / 100),
                    "rate": accepted_rate,
                },
            ],
            "source_data": [
                {
                    "source": source.source,
                    "applications": source.count,
                    "response_rate": source.response_rate,
                    "offer_rate": source.offer_rate,
                    "effectiveness": (source.response_rate + source.offer_rate) / 2,
                }
                for source in metrics.source_metrics
            ],
            "status_data": [entry.to_dict() for entry in metrics.status_breakdown],
            "timing_data": {
                "average_time_to_response": metrics.average_time_to_response,
                "average_time_to_offer": metrics.average_time_to_offer,
                "average_time_to_decision": metrics.average_time_to_decision,
            },
            "salary_metrics": {
                "average_offered": cents_to_dollars(metrics.salary_metrics.average_offered),
                "average_accepted": cents_to_dollars(metrics.salary_metrics.average_accepted),
                "negotiation_success_rate": metrics.salary_metrics.negotiation_success_rate,
                "average_negotiation_increase": metrics.salary_metrics.average_negotiation_increase,
            },
        }

    async def get_career_progression_chart_data(self, user_id: str) -> Dict[str, Any]:
        """Level steps, prorated yearly salary, year-over-year growth and the top raise."""
        now = self.now_provider()

        (progression,) = await self._gather(
            user_id,
            "Failed to fetch career progression chart data",
            [asyncio.to_thread(self._progression_summary, user_id, now)],
        )

        yearly_growth_data = [
            {
                "year": entry.year,
                "salary": cents_to_dollars(entry.salary),
                "total_comp": cents_to_dollars(entry.total_comp),
                "company": entry.company,
                "title": entry.title,
            }
            for entry in progression.salary_by_year
        ]

        growth_rates = []
        for previous, current in zip(yearly_growth_data, yearly_growth_data[1:]):
            if previous["salary"] > 0:
                change = current["salary"] - previous["salary"]
                growth_rates.append({
                    "year": current["year"],
                    "growth_rate": f"{change / previous['salary'] * 100:.1f}",
                    "salary_change": change,
                })

        highest = progression.highest_salary_increase

        return {
            "level_progression_data": [
                {
                    "level": level.level,
                    "start_date": level.start_date.isoformat(),
                    "end_date": level.end_date.isoformat() if level.end_date else None,
                    "duration": level.duration_months,
                    "duration_years": f"{level.duration_months / 12:.1f}",
                }
                for level in progression.level_progression
            ],
            "yearly_growth_data": yearly_growth_data,
            "growth_rates": growth_rates,
            "total_experience": f"{progression.total_experience:.1f}",
            "average_annual_growth": f"{progression.average_annual_growth:.1f}",
            "highest_increase": {
                "amount": cents_to_dollars(highest.amount),
                "percentage": f"{highest.percentage:.1f}",
                "reason": highest.reason,
                "date": highest.date,
            },
        }

    async def get_application_insights(self, user_id: str) -> Dict[str, Any]:
        """Stage funnel, recent applications, top companies and average cycle time."""
        now = self.now_provider()

        (applications,) = await self._gather(
            user_id,
            "Failed to fetch application insights",
            [asyncio.to_thread(self.repository.fetch_job_applications, user_id)],
        )

        recent = filter_applications_by_timeframe(
            applications, days=self.application_timeframe_days, now=now
        )

        return {
            "funnel": [stage.to_dict() for stage in build_application_funnel(applications)],
            "recent_applications": [app.model_dump(mode="json") for app in recent],
            "top_companies": [
                company.to_dict()
                for company in build_top_companies(applications, limit=self.top_companies_limit)
            ],
            "average_cycle_time": calculate_average_cycle_time(applications),
        }

    async def get_career_timeline(self, user_id: str) -> List[Dict[str, Any]]:
        """Job starts, job ends and career events as one dated list."""
        experiences, events = await self._gather(
            user_id,
            "Failed to fetch career timeline",
            [
                asyncio.to_thread(self.repository.fetch_work_experiences, user_id),
                asyncio.to_thread(self.repository.fetch_career_events, user_id),
            ],
        )

        return [item.to_dict() for item in build_career_timeline(experiences, events)]
