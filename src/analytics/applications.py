"""
Job Application Metrics Builder.

Funnel rates, response/offer timings, salary negotiation outcomes and
per-source / per-status breakdowns for one user's job applications.

Every rate is a percentage of its own denominator and is 0 when that
denominator is 0.
"""

import logging
import math
from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

from src.analytics.models import (
    OFFER_STATUSES,
    TERMINAL_STATUSES,
    ApplicationStatus,
    JobApplication,
)
from src.analytics.types import (
    FunnelStage,
    JobApplicationMetrics,
    SalaryMetrics,
    SourceMetric,
    StatusBreakdownEntry,
    TopCompany,
)
from src.analytics.utils import (
    SECONDS_PER_DAY,
    calculate_percentage_change,
    round_half_up,
    utc_now,
)

logger = logging.getLogger(__name__)

UNKNOWN_COMPANY = "Unknown Company"


def rate(count: int, total: int) -> float:
    """count as a percentage of total; 0 for an empty total."""
    return (count / total) * 100 if total > 0 else 0


def mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0


def build_job_application_metrics(applications: Sequence[JobApplication]) -> JobApplicationMetrics:
    """
    Build the application metrics for one user.

    Args:
        applications: The user's applications, any order (may be empty)

    Returns:
        JobApplicationMetrics; a zeroed object for an empty list
    """
    if not applications:
        return JobApplicationMetrics.empty()

    total = len(applications)

    responses_received = sum(1 for app in applications if app.response_date)
    interviews_scheduled = sum(1 for app in applications if app.first_interview_date)
    offers_received = sum(1 for app in applications if app.has_offer)
    offers_accepted = sum(1 for app in applications if app.status == ApplicationStatus.ACCEPTED)

    return JobApplicationMetrics(
        total_applications=total,
        response_rate=rate(responses_received, total),
        interview_rate=rate(interviews_scheduled, total),
        offer_rate=rate(offers_received, total),
        acceptance_rate=rate(offers_accepted, offers_received),
        average_time_to_response=mean(
            [app.time_to_response for app in applications if app.time_to_response is not None]
        ),
        average_time_to_offer=mean(
            [app.time_to_offer for app in applications if app.time_to_offer is not None]
        ),
        average_time_to_decision=mean(
            [app.time_to_decision for app in applications if app.time_to_decision is not None]
        ),
        salary_metrics=build_salary_metrics(applications, offers_received),
        source_metrics=build_source_metrics(applications),
        status_breakdown=build_status_breakdown(applications),
    )


def build_salary_metrics(
    applications: Sequence[JobApplication],
    offers_received: int,
) -> SalaryMetrics:
    """Offered/accepted averages and negotiation outcomes."""
    offered = [app.salary_offered for app in applications if app.salary_offered]
    accepted = [app.salary_final for app in applications if app.salary_final]

    negotiated = [
        app
        for app in applications
        if app.salary_offered
        and app.salary_negotiated
        and app.salary_negotiated > app.salary_offered
    ]

    return SalaryMetrics(
        average_offered=mean(offered),
        average_accepted=mean(accepted),
        negotiation_success_rate=rate(len(negotiated), offers_received),
        average_negotiation_increase=mean(
            [
                calculate_percentage_change(app.salary_offered, app.salary_negotiated)
                for app in negotiated
            ]
        ),
    )


def build_source_metrics(applications: Sequence[JobApplication]) -> List[SourceMetric]:
    """Per-source counts and rates, in order of first appearance."""
    groups: Dict[str, List[JobApplication]] = {}
    for app in applications:
        groups.setdefault(app.source or "unknown", []).append(app)

    return [
        SourceMetric(
            source=source,
            count=len(apps),
            response_rate=rate(sum(1 for app in apps if app.response_date), len(apps)),
            offer_rate=rate(sum(1 for app in apps if app.has_offer), len(apps)),
        )
        for source, apps in groups.items()
    ]


def build_status_breakdown(applications: Sequence[JobApplication]) -> List[StatusBreakdownEntry]:
    """Per-status counts, in order of first appearance."""
    counts = Counter(app.status.value for app in applications)
    total = len(applications)

    return [
        StatusBreakdownEntry(status=status, count=count, percentage=rate(count, total))
        for status, count in counts.items()
    ]


def build_application_funnel(applications: Sequence[JobApplication]) -> List[FunnelStage]:
    """
    Stage-by-stage counts from application to acceptance.

    Stages are counted independently, so a later stage may exceed an
    earlier one when the underlying fields were recorded unevenly.
    """
    total = len(applications)
    stage_counts = [
        ("Applied", total),
        ("Response", sum(1 for app in applications if app.response_date)),
        (
            "Phone Screen",
            sum(
                1
                for app in applications
                if app.status == ApplicationStatus.PHONE_SCREEN or app.interview_dates
            ),
        ),
        ("Interview", sum(1 for app in applications if app.first_interview_date)),
        (
            "Final Round",
            sum(1 for app in applications if app.status == ApplicationStatus.FINAL_INTERVIEW),
        ),
        ("Offer", sum(1 for app in applications if app.has_offer)),
        ("Accepted", sum(1 for app in applications if app.status == ApplicationStatus.ACCEPTED)),
    ]

    return [
        FunnelStage(stage=stage, count=count, percentage=rate(count, total))
        for stage, count in stage_counts
    ]


def filter_applications_by_timeframe(
    applications: Sequence[JobApplication],
    days: int = 30,
    now: Optional[datetime] = None,
) -> List[JobApplication]:
    """Applications submitted within the last `days` days."""
    cutoff = (now or utc_now()) - timedelta(days=days)
    return [
        app
        for app in applications
        if app.application_date is not None and app.application_date >= cutoff
    ]


def build_top_companies(
    applications: Sequence[JobApplication],
    limit: int = 10,
) -> List[TopCompany]:
    """Companies applied to most often, with offer and interview rates."""
    groups: Dict[str, List[JobApplication]] = {}
    for app in applications:
        groups.setdefault(app.company_name or UNKNOWN_COMPANY, []).append(app)

    companies = []
    for company, apps in groups.items():
        offers = sum(1 for app in apps if app.has_offer)
        interviews = sum(1 for app in apps if app.first_interview_date)
        companies.append(
            TopCompany(
                company=company,
                count=len(apps),
                offers=offers,
                interviews=interviews,
                offer_rate=rate(offers, len(apps)),
                interview_rate=rate(interviews, len(apps)),
            )
        )

    # sorted() is stable: equal counts keep first-appearance order
    companies = sorted(companies, key=lambda entry: entry.count, reverse=True)
    return companies[:limit]


def calculate_average_cycle_time(applications: Sequence[JobApplication]) -> int:
    """
    Mean days from application to decision over closed applications.

    Each application's span is rounded up to whole days; the mean is
    rounded to the nearest day. 0 when no application has closed.
    """
    spans = [
        math.ceil((app.decision_date - app.application_date).total_seconds() / SECONDS_PER_DAY)
        for app in applications
        if app.application_date
        and app.decision_date
        and app.status in TERMINAL_STATUSES
    ]

    if not spans:
        return 0

    return round_half_up(sum(spans) / len(spans))
