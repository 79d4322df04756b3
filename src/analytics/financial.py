"""
Financial Metrics Builder.

Derives compensation and growth metrics from a user's work experiences.

Key Features:
- Current salary / total compensation of the current job
- Career-wide growth percentage and CAGR since the first job
- Per-calendar-year salary history (whole years, not prorated)
- Salary delta at each job change
- Salary timeline and per-job compensation breakdown for charts

Experiences must be supplied ordered by ascending start date; the builder
relies on list order and never sorts them.

Usage:
    from src.analytics.financial import build_financial_metrics

    metrics = build_financial_metrics(experiences)
    metrics.total_career_growth  # e.g. 62.5
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from src.analytics.models import WorkExperience
from src.analytics.salary import (
    get_current_salary,
    get_salary_as_of,
    select_current_experience,
)
from src.analytics.types import (
    CompensationBreakdown,
    FinancialMetrics,
    JobChangeImpact,
    SalaryHistoryEntry,
    SalaryProgressionPoint,
)
from src.analytics.utils import (
    calculate_cagr,
    calculate_percentage_change,
    get_bonuses_for_year,
    get_employment_years,
    utc_now,
    years_between,
)

logger = logging.getLogger(__name__)


def build_financial_metrics(
    experiences: Sequence[WorkExperience],
    now: Optional[datetime] = None,
) -> FinancialMetrics:
    """
    Build the financial metrics for one owner.

    Args:
        experiences: Work experiences ordered by ascending start date (may be empty)
        now: Reference time for open-ended jobs (default: current UTC time)

    Returns:
        FinancialMetrics; a zeroed object for an empty list
    """
    if not experiences:
        return FinancialMetrics.empty()

    now = now or utc_now()

    current_exp = select_current_experience(experiences)
    current_salary = get_current_salary(current_exp)
    current_total_comp = current_exp.total_compensation or current_salary

    first_exp = experiences[0]
    first_salary = first_exp.base_salary or 0

    total_career_growth = calculate_percentage_change(first_salary, current_salary)

    years_of_experience = (
        years_between(first_exp.start_date, now) if first_exp.start_date else 1
    )
    compound_annual_growth_rate = calculate_cagr(
        first_salary, current_salary, years_of_experience
    )

    salary_history = build_salary_history(experiences, now=now)
    job_change_impact = build_job_change_impact(experiences)

    logger.debug(
        f"Financial metrics: {len(experiences)} experiences, "
        f"{len(salary_history)} history rows, {len(job_change_impact)} job changes"
    )

    return FinancialMetrics(
        current_salary=current_salary,
        current_total_comp=current_total_comp,
        total_career_growth=total_career_growth,
        compound_annual_growth_rate=compound_annual_growth_rate,
        salary_history=salary_history,
        job_change_impact=job_change_impact,
        market_comparison={"last_updated": now.isoformat()},
    )


def build_salary_history(
    experiences: Sequence[WorkExperience],
    now: Optional[datetime] = None,
) -> List[SalaryHistoryEntry]:
    """
    One row per calendar year spanned by each experience.

    Every row carries the experience's full resolved salary; overlapping
    experiences each contribute their own row for a shared year.
    """
    history: List[SalaryHistoryEntry] = []

    for exp in experiences:
        if not exp.start_date or not exp.base_salary:
            continue

        year_salary = get_current_salary(exp)
        for year in get_employment_years(exp.start_date, exp.end_date, now=now):
            history.append(
                SalaryHistoryEntry(
                    year=year,
                    base_salary=year_salary,
                    total_comp=exp.total_compensation or year_salary,
                    bonuses=get_bonuses_for_year(exp.bonus_history, year),
                    equity_value=exp.equity_value or 0,
                    company=exp.company,
                    role=exp.role,
                )
            )

    return history


def build_job_change_impact(experiences: Sequence[WorkExperience]) -> List[JobChangeImpact]:
    """
    Salary delta for each consecutive pair of experiences, in list order.

    The outgoing job contributes its final resolved salary; the incoming job
    contributes the salary in effect on its start date. Pairs where either
    salary is unknown are skipped.
    """
    impacts: List[JobChangeImpact] = []

    for prev_exp, next_exp in zip(experiences, experiences[1:]):
        prev_salary = get_current_salary(prev_exp)
        new_salary = get_salary_as_of(next_exp, next_exp.start_date)

        if prev_salary <= 0 or new_salary <= 0:
            continue

        impacts.append(
            JobChangeImpact(
                change_date=next_exp.start_date,
                from_company=prev_exp.company,
                to_company=next_exp.company,
                salary_increase=new_salary - prev_salary,
                percentage_increase=calculate_percentage_change(prev_salary, new_salary),
                total_comp_increase=(
                    (next_exp.total_compensation or new_salary)
                    - (prev_exp.total_compensation or prev_salary)
                ),
            )
        )

    return impacts


def build_salary_progression(experiences: Sequence[WorkExperience]) -> List[SalaryProgressionPoint]:
    """
    Salary timeline: a point at each role start and at each salary adjustment,
    sorted by date.
    """
    points: List[SalaryProgressionPoint] = []

    for exp in experiences:
        if not exp.start_date or not exp.base_salary:
            continue

        points.append(
            SalaryProgressionPoint(
                date=exp.start_date,
                base_salary=exp.base_salary,
                total_comp=exp.total_compensation or exp.base_salary,
                company=exp.company,
                title=exp.role,
            )
        )

        for adjustment in exp.salary_adjustments:
            points.append(
                SalaryProgressionPoint(
                    date=adjustment.effective_date,
                    base_salary=adjustment.new_salary,
                    total_comp=adjustment.new_salary,
                    company=exp.company,
                    title=adjustment.new_title or exp.role,
                )
            )

    return sorted(points, key=lambda point: point.date)


def build_compensation_breakdown(experiences: Sequence[WorkExperience]) -> List[CompensationBreakdown]:
    """Per-job compensation components, in list order."""
    breakdown: List[CompensationBreakdown] = []

    for exp in experiences:
        base_salary = get_current_salary(exp)
        breakdown.append(
            CompensationBreakdown(
                company=exp.company,
                role=exp.role,
                start_date=exp.start_date,
                end_date=exp.end_date,
                base_salary=base_salary,
                signing_bonus=exp.signing_bonus or 0,
                annual_bonus=exp.annual_bonus or 0,
                total_bonuses=sum(bonus.amount for bonus in exp.bonus_history),
                equity_value=exp.equity_value or 0,
                total_compensation=exp.total_compensation or base_salary,
                currency=exp.currency or "USD",
            )
        )

    return breakdown
