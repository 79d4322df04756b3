"""
Career Progression Builder.

Summarizes a user's career from work experiences and career events:
total experience, promotions and job changes, average tenure, the largest
single raise, salary per calendar year prorated by months actually worked,
and the seniority-level timeline.

Also builds the per-job financial view and the merged career timeline.
"""

import calendar
import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from src.analytics.models import CareerEvent, WorkExperience
from src.analytics.salary import get_current_salary, select_current_experience
from src.analytics.types import (
    CareerProgressionSummary,
    LevelProgressionEntry,
    SalaryByYearEntry,
    SalaryIncreaseRecord,
    TimelineItem,
    WorkExperienceWithFinancials,
)
from src.analytics.utils import (
    calculate_percentage_change,
    format_currency,
    round_half_up,
    utc_now,
    years_between,
)

logger = logging.getLogger(__name__)

PROMOTION_EVENT_TYPE = "promotion"


def build_career_progression_summary(
    experiences: Sequence[WorkExperience],
    events: Sequence[CareerEvent],
    now: Optional[datetime] = None,
) -> CareerProgressionSummary:
    """
    Build the career progression summary for one owner.

    Args:
        experiences: Work experiences ordered by ascending start date (may be empty)
        events: Career events for the same owner, any order
        now: Reference time for open-ended jobs (default: current UTC time)

    Returns:
        CareerProgressionSummary; a zeroed summary when there are no experiences
    """
    if not experiences:
        return CareerProgressionSummary.empty()

    now = now or utc_now()

    first_exp = experiences[0]
    current_exp = select_current_experience(experiences)

    first_salary = first_exp.base_salary or 0
    current_salary = get_current_salary(current_exp)
    salary_growth_percentage = calculate_percentage_change(first_salary, current_salary)

    total_experience = years_between(first_exp.start_date or now, now)
    average_annual_growth = (
        salary_growth_percentage / total_experience if total_experience > 0 else 0
    )

    promotion_count = sum(1 for event in events if event.event_type == PROMOTION_EVENT_TYPE)

    total_tenure, counted_jobs = calculate_total_tenure(experiences, now=now)
    average_tenure_per_job = total_tenure / counted_jobs if counted_jobs > 0 else 0

    return CareerProgressionSummary(
        total_experience=total_experience,
        current_salary=current_salary,
        first_salary=first_salary,
        total_salary_growth=current_salary - first_salary,
        salary_growth_percentage=salary_growth_percentage,
        average_annual_growth=average_annual_growth,
        promotion_count=promotion_count,
        job_change_count=len(experiences) - 1,
        average_tenure_per_job=average_tenure_per_job,
        highest_salary_increase=find_highest_salary_increase(events),
        salary_by_year=build_salary_by_year(experiences, now=now),
        current_level=current_exp.seniority_level or "",
        level_progression=build_level_progression(experiences, now=now),
    )


def calculate_total_tenure(
    experiences: Sequence[WorkExperience],
    now: Optional[datetime] = None,
) -> Tuple[float, int]:
    """Sum of tenure in years over experiences with a start date, and their count."""
    now = now or utc_now()
    total_tenure = 0.0
    counted = 0

    for exp in experiences:
        if exp.start_date:
            total_tenure += years_between(exp.start_date, exp.end_date or now)
            counted += 1

    return total_tenure, counted


def parse_percentage(value: Optional[str]) -> float:
    """Leading decimal of a stored percentage string ("12.5", "12.5%"); 0 if unparseable."""
    if not value:
        return 0.0
    try:
        return float(value.strip().rstrip("%"))
    except ValueError:
        logger.debug(f"Ignoring unparseable increase percentage: {value!r}")
        return 0.0


def find_highest_salary_increase(events: Sequence[CareerEvent]) -> SalaryIncreaseRecord:
    """
    The career event with the largest salary increase.

    Strictly-greater comparison: the first of several equal maxima wins.
    """
    highest = SalaryIncreaseRecord()

    for event in events:
        if event.salary_increase and event.salary_increase > highest.amount:
            highest = SalaryIncreaseRecord(
                amount=event.salary_increase,
                percentage=parse_percentage(event.increase_percentage),
                reason=event.event_type or "",
                date=event.event_date.isoformat() if event.event_date else "",
            )

    return highest


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def calculate_months_worked(start_date: datetime, end_date: datetime) -> float:
    """
    Fractional months covered by [start_date, end_date], both days inclusive.

    Whole calendar months between the two dates, with the first and last
    months prorated by day of month. Never negative.

    >>> calculate_months_worked(datetime(2020, 1, 1), datetime(2020, 12, 31))
    12.0
    """
    months = float(
        (end_date.year - start_date.year) * 12 + (end_date.month - start_date.month)
    )

    if end_date.day >= start_date.day:
        months += 1
    else:
        months += end_date.day / days_in_month(end_date.year, end_date.month)

    if start_date.day > 1:
        start_month_days = days_in_month(start_date.year, start_date.month)
        worked_in_start_month = start_month_days - start_date.day + 1
        months = months - 1 + worked_in_start_month / start_month_days

    return max(0.0, months)


def build_salary_by_year(
    experiences: Sequence[WorkExperience],
    now: Optional[datetime] = None,
) -> List[SalaryByYearEntry]:
    """
    Salary earned per calendar year of each experience, prorated by the
    fraction of the year actually worked.
    """
    now = now or utc_now()
    salary_by_year: List[SalaryByYearEntry] = []

    for exp in experiences:
        if not exp.start_date or not exp.base_salary:
            continue

        start_date = exp.start_date
        end_date = exp.end_date or now
        annual_salary = get_current_salary(exp)
        annual_total_comp = exp.total_compensation or annual_salary

        for year in range(start_date.year, end_date.year + 1):
            period_start = max(start_date, datetime(year, 1, 1))
            period_end = min(end_date, datetime(year, 12, 31))

            fraction = calculate_months_worked(period_start, period_end) / 12

            salary_by_year.append(
                SalaryByYearEntry(
                    year=year,
                    salary=round_half_up(annual_salary * fraction),
                    total_comp=round_half_up(annual_total_comp * fraction),
                    company=exp.company,
                    title=exp.role,
                )
            )

    return salary_by_year


def build_level_progression(
    experiences: Sequence[WorkExperience],
    now: Optional[datetime] = None,
) -> List[LevelProgressionEntry]:
    """
    Seniority timeline. A level without its own end date ends when the next
    experience starts; the last open level runs until now.
    """
    now = now or utc_now()
    progression: List[LevelProgressionEntry] = []

    for index, exp in enumerate(experiences):
        if not exp.seniority_level or not exp.start_date:
            continue

        next_exp = experiences[index + 1] if index + 1 < len(experiences) else None
        end_date = exp.end_date or (next_exp.start_date if next_exp else None)

        progression.append(
            LevelProgressionEntry(
                level=exp.seniority_level,
                start_date=exp.start_date,
                end_date=end_date,
                duration_months=round_half_up(years_between(exp.start_date, end_date or now) * 12),
            )
        )

    return progression


def build_work_experiences_with_financials(
    experiences: Sequence[WorkExperience],
    now: Optional[datetime] = None,
) -> List[WorkExperienceWithFinancials]:
    """Attach tenure, compensation received, raise and skill figures to each experience."""
    now = now or utc_now()
    enriched: List[WorkExperienceWithFinancials] = []

    for exp in experiences:
        start_date = exp.start_date or now
        end_date = exp.end_date or now
        years_worked = years_between(start_date, end_date)

        current_salary = get_current_salary(exp)
        total_bonuses = sum(bonus.amount for bonus in exp.bonus_history)

        adjustments = exp.salary_adjustments
        average_annual_raise = (
            sum(adj.increase_percentage for adj in adjustments) / len(adjustments)
            if adjustments
            else 0
        )

        enriched.append(
            WorkExperienceWithFinancials(
                experience=exp,
                total_tenure=round_half_up(years_worked * 365),
                current_annualized_salary=current_salary,
                total_compensation_received=current_salary * years_worked + total_bonuses,
                average_annual_raise=average_annual_raise,
                promotion_count=sum(1 for adj in adjustments if adj.reason == "promotion"),
                skills_acquired=[
                    *exp.metadata.technologies,
                    *exp.metadata.certifications_earned,
                ],
            )
        )

    return enriched


def build_career_timeline(
    experiences: Sequence[WorkExperience],
    events: Sequence[CareerEvent],
) -> List[TimelineItem]:
    """Job starts, job ends and career events merged into one dated timeline."""
    items: List[TimelineItem] = []

    for exp in experiences:
        if exp.start_date:
            salary = get_current_salary(exp)
            items.append(
                TimelineItem(
                    date=exp.start_date,
                    type="job_start",
                    title=f"Started at {exp.company}",
                    description=f"{exp.role} - {format_currency(salary, exp.currency)}",
                    company=exp.company,
                    role=exp.role,
                    salary=salary,
                )
            )

        if exp.end_date:
            items.append(
                TimelineItem(
                    date=exp.end_date,
                    type="job_end",
                    title=f"Left {exp.company}",
                    description=exp.reason_for_leaving or "Job ended",
                    company=exp.company,
                )
            )

    for event in events:
        items.append(
            TimelineItem(
                date=event.event_date,
                type=event.event_type,
                title=event.event_type[:1].upper() + event.event_type[1:],
                description=event.description or "",
                salary_change=event.salary_increase or 0,
                percentage=event.increase_percentage or "",
            )
        )

    return sorted(items, key=lambda item: item.date)
