"""
Salary resolution for a single work experience.

The "current" salary of an experience is its most recent salary adjustment
(by effective date), falling back to the base salary.
"""

from datetime import datetime
from typing import Optional, Sequence

from src.analytics.models import SalaryAdjustment, WorkExperience


def get_latest_adjustment(experience: WorkExperience) -> Optional[SalaryAdjustment]:
    """
    Most recent salary adjustment by effective date.

    Equal effective dates resolve to the entry that appears later in the
    list (last write wins). The experience's list is never reordered.
    """
    if not experience.salary_adjustments:
        return None
    _, latest = max(
        enumerate(experience.salary_adjustments),
        key=lambda pair: (pair[1].effective_date, pair[0]),
    )
    return latest


def get_current_salary(experience: WorkExperience) -> int:
    """
    Resolve the effective annual salary (cents) of an experience.

    Returns 0 when the experience has no base salary, even if it has
    adjustments.
    """
    if not experience.base_salary:
        return 0

    latest = get_latest_adjustment(experience)
    if latest is not None:
        return latest.new_salary

    return experience.base_salary


def get_salary_as_of(experience: WorkExperience, as_of: Optional[datetime]) -> int:
    """
    Salary (cents) in effect on a given date: the latest adjustment effective
    on or before as_of, else the base salary. Without a date this is the
    current salary.
    """
    if as_of is None:
        return get_current_salary(experience)
    if not experience.base_salary:
        return 0

    effective = [
        (adjustment.effective_date, index, adjustment)
        for index, adjustment in enumerate(experience.salary_adjustments)
        if adjustment.effective_date <= as_of
    ]
    if effective:
        return max(effective, key=lambda entry: (entry[0], entry[1]))[2].new_salary

    return experience.base_salary


def get_current_total_compensation(experience: WorkExperience) -> int:
    """Total compensation (cents), falling back to the resolved salary."""
    return experience.total_compensation or get_current_salary(experience)


def select_current_experience(experiences: Sequence[WorkExperience]) -> WorkExperience:
    """
    The experience treated as the owner's current job.

    First open-ended experience (no end date); otherwise the last element
    in list order. Callers supply experiences ordered by ascending start
    date, so the fallback is the most recent job.
    """
    for experience in experiences:
        if experience.end_date is None:
            return experience
    return experiences[-1]
