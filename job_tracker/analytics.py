"""Aggregate statistics over job applications for the analytics view."""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from .models import JobApplication, JobStatus

DATE_RANGES = ("30d", "90d", "6m", "1y", "all")
WEEKS = 8
MONTHS = 6
TOP_COMPANIES = 5


class WeeklyCount(BaseModel):
    week: str
    count: int


class StatusShare(BaseModel):
    status: str
    count: int
    percentage: int


class MonthlyTrend(BaseModel):
    month: str
    applied: int
    interviews: int
    offers: int


class ResponseRate(BaseModel):
    period: str
    rate: int


class CompanyStats(BaseModel):
    company: str
    applications: int
    success_rate: int = Field(serialization_alias="successRate")


class ConversionRates(BaseModel):
    application_to_interview: int = Field(serialization_alias="applicationToInterview")
    interview_to_offer: int = Field(serialization_alias="interviewToOffer")
    overall_success: int = Field(serialization_alias="overallSuccess")


class AnalyticsSummary(BaseModel):
    date_range: str = Field(serialization_alias="dateRange")
    total_applications: int = Field(serialization_alias="totalApplications")
    status_distribution: list[StatusShare] = Field(serialization_alias="statusDistribution")
    weekly_applications: list[WeeklyCount] = Field(serialization_alias="weeklyApplications")
    monthly_trends: list[MonthlyTrend] = Field(serialization_alias="monthlyTrends")
    response_rates: list[ResponseRate] = Field(serialization_alias="responseRates")
    top_companies: list[CompanyStats] = Field(serialization_alias="topCompanies")
    conversion_rates: ConversionRates = Field(serialization_alias="conversionRates")
    # Mean days from application to first status change; None without history.
    average_response_time: Optional[float] = Field(serialization_alias="averageResponseTime")

    def to_response(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def percent(part: int, whole: int) -> int:
    """Integer percentage rounded half-up; 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0
    return (part * 200 + whole) // (whole * 2)


def shift_months(d: date, months: int) -> date:
    """Move ``d`` by whole calendar months, clamping the day to the month's length."""
    index = d.year * 12 + (d.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    return date(year, month, min(d.day, calendar.monthrange(year, month)[1]))


def range_cutoff(date_range: str, now: datetime) -> Optional[datetime]:
    """Earliest ``dateApplied`` kept for a range tag; None means no cutoff."""
    if date_range == "30d":
        return now - timedelta(days=30)
    if date_range == "90d":
        return now - timedelta(days=90)
    if date_range in ("6m", "1y"):
        back = shift_months(now.date(), -6 if date_range == "6m" else -12)
        return now.replace(year=back.year, month=back.month, day=back.day)
    return None


def filter_by_range(
    jobs: Iterable[JobApplication], date_range: str, now: datetime
) -> list[JobApplication]:
    cutoff = range_cutoff(date_range, now)
    if cutoff is None:
        return list(jobs)
    return [j for j in jobs if j.date_applied >= cutoff]


def _reached_interview(job: JobApplication) -> bool:
    return job.status in (JobStatus.interviewing, JobStatus.offer)


def _weekly(jobs: list[JobApplication], today: date) -> list[WeeklyCount]:
    buckets = []
    for i in range(WEEKS - 1, -1, -1):
        end = today - timedelta(days=7 * i)
        start = end - timedelta(days=6)
        count = sum(1 for j in jobs if start <= j.date_applied.date() <= end)
        buckets.append(WeeklyCount(week=f"{start.month}/{start.day}", count=count))
    return buckets


def _in_month(job: JobApplication, first: date) -> bool:
    d = job.date_applied.date()
    return d.year == first.year and d.month == first.month


def _monthly(jobs: list[JobApplication], today: date) -> list[MonthlyTrend]:
    trends = []
    for i in range(MONTHS - 1, -1, -1):
        first = shift_months(today.replace(day=1), -i)
        month_jobs = [j for j in jobs if _in_month(j, first)]
        trends.append(
            MonthlyTrend(
                month=calendar.month_abbr[first.month],
                applied=len(month_jobs),
                interviews=sum(1 for j in month_jobs if j.status is JobStatus.interviewing),
                offers=sum(1 for j in month_jobs if j.status is JobStatus.offer),
            )
        )
    return trends


def _response_rates(jobs: list[JobApplication], today: date) -> list[ResponseRate]:
    rates = []
    for label, back in (("This Month", 0), ("Last Month", 1), ("3 Months Ago", 3)):
        first = shift_months(today.replace(day=1), -back)
        month_jobs = [j for j in jobs if _in_month(j, first)]
        reached = sum(1 for j in month_jobs if _reached_interview(j))
        rates.append(ResponseRate(period=label, rate=percent(reached, len(month_jobs))))
    return rates


def _top_companies(jobs: list[JobApplication]) -> list[CompanyStats]:
    totals: dict[str, list[int]] = {}
    for j in jobs:
        entry = totals.setdefault(j.company, [0, 0])
        entry[0] += 1
        if _reached_interview(j):
            entry[1] += 1
    ranked = sorted(totals.items(), key=lambda kv: kv[1][0], reverse=True)[:TOP_COMPANIES]
    return [
        CompanyStats(company=name, applications=total, success_rate=percent(reached, total))
        for name, (total, reached) in ranked
    ]


def average_response_days(jobs: Iterable[JobApplication]) -> Optional[float]:
    """Mean days between applying and the first recorded move away from Applied."""
    spans = []
    for j in jobs:
        # Only jobs first recorded as Applied have a measurable response.
        if not j.status_history or j.status_history[0].status is not JobStatus.applied:
            continue
        first = next(
            (c for c in j.status_history[1:] if c.status is not JobStatus.applied), None
        )
        if first is not None:
            spans.append(max((first.changed_at - j.date_applied).total_seconds(), 0) / 86400)
    if not spans:
        return None
    return round(sum(spans) / len(spans), 1)


def compute_analytics(
    jobs: Iterable[JobApplication],
    date_range: str = "all",
    now: Optional[datetime] = None,
) -> AnalyticsSummary:
    """Reduce a job list to the analytics summary for one date range."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    if date_range not in DATE_RANGES:
        date_range = "all"
    today = now.date()
    filtered = filter_by_range(jobs, date_range, now)
    total = len(filtered)

    distribution = []
    for s in JobStatus:
        n = sum(1 for j in filtered if j.status is s)
        distribution.append(StatusShare(status=s.value, count=n, percentage=percent(n, total)))

    interviews = sum(1 for j in filtered if _reached_interview(j))
    offers = sum(1 for j in filtered if j.status is JobStatus.offer)

    return AnalyticsSummary(
        date_range=date_range,
        total_applications=total,
        status_distribution=distribution,
        weekly_applications=_weekly(filtered, today),
        monthly_trends=_monthly(filtered, today),
        response_rates=_response_rates(filtered, today),
        top_companies=_top_companies(filtered),
        conversion_rates=ConversionRates(
            application_to_interview=percent(interviews, total),
            interview_to_offer=percent(offers, interviews),
            overall_success=percent(offers, total),
        ),
        average_response_time=average_response_days(filtered),
    )
