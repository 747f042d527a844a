"""Prompt construction for career-advice requests.

Both builders are pure: identical input yields a byte-identical prompt, so
the same text can be sent to the provider or handed to the user to paste
into any chat assistant.
"""

from __future__ import annotations

import json
from typing import Sequence, Union

from .models import AnalysisType, JobApplication, JobSnapshot

SYSTEM_PROMPT = (
    "You are an expert career advisor specializing in job search optimization. "
    "Provide actionable, encouraging insights based on application data."
)

POSTING_SYSTEM_PROMPT = (
    "You are a professional career advisor and job application expert. "
    "Provide helpful, specific, and actionable advice."
)

_FOCUS_SECTIONS = {
    AnalysisType.job_analysis: """\
**Focus specifically on JOB ANALYSIS for this role:**
- Analyze the job title and company fit
- Assess market demand for this role
- Evaluate career growth potential
- Compare salary expectations vs market rate
- Identify key skills/requirements for success""",
    AnalysisType.application_status: """\
**Focus specifically on APPLICATION STATUS & NEXT STEPS:**
- Analyze current application status and timeline
- Recommend specific follow-up actions
- Suggest optimal timing for follow-ups
- Provide interview preparation if applicable
- Identify potential concerns or red flags""",
    AnalysisType.interview_preparation: """\
**Focus specifically on INTERVIEW PREPARATION:**
- Research the company culture and values
- Predict likely interview questions for this role
- Suggest specific examples/stories to prepare
- Recommend questions to ask the interviewer
- Provide salary negotiation strategies""",
    AnalysisType.comprehensive: """\
**Provide COMPREHENSIVE ANALYSIS covering:**
- Overall application strategy assessment
- Success rate and conversion analysis
- Pattern recognition and optimization opportunities
- Strategic recommendations for improvement""",
}

_REPORT_SECTIONS = """\
**📊 PERFORMANCE ANALYSIS**
- Current status assessment and timeline evaluation
- Market positioning and competitive analysis
- Success probability and optimization opportunities

**💡 STRATEGIC RECOMMENDATIONS**
- Specific, actionable next steps
- Timeline for implementation
- Key success metrics to track

**🚀 IMMEDIATE ACTION ITEMS**
- 3-5 concrete tasks to complete this week
- Follow-up strategy and timing
- Application optimization suggestions"""

_CLOSING = (
    "Keep the tone professional but encouraging. Use emojis for visual appeal and "
    "structure. Be specific and actionable with all recommendations."
)


def _snapshot(job: Union[JobSnapshot, JobApplication]) -> JobSnapshot:
    return job if isinstance(job, JobSnapshot) else JobSnapshot.from_job(job)


def build_prompt(
    jobs: Sequence[Union[JobSnapshot, JobApplication]],
    analysis_type: Union[AnalysisType, str, None] = AnalysisType.comprehensive,
) -> str:
    """Serialize jobs into an instruction block for the given analysis type.

    Callers must pass at least one job; an empty list is not special-cased.
    """
    focus = _FOCUS_SECTIONS[AnalysisType.resolve(analysis_type)]
    summaries = [_snapshot(j).summary() for j in jobs]
    single = len(summaries) == 1

    header = (
        "Analyze this specific job application:"
        if single
        else f"Analyze these {len(summaries)} job applications:"
    )
    scope = (
        "Focus on this single application."
        if single
        else "Focus on patterns across applications."
    )

    return "\n\n".join([
        "Act as an expert career advisor and data analyst specializing in job search optimization.",
        header,
        json.dumps(summaries, indent=2, ensure_ascii=False),
        focus,
        _REPORT_SECTIONS,
        f"{_CLOSING} {scope}",
    ])


def build_posting_prompt(
    job_title: str,
    company: str,
    job_description: str = "",
    analysis_type: Union[AnalysisType, str, None] = AnalysisType.comprehensive,
) -> str:
    """Advice prompt for a single posting (title, company, optional description)."""
    kind = AnalysisType.resolve(analysis_type)

    if kind is AnalysisType.job_analysis:
        return f"""\
Analyze this job posting and provide insights:

Job Title: {job_title}
Company: {company}
Job Description: {job_description or "Not provided"}

Please provide:
1. Key requirements and skills needed
2. Company culture insights
3. Salary range estimate
4. Application tips
5. Interview preparation advice

Keep the response concise and actionable."""

    if kind is AnalysisType.application_status:
        return f"""\
Based on this job application, suggest next steps:

Job Title: {job_title}
Company: {company}

Provide specific advice on:
1. Follow-up actions
2. Networking opportunities
3. Interview preparation focus areas
4. Alternative similar roles to consider
5. Additional skills to highlight

Be practical and specific."""

    if kind is AnalysisType.interview_preparation:
        return f"""\
Help prepare for an interview at {company} for the position of {job_title}:

Provide:
1. 5 likely technical questions
2. 5 behavioral questions specific to this role
3. Questions to ask the interviewer
4. Company-specific talking points
5. Key achievements to highlight

Make it role-specific and actionable."""

    return (
        f"Provide general advice for someone applying to {job_title} positions "
        f"at companies like {company}."
    )
