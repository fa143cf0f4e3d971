import os

# Console-only WARNING logging, no log files during tests
os.environ.setdefault("ENVIRONMENT", "testing")

from datetime import datetime, timedelta

import pytest

from jobfit.models.schemas import Assessment, Candidate, JobDescription
from jobfit.services.orchestrator import EvaluationOrchestrator
from jobfit.services.repositories import (
    InMemoryAssessmentRepository,
    InMemoryCandidateRepository,
    InMemoryEvaluationRepository,
    InMemoryJobDescriptionRepository,
)


def make_candidate(cid: str, position: str = "backend-developer", name: str = None) -> Candidate:
    return Candidate(id=cid, full_name=name or f"Candidate {cid}", position=position)


def make_assessment(cid: str, skills: str = "python, sql", experience=80, education=60,
                    insights: str = None, created_at: datetime = None) -> Assessment:
    return Assessment(
        candidate_id=cid,
        technical_skills=70,
        experience_match=experience,
        education=education,
        skills_text=skills,
        insights_text=insights,
        created_at=created_at or datetime(2024, 5, 1),
    )


@pytest.fixture
def backend_job():
    return JobDescription(
        id="jd-backend",
        position="backend-developer",
        title="Backend Developer",
        skills_text="Python, SQL, Docker",
        required_experience_text="3+ years of backend development",
        is_active=True,
    )


@pytest.fixture
def inactive_job():
    return JobDescription(id="jd-closed", position="backend-developer", skills_text="Go", is_active=False)


@pytest.fixture
def cohort():
    """Four backend candidates (one without an assessment) and one data scientist"""
    candidates = [
        make_candidate("c-alice", name="Alice Moreau"),
        make_candidate("c-bob", name="Bob Chen"),
        make_candidate("c-carol", name="Carol Diaz"),
        make_candidate("c-dan", name="Dan Ito"),
        make_candidate("c-erin", position="data-scientist", name="Erin Walsh"),
    ]
    assessments = [
        make_assessment("c-alice", skills="Python; SQL; Docker; Kubernetes", experience=90, education=80),
        make_assessment("c-bob", skills="python, sql", experience=80, education=60,
                        insights="Solid SQL background."),
        make_assessment("c-carol", skills="py, postgres", experience=70, education=90),
        make_assessment("c-erin", skills="python, pandas, sql", experience=60, education=90),
        # older assessment for bob is ignored in favour of the latest one
        make_assessment("c-bob", skills="cobol", experience=10, education=10,
                        created_at=datetime(2024, 5, 1) - timedelta(days=30)),
    ]
    return candidates, assessments


@pytest.fixture
def repos(backend_job, inactive_job, cohort):
    candidates, assessments = cohort
    return {
        "job_descriptions": InMemoryJobDescriptionRepository([backend_job, inactive_job]),
        "candidates": InMemoryCandidateRepository(candidates),
        "assessments": InMemoryAssessmentRepository(assessments),
        "evaluations": InMemoryEvaluationRepository(),
    }


@pytest.fixture
def orchestrator(repos):
    return EvaluationOrchestrator(**repos)
