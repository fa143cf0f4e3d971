import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import FrozenSet, Optional

from jobfit.models.schemas import Assessment, JobDescription
from jobfit.services.normalizer import SkillNormalizer
from jobfit.utils.exceptions import NotEvaluable


def round_half_up(value: float) -> int:
    # 6 decimals absorbs float noise such as 68.49999999999999
    return int(Decimal(str(round(float(value), 6))).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def clamp_score(value: int, low: int = 0, high: int = 100) -> int:
    return max(low, min(high, value))


@dataclass(frozen=True)
class DimensionScores:
    skill_score: int
    experience_score: int
    education_score: int
    candidate_skills: FrozenSet[str]
    job_skills: FrozenSet[str]


def skill_coverage(candidate_skills: FrozenSet[str], job_skills: FrozenSet[str]) -> int:
    """Percentage of required skills the candidate has, floored. No requirements -> 100."""
    if not job_skills:
        return 100
    return (100 * len(candidate_skills & job_skills)) // len(job_skills)


def _passthrough(value: Optional[float], field: str, candidate_id: str) -> int:
    if value is None or math.isnan(value):
        raise NotEvaluable(
            f"Assessment for candidate {candidate_id} has no {field} score",
            candidate_id=candidate_id,
            details={"field": field},
        )
    return round_half_up(max(0.0, min(100.0, float(value))))


def score_dimensions(
    assessment: Optional[Assessment],
    job: JobDescription,
    normalizer: SkillNormalizer,
    candidate_id: str = None,
) -> DimensionScores:
    """Skill, experience and education match (0-100 each) for one candidate.

    Experience and education are trusted upstream scores and only clamped.
    Raises NotEvaluable when there is no assessment to score.
    """
    if assessment is None:
        raise NotEvaluable(
            f"No usable assessment for candidate {candidate_id}",
            candidate_id=candidate_id,
        )
    candidate_id = candidate_id or assessment.candidate_id

    experience = _passthrough(assessment.experience_match, "experience_match", candidate_id)
    education = _passthrough(assessment.education, "education", candidate_id)

    candidate_skills = normalizer.normalize(assessment.skills_text)
    job_skills = normalizer.normalize(job.skills_text)

    return DimensionScores(
        skill_score=skill_coverage(candidate_skills, job_skills),
        experience_score=experience,
        education_score=education,
        candidate_skills=candidate_skills,
        job_skills=job_skills,
    )
