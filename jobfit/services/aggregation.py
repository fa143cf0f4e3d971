from dataclasses import dataclass
from typing import List

from jobfit.models.settings import ScoringWeights
from jobfit.services.scoring import DimensionScores, clamp_score, round_half_up


@dataclass(frozen=True)
class FitResult:
    fit_score: int
    matching_skills: List[str]
    missing_skills: List[str]


def weighted_fit(dimensions: DimensionScores, weights: ScoringWeights) -> int:
    total = (
        weights.skills * dimensions.skill_score
        + weights.experience * dimensions.experience_score
        + weights.education * dimensions.education_score
    )
    return clamp_score(round_half_up(total))


def aggregate(dimensions: DimensionScores, weights: ScoringWeights = None) -> FitResult:
    """Combine the three dimensions into one fit score plus the skill breakdown.

    matching = candidate & job, missing = job - candidate, so together they
    always cover exactly the job's normalized skill set.
    """
    weights = weights or ScoringWeights()
    return FitResult(
        fit_score=weighted_fit(dimensions, weights),
        matching_skills=sorted(dimensions.candidate_skills & dimensions.job_skills),
        missing_skills=sorted(dimensions.job_skills - dimensions.candidate_skills),
    )
