from typing import Sequence

from jobfit.models.schemas import RecommendationTier
from jobfit.models.settings import RecommendationBands

TIER_LABELS = {
    RecommendationTier.STRONG_MATCH: "Strong match",
    RecommendationTier.GOOD: "Good match",
    RecommendationTier.FAIR: "Fair match",
    RecommendationTier.WEAK: "Weak match",
}

MAX_LISTED_MISSING = 3


def classify(fit_score: int, bands: RecommendationBands = None) -> RecommendationTier:
    bands = bands or RecommendationBands()
    if fit_score >= bands.strong_min:
        return RecommendationTier.STRONG_MATCH
    if fit_score >= bands.good_min:
        return RecommendationTier.GOOD
    if fit_score >= bands.fair_min:
        return RecommendationTier.FAIR
    return RecommendationTier.WEAK


def recommendation_text(
    tier: RecommendationTier,
    fit_score: int,
    missing_skills: Sequence[str],
    position: str,
) -> str:
    """Deterministic one-line recommendation naming the tier and up to three gaps."""
    text = f"{TIER_LABELS[tier]} for {position} (fit score {fit_score}/100)."
    missing = sorted(missing_skills)
    if not missing:
        return f"{text} Covers every required skill."
    listed = ", ".join(missing[:MAX_LISTED_MISSING])
    extra = len(missing) - MAX_LISTED_MISSING
    if extra > 0:
        listed = f"{listed} (+{extra} more)"
    return f"{text} Missing skills: {listed}."

