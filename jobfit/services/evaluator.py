from typing import Optional

from jobfit.models.schemas import Assessment, Candidate, Evaluation, JobDescription
from jobfit.models.settings import EngineSettings
from jobfit.services.aggregation import aggregate
from jobfit.services.narrative import NarrativeGenerator
from jobfit.services.normalizer import SkillNormalizer
from jobfit.services.recommendation import classify, recommendation_text
from jobfit.services.scoring import score_dimensions


class FitEvaluator:
    """Scores one candidate against one job description.

    Stateless apart from read-only settings, so a single instance can be
    shared across scoring threads.
    """

    def __init__(self, settings: EngineSettings = None, narrative: Optional[NarrativeGenerator] = None):
        self.settings = settings or EngineSettings()
        self.normalizer = SkillNormalizer(self.settings.normalizer.synonyms)
        self.narrative = narrative

    def evaluate(
        self,
        candidate: Candidate,
        assessment: Optional[Assessment],
        job: JobDescription,
    ) -> Evaluation:
        """Build an unranked Evaluation. Raises NotEvaluable without an assessment."""
        dimensions = score_dimensions(assessment, job, self.normalizer, candidate_id=candidate.id)
        fit = aggregate(dimensions, self.settings.weights)
        tier = classify(fit.fit_score, self.settings.bands)

        evaluation = Evaluation(
            candidate_id=candidate.id,
            job_description_id=job.id,
            candidate_name=candidate.full_name,
            position=candidate.position,
            fit_score=fit.fit_score,
            skill_score=dimensions.skill_score,
            experience_match=dimensions.experience_score,
            education_match=dimensions.education_score,
            matching_skills=fit.matching_skills,
            missing_skills=fit.missing_skills,
            recommendation_tier=tier,
            recommendation_text=recommendation_text(
                tier, fit.fit_score, fit.missing_skills, job.title or job.position
            ),
            insight=(assessment.insights_text or "").strip() or None,
        )

        if evaluation.insight is None and self.narrative is not None:
            evaluation.insight = self.narrative.generate(job, evaluation)
        return evaluation
