import pytest

from jobfit.models.schemas import JobDescription, RecommendationTier
from jobfit.models.settings import EngineSettings, RecommendationBands, ScoringWeights
from jobfit.services.aggregation import aggregate
from jobfit.services.evaluator import FitEvaluator
from jobfit.services.normalizer import SkillNormalizer
from jobfit.services.recommendation import classify, recommendation_text
from jobfit.services.scoring import round_half_up, score_dimensions, skill_coverage
from jobfit.utils.exceptions import NotEvaluable

from conftest import make_assessment, make_candidate


@pytest.fixture
def normalizer():
    return SkillNormalizer()


class TestDimensionScorer:
    """Test cases for per-dimension scoring"""

    def test_skill_score_two_of_three(self, normalizer, backend_job):
        """Test that 2 of 3 required skills floors to 66"""
        dims = score_dimensions(make_assessment("c1", skills="python, sql"), backend_job, normalizer)
        assert dims.skill_score == 66
        assert dims.experience_score == 80
        assert dims.education_score == 60

    def test_no_job_skills_means_no_penalty(self, normalizer):
        """Test that a job without required skills scores skills at 100"""
        job = JobDescription(id="jd", position="p", skills_text="")
        dims = score_dimensions(make_assessment("c1", skills=""), job, normalizer)
        assert dims.skill_score == 100
        assert dims.job_skills == frozenset()

    def test_passthrough_scores_are_clamped(self, normalizer, backend_job):
        """Test that upstream scores outside 0-100 are clamped"""
        dims = score_dimensions(make_assessment("c1", experience=130, education=-5), backend_job, normalizer)
        assert dims.experience_score == 100
        assert dims.education_score == 0

    def test_passthrough_rounds_half_up(self, normalizer, backend_job):
        """Test that fractional upstream scores round half up"""
        dims = score_dimensions(make_assessment("c1", experience=72.5, education=59.49), backend_job, normalizer)
        assert dims.experience_score == 73
        assert dims.education_score == 59

    def test_missing_assessment_is_not_evaluable(self, normalizer, backend_job):
        """Test that no assessment raises NotEvaluable with the candidate id"""
        with pytest.raises(NotEvaluable) as exc_info:
            score_dimensions(None, backend_job, normalizer, candidate_id="c-missing")
        assert exc_info.value.candidate_id == "c-missing"

    def test_undefined_dimension_is_not_evaluable(self, normalizer, backend_job):
        """Test that a None experience score is not guessed"""
        with pytest.raises(NotEvaluable):
            score_dimensions(make_assessment("c1", experience=None), backend_job, normalizer)

    def test_skill_coverage_helper(self):
        """Test coverage percentages directly"""
        assert skill_coverage(frozenset({"a"}), frozenset({"a", "b", "c"})) == 33
        assert skill_coverage(frozenset(), frozenset()) == 100
        assert skill_coverage(frozenset({"x"}), frozenset({"a"})) == 0


class TestFitAggregator:
    """Test cases for weighted aggregation"""

    def test_documented_example(self, normalizer, backend_job):
        """Test skill 66, experience 80, education 60 -> 69"""
        dims = score_dimensions(make_assessment("c1", skills="python, sql"), backend_job, normalizer)
        fit = aggregate(dims)
        assert fit.fit_score == 69
        assert fit.matching_skills == ["python", "sql"]
        assert fit.missing_skills == ["docker"]

    def test_matching_and_missing_partition_job_skills(self, normalizer, backend_job):
        """Test that matching and missing are disjoint and cover the job skills"""
        dims = score_dimensions(make_assessment("c1", skills="python, rust, go"), backend_job, normalizer)
        fit = aggregate(dims)
        assert set(fit.matching_skills).isdisjoint(fit.missing_skills)
        assert set(fit.matching_skills) | set(fit.missing_skills) == normalizer.normalize(backend_job.skills_text)

    def test_custom_weights(self, normalizer, backend_job):
        """Test that weights are applied as configured"""
        dims = score_dimensions(make_assessment("c1", skills="python, sql"), backend_job, normalizer)
        fit = aggregate(dims, ScoringWeights(skills=0.0, experience=1.0, education=0.0))
        assert fit.fit_score == 80

    def test_half_scores_round_up(self, normalizer):
        """Test that x.5 totals round up rather than to even"""
        job = JobDescription(id="jd", position="p", skills_text="")
        # 0.5*100 + 0.3*75 + 0.2*50 = 82.5
        dims = score_dimensions(make_assessment("c1", experience=75, education=50), job, normalizer)
        assert aggregate(dims).fit_score == 83
        assert round_half_up(68.5) == 69

    def test_weights_must_sum_to_one(self):
        """Test weight validation"""
        with pytest.raises(ValueError):
            ScoringWeights(skills=0.5, experience=0.5, education=0.5)


class TestRecommendationClassifier:
    """Test cases for tier mapping and recommendation text"""

    @pytest.mark.parametrize("score,tier", [
        (100, RecommendationTier.STRONG_MATCH),
        (90, RecommendationTier.STRONG_MATCH),
        (89, RecommendationTier.GOOD),
        (70, RecommendationTier.GOOD),
        (69, RecommendationTier.FAIR),
        (50, RecommendationTier.FAIR),
        (49, RecommendationTier.WEAK),
        (0, RecommendationTier.WEAK),
    ])
    def test_band_boundaries(self, score, tier):
        """Test the half-open band edges"""
        assert classify(score) == tier

    def test_custom_bands(self):
        """Test that configured bands replace the defaults"""
        bands = RecommendationBands(strong_min=80, good_min=60, fair_min=40)
        assert classify(85, bands) == RecommendationTier.STRONG_MATCH
        assert classify(45, bands) == RecommendationTier.FAIR

    def test_bands_must_descend(self):
        """Test band validation"""
        with pytest.raises(ValueError):
            RecommendationBands(strong_min=60, good_min=70, fair_min=50)

    def test_text_names_tier_and_top_missing_skills(self):
        """Test that at most three missing skills are listed"""
        text = recommendation_text(RecommendationTier.FAIR, 69, ["sql", "docker", "aws", "go"], "Backend Developer")
        assert text.startswith("Fair match for Backend Developer (fit score 69/100).")
        assert "Missing skills: aws, docker, go (+1 more)." in text

    def test_text_without_missing_skills(self):
        """Test the full-coverage wording"""
        text = recommendation_text(RecommendationTier.STRONG_MATCH, 95, [], "Backend Developer")
        assert "Covers every required skill" in text


class TestFitEvaluator:
    """Test cases for the composed per-candidate evaluation"""

    def test_evaluation_fields(self, backend_job):
        """Test the documented scenario end to end"""
        evaluator = FitEvaluator(EngineSettings())
        evaluation = evaluator.evaluate(
            make_candidate("c1", name="Bob Chen"),
            make_assessment("c1", skills="python, sql", insights="Strong SQL."),
            backend_job,
        )
        assert evaluation.fit_score == 69
        assert evaluation.recommendation_tier == RecommendationTier.FAIR
        assert evaluation.matching_skills == ["python", "sql"]
        assert evaluation.missing_skills == ["docker"]
        assert evaluation.insight == "Strong SQL."
        assert evaluation.ranking is None
        assert "docker" in evaluation.recommendation_text

    def test_deterministic(self, backend_job):
        """Test that repeated evaluation yields identical scores"""
        evaluator = FitEvaluator()
        candidate = make_candidate("c1")
        assessment = make_assessment("c1", skills="Python, Docker, k8s")
        first = evaluator.evaluate(candidate, assessment, backend_job)
        second = evaluator.evaluate(candidate, assessment, backend_job)
        assert first.model_dump(exclude={"evaluated_at"}) == second.model_dump(exclude={"evaluated_at"})

    def test_does_not_mutate_inputs(self, backend_job):
        """Test that inputs are left untouched"""
        assessment = make_assessment("c1", skills="JS, Python")
        before_assessment = assessment.model_dump()
        before_job = backend_job.model_dump()
        FitEvaluator().evaluate(make_candidate("c1"), assessment, backend_job)
        assert assessment.model_dump() == before_assessment
        assert backend_job.model_dump() == before_job

    def test_narrative_used_only_without_insight(self, backend_job):
        """Test that a generator fills the gap but never overrides assessment insight"""

        class FixedNarrative:
            def __init__(self):
                self.calls = 0

            def generate(self, job, evaluation):
                self.calls += 1
                return "Generated narrative."

        narrative = FixedNarrative()
        evaluator = FitEvaluator(narrative=narrative)
        with_insight = evaluator.evaluate(make_candidate("c1"), make_assessment("c1", insights="Given."), backend_job)
        without_insight = evaluator.evaluate(make_candidate("c2"), make_assessment("c2"), backend_job)
        assert with_insight.insight == "Given."
        assert without_insight.insight == "Generated narrative."
        assert narrative.calls == 1
