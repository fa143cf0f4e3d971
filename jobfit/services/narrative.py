"""
Optional narrative enrichment for evaluations whose assessment carries no insight text
"""
from typing import Optional

from jobfit.helpers.prompts import NARRATIVE_PROMPT
from jobfit.models.schemas import Evaluation, JobDescription
from jobfit.models.settings import NarrativeSettings
from jobfit.utils.exceptions import ExternalServiceError
from jobfit.utils.logging_config import get_logger
from jobfit.utils.utils import ollama_generate, safe_json

logger = get_logger(__name__)


class NarrativeGenerator:
    """Interface: returns a short narrative or None. Must never raise."""

    def generate(self, job: JobDescription, evaluation: Evaluation) -> Optional[str]:
        raise NotImplementedError


class OllamaNarrativeGenerator(NarrativeGenerator):
    def __init__(self, settings: NarrativeSettings):
        self.settings = settings

    def build_prompt(self, job: JobDescription, evaluation: Evaluation) -> str:
        return NARRATIVE_PROMPT.format(
            position=job.title or job.position,
            required_experience=job.required_experience_text or "Not specified",
            fit_score=evaluation.fit_score,
            tier=evaluation.recommendation_tier.value,
            matching_skills=", ".join(evaluation.matching_skills) or "None",
            missing_skills=", ".join(evaluation.missing_skills) or "None",
        )

    def generate(self, job: JobDescription, evaluation: Evaluation) -> Optional[str]:
        try:
            resp = ollama_generate(
                self.build_prompt(job, evaluation),
                model=self.settings.model_name,
                base_url=self.settings.base_url,
                temperature=self.settings.temperature,
                timeout=self.settings.timeout,
            )
        except ExternalServiceError as e:
            logger.warning(
                f"Narrative generation failed for candidate {evaluation.candidate_id}: {e.message}",
                extra=e.details,
            )
            return None

        data = safe_json(resp, fallback={})
        narrative = str(data.get("narrative") or "").strip()
        return narrative or None


def build_narrative_generator(settings: NarrativeSettings) -> Optional[NarrativeGenerator]:
    if not settings.enabled:
        return None
    logger.info(f"Narrative enrichment enabled with model {settings.model_name} at {settings.base_url}")
    return OllamaNarrativeGenerator(settings)
