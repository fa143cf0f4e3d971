"""
Shared dependencies. Builds the orchestrator over the MongoDB repositories.
"""
from functools import lru_cache

from jobfit.models.settings import EngineSettings, load_settings
from jobfit.services.narrative import build_narrative_generator
from jobfit.services.orchestrator import EvaluationOrchestrator
from jobfit.services.repositories import (
    MongoAssessmentRepository,
    MongoCandidateRepository,
    MongoEvaluationRepository,
    MongoJobDescriptionRepository,
)


@lru_cache(maxsize=1)
def get_settings() -> EngineSettings:
    return load_settings()


@lru_cache(maxsize=1)
def get_orchestrator() -> EvaluationOrchestrator:
    settings = get_settings()
    return EvaluationOrchestrator(
        job_descriptions=MongoJobDescriptionRepository(),
        candidates=MongoCandidateRepository(),
        assessments=MongoAssessmentRepository(),
        evaluations=MongoEvaluationRepository(
            write_retry_attempts=settings.processing.write_retry_attempts
        ),
        settings=settings,
        narrative=build_narrative_generator(settings.narrative),
    )
