"""
Evaluation Orchestrator: validates the target job, runs the batch ranker,
persists the ranked cohort and serves stored evaluations
"""
import asyncio
from typing import List, Optional

from jobfit.models.schemas import (
    Evaluation,
    EvaluationBatchResult,
    EvaluationFilter,
    JobDescription,
)
from jobfit.models.settings import EngineSettings
from jobfit.services.evaluator import FitEvaluator
from jobfit.services.narrative import NarrativeGenerator
from jobfit.services.ranking import ALL_POSITIONS, BatchRanker, RankedCohort
from jobfit.services.repositories import (
    AssessmentRepository,
    CandidateRepository,
    EvaluationRepository,
    JobDescriptionRepository,
)
from jobfit.services.scoring import round_half_up
from jobfit.utils.exceptions import ConfigurationError, DatabaseError
from jobfit.utils.logging_config import PerformanceMonitor, get_logger

logger = get_logger(__name__)


class EvaluationOrchestrator:
    """Entry point for batch evaluation runs.

    Repositories are injected so scoring never touches process-wide state.
    The only side effects are evaluation upserts and the pruning of stale
    evaluations for the job that was just ranked.
    """

    def __init__(
        self,
        job_descriptions: JobDescriptionRepository,
        candidates: CandidateRepository,
        assessments: AssessmentRepository,
        evaluations: EvaluationRepository,
        settings: EngineSettings = None,
        narrative: Optional[NarrativeGenerator] = None,
    ):
        self.job_descriptions = job_descriptions
        self.candidates = candidates
        self.assessments = assessments
        self.evaluations = evaluations
        self.settings = settings or EngineSettings()
        self.ranker = BatchRanker(
            FitEvaluator(self.settings, narrative=narrative),
            max_workers=self.settings.processing.max_workers,
        )

    async def _require_active_job(self, job_description_id: str) -> JobDescription:
        job = await self.job_descriptions.get(job_description_id)
        if job is None:
            raise ConfigurationError(
                f"Job description {job_description_id} not found",
                config_key="job_description_id",
                config_value=job_description_id,
            )
        if not job.is_active:
            raise ConfigurationError(
                f"Job description {job_description_id} is not active",
                config_key="job_description_id",
                config_value=job_description_id,
            )
        return job

    async def _persist(self, cohort: RankedCohort):
        # one write per (candidate, job) key, no two writers share a key
        outcomes = await asyncio.gather(
            *(self.evaluations.upsert(e) for e in cohort.evaluations),
            return_exceptions=True,
        )
        written = [e.candidate_id for e, o in zip(cohort.evaluations, outcomes) if not isinstance(o, BaseException)]
        failed = {e.candidate_id: o for e, o in zip(cohort.evaluations, outcomes) if isinstance(o, BaseException)}

        # stored rows for the job are exactly the ones this run wrote
        pruned = await self.evaluations.prune(cohort.job_description_id, written)
        if pruned:
            logger.info(f"Pruned {pruned} stale evaluations for job description {cohort.job_description_id}")

        if failed:
            for candidate_id, exc in failed.items():
                logger.error(f"Failed to store evaluation for candidate {candidate_id}: {exc}")
            raise DatabaseError(
                f"Failed to store {len(failed)} of {len(outcomes)} evaluations "
                f"for job description {cohort.job_description_id}",
                operation="persist_evaluations",
                collection="evaluations",
                details={
                    "job_description_id": cohort.job_description_id,
                    "failed_candidate_ids": sorted(failed),
                    "written_count": len(written),
                },
                cause=next(iter(failed.values())),
            )

    async def run_evaluation(
        self,
        job_description_id: str,
        position_filter: Optional[str] = None,
    ) -> EvaluationBatchResult:
        """Rank every eligible candidate against one active job description.

        Raises ConfigurationError (before any write) when the job is missing
        or inactive. Candidates without an assessment are reported in
        ``skipped`` and never abort the batch.
        """
        logger.info(
            f"Starting evaluation run for job description {job_description_id}",
            extra={"position_filter": position_filter},
        )
        job = await self._require_active_job(job_description_id)

        with PerformanceMonitor(
            f"evaluation run for {job_description_id}",
            logger=logger,
            threshold_ms=self.settings.processing.slow_batch_threshold_ms,
        ):
            cross_position = bool(position_filter) and position_filter.lower() == ALL_POSITIONS
            candidates = await self.candidates.list_candidates(
                None if cross_position else (position_filter or job.position)
            )
            assessments = await self.assessments.latest_by_candidate(c.id for c in candidates)

            loop = asyncio.get_running_loop()
            cohort = await loop.run_in_executor(
                None, self.ranker.rank, job, candidates, assessments, position_filter
            )
            await self._persist(cohort)

        scores = [e.fit_score for e in cohort.evaluations]
        average = round_half_up(sum(scores) / len(scores)) if scores else 0
        logger.info(
            f"Evaluation run for {job_description_id} completed: "
            f"{len(scores)} ranked, {cohort.skipped_count} skipped, average fit {average}"
        )
        return EvaluationBatchResult(
            job_description_id=job_description_id,
            evaluations=cohort.evaluations,
            skipped_count=cohort.skipped_count,
            skipped=cohort.skipped,
            average_fit_score=average,
        )

    async def get_evaluations(self, filter: EvaluationFilter = None) -> List[Evaluation]:
        filter = filter or EvaluationFilter()
        evaluations = await self.evaluations.find(filter)
        logger.info(f"Returning {len(evaluations)} evaluations", extra={"filter": filter.model_dump()})
        return evaluations

    async def delete_evaluation(self, candidate_id: str, job_description_id: Optional[str] = None) -> int:
        deleted = await self.evaluations.delete(candidate_id, job_description_id)
        if deleted:
            logger.info(f"Deleted {deleted} evaluations for candidate {candidate_id}")
        else:
            logger.warning(f"No evaluation found to delete for candidate {candidate_id}")
        return deleted

    async def list_job_descriptions(self) -> List[JobDescription]:
        return await self.job_descriptions.list_active()
