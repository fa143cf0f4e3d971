"""
Batch ranking of a candidate cohort against one job description
"""
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

from jobfit.models.schemas import (
    Assessment,
    Candidate,
    Evaluation,
    JobDescription,
    SkippedCandidate,
)
from jobfit.services.evaluator import FitEvaluator
from jobfit.utils.exceptions import NotEvaluable
from jobfit.utils.logging_config import get_logger

logger = get_logger(__name__)

ALL_POSITIONS = "all"


class BatchState(str, Enum):
    COLLECT = "collect"
    SCORE = "score"
    SORT = "sort"
    ASSIGN = "assign"
    DONE = "done"


@dataclass
class RankedCohort:
    job_description_id: str
    evaluations: List[Evaluation] = field(default_factory=list)
    skipped: List[SkippedCandidate] = field(default_factory=list)
    state: BatchState = BatchState.COLLECT

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


def ranking_key(evaluation: Evaluation):
    return (-evaluation.fit_score, -evaluation.experience_match, evaluation.candidate_id)


def select_cohort(
    job: JobDescription,
    candidates: Sequence[Candidate],
    position_filter: Optional[str] = None,
) -> List[Candidate]:
    """Candidates for the job's position, the filter's position, or everyone for "all".

    Each candidate id appears once so every evaluation key is written once.
    """
    cross_position = bool(position_filter) and position_filter.lower() == ALL_POSITIONS
    position = position_filter or job.position
    seen = set()
    members = []
    for candidate in candidates:
        if candidate.id in seen or not (cross_position or candidate.position == position):
            continue
        seen.add(candidate.id)
        members.append(candidate)
    return members


class BatchRanker:
    """Collect -> score (parallel) -> sort -> assign.

    Per-candidate scoring shares no mutable state and runs on a thread pool.
    Sorting starts only after every scoring future has finished.
    """

    def __init__(self, evaluator: FitEvaluator, max_workers: int = 8):
        self.evaluator = evaluator
        self.max_workers = max_workers

    def _advance(self, cohort: RankedCohort, state: BatchState):
        logger.debug(f"Batch for {cohort.job_description_id}: {cohort.state.value} -> {state.value}")
        cohort.state = state

    def _score_one(self, candidate: Candidate, assessment: Optional[Assessment], job: JobDescription):
        try:
            return self.evaluator.evaluate(candidate, assessment, job), None
        except NotEvaluable as e:
            logger.info(f"Skipping candidate {candidate.id}: {e.message}")
            return None, SkippedCandidate(candidate_id=candidate.id, reason=e.message)

    def rank(
        self,
        job: JobDescription,
        candidates: Sequence[Candidate],
        assessments: Dict[str, Assessment],
        position_filter: Optional[str] = None,
    ) -> RankedCohort:
        cohort = RankedCohort(job_description_id=job.id)

        # Collect
        members = select_cohort(job, candidates, position_filter)
        logger.info(f"Collected {len(members)} candidates for job description {job.id}")

        # Score
        self._advance(cohort, BatchState.SCORE)
        if members:
            workers = min(self.max_workers, len(members))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="jobfit-score") as pool:
                futures = [
                    pool.submit(self._score_one, c, assessments.get(c.id), job)
                    for c in members
                ]
                outcomes = [f.result() for f in futures]
        else:
            outcomes = []

        scored = [evaluation for evaluation, _ in outcomes if evaluation is not None]
        cohort.skipped = sorted(
            (skip for _, skip in outcomes if skip is not None),
            key=lambda s: s.candidate_id,
        )

        # Sort
        self._advance(cohort, BatchState.SORT)
        scored.sort(key=ranking_key)

        # Assign
        self._advance(cohort, BatchState.ASSIGN)
        for index, evaluation in enumerate(scored):
            evaluation.ranking = index + 1
        cohort.evaluations = scored

        self._advance(cohort, BatchState.DONE)
        logger.info(
            f"Ranked {len(scored)} candidates for job description {job.id}, "
            f"skipped {cohort.skipped_count}"
        )
        return cohort
