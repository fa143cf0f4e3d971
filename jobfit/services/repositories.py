"""
Repository interfaces for the records the engine reads and writes, with
MongoDB and in-memory implementations
"""
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from pymongo import ASCENDING
from pydantic import ValidationError as PydanticValidationError
from pymongo.errors import PyMongoError

from jobfit.models.schemas import (
    Assessment,
    Candidate,
    Evaluation,
    EvaluationFilter,
    JobDescription,
)
from jobfit.utils.exceptions import ExceptionContext, retry_with_logging
from jobfit.utils.logging_config import get_logger

logger = get_logger(__name__)


# -------- Interfaces --------
class JobDescriptionRepository(ABC):
    @abstractmethod
    async def get(self, job_description_id: str) -> Optional[JobDescription]:
        ...

    @abstractmethod
    async def list_active(self) -> List[JobDescription]:
        ...


class CandidateRepository(ABC):
    @abstractmethod
    async def list_candidates(self, position: Optional[str] = None) -> List[Candidate]:
        ...


class AssessmentRepository(ABC):
    @abstractmethod
    async def latest_by_candidate(self, candidate_ids: Iterable[str]) -> Dict[str, Assessment]:
        """Most recent assessment per candidate; candidates without one are absent."""


class EvaluationRepository(ABC):
    @abstractmethod
    async def upsert(self, evaluation: Evaluation) -> None:
        """Create or fully replace the evaluation for (candidate_id, job_description_id)."""

    @abstractmethod
    async def find(self, filter: EvaluationFilter) -> List[Evaluation]:
        ...

    @abstractmethod
    async def delete(self, candidate_id: str, job_description_id: Optional[str] = None) -> int:
        ...

    @abstractmethod
    async def prune(self, job_description_id: str, keep_candidate_ids: Iterable[str]) -> int:
        """Delete evaluations for the job whose candidate is not in keep_candidate_ids."""


def evaluation_key(evaluation: Evaluation) -> dict:
    return {"candidate_id": evaluation.candidate_id, "job_description_id": evaluation.job_description_id}


def evaluation_query(filter: EvaluationFilter) -> dict:
    return {k: v for k, v in filter.model_dump().items() if v is not None}


def evaluation_sort_key(evaluation: Evaluation):
    return (evaluation.job_description_id, evaluation.ranking or 0, evaluation.candidate_id)


def _from_doc(model, doc):
    doc = dict(doc)
    doc.pop("_id", None)
    return model(**doc)


# -------- MongoDB --------
class MongoJobDescriptionRepository(JobDescriptionRepository):
    def __init__(self, collection=None):
        if collection is None:
            from jobfit.services.db import job_descriptions_coll as collection
        self.coll = collection

    async def get(self, job_description_id: str) -> Optional[JobDescription]:
        with ExceptionContext("get_job_description", logger, job_description_id=job_description_id):
            doc = await self.coll.find_one({"id": job_description_id})
        return _from_doc(JobDescription, doc) if doc else None

    async def list_active(self) -> List[JobDescription]:
        with ExceptionContext("list_active_job_descriptions", logger):
            docs = await self.coll.find({"is_active": True}).to_list(length=None)
        return [_from_doc(JobDescription, d) for d in docs]


class MongoCandidateRepository(CandidateRepository):
    def __init__(self, collection=None):
        if collection is None:
            from jobfit.services.db import candidates_coll as collection
        self.coll = collection

    async def list_candidates(self, position: Optional[str] = None) -> List[Candidate]:
        query = {"position": position} if position else {}
        with ExceptionContext("list_candidates", logger, position=position):
            docs = await self.coll.find(query).to_list(length=None)
        return [_from_doc(Candidate, d) for d in docs]


class MongoAssessmentRepository(AssessmentRepository):
    def __init__(self, collection=None):
        if collection is None:
            from jobfit.services.db import assessments_coll as collection
        self.coll = collection

    async def latest_by_candidate(self, candidate_ids: Iterable[str]) -> Dict[str, Assessment]:
        ids = list(candidate_ids)
        if not ids:
            return {}
        with ExceptionContext("latest_assessments", logger, candidate_count=len(ids)):
            docs = await self.coll.find({"candidate_id": {"$in": ids}}).sort(
                "created_at", ASCENDING
            ).to_list(length=None)
        latest: Dict[str, Assessment] = {}
        for doc in docs:
            # ascending order, so later documents overwrite older ones
            try:
                assessment = _from_doc(Assessment, doc)
            except PydanticValidationError as e:
                # an unreadable latest assessment leaves the candidate unscored
                candidate_id = doc.get("candidate_id")
                logger.warning(
                    f"Ignoring unreadable assessment for candidate {candidate_id}: {e.error_count()} errors",
                    extra={"candidate_id": candidate_id},
                )
                latest.pop(candidate_id, None)
                continue
            latest[assessment.candidate_id] = assessment
        return latest


class MongoEvaluationRepository(EvaluationRepository):
    def __init__(self, collection=None, write_retry_attempts: int = 3, backoff_factor: float = 0.5):
        if collection is None:
            from jobfit.services.db import evaluations_coll as collection
        self.coll = collection
        self._replace = retry_with_logging(
            max_attempts=write_retry_attempts,
            backoff_factor=backoff_factor,
            exceptions=(PyMongoError,),
            logger=logger,
        )(self._replace_once)

    async def _replace_once(self, key: dict, doc: dict):
        return await self.coll.replace_one(key, doc, upsert=True)

    async def upsert(self, evaluation: Evaluation) -> None:
        doc = evaluation.model_dump()
        doc["recommendation_tier"] = evaluation.recommendation_tier.value
        key = evaluation_key(evaluation)
        with ExceptionContext("upsert_evaluation", logger, **key):
            await self._replace(key, doc)

    async def find(self, filter: EvaluationFilter) -> List[Evaluation]:
        query = evaluation_query(filter)
        with ExceptionContext("find_evaluations", logger, **query):
            docs = await self.coll.find(query).sort(
                [("job_description_id", ASCENDING), ("ranking", ASCENDING)]
            ).to_list(length=None)
        return [_from_doc(Evaluation, d) for d in docs]

    async def delete(self, candidate_id: str, job_description_id: Optional[str] = None) -> int:
        query = {"candidate_id": candidate_id}
        if job_description_id:
            query["job_description_id"] = job_description_id
        with ExceptionContext("delete_evaluation", logger, **query):
            result = await self.coll.delete_many(query)
        return result.deleted_count

    async def prune(self, job_description_id: str, keep_candidate_ids: Iterable[str]) -> int:
        query = {"job_description_id": job_description_id, "candidate_id": {"$nin": list(keep_candidate_ids)}}
        with ExceptionContext("prune_evaluations", logger, job_description_id=job_description_id):
            result = await self.coll.delete_many(query)
        return result.deleted_count


# -------- In-memory --------
class InMemoryJobDescriptionRepository(JobDescriptionRepository):
    def __init__(self, job_descriptions: Iterable[JobDescription] = ()):
        self.items = {jd.id: jd for jd in job_descriptions}

    async def get(self, job_description_id: str) -> Optional[JobDescription]:
        jd = self.items.get(job_description_id)
        return jd.model_copy(deep=True) if jd else None

    async def list_active(self) -> List[JobDescription]:
        return [jd.model_copy(deep=True) for jd in self.items.values() if jd.is_active]


class InMemoryCandidateRepository(CandidateRepository):
    def __init__(self, candidates: Iterable[Candidate] = ()):
        self.items = list(candidates)

    async def list_candidates(self, position: Optional[str] = None) -> List[Candidate]:
        return [c.model_copy(deep=True) for c in self.items if position is None or c.position == position]


class InMemoryAssessmentRepository(AssessmentRepository):
    def __init__(self, assessments: Iterable[Assessment] = ()):
        self.items = list(assessments)

    async def latest_by_candidate(self, candidate_ids: Iterable[str]) -> Dict[str, Assessment]:
        wanted = set(candidate_ids)
        latest: Dict[str, Assessment] = {}
        for assessment in sorted(self.items, key=lambda a: a.created_at):
            if assessment.candidate_id in wanted:
                latest[assessment.candidate_id] = assessment.model_copy(deep=True)
        return latest


class InMemoryEvaluationRepository(EvaluationRepository):
    def __init__(self):
        self.items: Dict[tuple, Evaluation] = {}
        self.write_count = 0

    async def upsert(self, evaluation: Evaluation) -> None:
        self.items[(evaluation.candidate_id, evaluation.job_description_id)] = evaluation.model_copy(deep=True)
        self.write_count += 1

    async def find(self, filter: EvaluationFilter) -> List[Evaluation]:
        query = evaluation_query(filter)
        found = [
            e.model_copy(deep=True) for e in self.items.values()
            if all(getattr(e, k) == v for k, v in query.items())
        ]
        return sorted(found, key=evaluation_sort_key)

    async def delete(self, candidate_id: str, job_description_id: Optional[str] = None) -> int:
        keys = [
            k for k in self.items
            if k[0] == candidate_id and (job_description_id is None or k[1] == job_description_id)
        ]
        for k in keys:
            del self.items[k]
        return len(keys)

    async def prune(self, job_description_id: str, keep_candidate_ids: Iterable[str]) -> int:
        keep = set(keep_candidate_ids)
        keys = [k for k in self.items if k[1] == job_description_id and k[0] not in keep]
        for k in keys:
            del self.items[k]
        return len(keys)
