from fastapi import APIRouter, Depends
from typing import List

from jobfit.deps import get_orchestrator
from jobfit.models.schemas import JobDescription
from jobfit.services.orchestrator import EvaluationOrchestrator
from jobfit.utils.exceptions import JobFitBaseException, map_to_http_exception

router = APIRouter()


@router.get("/", response_model=List[JobDescription])
async def list_active_job_descriptions(orchestrator: EvaluationOrchestrator = Depends(get_orchestrator)):
    """Active job descriptions, the only ones an evaluation can run against"""
    try:
        return await orchestrator.list_job_descriptions()
    except JobFitBaseException as e:
        raise map_to_http_exception(e) from e
