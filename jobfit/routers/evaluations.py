from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List, Optional

from jobfit.deps import get_orchestrator
from jobfit.models.schemas import (
    DeleteEvaluationResponse,
    Evaluation,
    EvaluationBatchResult,
    EvaluationFilter,
    RunEvaluationRequest,
)
from jobfit.services.orchestrator import EvaluationOrchestrator
from jobfit.utils.exceptions import JobFitBaseException, map_to_http_exception
from jobfit.utils.logging_config import log_api_call

router = APIRouter()


@router.post("/run", response_model=EvaluationBatchResult)
@log_api_call("run_evaluation")
async def run_evaluation(
    payload: RunEvaluationRequest,
    orchestrator: EvaluationOrchestrator = Depends(get_orchestrator),
):
    """Rank candidates against an active job description and store the results"""
    try:
        return await orchestrator.run_evaluation(payload.job_description_id, payload.position_filter)
    except JobFitBaseException as e:
        raise map_to_http_exception(e) from e


@router.get("/", response_model=List[Evaluation])
@log_api_call("get_evaluations")
async def get_evaluations(
    job_description_id: Optional[str] = Query(None, description="Evaluations ranked against this job description"),
    candidate_id: Optional[str] = Query(None, description="Evaluations of this candidate"),
    position: Optional[str] = Query(None, description="Candidate position, 'all' for every position"),
    orchestrator: EvaluationOrchestrator = Depends(get_orchestrator),
):
    """Stored evaluations, ordered by job description then ranking"""
    if position and position.lower() == "all":
        position = None
    filter = EvaluationFilter(job_description_id=job_description_id, candidate_id=candidate_id, position=position)
    try:
        return await orchestrator.get_evaluations(filter)
    except JobFitBaseException as e:
        raise map_to_http_exception(e) from e


@router.delete("/candidate/{candidate_id}", response_model=DeleteEvaluationResponse)
@log_api_call("delete_evaluation")
async def delete_evaluation(
    candidate_id: str,
    job_description_id: Optional[str] = Query(None, description="Limit deletion to one job description"),
    orchestrator: EvaluationOrchestrator = Depends(get_orchestrator),
):
    """Delete a candidate's evaluations (all of them, or for one job description)"""
    try:
        deleted = await orchestrator.delete_evaluation(candidate_id, job_description_id)
    except JobFitBaseException as e:
        raise map_to_http_exception(e) from e
    if not deleted:
        raise HTTPException(status_code=404, detail="Evaluation not found")
    return DeleteEvaluationResponse(
        candidate_id=candidate_id,
        job_description_id=job_description_id,
        deleted_count=deleted,
    )
