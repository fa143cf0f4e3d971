from pydantic import BaseModel, Field
from typing import Any, List, Optional
from datetime import datetime
from enum import Enum


# -------- Inputs (owned by collaborators, read-only here) --------
class Candidate(BaseModel):
    id: str
    full_name: str
    position: str
    status: str = "new"   # new, reviewed, interview, hired, rejected


class Assessment(BaseModel):
    candidate_id: str
    technical_skills: Optional[float] = None
    experience_match: Optional[float] = None
    education: Optional[float] = None
    skills_text: Optional[Any] = None   # free text or a list; the normalizer copes with either
    insights_text: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class JobDescription(BaseModel):
    id: str
    position: str
    title: Optional[str] = None
    skills_text: Optional[Any] = None
    required_experience_text: Optional[str] = None
    responsibilities: Optional[str] = None
    is_active: bool = True


# -------- Evaluations --------
class RecommendationTier(str, Enum):
    """Recommendation bands, derived solely from the fit score"""
    STRONG_MATCH = "StrongMatch"
    GOOD = "Good"
    FAIR = "Fair"
    WEAK = "Weak"


class Evaluation(BaseModel):
    candidate_id: str
    job_description_id: str
    candidate_name: str
    position: str
    fit_score: int = Field(ge=0, le=100)
    skill_score: int = Field(ge=0, le=100)
    experience_match: int = Field(ge=0, le=100)
    education_match: int = Field(ge=0, le=100)
    matching_skills: List[str] = []
    missing_skills: List[str] = []
    recommendation_tier: RecommendationTier
    recommendation_text: str
    insight: Optional[str] = None
    ranking: Optional[int] = Field(default=None, ge=1)
    evaluated_at: datetime = Field(default_factory=datetime.utcnow)


class SkippedCandidate(BaseModel):
    candidate_id: str
    reason: str


class EvaluationBatchResult(BaseModel):
    job_description_id: str
    evaluations: List[Evaluation] = []
    skipped_count: int = 0
    skipped: List[SkippedCandidate] = []
    average_fit_score: int = 0


class EvaluationFilter(BaseModel):
    job_description_id: Optional[str] = None
    candidate_id: Optional[str] = None
    position: Optional[str] = None


# -------- API payloads --------
class RunEvaluationRequest(BaseModel):
    job_description_id: str
    position_filter: Optional[str] = None   # None -> job's position, "all" -> every candidate


class DeleteEvaluationResponse(BaseModel):
    candidate_id: str
    job_description_id: Optional[str] = None
    deleted_count: int
