"""
Engine settings: scoring weights, recommendation bands, skill synonyms
and processing limits
"""
import os
from typing import Dict

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from jobfit.utils.exceptions import ConfigurationError


DEFAULT_SYNONYMS: Dict[str, str] = {
    # languages
    "js": "javascript",
    "ecmascript": "javascript",
    "ts": "typescript",
    "py": "python",
    "python3": "python",
    "golang": "go",
    "c sharp": "c#",
    "cpp": "c++",
    # frameworks / runtimes
    "node": "node.js",
    "nodejs": "node.js",
    "react.js": "react",
    "reactjs": "react",
    "vue": "vue.js",
    "vuejs": "vue.js",
    "angularjs": "angular",
    "sklearn": "scikit-learn",
    "scikit learn": "scikit-learn",
    "tf": "tensorflow",
    # data stores
    "postgres": "postgresql",
    "psql": "postgresql",
    "mongo": "mongodb",
    "ms sql": "sql server",
    "mssql": "sql server",
    # platforms / tooling
    "amazon web services": "aws",
    "gcp": "google cloud",
    "k8s": "kubernetes",
    "ci cd": "ci/cd",
    "cicd": "ci/cd",
    "ml": "machine learning",
    "rest api": "rest",
    "restful": "rest",
}


class ScoringWeights(BaseModel):
    """Relative weight of each dimension in the fit score"""
    skills: float = Field(default=0.5, ge=0.0, le=1.0, description="Weight for skill coverage")
    experience: float = Field(default=0.3, ge=0.0, le=1.0, description="Weight for experience match")
    education: float = Field(default=0.2, ge=0.0, le=1.0, description="Weight for education match")

    @model_validator(mode="after")
    def validate_total_weights(self):
        total = self.skills + self.experience + self.education
        if abs(total - 1.0) > 0.01:  # Allow small floating point errors
            raise ValueError('Scoring weights must sum to 1.0')
        return self


class RecommendationBands(BaseModel):
    """Lower bounds (inclusive) of each recommendation tier"""
    strong_min: int = Field(default=90, ge=0, le=100, description="Minimum fit score for StrongMatch")
    good_min: int = Field(default=70, ge=0, le=100, description="Minimum fit score for Good")
    fair_min: int = Field(default=50, ge=0, le=100, description="Minimum fit score for Fair")

    @model_validator(mode="after")
    def validate_order(self):
        if not self.strong_min > self.good_min > self.fair_min:
            raise ValueError('Bands must satisfy strong_min > good_min > fair_min')
        return self


class NormalizerSettings(BaseModel):
    """Alias table used to fold skill spellings into one canonical token"""
    synonyms: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_SYNONYMS))

    @field_validator('synonyms')
    def validate_synonyms(cls, v):
        for alias, canonical in v.items():
            if not str(alias).strip() or not str(canonical).strip():
                raise ValueError('Synonym aliases and targets must be non-empty')
        return v


class ProcessingSettings(BaseModel):
    """Batch processing limits"""
    max_workers: int = Field(default=8, ge=1, le=64, description="Threads used for per-candidate scoring")
    write_retry_attempts: int = Field(default=3, ge=1, le=10, description="Attempts per evaluation upsert")
    slow_batch_threshold_ms: float = Field(default=5000, ge=1, description="Batch duration that logs a warning")


class NarrativeSettings(BaseModel):
    """Optional model-generated narrative for candidates without assessment insights"""
    enabled: bool = Field(default=False, description="Call the model server for missing insights")
    base_url: str = Field(default="http://localhost:11434", description="Ollama base URL")
    model_name: str = Field(default="llama3.1:8b", description="LLM model name")
    temperature: float = Field(default=0.2, ge=0.0, le=2.0, description="Generation temperature")
    timeout: int = Field(default=30, ge=1, le=300, description="Request timeout in seconds")


class EngineSettings(BaseModel):
    """Complete engine configuration"""
    weights: ScoringWeights = Field(default_factory=ScoringWeights)
    bands: RecommendationBands = Field(default_factory=RecommendationBands)
    normalizer: NormalizerSettings = Field(default_factory=NormalizerSettings)
    processing: ProcessingSettings = Field(default_factory=ProcessingSettings)
    narrative: NarrativeSettings = Field(default_factory=NarrativeSettings)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def load_settings() -> EngineSettings:
    """Build EngineSettings from the environment (and .env when present)."""
    load_dotenv()

    try:
        return _settings_from_env()
    except (PydanticValidationError, ValueError) as e:
        raise ConfigurationError(f"Invalid engine settings: {e}", cause=e) from e


def _settings_from_env() -> EngineSettings:
    return EngineSettings(
        weights=ScoringWeights(
            skills=float(os.getenv("SCORE_WEIGHT_SKILLS", "0.5")),
            experience=float(os.getenv("SCORE_WEIGHT_EXPERIENCE", "0.3")),
            education=float(os.getenv("SCORE_WEIGHT_EDUCATION", "0.2")),
        ),
        bands=RecommendationBands(
            strong_min=int(os.getenv("BAND_STRONG_MIN", "90")),
            good_min=int(os.getenv("BAND_GOOD_MIN", "70")),
            fair_min=int(os.getenv("BAND_FAIR_MIN", "50")),
        ),
        processing=ProcessingSettings(
            max_workers=int(os.getenv("MAX_WORKERS", "8")),
        ),
        narrative=NarrativeSettings(
            enabled=_env_flag("NARRATIVE_ENABLED"),
            base_url=os.getenv("OLLAMA_BASE_URL", "http://localhost:11434"),
            model_name=os.getenv("LLM_MODEL", "llama3.1:8b"),
        ),
    )
