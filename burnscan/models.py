from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from typing import List, Optional, Tuple

from burnscan.config import (
    ACCEPT_HARD, MIN_CONFIDENCE, MIN_MARGIN, UNIFORM_GAP, MAX_ENTROPY,
    MIN_SKIN_FRACTION, MIN_RED_ON_SKIN, MIN_LARGEST_BLOB_FRAC, MAX_JSD,
    ANALYSIS_SIZE, MODEL_IMAGE_SIZE,
)
from burnscan.exceptions import ConfigurationError


class DecisionThresholds(BaseModel):
    """
    Every numeric cutoff used by the decision engine.

    Immutable once built; invalid values raise ConfigurationError so that a
    bad configuration fails when the engine is constructed, never per request.
    This holds for both DecisionThresholds(...) and model_validate(...).
    model_copy(update=...) does not validate; build a new instance instead.
    """
    model_config = ConfigDict(frozen=True, allow_inf_nan=False, extra="forbid", protected_namespaces=())

    accept_hard: float = Field(ACCEPT_HARD, ge=0.0, le=1.0)
    min_confidence: float = Field(MIN_CONFIDENCE, ge=0.0, le=1.0)
    min_margin: float = Field(MIN_MARGIN, ge=0.0, le=1.0)
    uniform_gap: float = Field(UNIFORM_GAP, ge=0.0, le=1.0)
    max_entropy: float = Field(MAX_ENTROPY, ge=0.0)
    min_skin_fraction: float = Field(MIN_SKIN_FRACTION, ge=0.0, le=1.0)
    min_red_on_skin: float = Field(MIN_RED_ON_SKIN, ge=0.0, le=1.0)
    min_largest_blob_frac: float = Field(MIN_LARGEST_BLOB_FRAC, ge=0.0, le=1.0)
    max_jsd: float = Field(MAX_JSD, ge=0.0)
    analysis_size: Tuple[int, int] = ANALYSIS_SIZE
    model_input_size: Tuple[int, int] = MODEL_IMAGE_SIZE

    @model_validator(mode="wrap")
    @classmethod
    def _as_configuration_error(cls, data, handler):
        try:
            return handler(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid decision thresholds: {e}") from e

    @field_validator("analysis_size", "model_input_size")
    @classmethod
    def _positive_size(cls, value: Tuple[int, int]) -> Tuple[int, int]:
        if value[0] <= 0 or value[1] <= 0:
            raise ValueError(f"size must be positive, got {value}")
        return value


class HealthCheckResponse(BaseModel):
    status: str
    model_available: bool
    labels: List[str] = []


class BurnClassificationRequest(BaseModel):
    base64_image: str  # Plain base64 or a data URI


class BurnClassificationResponse(BaseModel):
    final_label: str
    detected: bool
    state: str
    diagnostics: dict
    analysis_date: Optional[str] = None
    execution_times: Optional[dict] = None
