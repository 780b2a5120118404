"""Turn raw model output into typed insight and comparison results.

Both parsers are total. The model is only *asked* for JSON, so the output
may arrive wrapped in code fences, surrounded by prose, truncated, or not
be JSON at all. The parsers repair what they can and otherwise return a
deterministic default-shaped result with the raw text as the summary. A
degraded parse is logged, never raised.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any, Dict, List, Optional, Sequence

import structlog
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from api.schemas.analysis import (
    ComparisonResult,
    DocumentInsightResult,
    Recommendation,
    RiskAssessment,
    RiskLevel,
    RiskScores,
)

logger = structlog.get_logger(__name__)

NEUTRAL_SCORE = 5
NEUTRAL_LEVEL: RiskLevel = "medium"

INSIGHT_FINDING_PLACEHOLDER = "Análisis completado: consulte el resumen para más detalles"
INSIGHT_RECOMMENDATION_PLACEHOLDER = "Revise el análisis detallado proporcionado"
RISK_FACTOR_PLACEHOLDER = "general"
COMPARISON_PLACEHOLDER = "Ver análisis detallado"
COMPARISON_REASONING_PLACEHOLDER = "Basado en el análisis detallado proporcionado"
COMPARISON_IMPROVEMENT_PLACEHOLDER = "Revise la comparación detallada proporcionada"
FIRST_DOCUMENT_PLACEHOLDER = "Primer documento"

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)

_LEVEL_ALIASES = {
    "low": "low",
    "bajo": "low",
    "baja": "low",
    "medium": "medium",
    "medio": "medium",
    "media": "medium",
    "moderado": "medium",
    "moderada": "medium",
    "high": "high",
    "alto": "high",
    "alta": "high",
}


# ==============================================================================
# REPAIR HELPERS
# ==============================================================================

def extract_json_block(raw: Optional[str]) -> Optional[str]:
    """Pull the outermost ``{...}`` out of fenced or prose-wrapped output."""
    if not raw:
        return None
    fenced = _FENCE_RE.search(raw)
    text = fenced.group(1) if fenced else raw
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start:end + 1]


def clamp_score(value: Any) -> int:
    """Coerce a model-provided score into the 1..10 scale."""
    if isinstance(value, bool):
        return NEUTRAL_SCORE
    if isinstance(value, str):
        match = re.search(r"-?\d+(?:[.,]\d+)?", value)
        if not match:
            return NEUTRAL_SCORE
        value = match.group(0).replace(",", ".")
    try:
        number = float(value)
    except (TypeError, ValueError):
        return NEUTRAL_SCORE
    if math.isnan(number) or math.isinf(number):
        return NEUTRAL_SCORE
    return int(min(10, max(1, round(number))))


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item is not None and str(item).strip()]
    raise ValueError(f"expected a list of strings, got {type(value).__name__}")


def _as_str_list_map(value: Any) -> Dict[str, List[str]]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"expected an object, got {type(value).__name__}")
    return {str(key): _as_str_list(items) for key, items in value.items()}


# ==============================================================================
# LENIENT PAYLOAD MODELS
# ==============================================================================

class _RiskAssessmentPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    level: RiskLevel = NEUTRAL_LEVEL
    score: int = NEUTRAL_SCORE
    factors: List[str] = Field(default_factory=list)

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> str:
        if isinstance(v, str):
            return _LEVEL_ALIASES.get(v.strip().lower(), NEUTRAL_LEVEL)
        return NEUTRAL_LEVEL

    @field_validator("score", mode="before")
    @classmethod
    def normalize_score(cls, v: Any) -> int:
        return clamp_score(v)

    @field_validator("factors", mode="before")
    @classmethod
    def normalize_factors(cls, v: Any) -> List[str]:
        return _as_str_list(v)


class _InsightPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    summary: str
    key_findings: List[str] = Field(
        default_factory=list, validation_alias=AliasChoices("keyFindings", "key_findings")
    )
    recommendations: List[str] = Field(default_factory=list)
    risk_assessment: _RiskAssessmentPayload = Field(
        default_factory=_RiskAssessmentPayload,
        validation_alias=AliasChoices("riskAssessment", "risk_assessment"),
    )

    @field_validator("key_findings", "recommendations", mode="before")
    @classmethod
    def normalize_lists(cls, v: Any) -> List[str]:
        return _as_str_list(v)


class _RiskScoresPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    legal: int = NEUTRAL_SCORE
    financial: int = NEUTRAL_SCORE
    operational: int = NEUTRAL_SCORE

    @field_validator("legal", "financial", "operational", mode="before")
    @classmethod
    def normalize_score(cls, v: Any) -> int:
        return clamp_score(v)


class _RecommendationPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    preferred: str = ""
    reasoning: str = ""
    improvements: List[str] = Field(default_factory=list)

    @field_validator("preferred", "reasoning", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("improvements", mode="before")
    @classmethod
    def normalize_improvements(cls, v: Any) -> List[str]:
        return _as_str_list(v)


class _ComparisonPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    summary: str
    strengths: Dict[str, List[str]] = Field(default_factory=dict)
    weaknesses: Dict[str, List[str]] = Field(default_factory=dict)
    recommendation: _RecommendationPayload = Field(default_factory=_RecommendationPayload)
    risk_matrix: Dict[str, _RiskScoresPayload] = Field(
        default_factory=dict, validation_alias=AliasChoices("riskMatrix", "risk_matrix")
    )

    @model_validator(mode="before")
    @classmethod
    def lift_nested_comparison(cls, data: Any) -> Any:
        # {"comparison": {"strengths": ..., "weaknesses": ...}} is the shape
        # the prompt asks for; the result model keeps them at the top level.
        if isinstance(data, dict) and isinstance(data.get("comparison"), dict):
            data = dict(data)
            nested = data.pop("comparison")
            for key in ("strengths", "weaknesses"):
                if key in nested and key not in data:
                    data[key] = nested[key]
        return data

    @field_validator("strengths", "weaknesses", mode="before")
    @classmethod
    def normalize_maps(cls, v: Any) -> Dict[str, List[str]]:
        return _as_str_list_map(v)

    @field_validator("risk_matrix", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return {} if v is None else v


# ==============================================================================
# FALLBACKS
# ==============================================================================

def fallback_insight(raw: str) -> DocumentInsightResult:
    return DocumentInsightResult(
        summary=raw,
        key_findings=[INSIGHT_FINDING_PLACEHOLDER],
        recommendations=[INSIGHT_RECOMMENDATION_PLACEHOLDER],
        risk_assessment=RiskAssessment(
            level=NEUTRAL_LEVEL,
            score=NEUTRAL_SCORE,
            factors=[RISK_FACTOR_PLACEHOLDER],
        ),
    )


def fallback_comparison(raw: str, labels: Sequence[str]) -> ComparisonResult:
    labels = list(labels)
    return ComparisonResult(
        summary=raw,
        strengths={label: [COMPARISON_PLACEHOLDER] for label in labels},
        weaknesses={label: [COMPARISON_PLACEHOLDER] for label in labels},
        recommendation=Recommendation(
            preferred=labels[0] if labels else FIRST_DOCUMENT_PLACEHOLDER,
            reasoning=COMPARISON_REASONING_PLACEHOLDER,
            improvements=[COMPARISON_IMPROVEMENT_PLACEHOLDER],
        ),
        risk_matrix={label: RiskScores() for label in labels},
    )


def _log_degradation(kind: str, raw: str, reason: str) -> None:
    logger.warning("Model output parse degraded", kind=kind, reason=reason, raw_chars=len(raw))


# ==============================================================================
# PARSERS
# ==============================================================================

def parse_insight(raw: Optional[str]) -> DocumentInsightResult:
    """Parse a document insight. Never raises."""
    raw = raw or ""
    block = extract_json_block(raw)
    if block is None:
        _log_degradation("insight", raw, "no JSON object found")
        return fallback_insight(raw)

    try:
        payload = _InsightPayload.model_validate(json.loads(block))
    except (json.JSONDecodeError, ValidationError) as e:
        _log_degradation("insight", raw, str(e)[:200])
        return fallback_insight(raw)
    except Exception as e:
        _log_degradation("insight", raw, f"{type(e).__name__}: {e}")
        return fallback_insight(raw)

    return DocumentInsightResult(
        summary=payload.summary,
        key_findings=payload.key_findings,
        recommendations=payload.recommendations,
        risk_assessment=RiskAssessment(**payload.risk_assessment.model_dump()),
    )


def parse_comparison(raw: Optional[str], labels: Sequence[str] = ()) -> ComparisonResult:
    """Parse a multi-document comparison. Never raises.

    ``labels`` are the known document names, in the order they were sent to
    the model. They drive gap filling and the default preference.
    """
    raw = raw or ""
    labels = list(labels)
    block = extract_json_block(raw)
    if block is None:
        _log_degradation("comparison", raw, "no JSON object found")
        return fallback_comparison(raw, labels)

    try:
        payload = _ComparisonPayload.model_validate(json.loads(block))
    except (json.JSONDecodeError, ValidationError) as e:
        _log_degradation("comparison", raw, str(e)[:200])
        return fallback_comparison(raw, labels)
    except Exception as e:
        _log_degradation("comparison", raw, f"{type(e).__name__}: {e}")
        return fallback_comparison(raw, labels)

    strengths = dict(payload.strengths)
    weaknesses = dict(payload.weaknesses)
    risk_matrix = {label: RiskScores(**scores.model_dump()) for label, scores in payload.risk_matrix.items()}
    for label in labels:
        strengths.setdefault(label, [COMPARISON_PLACEHOLDER])
        weaknesses.setdefault(label, [COMPARISON_PLACEHOLDER])
        risk_matrix.setdefault(label, RiskScores())

    preferred = payload.recommendation.preferred.strip()
    if not preferred:
        preferred = labels[0] if labels else FIRST_DOCUMENT_PLACEHOLDER

    return ComparisonResult(
        summary=payload.summary,
        strengths=strengths,
        weaknesses=weaknesses,
        recommendation=Recommendation(
            preferred=preferred,
            reasoning=payload.recommendation.reasoning,
            improvements=payload.recommendation.improvements,
        ),
        risk_matrix=risk_matrix,
    )
