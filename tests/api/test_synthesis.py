"""Tests for parsing model output into insight and comparison results."""

import json

import pytest

from api.composer.synthesis import (
    COMPARISON_PLACEHOLDER,
    FIRST_DOCUMENT_PLACEHOLDER,
    INSIGHT_FINDING_PLACEHOLDER,
    INSIGHT_RECOMMENDATION_PLACEHOLDER,
    clamp_score,
    extract_json_block,
    parse_comparison,
    parse_insight,
)
from api.schemas.analysis import RiskScores

VALID_INSIGHT = {
    "summary": "Contrato con cláusulas de terminación claras",
    "keyFindings": ["Garantía de fiel cumplimiento del 5%", "Plazo de 120 días"],
    "recommendations": ["Negociar la multa diaria"],
    "riskAssessment": {"level": "medium", "score": 6, "factors": ["multas", "plazo"]},
}


class TestRepairHelpers:
    def test_extract_from_fenced_block(self):
        raw = 'Aquí está:\n```json\n{"summary": "ok"}\n```\nSaludos'
        assert extract_json_block(raw) == '{"summary": "ok"}'

    def test_extract_from_prose(self):
        raw = 'Resultado: {"summary": "ok", "nested": {"a": 1}} fin'
        assert extract_json_block(raw) == '{"summary": "ok", "nested": {"a": 1}}'

    @pytest.mark.parametrize("raw", [None, "", "sin llaves", "} al revés {"])
    def test_nothing_to_extract(self, raw):
        assert extract_json_block(raw) is None

    @pytest.mark.parametrize(
        "value,expected",
        [(7, 7), (0, 1), (-3, 1), (42, 10), (6.6, 7), ("8/10", 8), ("7,4", 7), ("alto", 5), (None, 5), (True, 5)],
    )
    def test_clamp_score(self, value, expected):
        assert clamp_score(value) == expected

    def test_clamp_non_finite(self):
        assert clamp_score(float("nan")) == 5
        assert clamp_score(float("inf")) == 5


class TestParseInsight:
    def test_valid_json(self):
        result = parse_insight(json.dumps(VALID_INSIGHT))

        assert result.summary == VALID_INSIGHT["summary"]
        assert result.key_findings == VALID_INSIGHT["keyFindings"]
        assert result.recommendations == ["Negociar la multa diaria"]
        assert result.risk_assessment.level == "medium"
        assert result.risk_assessment.score == 6
        assert result.risk_assessment.factors == ["multas", "plazo"]

    def test_fenced_json(self):
        raw = "```json\n" + json.dumps(VALID_INSIGHT) + "\n```"
        assert parse_insight(raw).summary == VALID_INSIGHT["summary"]

    def test_snake_case_keys_accepted(self):
        payload = {
            "summary": "ok",
            "key_findings": ["uno"],
            "risk_assessment": {"level": "low", "score": 2},
        }
        result = parse_insight(json.dumps(payload))
        assert result.key_findings == ["uno"]
        assert result.risk_assessment.level == "low"

    @pytest.mark.parametrize("level,expected", [("Alto", "high"), ("media", "medium"), ("BAJO", "low"), ("crítico", "medium")])
    def test_spanish_levels(self, level, expected):
        payload = dict(VALID_INSIGHT, riskAssessment={"level": level, "score": 5})
        assert parse_insight(json.dumps(payload)).risk_assessment.level == expected

    def test_out_of_range_score_is_clamped(self):
        payload = dict(VALID_INSIGHT, riskAssessment={"level": "high", "score": 15})
        assert parse_insight(json.dumps(payload)).risk_assessment.score == 10

    def test_missing_risk_assessment_is_neutral(self):
        result = parse_insight(json.dumps({"summary": "solo resumen"}))
        assert result.risk_assessment.level == "medium"
        assert result.risk_assessment.score == 5
        assert result.key_findings == []

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            None,
            "El documento presenta riesgos altos.",
            '{"summary": "truncado", "keyFindings": ["a"',
            '{"keyFindings": ["sin resumen"]}',
            '{"summary": "ok", "keyFindings": {"a": 1}}',
            "[1, 2, 3]",
        ],
    )
    def test_never_raises_and_falls_back(self, raw):
        result = parse_insight(raw)

        assert result.summary == (raw or "")
        assert result.key_findings == [INSIGHT_FINDING_PLACEHOLDER]
        assert result.recommendations == [INSIGHT_RECOMMENDATION_PLACEHOLDER]
        assert result.risk_assessment.level == "medium"
        assert result.risk_assessment.score == 5
        assert result.risk_assessment.factors == ["general"]


class TestParseComparison:
    def test_nested_comparison_is_lifted(self):
        payload = {
            "summary": "La oferta A es más sólida",
            "comparison": {
                "strengths": {"A": ["precio"], "B": ["experiencia"]},
                "weaknesses": {"A": ["plazo"], "B": ["costo"]},
            },
            "recommendation": {"preferred": "A", "reasoning": "Mejor precio", "improvements": ["Ajustar plazo"]},
            "riskMatrix": {
                "A": {"legal": 3, "financial": "4", "operational": 12},
                "B": {"legal": 5, "financial": 6, "operational": 7},
            },
        }

        result = parse_comparison(json.dumps(payload), ["A", "B"])

        assert result.summary == "La oferta A es más sólida"
        assert result.strengths == {"A": ["precio"], "B": ["experiencia"]}
        assert result.weaknesses["B"] == ["costo"]
        assert result.recommendation.preferred == "A"
        assert result.recommendation.improvements == ["Ajustar plazo"]
        assert result.risk_matrix["A"] == RiskScores(legal=3, financial=4, operational=10)

    def test_missing_documents_are_gap_filled(self):
        raw = json.dumps(
            {
                "summary": "Comparación",
                "recommendation": {"preferred": "", "reasoning": "", "improvements": []},
            }
        )

        result = parse_comparison(raw, ["Contract A", "Contract B"])

        assert result.recommendation.preferred == "Contract A"
        assert result.risk_matrix["Contract A"] == RiskScores(legal=5, financial=5, operational=5)
        assert result.risk_matrix["Contract B"] == RiskScores(legal=5, financial=5, operational=5)
        assert result.strengths["Contract B"] == [COMPARISON_PLACEHOLDER]

    def test_partial_matrix_keeps_model_values(self):
        raw = json.dumps({"summary": "x", "riskMatrix": {"A": {"legal": 2}}})

        result = parse_comparison(raw, ["A", "B"])

        assert result.risk_matrix["A"] == RiskScores(legal=2, financial=5, operational=5)
        assert result.risk_matrix["B"] == RiskScores()

    def test_garbage_falls_back_with_labels(self):
        result = parse_comparison("No puedo comparar estos documentos.", ["A", "B"])

        assert result.summary == "No puedo comparar estos documentos."
        assert set(result.strengths) == {"A", "B"}
        assert result.recommendation.preferred == "A"
        assert result.risk_matrix == {"A": RiskScores(), "B": RiskScores()}

    def test_no_labels_uses_generic_preference(self):
        result = parse_comparison("", [])

        assert result.summary == ""
        assert result.recommendation.preferred == FIRST_DOCUMENT_PLACEHOLDER
        assert result.risk_matrix == {}

    def test_truncated_json_falls_back(self):
        raw = '{"summary": "Comparación", "riskMatrix": {"A": {"legal": 3'
        result = parse_comparison(raw, ["A", "B"])
        assert result.summary == raw
        assert result.recommendation.preferred == "A"
