import random

from flexiadapt.analysis_engine import (
	fallback_analysis,
	level_for_score,
	parse_evidence_analysis,
	strip_code_fences,
)


def test_strip_code_fences():
	assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
	assert strip_code_fences("  plain  ") == "plain"


def test_parse_maps_keys_and_defaults():
	result = parse_evidence_analysis('{"identifiedStrengths": "Creatividad", "confidence": 85}')
	assert result["identified_strengths"] == "Creatividad"
	assert result["adapted_score"] == 75
	assert result["competency_level"] == "En desarrollo"
	assert result["learning_style"] == "Multimodal"
	assert result["confidence"] == 0.85
	assert result["improvement_areas"] == ""
	assert result["is_fallback"] is False


def test_parse_clamps_score():
	assert parse_evidence_analysis('{"adaptedScore": 140}')["adapted_score"] == 100
	assert parse_evidence_analysis('{"adaptedScore": "91.6"}')["adapted_score"] == 92


def test_non_object_json_uses_fallback():
	assert parse_evidence_analysis("[1, 2, 3]")["is_fallback"] is True


def test_fallback_is_deterministic_with_seed():
	first = fallback_analysis(rng=random.Random(7))
	second = parse_evidence_analysis("no es json", rng=random.Random(7))
	assert first == second
	assert 70 <= first["adapted_score"] <= 94
	assert first["competency_level"] == level_for_score(first["adapted_score"])
	assert first["confidence"] == 0.85
	assert str(first["adapted_score"]) in first["evaluation_justification"]


def test_level_for_score():
	assert level_for_score(95) == "Avanzado"
	assert level_for_score(85) == "Competente"
	assert level_for_score(70) == "En desarrollo"
	assert level_for_score(40) == "Iniciando"


def test_non_finite_score_and_confidence_use_defaults():
	result = parse_evidence_analysis('{"adaptedScore": 1e999, "confidence": Infinity}')
	assert result["adapted_score"] == 75
	assert result["confidence"] == 0.8
	assert result["is_fallback"] is False
	assert parse_evidence_analysis('{"adaptedScore": NaN}')["adapted_score"] == 75


def test_multimodal_fallback_reads_as_lectoescritor():
	styles = (fallback_analysis(rng=random.Random(seed)) for seed in range(500))
	result = next(r for r in styles if r["learning_style"] == "Multimodal")
	assert "lectura comprensiva y expresión escrita" in result["identified_strengths"]
	assert "biblioteca de aula" in result["resources_needed"]
	assert "estilo multimodal" in result["teaching_strategies"]
