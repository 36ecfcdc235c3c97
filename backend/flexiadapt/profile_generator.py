from __future__ import annotations
import json
import logging
import math
import re
from typing import Any, Dict, Iterable, Optional

from .ai_client import AIProviderError, LLMClient

logger = logging.getLogger(__name__)

PROFILE_FIELDS: Dict[str, str] = {
	"dominantLearningPattern": "dominant_learning_pattern",
	"cognitiveStrengths": "cognitive_strengths",
	"learningChallenges": "learning_challenges",
	"motivationalFactors": "motivational_factors",
	"recommendedTeachingApproaches": "recommended_teaching_approaches",
	"assessmentRecommendations": "assessment_recommendations",
	"resourcesAndTools": "resources_and_tools",
}

_JSON_BLOB = re.compile(r"\{[\s\S]*\}")


def _get(obj: Any, name: str, default: Any = None) -> Any:
	if isinstance(obj, dict):
		return obj.get(name, default)
	return getattr(obj, name, default)


def build_profile_prompt(student: Any, perspective: Any, analyses: list) -> str:
	lines = [
		"Como especialista en pedagogía adaptativa, analiza la siguiente información del estudiante "
		"y genera un perfil de aprendizaje completo:",
		"",
		"INFORMACIÓN DEL ESTUDIANTE:",
		f"- Nombre: {_get(student, 'name')}",
		f"- Edad: {_get(student, 'age')} años",
		f"- Grado: {_get(student, 'grade')}",
		f"- Materias principales: {_get(student, 'main_subjects')}",
		f"- Necesidades especiales: {_get(student, 'special_needs') or 'Ninguna registrada'}",
		"",
		"PERSPECTIVA DEL PROFESOR:",
	]
	if perspective is not None:
		lines += [
			f"- Observaciones de comportamiento: {_get(perspective, 'behavior_observations') or 'No especificadas'}",
			f"- Fortalezas identificadas: {_get(perspective, 'identified_strengths') or 'No especificadas'}",
			f"- Desafíos observados: {_get(perspective, 'observed_challenges') or 'No especificados'}",
			f"- Estrategias exitosas: {_get(perspective, 'successful_strategies') or 'No especificadas'}",
			f"- Modalidad preferida: {_get(perspective, 'preferred_modality') or 'No especificada'}",
		]
	else:
		lines.append("No disponible")
	lines += ["", f"ANÁLISIS PREVIOS DE EVIDENCIAS ({len(analyses)} análisis):"]
	for index, analysis in enumerate(analyses, start=1):
		lines += [
			"",
			f"Análisis {index}:",
			f"- Nivel de competencia: {_get(analysis, 'competency_level')}",
			f"- Puntuación: {_get(analysis, 'adapted_score')}/100",
			f"- Estilo de aprendizaje: {_get(analysis, 'learning_style') or 'No identificado'}",
			f"- Fortalezas: {_get(analysis, 'identified_strengths')}",
			f"- Áreas de mejora: {_get(analysis, 'improvement_areas')}",
			f"- Modalidades exitosas: {_get(analysis, 'successful_modalities')}",
		]
	lines += [
		"",
		"Genera un perfil de aprendizaje integral con: patrón dominante de aprendizaje, fortalezas cognitivas, "
		"desafíos de aprendizaje, factores motivacionales, enfoques pedagógicos recomendados, "
		"recomendaciones de evaluación y recursos y herramientas.",
		"",
		"Responde en formato JSON con las siguientes claves:",
		"{",
		'  "dominantLearningPattern": "descripción del patrón predominante",',
		'  "cognitiveStrengths": "fortalezas cognitivas identificadas",',
		'  "learningChallenges": "desafíos y necesidades especiales",',
		'  "motivationalFactors": "factores que motivan al estudiante",',
		'  "recommendedTeachingApproaches": "estrategias pedagógicas recomendadas",',
		'  "assessmentRecommendations": "métodos de evaluación sugeridos",',
		'  "resourcesAndTools": "recursos y herramientas recomendadas",',
		'  "confidenceLevel": número entre 0 y 100',
		"}",
	]
	return "\n".join(lines)


def generic_profile(special_needs: Optional[str] = None) -> Dict[str, Any]:
	return {
		"dominant_learning_pattern": "Mixto - Requiere análisis adicional",
		"cognitive_strengths": "Capacidad de adaptación y perseverancia",
		"learning_challenges": special_needs or "Variabilidad en el rendimiento",
		"motivational_factors": "Actividades prácticas y retroalimentación positiva",
		"recommended_teaching_approaches": "Enfoque multimodal con adaptaciones específicas",
		"assessment_recommendations": "Evaluación formativa continua con múltiples formatos",
		"resources_and_tools": "Materiales visuales y actividades interactivas",
		"confidence_level": 70.0,
	}


def unavailable_profile(special_needs: Optional[str] = None) -> Dict[str, Any]:
	return {
		"dominant_learning_pattern": "En evaluación - Requiere más evidencia",
		"cognitive_strengths": "Capacidad de aprendizaje individual",
		"learning_challenges": special_needs or "Necesidades de apoyo individualizado",
		"motivational_factors": "Ambiente de apoyo y retroalimentación positiva",
		"recommended_teaching_approaches": "Instrucción diferenciada y apoyo individualizado",
		"assessment_recommendations": "Evaluación adaptada a las necesidades del estudiante",
		"resources_and_tools": "Recursos de apoyo y tecnología asistiva según sea necesario",
		"confidence_level": 50.0,
	}


def parse_profile(content: str, *, special_needs: Optional[str] = None) -> Dict[str, Any]:
	match = _JSON_BLOB.search(content or "")
	if match:
		try:
			data = json.loads(match.group(0))
		except ValueError:
			data = None
		if isinstance(data, dict):
			profile: Dict[str, Any] = {}
			for key, column in PROFILE_FIELDS.items():
				value = data.get(key)
				default = "No identificado" if column == "dominant_learning_pattern" else "En evaluación"
				profile[column] = str(value) if value else default
			try:
				confidence = float(data.get("confidenceLevel") or 75)
			except (TypeError, ValueError):
				confidence = 75.0
			if not math.isfinite(confidence):
				confidence = 75.0
			profile["confidence_level"] = max(0.0, min(100.0, confidence))
			return profile
	logger.warning("Could not parse learning profile response, using generic profile")
	return generic_profile(special_needs)


async def generate_learning_profile(
	client: LLMClient,
	*,
	student: Any,
	perspective: Any,
	analyses: Iterable[Any],
) -> Dict[str, Any]:
	analyses = list(analyses)
	special_needs = _get(student, "special_needs")
	prompt = build_profile_prompt(student, perspective, analyses)
	try:
		# Single attempt: profile generation does not use the fallback chain
		response = await client.generate(prompt, max_tokens=2000, temperature=0.3, allow_fallback=False)
	except AIProviderError as err:
		logger.error("Error generating learning profile: %s", err)
		return unavailable_profile(special_needs)
	return parse_profile(response.content, special_needs=special_needs)
