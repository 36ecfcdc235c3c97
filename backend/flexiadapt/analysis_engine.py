"""Evidence analysis: prompt building, model call and response parsing.

The model is asked for a fixed JSON object. When its answer cannot be parsed
a heuristic analysis is substituted so the request still succeeds; the
substitution is flagged with ``is_fallback`` and logged.
"""
from __future__ import annotations
import json
import logging
import math
import random
import re
from typing import Any, Dict, Optional, Tuple

from .ai_client import AIResponse, LLMClient

logger = logging.getLogger(__name__)

LEARNING_STYLES = ["Visual", "Auditivo", "Kinestésico", "Lectoescritor", "Multimodal"]
COMPETENCY_LEVELS = ["Iniciando", "En desarrollo", "Competente", "Avanzado"]

# Model JSON key -> AnalysisResult column
FIELD_MAP: Dict[str, str] = {
	"adaptedScore": "adapted_score",
	"competencyLevel": "competency_level",
	"learningStyle": "learning_style",
	"identifiedStrengths": "identified_strengths",
	"improvementAreas": "improvement_areas",
	"successfulModalities": "successful_modalities",
	"teachingStrategies": "teaching_strategies",
	"recommendedActivities": "recommended_activities",
	"assessmentAdaptations": "assessment_adaptations",
	"resourcesNeeded": "resources_needed",
	"classroomModifications": "classroom_modifications",
	"pedagogicalRecommendations": "pedagogical_recommendations",
	"suggestedAdaptations": "suggested_adaptations",
	"evaluationJustification": "evaluation_justification",
	"confidence": "confidence",
}

DEFAULT_SCORE = 75
DEFAULT_LEVEL = "En desarrollo"
DEFAULT_STYLE = "Multimodal"
DEFAULT_CONFIDENCE = 0.8
FALLBACK_CONFIDENCE = 0.85


def _dump(value: Any) -> str:
	if not value:
		return "No disponible"
	return json.dumps(value, ensure_ascii=False, default=str)


def build_evidence_prompt(
	*,
	evidence_type: str,
	subject: str,
	extracted_text: Optional[str] = None,
	content: Optional[str] = None,
	rubric: Optional[str] = None,
	competencies: Optional[str] = None,
	student_profile: Optional[Dict[str, Any]] = None,
	teacher_perspective: Optional[Dict[str, Any]] = None,
) -> str:
	return (
		"Actúa como un experto en evaluación educativa inclusiva. Analiza la siguiente evidencia de aprendizaje "
		"y proporciona una evaluación adaptada.\n\n"
		"INFORMACIÓN DEL ESTUDIANTE:\n"
		f"- Perfil de aprendizaje: {_dump(student_profile)}\n"
		f"- Perspectiva docente: {_dump(teacher_perspective)}\n\n"
		"EVIDENCIA:\n"
		f"- Tipo: {evidence_type}\n"
		f"- Asignatura: {subject}\n"
		f"- Contenido extraído: {extracted_text or content or 'No disponible'}\n"
		f"- Rúbrica aplicada: {rubric or 'No disponible'}\n"
		f"- Competencias evaluadas: {competencies or 'No especificadas'}\n\n"
		"INSTRUCCIONES:\n"
		"1. Evalúa la evidencia considerando las necesidades especiales y fortalezas del estudiante\n"
		"2. Proporciona una puntuación adaptada (60-100)\n"
		"3. Identifica el nivel de competencia alcanzado\n"
		"4. Analiza el estilo de aprendizaje predominante (visual, auditivo, kinestésico, lectoescritor)\n"
		"5. Genera estrategias pedagógicas específicas y detalladas para el docente\n"
		"6. Incluye técnicas de enseñanza adaptadas al modo de aprendizaje identificado\n"
		"7. Proporciona actividades concretas y recursos educativos recomendados\n\n"
		"Responde ÚNICAMENTE con un objeto JSON con estas claves:\n"
		"{\n"
		'  "adaptedScore": número entre 60 y 100,\n'
		f'  "competencyLevel": uno de {" | ".join(COMPETENCY_LEVELS)},\n'
		f'  "learningStyle": uno de {" | ".join(LEARNING_STYLES)},\n'
		'  "identifiedStrengths": "fortalezas observadas",\n'
		'  "improvementAreas": "áreas que requieren mayor apoyo",\n'
		'  "successfulModalities": "modalidades de aprendizaje más efectivas",\n'
		'  "teachingStrategies": "al menos 3 estrategias concretas",\n'
		'  "recommendedActivities": "al menos 3 actividades",\n'
		'  "assessmentAdaptations": "adaptaciones para evaluaciones futuras",\n'
		'  "resourcesNeeded": "recursos materiales y digitales",\n'
		'  "classroomModifications": "modificaciones del aula",\n'
		'  "pedagogicalRecommendations": "resumen ejecutivo de las recomendaciones",\n'
		'  "suggestedAdaptations": "adaptaciones curriculares y metodológicas",\n'
		'  "evaluationJustification": "justificación de la evaluación",\n'
		'  "confidence": número entre 0 y 1\n'
		"}"
	)


def strip_code_fences(text: str) -> str:
	return re.sub(r"```json|```", "", text or "").strip()


def _score(value: Any) -> int:
	try:
		score = float(value)
	except (TypeError, ValueError):
		return DEFAULT_SCORE
	if not math.isfinite(score):
		return DEFAULT_SCORE
	score = int(round(score))
	return max(0, min(100, score))


def _confidence(value: Any) -> float:
	try:
		conf = float(value)
	except (TypeError, ValueError):
		return DEFAULT_CONFIDENCE
	if not math.isfinite(conf):
		return DEFAULT_CONFIDENCE
	if conf > 1:
		# Some models answer on a 0-100 scale
		conf = conf / 100
	return max(0.0, min(1.0, conf))


def parse_evidence_analysis(content: str, *, rng: Optional[random.Random] = None) -> Dict[str, Any]:
	try:
		parsed = json.loads(strip_code_fences(content))
		if not isinstance(parsed, dict):
			raise ValueError("analysis is not a JSON object")
	except ValueError as err:
		logger.warning("Could not parse AI analysis (%s); using heuristic analysis", err)
		return fallback_analysis(rng=rng)

	result: Dict[str, Any] = {}
	for key, column in FIELD_MAP.items():
		value = parsed.get(key)
		result[column] = "" if value is None else str(value)
	result["adapted_score"] = _score(parsed.get("adaptedScore")) if parsed.get("adaptedScore") else DEFAULT_SCORE
	result["competency_level"] = result["competency_level"] or DEFAULT_LEVEL
	result["learning_style"] = result["learning_style"] or DEFAULT_STYLE
	result["confidence"] = _confidence(parsed.get("confidence")) if parsed.get("confidence") else DEFAULT_CONFIDENCE
	result["is_fallback"] = False
	return result


# Placeholder phrases keyed by learning style; other styles read as lectoescritor
_STYLE_TEXT: Dict[str, Dict[str, str]] = {
	"visual": {
		"strength": "excelente comprensión visual y capacidad de organización espacial",
		"improve": "habilidades de expresión oral y participación en discusiones grupales",
		"modality": "que incorporan diagramas, mapas conceptuales, infografías y organizadores gráficos",
		"activity": "creación de infografías y mapas conceptuales sobre los contenidos clave",
		"assessment": "presentaciones con apoyo gráfico, diagramas explicativos y portafolios visuales",
		"resources": "software de creación gráfica, proyector, materiales de arte y tabletas con apps educativas",
		"classroom": "paredes con material visual, asientos orientados hacia elementos gráficos e iluminación óptima",
	},
	"auditivo": {
		"strength": "habilidades destacadas en comunicación oral y procesamiento auditivo",
		"improve": "técnicas de organización visual y toma de notas estructuradas",
		"modality": "que incluyen explicaciones verbales, discusiones, música y elementos sonoros",
		"activity": "podcast educativo donde explique conceptos clave y entreviste a compañeros",
		"assessment": "exámenes orales, presentaciones verbales y participación en debates",
		"resources": "sistema de audio, micrófonos, software de grabación y auriculares",
		"classroom": "disposición circular para discusiones, control de ruido y rincones silenciosos",
	},
	"kinestésico": {
		"strength": "aprendizaje efectivo a través de experiencias prácticas y manipulación de materiales",
		"improve": "concentración en actividades sedentarias y seguimiento de instrucciones escritas",
		"modality": "que involucran movimiento, manipulación de objetos, experimentos y trabajo de campo",
		"activity": "construcción de maquetas, experimentos prácticos o dramatizaciones",
		"assessment": "demostraciones prácticas, construcción de proyectos y experimentos",
		"resources": "materiales manipulativos, herramientas de laboratorio y kits de construcción",
		"classroom": "mobiliario móvil, áreas para trabajo práctico y asientos alternativos",
	},
	"lectoescritor": {
		"strength": "competencias sólidas en lectura comprensiva y expresión escrita",
		"improve": "participación en actividades prácticas y colaborativas",
		"modality": "que combinan lectura, escritura, investigación y análisis de textos",
		"activity": "ensayos analíticos, diarios de aprendizaje y síntesis escritas",
		"assessment": "ensayos reflexivos, análisis escritos y portafolios textuales",
		"resources": "biblioteca de aula, bases de datos digitales y procesadores de texto",
		"classroom": "rincones de lectura, espacios individuales para escritura y acceso a textos",
	},
}


def _style_text(style: str, key: str) -> str:
	return _STYLE_TEXT.get(style.lower(), _STYLE_TEXT["lectoescritor"])[key]


def level_for_score(score: int) -> str:
	if score >= 90:
		return "Avanzado"
	if score >= 80:
		return "Competente"
	if score >= 70:
		return "En desarrollo"
	return "Iniciando"


def fallback_analysis(*, rng: Optional[random.Random] = None) -> Dict[str, Any]:
	rng = rng or random.Random()
	score = 70 + rng.randrange(25)
	style = rng.choice(LEARNING_STYLES)
	level = level_for_score(score)
	s = style.lower()
	return {
		"adapted_score": score,
		"competency_level": level,
		"learning_style": style,
		"identified_strengths": (
			f"El estudiante demuestra {_style_text(style, 'strength')}. "
			"Muestra creatividad en sus producciones y capacidad de análisis adecuada para su nivel."
		),
		"improvement_areas": (
			f"Se recomienda fortalecer {_style_text(style, 'improve')}. "
			"Trabajar en la autorregulación del aprendizaje y en estrategias metacognitivas."
		),
		"successful_modalities": f"Responde especialmente bien a actividades {_style_text(style, 'modality')}.",
		"teaching_strategies": (
			f"1. Priorizar actividades acordes al estilo {s}. "
			"2. Proporcionar múltiples vías de acceso al contenido. "
			"3. Diseñar evaluaciones que permitan demostrar el aprendizaje en su modalidad preferida."
		),
		"recommended_activities": (
			f"1. {_style_text(style, 'activity').capitalize()}. "
			"2. Trabajo en equipos heterogéneos donde aporte desde sus fortalezas. "
			"3. Reflexión guiada sobre sus procesos de aprendizaje."
		),
		"assessment_adaptations": (
			f"Evaluación multimodal que incluya {_style_text(style, 'assessment')}. "
			"Permitir elegir el formato y dar tiempo adicional si es necesario."
		),
		"resources_needed": f"Recursos esenciales: {_style_text(style, 'resources')}.",
		"classroom_modifications": f"Ambiente físico: {_style_text(style, 'classroom')}.",
		"pedagogical_recommendations": (
			f"Implementar pedagogía diferenciada centrada en el estilo {s}, fortaleciendo sus competencias "
			"naturales mientras desarrolla gradualmente otras modalidades."
		),
		"suggested_adaptations": (
			f"Curriculares: privilegiar la modalidad {s}. Evaluativas: ofrecer múltiples formatos. "
			"Temporales: permitir tiempos flexibles según la complejidad de la tarea."
		),
		"evaluation_justification": (
			f"La puntuación de {score}/100 refleja el nivel actual de competencia considerando el perfil {s}. "
			f'El nivel "{level}" indica capacidad de progresión con apoyo pedagógico apropiado.'
		),
		"confidence": FALLBACK_CONFIDENCE,
		"is_fallback": True,
	}


async def analyze_evidence(
	client: LLMClient,
	*,
	evidence_type: str,
	subject: str,
	extracted_text: Optional[str] = None,
	content: Optional[str] = None,
	rubric: Optional[str] = None,
	competencies: Optional[str] = None,
	student_profile: Optional[Dict[str, Any]] = None,
	teacher_perspective: Optional[Dict[str, Any]] = None,
) -> Tuple[Dict[str, Any], AIResponse, str]:
	"""Run one analysis; returns (analysis fields, raw provider response, prompt).

	Provider errors propagate as ``AIProviderError``.
	"""
	prompt = build_evidence_prompt(
		evidence_type=evidence_type,
		subject=subject,
		extracted_text=extracted_text,
		content=content,
		rubric=rubric,
		competencies=competencies,
		student_profile=student_profile,
		teacher_perspective=teacher_perspective,
	)
	response = await client.generate(prompt, max_tokens=2000, temperature=0.7)
	analysis = parse_evidence_analysis(response.content)
	return analysis, response, prompt
