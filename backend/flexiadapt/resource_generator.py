"""Personalised teaching resources generated from an analysis summary.

The model is asked for a JSON array of resources. Anything that does not
parse is returned verbatim as a single generic "material" resource.
"""
from __future__ import annotations
import json
import logging
import math
from typing import Any, Dict, List, Optional

from .ai_client import LLMClient
from .analysis_engine import strip_code_fences

logger = logging.getLogger(__name__)

RESOURCE_TYPES = ("task", "exercise", "material", "strategy")
DIFFICULTIES = ("easy", "medium", "hard")

FALLBACK_TITLE = "Recurso Generado"
FALLBACK_MINUTES = 30


def build_resource_prompt(
	*,
	competency_level: str,
	identified_strengths: str,
	improvement_areas: str,
	subject: str,
) -> str:
	return (
		"Genera 3 recursos educativos personalizados basados en el siguiente análisis de aprendizaje.\n\n"
		"ANÁLISIS DEL ESTUDIANTE:\n"
		f"- Nivel de competencia: {competency_level}\n"
		f"- Fortalezas identificadas: {identified_strengths}\n"
		f"- Áreas de mejora: {improvement_areas}\n"
		f"- Asignatura: {subject}\n\n"
		"INSTRUCCIONES:\n"
		"1. Crea 3 recursos diferentes: una tarea práctica, un ejercicio de refuerzo, y material de apoyo\n"
		"2. Adapta cada recurso al nivel y necesidades identificadas\n"
		"3. Incluye instrucciones claras y objetivos específicos\n"
		"4. Considera las fortalezas para motivar y las áreas de mejora para desarrollar\n\n"
		"Responde ÚNICAMENTE con un array JSON de 3 objetos:\n"
		"[\n"
		"  {\n"
		'    "title": "título del recurso",\n'
		'    "content": "contenido completo del recurso con instrucciones detalladas",\n'
		'    "resourceType": "task | exercise | material",\n'
		'    "difficulty": "easy | medium | hard",\n'
		'    "tags": ["tag1", "tag2", "tag3"],\n'
		'    "estimatedTime": tiempo estimado en minutos\n'
		"  }\n"
		"]"
	)


def fallback_resource(content: str) -> Dict[str, Any]:
	return {
		"title": FALLBACK_TITLE,
		"content": content,
		"resource_type": "material",
		"difficulty": "medium",
		"tags": ["adaptativo"],
		"estimated_time": FALLBACK_MINUTES,
	}


def _minutes(value: Any) -> Optional[int]:
	try:
		minutes = float(value)
	except (TypeError, ValueError):
		return None
	if not math.isfinite(minutes) or minutes <= 0:
		return None
	return int(round(minutes))


def _resource(item: Dict[str, Any]) -> Dict[str, Any]:
	resource_type = str(item.get("resourceType") or "").lower()
	difficulty = str(item.get("difficulty") or "").lower()
	tags = item.get("tags")
	return {
		"title": str(item.get("title") or FALLBACK_TITLE),
		"content": str(item.get("content") or ""),
		"resource_type": resource_type if resource_type in RESOURCE_TYPES else "material",
		"difficulty": difficulty if difficulty in DIFFICULTIES else "medium",
		"tags": [str(t) for t in tags] if isinstance(tags, list) else [],
		"estimated_time": _minutes(item.get("estimatedTime")),
	}


def parse_resources(content: str) -> List[Dict[str, Any]]:
	try:
		parsed = json.loads(strip_code_fences(content))
	except ValueError as err:
		logger.warning("Could not parse generated resources (%s); returning raw text", err)
		return [fallback_resource(content)]
	items = parsed if isinstance(parsed, list) else [parsed]
	resources = [_resource(item) for item in items if isinstance(item, dict)]
	return resources or [fallback_resource(content)]


async def generate_resources(
	client: LLMClient,
	*,
	competency_level: str,
	identified_strengths: str = "",
	improvement_areas: str = "",
	subject: str = "general",
) -> List[Dict[str, Any]]:
	"""Provider errors propagate as ``AIProviderError``."""
	prompt = build_resource_prompt(
		competency_level=competency_level,
		identified_strengths=identified_strengths,
		improvement_areas=improvement_areas,
		subject=subject,
	)
	response = await client.generate(prompt, max_tokens=1500, temperature=0.8)
	return parse_resources(response.content)
