from __future__ import annotations
import logging
from typing import Any, List, Optional, Tuple

from sqlalchemy.orm import Session

from .ai_client import AIProviderError, LLMClient
from .models import AnalysisResult, Evidence, LearningProfile, Student, TeacherPerspective

logger = logging.getLogger(__name__)

NOT_RECORDED = "No registrado"


class StudentContext:
	def __init__(
		self,
		student: Student,
		evidence: List[Evidence],
		analyses: List[Tuple[Evidence, AnalysisResult]],
		perspective: Optional[TeacherPerspective],
		profile: Optional[LearningProfile],
	) -> None:
		self.student = student
		self.evidence = evidence
		self.analyses = analyses
		self.perspective = perspective
		self.profile = profile


def load_student_context(db: Session, student_id: str) -> Optional[StudentContext]:
	student = db.get(Student, student_id)
	if student is None:
		return None
	evidence = (
		db.query(Evidence)
		.filter(Evidence.student_id == student_id)
		.order_by(Evidence.created_at)
		.all()
	)
	analyses: List[Tuple[Evidence, AnalysisResult]] = []
	for ev in evidence:
		result = db.query(AnalysisResult).filter(AnalysisResult.evidence_id == ev.id).first()
		if result is not None:
			analyses.append((ev, result))
	perspective = db.query(TeacherPerspective).filter(TeacherPerspective.student_id == student_id).first()
	profile = db.query(LearningProfile).filter(LearningProfile.student_id == student_id).first()
	return StudentContext(student, evidence, analyses, perspective, profile)


def _or(value: Any, default: str = NOT_RECORDED) -> str:
	return str(value) if value not in (None, "") else default


def build_context_prompt(ctx: StudentContext, question: str) -> str:
	name = ctx.student.name
	parts = [
		"Eres un asistente educativo especializado en análisis pedagógico. "
		f"Te preguntarán sobre el estudiante {name}.",
		"",
		f"INFORMACIÓN DEL ESTUDIANTE {name.upper()}:",
		"",
		"PERFIL BÁSICO:",
		f"- Nombre: {name}",
		f"- Edad: {ctx.student.age} años",
		f"- Grado: {ctx.student.grade}",
		f"- Necesidades especiales: {_or(ctx.student.special_needs)}",
		f"- Número de evidencias registradas: {len(ctx.evidence)}",
		f"- Evidencias analizadas: {len(ctx.analyses)}",
		"",
	]
	p = ctx.perspective
	if p is not None:
		concentration = f"{p.concentration_time} minutos" if p.concentration_time else NOT_RECORDED
		parts += [
			"PERSPECTIVA DEL DOCENTE:",
			f"- Nivel de atención: {_or(p.attention_level)}",
			f"- Participación verbal: {_or(p.verbal_participation)}",
			f"- Interacción social: {_or(p.social_interaction)}",
			f"- Modalidad preferida: {_or(p.preferred_modality)}",
			f"- Tiempo de concentración: {concentration}",
			f"- Fortalezas observadas: {_or(p.observed_strengths)}",
			f"- Actividades exitosas: {_or(p.successful_activities)}",
			f"- Estrategias efectivas: {_or(p.effective_strategies)}",
			f"- Principales dificultades: {_or(p.main_difficulties)}",
			f"- Factores motivacionales: {_or(p.motivational_factors)}",
			"",
		]
	lp = ctx.profile
	if lp is not None:
		parts += [
			f"PERFIL DE APRENDIZAJE (basado en {len(ctx.analyses)} análisis):",
			f"- Patrón dominante: {lp.dominant_learning_pattern}",
			f"- Fortalezas cognitivas: {lp.cognitive_strengths}",
			f"- Desafíos de aprendizaje: {lp.learning_challenges}",
			f"- Factores motivacionales: {lp.motivational_factors}",
			f"- Cómo enseñarle: {lp.recommended_teaching_approaches}",
			f"- Cómo evaluarle: {lp.assessment_recommendations}",
			f"- Recursos y herramientas: {lp.resources_and_tools}",
			"",
		]
	else:
		parts += [
			"PERFIL DE APRENDIZAJE: No generado aún "
			f"(puede generarse a partir de las {len(ctx.analyses)} evidencias analizadas)",
			"",
		]
	if ctx.analyses:
		parts.append("ANÁLISIS DE EVIDENCIAS:")
		for index, (ev, result) in enumerate(ctx.analyses, start=1):
			parts += [
				"",
				f"EVIDENCIA {index}: {ev.task_title}",
				f"- Asignatura: {ev.subject}",
				f"- Tipo: {ev.evidence_type}",
				f"- Puntuación: {result.adapted_score}/100",
				f"- Nivel de competencia: {_or(result.competency_level, 'No evaluado')}",
				f"- Fortalezas identificadas: {_or(result.identified_strengths, 'No identificadas')}",
				f"- Áreas de mejora: {_or(result.improvement_areas, 'No identificadas')}",
				f"- Modalidades exitosas: {_or(result.successful_modalities, 'No identificadas')}",
				f"- Recomendaciones pedagógicas: {_or(result.pedagogical_recommendations, 'No disponibles')}",
				f"- Adaptaciones sugeridas: {_or(result.suggested_adaptations, 'No disponibles')}",
			]
		parts.append("")
	parts += [
		"===== INSTRUCCIONES PARA RESPUESTA =====",
		"",
		f"PREGUNTA DEL DOCENTE: {question}",
		"",
		f"Responde de forma directa y práctica, dirigiéndote específicamente a {name}.",
		"Prioriza cómo enseñarle y cómo evaluarle. Usa únicamente los datos proporcionados; "
		"si falta información, dilo brevemente y no inventes datos.",
		"Estructura tu respuesta en: CÓMO ENSEÑARLE, CÓMO EVALUARLE, ACCIÓN INMEDIATA.",
		"",
		f"RESPUESTA SOBRE {name}:",
	]
	return "\n".join(parts)


async def answer_question(client: LLMClient, ctx: StudentContext, question: str) -> str:
	prompt = build_context_prompt(ctx, question)
	try:
		response = await client.generate(prompt, max_tokens=1000, temperature=0.7)
	except AIProviderError as err:
		logger.error("Error generating chat response: %s", err)
		return f"Lo siento, hubo un error con el servicio de IA. Error: {err}"
	return response.content
