from __future__ import annotations
import json
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from ..ai_client import LLMClient, get_llm_client
from ..analysis_engine import analyze_evidence
from .auth import get_current_teacher
from .evidence import get_visible_evidence
from ..db import get_db
from ..models import AIAnalysisHistory, AnalysisResult, Evidence, Student, Teacher, TeacherPerspective
from ..schemas import AnalysisCreate, AnalysisHistoryOut, AnalysisOut, AnalysisUpdate

router = APIRouter(prefix="/api", tags=["analysis"])

logger = logging.getLogger(__name__)

_STUDENT_FIELDS = ("name", "age", "grade", "main_subjects", "special_needs")
_PERSPECTIVE_SKIP = {"id", "student_id", "created_at", "updated_at"}


def _existing_analysis(db: Session, evidence_id: str) -> AnalysisResult | None:
	return db.query(AnalysisResult).filter(AnalysisResult.evidence_id == evidence_id).first()


def _conflict(existing: AnalysisResult) -> HTTPException:
	return HTTPException(
		status_code=409,
		detail={
			"message": "Analysis already exists",
			"analysis": AnalysisOut.model_validate(existing).model_dump(mode="json"),
		},
	)


def _student_context(db: Session, student_id: str):
	student = db.get(Student, student_id)
	student_info = {f: getattr(student, f) for f in _STUDENT_FIELDS} if student else None
	perspective = db.query(TeacherPerspective).filter(TeacherPerspective.student_id == student_id).first()
	perspective_info = None
	if perspective is not None:
		perspective_info = {
			c.name: getattr(perspective, c.name)
			for c in TeacherPerspective.__table__.columns
			if c.name not in _PERSPECTIVE_SKIP and getattr(perspective, c.name) not in (None, "")
		}
	return student_info, perspective_info


@router.post("/evidence/{evidence_id}/analyze", status_code=201, response_model=AnalysisOut)
async def analyze(
	evidence_id: str,
	teacher: Teacher = Depends(get_current_teacher),
	db: Session = Depends(get_db),
	client: LLMClient = Depends(get_llm_client),
):
	evidence = get_visible_evidence(db, evidence_id, teacher)
	existing = _existing_analysis(db, evidence_id)
	if existing is not None:
		raise _conflict(existing)
	student_info, perspective_info = _student_context(db, evidence.student_id)
	request_data = {
		"evidence_type": evidence.evidence_type,
		"subject": evidence.subject,
		"extracted_text": evidence.extracted_text,
		"content": evidence.original_instructions or evidence.file_name,
		"rubric": evidence.standard_rubric,
		"competencies": evidence.evaluated_competencies,
		"student_profile": student_info,
		"teacher_perspective": perspective_info,
	}
	fields, ai_response, _prompt = await analyze_evidence(client, **request_data)
	if fields["is_fallback"]:
		logger.warning("Stored heuristic analysis for evidence %s (unparseable model output)", evidence_id)
	result = AnalysisResult(evidence_id=evidence_id, ai_model=ai_response.model, **fields)
	db.add(result)
	evidence.is_analyzed = True
	db.add(evidence)
	db.add(
		AIAnalysisHistory(
			evidence_id=evidence_id,
			teacher_id=teacher.id,
			analysis_request=json.dumps(request_data, ensure_ascii=False, default=str),
			analysis_response=json.dumps(fields, ensure_ascii=False),
			processing_time=ai_response.processing_time_ms,
			ai_model=ai_response.model,
			tokens_used=ai_response.tokens_used,
			confidence=fields.get("confidence"),
		)
	)
	db.commit()
	db.refresh(result)
	logger.info("Analysis completed for evidence %s (%s)", evidence_id, ai_response.model)
	return result


@router.get("/evidence/{evidence_id}/ai-history", response_model=List[AnalysisHistoryOut])
async def analysis_history(evidence_id: str, teacher: Teacher = Depends(get_current_teacher), db: Session = Depends(get_db)):
	get_visible_evidence(db, evidence_id, teacher)
	return (
		db.query(AIAnalysisHistory)
		.filter(AIAnalysisHistory.evidence_id == evidence_id)
		.order_by(AIAnalysisHistory.created_at.desc())
		.all()
	)


@router.get("/analysis-results/{evidence_id}", response_model=AnalysisOut)
async def get_analysis(evidence_id: str, teacher: Teacher = Depends(get_current_teacher), db: Session = Depends(get_db)):
	get_visible_evidence(db, evidence_id, teacher)
	result = _existing_analysis(db, evidence_id)
	if result is None:
		raise HTTPException(status_code=404, detail="Analysis result not found")
	return result


@router.post("/analysis-results", status_code=201, response_model=AnalysisOut)
async def create_analysis(req: AnalysisCreate, teacher: Teacher = Depends(get_current_teacher), db: Session = Depends(get_db)):
	evidence = get_visible_evidence(db, req.evidence_id, teacher)
	existing = _existing_analysis(db, req.evidence_id)
	if existing is not None:
		raise _conflict(existing)
	result = AnalysisResult(ai_model="manual", **req.model_dump())
	db.add(result)
	evidence.is_analyzed = True
	db.add(evidence)
	db.commit()
	db.refresh(result)
	return result


def _owned_analysis(db: Session, analysis_id: str, teacher: Teacher) -> AnalysisResult:
	result = db.get(AnalysisResult, analysis_id)
	if result is None:
		raise HTTPException(status_code=404, detail="Analysis result not found")
	get_visible_evidence(db, result.evidence_id, teacher)
	return result


@router.put("/analysis-results/{analysis_id}", response_model=AnalysisOut)
async def update_analysis(
	analysis_id: str,
	req: AnalysisUpdate,
	teacher: Teacher = Depends(get_current_teacher),
	db: Session = Depends(get_db),
):
	result = _owned_analysis(db, analysis_id, teacher)
	for field, value in req.model_dump(exclude_unset=True).items():
		setattr(result, field, value)
	db.add(result)
	db.commit()
	db.refresh(result)
	return result


@router.delete("/analysis-results/{analysis_id}", status_code=204)
async def delete_analysis(analysis_id: str, teacher: Teacher = Depends(get_current_teacher), db: Session = Depends(get_db)):
	result = _owned_analysis(db, analysis_id, teacher)
	evidence = db.get(Evidence, result.evidence_id)
	if evidence is not None:
		evidence.is_analyzed = False
		db.add(evidence)
	db.delete(result)
	db.commit()
	return Response(status_code=204)
