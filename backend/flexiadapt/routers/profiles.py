from __future__ import annotations
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..ai_client import LLMClient, get_llm_client
from .auth import get_current_teacher
from .students import get_owned_student
from ..db import get_db
from ..models import AnalysisResult, Evidence, LearningProfile, Teacher, TeacherPerspective
from ..profile_generator import generate_learning_profile
from ..schemas import GeneratedProfileResponse, ProfileFields, ProfileOut, ProfileUpdate

router = APIRouter(prefix="/api/students", tags=["learning_profile"])

logger = logging.getLogger(__name__)


def _get_profile(db: Session, student_id: str) -> LearningProfile | None:
	return db.query(LearningProfile).filter(LearningProfile.student_id == student_id).first()


@router.get("/{student_id}/learning-profile", response_model=ProfileOut)
async def get_profile(student_id: str, teacher: Teacher = Depends(get_current_teacher), db: Session = Depends(get_db)):
	get_owned_student(db, student_id, teacher)
	profile = _get_profile(db, student_id)
	if profile is None:
		raise HTTPException(status_code=404, detail="Learning profile not found")
	return profile


@router.post("/{student_id}/learning-profile", status_code=201, response_model=ProfileOut)
async def create_profile(
	student_id: str,
	req: ProfileFields,
	teacher: Teacher = Depends(get_current_teacher),
	db: Session = Depends(get_db),
):
	get_owned_student(db, student_id, teacher)
	if _get_profile(db, student_id) is not None:
		raise HTTPException(status_code=409, detail="Profile already exists")
	profile = LearningProfile(student_id=student_id, **req.model_dump())
	db.add(profile)
	db.commit()
	db.refresh(profile)
	return profile


@router.put("/{student_id}/learning-profile", response_model=ProfileOut)
async def update_profile(
	student_id: str,
	req: ProfileUpdate,
	teacher: Teacher = Depends(get_current_teacher),
	db: Session = Depends(get_db),
):
	get_owned_student(db, student_id, teacher)
	profile = _get_profile(db, student_id)
	if profile is None:
		raise HTTPException(status_code=404, detail="Profile not found")
	for field, value in req.model_dump(exclude_unset=True).items():
		setattr(profile, field, value)
	db.add(profile)
	db.commit()
	db.refresh(profile)
	return profile


@router.post("/{student_id}/generate-ai-profile", response_model=GeneratedProfileResponse)
async def generate_profile(
	student_id: str,
	teacher: Teacher = Depends(get_current_teacher),
	db: Session = Depends(get_db),
	client: LLMClient = Depends(get_llm_client),
):
	student = get_owned_student(db, student_id, teacher)
	analyses = (
		db.query(AnalysisResult)
		.join(Evidence, Evidence.id == AnalysisResult.evidence_id)
		.filter(Evidence.student_id == student_id, Evidence.is_analyzed.is_(True))
		.order_by(AnalysisResult.analysis_date)
		.all()
	)
	if not analyses:
		raise HTTPException(
			status_code=400,
			detail="Not enough analyses to build a profile: the student needs at least 1 analyzed evidence",
		)
	perspective = db.query(TeacherPerspective).filter(TeacherPerspective.student_id == student_id).first()
	logger.info("Generating learning profile for student %s from %d analyses", student_id, len(analyses))
	fields = await generate_learning_profile(client, student=student, perspective=perspective, analyses=analyses)
	profile = _get_profile(db, student_id)
	if profile is None:
		profile = LearningProfile(student_id=student_id, **fields)
	else:
		for field, value in fields.items():
			setattr(profile, field, value)
	db.add(profile)
	db.commit()
	db.refresh(profile)
	return GeneratedProfileResponse(
		message=f"Learning profile generated from {len(analyses)} analyses",
		profile=ProfileOut.model_validate(profile),
		analysis_count=len(analyses),
	)
