from __future__ import annotations
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from .auth import get_current_teacher
from ..db import get_db
from ..documents import delete_file
from ..models import (
	AIAnalysisHistory,
	AnalysisResult,
	ChatMessage,
	Evidence,
	LearningProfile,
	Student,
	StudentChat,
	Teacher,
	TeacherPerspective,
)
from ..schemas import (
	PerspectiveFields,
	PerspectiveOut,
	StudentCreate,
	StudentOut,
	StudentUpdate,
)

router = APIRouter(prefix="/api/students", tags=["students"])

logger = logging.getLogger(__name__)

_NO_CACHE = {"Cache-Control": "no-cache, no-store, must-revalidate", "Pragma": "no-cache", "Expires": "0"}


def get_owned_student(db: Session, student_id: str, teacher: Teacher) -> Student:
	student = db.get(Student, student_id)
	if student is None:
		raise HTTPException(status_code=404, detail="Student not found")
	if student.teacher_id != teacher.id:
		raise HTTPException(status_code=403, detail="You do not have access to this student")
	return student


@router.get("", response_model=List[StudentOut])
async def list_students(response: Response, teacher: Teacher = Depends(get_current_teacher), db: Session = Depends(get_db)):
	response.headers.update(_NO_CACHE)
	return (
		db.query(Student)
		.filter(Student.teacher_id == teacher.id)
		.order_by(Student.created_at)
		.all()
	)


@router.post("", status_code=201, response_model=StudentOut)
async def create_student(req: StudentCreate, teacher: Teacher = Depends(get_current_teacher), db: Session = Depends(get_db)):
	student = Student(teacher_id=teacher.id, **req.model_dump())
	db.add(student)
	db.commit()
	db.refresh(student)
	logger.info("Teacher %s created student %s", teacher.id, student.id)
	return student


@router.get("/{student_id}", response_model=StudentOut)
async def get_student(student_id: str, teacher: Teacher = Depends(get_current_teacher), db: Session = Depends(get_db)):
	return get_owned_student(db, student_id, teacher)


@router.put("/{student_id}", response_model=StudentOut)
async def update_student(
	student_id: str,
	req: StudentUpdate,
	teacher: Teacher = Depends(get_current_teacher),
	db: Session = Depends(get_db),
):
	student = get_owned_student(db, student_id, teacher)
	for field, value in req.model_dump(exclude_unset=True).items():
		setattr(student, field, value)
	db.add(student)
	db.commit()
	db.refresh(student)
	return student


@router.delete("/{student_id}", status_code=204)
async def delete_student(student_id: str, teacher: Teacher = Depends(get_current_teacher), db: Session = Depends(get_db)):
	student = get_owned_student(db, student_id, teacher)
	# Dependents first; the foreign keys are not declared with cascades
	chat_ids = [c.id for c in db.query(StudentChat.id).filter(StudentChat.student_id == student_id)]
	if chat_ids:
		db.query(ChatMessage).filter(ChatMessage.chat_id.in_(chat_ids)).delete(synchronize_session=False)
		db.query(StudentChat).filter(StudentChat.id.in_(chat_ids)).delete(synchronize_session=False)
	evidence = db.query(Evidence).filter(Evidence.student_id == student_id).all()
	evidence_ids = [e.id for e in evidence]
	if evidence_ids:
		db.query(AIAnalysisHistory).filter(AIAnalysisHistory.evidence_id.in_(evidence_ids)).delete(synchronize_session=False)
		db.query(AnalysisResult).filter(AnalysisResult.evidence_id.in_(evidence_ids)).delete(synchronize_session=False)
		db.query(Evidence).filter(Evidence.id.in_(evidence_ids)).delete(synchronize_session=False)
	db.query(LearningProfile).filter(LearningProfile.student_id == student_id).delete(synchronize_session=False)
	db.query(TeacherPerspective).filter(TeacherPerspective.student_id == student_id).delete(synchronize_session=False)
	db.delete(student)
	db.commit()
	for ev in evidence:
		delete_file(ev.file_path)
	logger.info("Deleted student %s with %d evidence records", student_id, len(evidence_ids))
	return Response(status_code=204)


# ---- Teacher perspective (one per student) ----

def _get_perspective(db: Session, student_id: str) -> TeacherPerspective | None:
	return db.query(TeacherPerspective).filter(TeacherPerspective.student_id == student_id).first()


@router.get("/{student_id}/perspective", response_model=PerspectiveOut)
async def get_perspective(student_id: str, teacher: Teacher = Depends(get_current_teacher), db: Session = Depends(get_db)):
	get_owned_student(db, student_id, teacher)
	perspective = _get_perspective(db, student_id)
	if perspective is None:
		raise HTTPException(status_code=404, detail="Teacher perspective not found")
	return perspective


@router.post("/{student_id}/perspective", status_code=201, response_model=PerspectiveOut)
async def create_perspective(
	student_id: str,
	req: PerspectiveFields,
	teacher: Teacher = Depends(get_current_teacher),
	db: Session = Depends(get_db),
):
	get_owned_student(db, student_id, teacher)
	if _get_perspective(db, student_id) is not None:
		raise HTTPException(status_code=409, detail="Teacher perspective already exists")
	perspective = TeacherPerspective(student_id=student_id, **req.model_dump())
	db.add(perspective)
	db.commit()
	db.refresh(perspective)
	return perspective


@router.put("/{student_id}/perspective", response_model=PerspectiveOut)
async def update_perspective(
	student_id: str,
	req: PerspectiveFields,
	teacher: Teacher = Depends(get_current_teacher),
	db: Session = Depends(get_db),
):
	get_owned_student(db, student_id, teacher)
	perspective = _get_perspective(db, student_id)
	if perspective is None:
		raise HTTPException(status_code=404, detail="Teacher perspective not found")
	for field, value in req.model_dump(exclude_unset=True).items():
		setattr(perspective, field, value)
	db.add(perspective)
	db.commit()
	db.refresh(perspective)
	return perspective
