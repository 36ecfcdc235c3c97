from __future__ import annotations
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile as StarletteUploadFile

from .auth import get_current_teacher
from .students import get_owned_student
from ..db import get_db
from ..documents import (
	MAX_EXTRACTED_CHARS,
	UploadRejected,
	delete_file,
	evidence_type_for,
	extract_text,
	read_upload,
	save_upload,
	upload_root,
)
from ..models import AIAnalysisHistory, AnalysisResult, Evidence, Student, Teacher
from ..schemas import EvidenceCreate, EvidenceOut

router = APIRouter(prefix="/api", tags=["evidence"])

logger = logging.getLogger(__name__)

_NO_CACHE = {"Cache-Control": "no-cache, no-store, must-revalidate", "Pragma": "no-cache", "Expires": "0"}


def get_visible_evidence(db: Session, evidence_id: str, teacher: Teacher, *, owner_only: bool = False) -> Evidence:
	"""Evidence filed for an unknown student is readable by any teacher.

	With ``owner_only`` (destructive actions and file downloads) it must belong
	to one of the caller's students.
	"""
	evidence = db.get(Evidence, evidence_id)
	if evidence is None:
		raise HTTPException(status_code=404, detail="Evidence not found")
	student = db.get(Student, evidence.student_id)
	if student is None:
		if owner_only:
			raise HTTPException(status_code=403, detail="Evidence is not linked to one of your students")
	elif student.teacher_id != teacher.id:
		raise HTTPException(status_code=403, detail="You do not have access to this evidence")
	return evidence


@router.get("/evidence", response_model=List[EvidenceOut])
async def list_teacher_evidence(response: Response, teacher: Teacher = Depends(get_current_teacher), db: Session = Depends(get_db)):
	response.headers.update(_NO_CACHE)
	return (
		db.query(Evidence)
		.join(Student, Student.id == Evidence.student_id)
		.filter(Student.teacher_id == teacher.id)
		.order_by(Evidence.created_at.desc())
		.all()
	)


@router.get("/students/{student_id}/evidence", response_model=List[EvidenceOut])
async def list_student_evidence(
	student_id: str,
	response: Response,
	teacher: Teacher = Depends(get_current_teacher),
	db: Session = Depends(get_db),
):
	get_owned_student(db, student_id, teacher)
	response.headers.update(_NO_CACHE)
	return (
		db.query(Evidence)
		.filter(Evidence.student_id == student_id)
		.order_by(Evidence.created_at.desc())
		.all()
	)


async def _read_payload(request: Request) -> Tuple[Dict[str, Any], Optional[StarletteUploadFile]]:
	content_type = request.headers.get("content-type", "")
	if content_type.startswith("application/json"):
		try:
			payload = await request.json()
		except ValueError as err:
			raise RequestValidationError(
				[{"type": "json_invalid", "loc": ("body", 0), "msg": "JSON decode error", "input": {}, "ctx": {"error": str(err)}}]
			)
		if not isinstance(payload, dict):
			raise RequestValidationError(
				[{"type": "model_attributes_type", "loc": ("body",), "msg": "Input should be a valid dictionary", "input": payload}]
			)
		return payload, None
	form = await request.form()
	upload = None
	payload = {}
	for key, value in form.multi_items():
		if isinstance(value, StarletteUploadFile):
			if key == "file" and value.filename:
				upload = value
		elif value != "":
			payload[key] = value
	return payload, upload


@router.post("/students/{student_id}/evidence", status_code=201, response_model=EvidenceOut)
async def create_evidence(
	student_id: str,
	request: Request,
	teacher: Teacher = Depends(get_current_teacher),
	db: Session = Depends(get_db),
):
	"""Create evidence from a multipart form (optional ``file`` part) or a JSON body."""
	# No student lookup here: evidence can be filed ahead of the student record
	payload, upload = await _read_payload(request)
	if upload is not None:
		payload["evidence_type"] = evidence_type_for(upload.filename) or payload.get("evidence_type") or "texto"
	payload.setdefault("evidence_type", "texto")
	try:
		fields = EvidenceCreate.model_validate(payload)
	except ValidationError as err:
		raise RequestValidationError(err.errors())
	values = fields.model_dump(exclude={"content", "completion_date"})
	evidence = Evidence(student_id=student_id, **values)
	if fields.completion_date is not None:
		evidence.completion_date = fields.completion_date
	if upload is not None:
		try:
			data = await read_upload(upload)
			path = save_upload(student_id, upload.filename, data)
		except UploadRejected as err:
			raise HTTPException(status_code=400, detail=str(err))
		evidence.file_name = upload.filename
		evidence.file_path = str(path)
		evidence.file_size = len(data)
		evidence.extracted_text = extract_text(path)
	elif fields.content:
		evidence.extracted_text = fields.content.strip()[:MAX_EXTRACTED_CHARS]
	db.add(evidence)
	db.commit()
	db.refresh(evidence)
	logger.info("Created evidence %s for student %s", evidence.id, student_id)
	return evidence


@router.get("/evidence/{evidence_id}", response_model=EvidenceOut)
async def get_evidence(evidence_id: str, teacher: Teacher = Depends(get_current_teacher), db: Session = Depends(get_db)):
	return get_visible_evidence(db, evidence_id, teacher)


@router.delete("/evidence/{evidence_id}", status_code=204)
async def delete_evidence(evidence_id: str, teacher: Teacher = Depends(get_current_teacher), db: Session = Depends(get_db)):
	evidence = get_visible_evidence(db, evidence_id, teacher, owner_only=True)
	file_path = evidence.file_path
	db.query(AIAnalysisHistory).filter(AIAnalysisHistory.evidence_id == evidence_id).delete(synchronize_session=False)
	db.query(AnalysisResult).filter(AnalysisResult.evidence_id == evidence_id).delete(synchronize_session=False)
	db.delete(evidence)
	db.commit()
	delete_file(file_path)
	return Response(status_code=204)


@router.get("/evidence/{evidence_id}/file")
async def download_evidence_file(evidence_id: str, teacher: Teacher = Depends(get_current_teacher), db: Session = Depends(get_db)):
	evidence = get_visible_evidence(db, evidence_id, teacher, owner_only=True)
	if not evidence.file_path:
		raise HTTPException(status_code=404, detail="File not found")
	path = Path(evidence.file_path).resolve()
	if upload_root() not in path.parents or not path.is_file():
		raise HTTPException(status_code=404, detail="File not found")
	return FileResponse(path, filename=evidence.file_name or path.name)
