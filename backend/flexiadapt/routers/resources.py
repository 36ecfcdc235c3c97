from __future__ import annotations
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.orm import Session

from ..ai_client import LLMClient, get_llm_client
from ..documents import UploadRejected, delete_file, process_document, read_upload, save_upload
from ..resource_generator import generate_resources
from .auth import get_current_teacher
from .evidence import get_visible_evidence
from .students import get_owned_student
from ..db import get_db
from ..models import AnalysisResult, Teacher
from ..schemas import DocumentType, ResourceRequest, ResourcesResponse, TeacherDocumentResponse

router = APIRouter(prefix="/api", tags=["resources"])

logger = logging.getLogger(__name__)


@router.post("/students/{student_id}/ai-generate-resources", response_model=ResourcesResponse)
async def generate_student_resources(
	student_id: str,
	payload: Optional[ResourceRequest] = None,
	teacher: Teacher = Depends(get_current_teacher),
	db: Session = Depends(get_db),
	client: LLMClient = Depends(get_llm_client),
):
	"""Ask the model for three resources, seeded from an analysis when one is named."""
	get_owned_student(db, student_id, teacher)
	payload = payload or ResourceRequest()
	context = {
		"competency_level": payload.difficulty or "medium",
		"identified_strengths": "",
		"improvement_areas": "",
		"subject": payload.subject or "general",
	}
	if payload.based_on_evidence_id:
		evidence = get_visible_evidence(db, payload.based_on_evidence_id, teacher)
		if evidence.student_id != student_id:
			raise HTTPException(status_code=404, detail="Evidence not found for this student")
		analysis = db.query(AnalysisResult).filter(AnalysisResult.evidence_id == evidence.id).first()
		if analysis is not None:
			context.update(
				competency_level=analysis.competency_level,
				identified_strengths=analysis.identified_strengths,
				improvement_areas=analysis.improvement_areas,
			)
		if not payload.subject:
			context["subject"] = evidence.subject
	resources = await generate_resources(client, **context)
	logger.info("Generated %d resources for student %s", len(resources), student_id)
	return {"resources": resources}


@router.post("/teacher-documents/upload", status_code=201, response_model=TeacherDocumentResponse)
async def upload_teacher_document(
	document: Optional[UploadFile] = File(None),
	document_type: DocumentType = Form("other"),
	title: Optional[str] = Form(None),
	student_id: Optional[str] = Form(None),
	teacher: Teacher = Depends(get_current_teacher),
	db: Session = Depends(get_db),
	client: LLMClient = Depends(get_llm_client),
):
	if document is None or not document.filename:
		raise HTTPException(status_code=400, detail="No file uploaded")
	if student_id:
		get_owned_student(db, student_id, teacher)
	path = None
	try:
		data = await read_upload(document)
		path = save_upload(f"teacher-{teacher.id}", document.filename, data)
		processed = await process_document(client, path, document.filename, document_type)
	except UploadRejected as err:
		delete_file(str(path) if path else None)
		raise HTTPException(status_code=400, detail=str(err))
	return {
		"message": "Document uploaded and processed successfully",
		"document": {
			"file_name": processed.original_name,
			"document_type": processed.document_type,
			"title": title,
			"student_id": student_id,
			"mime_type": processed.mime_type,
			"file_size": processed.file_size,
			"page_count": processed.page_count,
			"extracted_text": processed.extracted_text,
			"processed_content": processed.processed_content,
			"processing_time": processed.processing_time,
		},
	}
