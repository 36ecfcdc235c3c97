from __future__ import annotations
import logging
import math
from typing import Dict, Iterable, List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from .auth import get_current_teacher
from ..db import get_db
from ..models import Evidence, LearningProfile, Student, Teacher
from ..schemas import ModalityShare, StatsOut

router = APIRouter(prefix="/api", tags=["stats"])

logger = logging.getLogger(__name__)

MODALITIES = ("Visual", "Auditivo", "Kinestésico", "Lecto-escritura")

# Unrecognised (multimodal) patterns are spread over the first three modalities
_UNMATCHED_SPLIT = {"Visual": 0.3, "Auditivo": 0.3, "Kinestésico": 0.4}


def _round_half_up(value: float) -> int:
	return int(math.floor(value + 0.5))


def classify_pattern(pattern: Optional[str]) -> Optional[str]:
	text = (pattern or "").lower()
	if "visual" in text:
		return "Visual"
	if "auditiv" in text:
		return "Auditivo"
	if "kinest" in text or "táctil" in text or "prácti" in text:
		return "Kinestésico"
	if "lect" in text or "escrit" in text:
		return "Lecto-escritura"
	return None


def modality_breakdown(patterns: Iterable[Optional[str]]) -> Optional[List[ModalityShare]]:
	patterns = list(patterns)
	if not patterns:
		return None
	counts: Dict[str, float] = {name: 0.0 for name in MODALITIES}
	for pattern in patterns:
		modality = classify_pattern(pattern)
		if modality is None:
			for name, share in _UNMATCHED_SPLIT.items():
				counts[name] += share
		else:
			counts[modality] += 1
	total = sum(counts.values())
	shares = [
		ModalityShare(name=name, percentage=_round_half_up(count / total * 100))
		for name, count in counts.items()
	]
	return [s for s in shares if s.percentage > 0]


@router.get("/stats", response_model=StatsOut)
async def dashboard_stats(teacher: Teacher = Depends(get_current_teacher), db: Session = Depends(get_db)):
	student_ids = [row.id for row in db.query(Student.id).filter(Student.teacher_id == teacher.id)]
	total_evidence = 0
	analyzed = 0
	patterns: List[Optional[str]] = []
	if student_ids:
		evidence_q = db.query(Evidence).filter(Evidence.student_id.in_(student_ids))
		total_evidence = evidence_q.count()
		analyzed = evidence_q.filter(Evidence.is_analyzed.is_(True)).count()
		patterns = [
			row.dominant_learning_pattern
			for row in db.query(LearningProfile.dominant_learning_pattern).filter(
				LearningProfile.student_id.in_(student_ids)
			)
		]
	profiles = 0
	if student_ids:
		profiles = (
			db.query(func.count(func.distinct(LearningProfile.student_id)))
			.filter(LearningProfile.student_id.in_(student_ids))
			.scalar()
		) or 0
	progress = _round_half_up(analyzed / total_evidence * 100) if total_evidence else 0
	logger.debug("Stats for teacher %s: %d students, %d/%d analyzed", teacher.id, len(student_ids), analyzed, total_evidence)
	return StatsOut(
		total_students=len(student_ids),
		total_evidence=total_evidence,
		analyzed_evidence=analyzed,
		profiles_generated=profiles,
		pending_review=total_evidence - analyzed,
		analysis_progress=progress,
		modality_breakdown=modality_breakdown(patterns) if profiles else None,
	)
