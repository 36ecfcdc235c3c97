from __future__ import annotations
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


EvidenceType = Literal["imagen", "documento", "audio", "video", "texto"]


class ORMModel(BaseModel):
	model_config = ConfigDict(from_attributes=True)


# ---- Teachers ----

class TeacherCreate(BaseModel):
	email: EmailStr
	password: str = Field(min_length=6)
	name: str = Field(min_length=1)
	last_name: str = Field(min_length=1)
	school: Optional[str] = None
	grade: Optional[str] = None
	subject: Optional[str] = None
	phone_number: Optional[str] = None


class LoginRequest(BaseModel):
	email: EmailStr
	password: str = Field(min_length=1)


class TeacherOut(ORMModel):
	id: str
	email: str
	name: str
	last_name: str
	school: Optional[str] = None
	grade: Optional[str] = None
	subject: Optional[str] = None
	phone_number: Optional[str] = None
	is_active: bool
	created_at: datetime
	last_login: Optional[datetime] = None


class LoginResponse(BaseModel):
	teacher: TeacherOut
	access_token: str
	token_type: str = "bearer"


# ---- Students ----

class StudentCreate(BaseModel):
	name: str = Field(min_length=1)
	age: int = Field(ge=3, le=20)
	grade: str = Field(min_length=1)
	main_subjects: str = Field(min_length=1)
	special_needs: Optional[str] = None


class StudentUpdate(BaseModel):
	name: Optional[str] = Field(default=None, min_length=1)
	age: Optional[int] = Field(default=None, ge=3, le=20)
	grade: Optional[str] = Field(default=None, min_length=1)
	main_subjects: Optional[str] = Field(default=None, min_length=1)
	special_needs: Optional[str] = None


class StudentOut(ORMModel):
	id: str
	teacher_id: str
	name: str
	age: int
	grade: str
	main_subjects: str
	special_needs: Optional[str] = None
	created_at: datetime
	updated_at: datetime


# ---- Teacher perspective ----

class PerspectiveFields(BaseModel):
	attention_level: Optional[str] = None
	verbal_participation: Optional[str] = None
	social_interaction: Optional[str] = None
	preferred_modality: Optional[str] = None
	concentration_time: Optional[int] = Field(default=None, gt=0)
	instruction_needs: Optional[str] = None
	observed_strengths: Optional[str] = None
	successful_activities: Optional[str] = None
	effective_strategies: Optional[str] = None
	main_difficulties: Optional[str] = None
	conflictive_situations: Optional[str] = None
	previous_adaptations: Optional[str] = None
	preferred_expression: Optional[str] = None
	motivational_factors: Optional[str] = None
	behavior_observations: Optional[str] = None
	identified_strengths: Optional[str] = None
	observed_challenges: Optional[str] = None
	successful_strategies: Optional[str] = None
	detected_patterns: Optional[str] = None
	additional_observations: Optional[str] = None


class PerspectiveOut(PerspectiveFields):
	model_config = ConfigDict(from_attributes=True)
	id: str
	student_id: str
	created_at: datetime
	updated_at: datetime


# ---- Evidence ----

class EvidenceCreate(BaseModel):
	task_title: str = Field(min_length=1)
	subject: str = Field(min_length=1)
	evidence_type: EvidenceType = "texto"
	completion_date: Optional[datetime] = None
	standard_rubric: str = Field(min_length=1)
	evaluated_competencies: str = Field(min_length=1)
	original_instructions: str = Field(min_length=1)
	time_spent: Optional[int] = Field(default=None, gt=0)
	reported_difficulties: Optional[str] = None
	# Inline content for "texto" evidence submitted without a file
	content: Optional[str] = None


class EvidenceOut(ORMModel):
	id: str
	student_id: str
	task_title: str
	subject: str
	completion_date: Optional[datetime] = None
	evidence_type: str
	file_name: Optional[str] = None
	file_size: Optional[int] = None
	standard_rubric: str
	evaluated_competencies: str
	original_instructions: str
	time_spent: Optional[int] = None
	reported_difficulties: Optional[str] = None
	extracted_text: Optional[str] = None
	is_analyzed: bool
	created_at: datetime


# ---- Analysis ----

class AnalysisFields(BaseModel):
	adapted_score: int = Field(ge=0, le=100)
	competency_level: str = Field(min_length=1)
	learning_style: Optional[str] = None
	identified_strengths: str = Field(min_length=1)
	improvement_areas: str = Field(min_length=1)
	successful_modalities: str = Field(min_length=1)
	teaching_strategies: Optional[str] = None
	recommended_activities: Optional[str] = None
	assessment_adaptations: Optional[str] = None
	resources_needed: Optional[str] = None
	classroom_modifications: Optional[str] = None
	pedagogical_recommendations: str = Field(min_length=1)
	suggested_adaptations: str = Field(min_length=1)
	evaluation_justification: str = Field(min_length=1)
	confidence: Optional[float] = Field(default=None, ge=0, le=1)


class AnalysisCreate(AnalysisFields):
	evidence_id: str = Field(min_length=1)


class AnalysisUpdate(BaseModel):
	adapted_score: Optional[int] = Field(default=None, ge=0, le=100)
	competency_level: Optional[str] = Field(default=None, min_length=1)
	learning_style: Optional[str] = None
	identified_strengths: Optional[str] = None
	improvement_areas: Optional[str] = None
	successful_modalities: Optional[str] = None
	teaching_strategies: Optional[str] = None
	recommended_activities: Optional[str] = None
	assessment_adaptations: Optional[str] = None
	resources_needed: Optional[str] = None
	classroom_modifications: Optional[str] = None
	pedagogical_recommendations: Optional[str] = None
	suggested_adaptations: Optional[str] = None
	evaluation_justification: Optional[str] = None


class AnalysisOut(ORMModel):
	id: str
	evidence_id: str
	adapted_score: int
	competency_level: str
	learning_style: Optional[str] = None
	identified_strengths: str
	improvement_areas: str
	successful_modalities: str
	teaching_strategies: Optional[str] = None
	recommended_activities: Optional[str] = None
	assessment_adaptations: Optional[str] = None
	resources_needed: Optional[str] = None
	classroom_modifications: Optional[str] = None
	pedagogical_recommendations: str
	suggested_adaptations: str
	evaluation_justification: str
	confidence: Optional[float] = None
	ai_model: Optional[str] = None
	analysis_date: datetime


class AnalysisHistoryOut(ORMModel):
	id: str
	evidence_id: str
	ai_model: str
	processing_time: Optional[int] = None
	tokens_used: Optional[int] = None
	confidence: Optional[float] = None
	created_at: datetime


# ---- Learning profile ----

class ProfileFields(BaseModel):
	dominant_learning_pattern: str = Field(min_length=1)
	cognitive_strengths: str = Field(min_length=1)
	learning_challenges: str = Field(min_length=1)
	motivational_factors: str = Field(min_length=1)
	recommended_teaching_approaches: str = Field(min_length=1)
	assessment_recommendations: str = Field(min_length=1)
	resources_and_tools: str = Field(min_length=1)
	confidence_level: float = Field(ge=0, le=100)


class ProfileUpdate(BaseModel):
	dominant_learning_pattern: Optional[str] = Field(default=None, min_length=1)
	cognitive_strengths: Optional[str] = Field(default=None, min_length=1)
	learning_challenges: Optional[str] = Field(default=None, min_length=1)
	motivational_factors: Optional[str] = Field(default=None, min_length=1)
	recommended_teaching_approaches: Optional[str] = Field(default=None, min_length=1)
	assessment_recommendations: Optional[str] = Field(default=None, min_length=1)
	resources_and_tools: Optional[str] = Field(default=None, min_length=1)
	confidence_level: Optional[float] = Field(default=None, ge=0, le=100)


class ProfileOut(ORMModel):
	id: str
	student_id: str
	dominant_learning_pattern: str
	cognitive_strengths: str
	learning_challenges: str
	motivational_factors: str
	recommended_teaching_approaches: str
	assessment_recommendations: str
	resources_and_tools: str
	confidence_level: float
	created_at: datetime
	updated_at: datetime


class GeneratedProfileResponse(BaseModel):
	message: str
	profile: ProfileOut
	analysis_count: int


# ---- Chat ----

class ChatCreate(BaseModel):
	title: Optional[str] = None


class ChatOut(ORMModel):
	id: str
	student_id: str
	teacher_id: str
	title: str
	created_at: datetime
	updated_at: datetime


class MessageCreate(BaseModel):
	content: str


class MessageOut(ORMModel):
	id: str
	chat_id: str
	role: str
	content: str
	timestamp: datetime


class MessagesResponse(BaseModel):
	messages: List[MessageOut]


# ---- Generated resources and teacher documents ----

ResourceType = Literal["task", "exercise", "material", "strategy"]
Difficulty = Literal["easy", "medium", "hard"]
DocumentType = Literal["rubric", "diagnosis", "report", "other"]


class ResourceRequest(BaseModel):
	resource_type: Optional[ResourceType] = None
	difficulty: Optional[Difficulty] = None
	subject: Optional[str] = None
	based_on_evidence_id: Optional[str] = None


class GeneratedResource(BaseModel):
	title: str
	content: str
	resource_type: ResourceType
	difficulty: Difficulty
	tags: List[str] = []
	estimated_time: Optional[int] = None


class ResourcesResponse(BaseModel):
	resources: List[GeneratedResource]


class TeacherDocumentOut(BaseModel):
	file_name: str
	document_type: str
	title: Optional[str] = None
	student_id: Optional[str] = None
	mime_type: str
	file_size: int
	page_count: Optional[int] = None
	extracted_text: str
	processed_content: str
	processing_time: int


class TeacherDocumentResponse(BaseModel):
	message: str
	document: TeacherDocumentOut


# ---- Stats ----

class ModalityShare(BaseModel):
	name: str
	percentage: int


class StatsOut(BaseModel):
	total_students: int
	total_evidence: int
	analyzed_evidence: int
	profiles_generated: int
	pending_review: int
	analysis_progress: int
	modality_breakdown: Optional[List[ModalityShare]] = None
