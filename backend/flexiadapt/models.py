from __future__ import annotations
import secrets
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, Float, Boolean, Text, ForeignKey
from .db import Base


def new_id() -> str:
	return secrets.token_urlsafe(15)


class Teacher(Base):
	__tablename__ = "teachers"
	id = Column(String(32), primary_key=True, default=new_id)
	email = Column(String(256), nullable=False, unique=True, index=True)
	password_hash = Column(String(256), nullable=False)
	name = Column(String(128), nullable=False)
	last_name = Column(String(128), nullable=False)
	school = Column(String(256), nullable=True)
	grade = Column(String(64), nullable=True)
	subject = Column(String(128), nullable=True)
	phone_number = Column(String(32), nullable=True)
	is_active = Column(Boolean, default=True, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
	last_login = Column(DateTime, nullable=True)


class Student(Base):
	__tablename__ = "students"
	id = Column(String(32), primary_key=True, default=new_id)
	teacher_id = Column(String(32), ForeignKey("teachers.id"), nullable=False, index=True)
	name = Column(String(128), nullable=False)
	age = Column(Integer, nullable=False)
	grade = Column(String(64), nullable=False)
	main_subjects = Column(Text, nullable=False)
	special_needs = Column(Text, nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class TeacherPerspective(Base):
	__tablename__ = "teacher_perspectives"
	id = Column(String(32), primary_key=True, default=new_id)
	# One row per student, checked by the handlers before insert
	student_id = Column(String(32), ForeignKey("students.id"), nullable=False, index=True)
	attention_level = Column(String(64), nullable=True)  # Alta, Media, Baja, Variable
	verbal_participation = Column(String(64), nullable=True)
	social_interaction = Column(String(64), nullable=True)
	preferred_modality = Column(String(64), nullable=True)  # Visual, Auditiva, Kinestésica, Lectora
	concentration_time = Column(Integer, nullable=True)  # minutes
	instruction_needs = Column(String(128), nullable=True)
	observed_strengths = Column(Text, nullable=True)
	successful_activities = Column(Text, nullable=True)
	effective_strategies = Column(Text, nullable=True)
	main_difficulties = Column(Text, nullable=True)
	conflictive_situations = Column(Text, nullable=True)
	previous_adaptations = Column(Text, nullable=True)
	preferred_expression = Column(Text, nullable=True)
	motivational_factors = Column(Text, nullable=True)
	behavior_observations = Column(Text, nullable=True)
	identified_strengths = Column(Text, nullable=True)
	observed_challenges = Column(Text, nullable=True)
	successful_strategies = Column(Text, nullable=True)
	detected_patterns = Column(Text, nullable=True)
	additional_observations = Column(Text, nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class Evidence(Base):
	__tablename__ = "evidence"
	id = Column(String(32), primary_key=True, default=new_id)
	# Plain column: evidence may be recorded before the student row exists
	student_id = Column(String(32), nullable=False, index=True)
	task_title = Column(String(256), nullable=False)
	subject = Column(String(128), nullable=False)
	completion_date = Column(DateTime, default=datetime.utcnow, nullable=True)
	evidence_type = Column(String(32), nullable=False)  # imagen, documento, audio, video, texto
	file_name = Column(String(256), nullable=True)
	file_path = Column(String(512), nullable=True)
	file_size = Column(Integer, nullable=True)
	standard_rubric = Column(Text, nullable=False)
	evaluated_competencies = Column(Text, nullable=False)
	original_instructions = Column(Text, nullable=False)
	time_spent = Column(Integer, nullable=True)  # minutes
	reported_difficulties = Column(Text, nullable=True)
	extracted_text = Column(Text, nullable=True)
	is_analyzed = Column(Boolean, default=False, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class AnalysisResult(Base):
	__tablename__ = "analysis_results"
	id = Column(String(32), primary_key=True, default=new_id)
	evidence_id = Column(String(32), ForeignKey("evidence.id"), nullable=False, index=True)
	adapted_score = Column(Integer, nullable=False)
	competency_level = Column(String(64), nullable=False)
	learning_style = Column(String(64), nullable=True)
	identified_strengths = Column(Text, nullable=False)
	improvement_areas = Column(Text, nullable=False)
	successful_modalities = Column(Text, nullable=False)
	teaching_strategies = Column(Text, nullable=True)
	recommended_activities = Column(Text, nullable=True)
	assessment_adaptations = Column(Text, nullable=True)
	resources_needed = Column(Text, nullable=True)
	classroom_modifications = Column(Text, nullable=True)
	pedagogical_recommendations = Column(Text, nullable=False)
	suggested_adaptations = Column(Text, nullable=False)
	evaluation_justification = Column(Text, nullable=False)
	confidence = Column(Float, nullable=True)
	# True when the model output could not be parsed and placeholder text was stored
	is_fallback = Column(Boolean, default=False, nullable=False)
	ai_model = Column(String(128), nullable=True)
	analysis_date = Column(DateTime, default=datetime.utcnow, nullable=False)


class AIAnalysisHistory(Base):
	__tablename__ = "ai_analysis_history"
	id = Column(String(32), primary_key=True, default=new_id)
	evidence_id = Column(String(32), ForeignKey("evidence.id"), nullable=False, index=True)
	teacher_id = Column(String(32), ForeignKey("teachers.id"), nullable=False)
	analysis_request = Column(Text, nullable=False)  # JSON string
	analysis_response = Column(Text, nullable=False)  # JSON string
	processing_time = Column(Integer, nullable=True)  # ms
	ai_model = Column(String(128), nullable=False)
	tokens_used = Column(Integer, nullable=True)
	confidence = Column(Float, nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class LearningProfile(Base):
	__tablename__ = "learning_profiles"
	id = Column(String(32), primary_key=True, default=new_id)
	student_id = Column(String(32), ForeignKey("students.id"), nullable=False, index=True)
	dominant_learning_pattern = Column(Text, nullable=False)
	cognitive_strengths = Column(Text, nullable=False)
	learning_challenges = Column(Text, nullable=False)
	motivational_factors = Column(Text, nullable=False)
	recommended_teaching_approaches = Column(Text, nullable=False)
	assessment_recommendations = Column(Text, nullable=False)
	resources_and_tools = Column(Text, nullable=False)
	confidence_level = Column(Float, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class StudentChat(Base):
	__tablename__ = "student_chats"
	id = Column(String(32), primary_key=True, default=new_id)
	student_id = Column(String(32), ForeignKey("students.id"), nullable=False, index=True)
	teacher_id = Column(String(32), ForeignKey("teachers.id"), nullable=False)
	title = Column(String(256), nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class ChatMessage(Base):
	__tablename__ = "chat_messages"
	id = Column(String(32), primary_key=True, default=new_id)
	chat_id = Column(String(32), ForeignKey("student_chats.id"), nullable=False, index=True)
	role = Column(String(16), nullable=False)  # user, assistant
	content = Column(Text, nullable=False)
	timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)
