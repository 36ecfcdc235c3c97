import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
BACKEND = ROOT / "backend"
if str(BACKEND) not in sys.path:
	sys.path.insert(0, str(BACKEND))

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("GEMINI_API_KEY", "")

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from flexiadapt.ai_client import AIResponse, get_llm_client
from flexiadapt.db import Base, get_db
from flexiadapt.main import app
from flexiadapt.settings import settings


class FakeLLM:
	"""Stands in for LLMClient: replays canned replies and records prompts."""

	def __init__(self, replies=None, error=None):
		self.replies = list(replies or [])
		self.error = error
		self.calls = []

	async def generate(self, prompt, **kwargs):
		self.calls.append({"prompt": prompt, **kwargs})
		if self.error is not None:
			raise self.error
		content = self.replies.pop(0) if self.replies else "OK"
		return AIResponse(content=content, model="fake-model", provider="fake", tokens_used=42, processing_time_ms=5)

	@property
	def prompts(self):
		return [c["prompt"] for c in self.calls]


@pytest.fixture(autouse=True)
def upload_dir(monkeypatch, tmp_path):
	path = tmp_path / "uploads"
	monkeypatch.setattr(settings, "upload_dir", str(path))
	return path


@pytest.fixture
def engine():
	eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
	Base.metadata.create_all(bind=eng)
	yield eng
	eng.dispose()


@pytest.fixture
def db_session(engine):
	Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)
	session = Session()
	try:
		yield session
	finally:
		session.close()


@pytest.fixture
def fake_llm():
	return FakeLLM()


@pytest.fixture
def client(engine, fake_llm):
	Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)

	def override_get_db():
		db = Session()
		try:
			yield db
		finally:
			db.close()

	app.dependency_overrides[get_db] = override_get_db
	app.dependency_overrides[get_llm_client] = lambda: fake_llm
	try:
		yield TestClient(app)
	finally:
		app.dependency_overrides.clear()


def register_and_login(client, email="ana.docente@colegio.edu", password="secreto123", name="Ana"):
	r = client.post(
		"/api/auth/register",
		json={"email": email, "password": password, "name": name, "last_name": "García", "school": "Colegio Central"},
	)
	assert r.status_code == 201, r.text
	r = client.post("/api/auth/login", json={"email": email, "password": password})
	assert r.status_code == 200, r.text
	return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.fixture
def auth_headers(client):
	return register_and_login(client)


@pytest.fixture
def other_headers(client):
	return register_and_login(client, email="luis.docente@colegio.edu", name="Luis")


def create_student(client, headers, **overrides):
	body = {
		"name": "Sofía",
		"age": 10,
		"grade": "5to",
		"main_subjects": "Matemáticas, Lenguaje",
		"special_needs": "TDAH",
	}
	body.update(overrides)
	r = client.post("/api/students", json=body, headers=headers)
	assert r.status_code == 201, r.text
	return r.json()


def create_evidence(client, headers, student_id, files=None, **overrides):
	data = {
		"task_title": "Resolución de problemas",
		"subject": "Matemáticas",
		"standard_rubric": "Resuelve problemas de dos pasos",
		"evaluated_competencies": "Razonamiento numérico",
		"original_instructions": "Resuelve los cinco problemas",
		"evidence_type": "texto",
		"content": "La respuesta es 42 porque sumé las dos cantidades.",
	}
	data.update(overrides)
	r = client.post(f"/api/students/{student_id}/evidence", data=data, files=files, headers=headers)
	assert r.status_code == 201, r.text
	return r.json()
