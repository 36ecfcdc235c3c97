import asyncio
import json

from conftest import FakeLLM, create_evidence, create_student

from flexiadapt.ai_client import AIProviderError
from flexiadapt.documents import IMAGE_PLACEHOLDER, read_document, save_upload
from flexiadapt.resource_generator import generate_resources, parse_resources

RESOURCES_JSON = json.dumps(
	[
		{
			"title": "Fracciones con pizza",
			"content": "Divide la pizza en partes iguales.",
			"resourceType": "task",
			"difficulty": "easy",
			"tags": ["fracciones", "visual"],
			"estimatedTime": 20,
		},
		{
			"title": "Ejercicios de refuerzo",
			"content": "Resuelve diez sumas de fracciones.",
			"resourceType": "exercise",
			"difficulty": "medium",
			"tags": ["práctica"],
			"estimatedTime": "15",
		},
		{
			"title": "Guía ilustrada",
			"content": "Lee la guía con tu familia.",
			"resourceType": "poster",
			"difficulty": "extreme",
		},
	],
	ensure_ascii=False,
)


def test_parse_resources_normalises_fields():
	resources = parse_resources(f"```json\n{RESOURCES_JSON}\n```")
	assert [r["resource_type"] for r in resources] == ["task", "exercise", "material"]
	assert resources[1]["estimated_time"] == 15
	assert resources[2]["difficulty"] == "medium"
	assert resources[2]["tags"] == []
	assert resources[2]["estimated_time"] is None


def test_parse_single_object_is_wrapped():
	resources = parse_resources('{"title": "Estrategia", "content": "x", "resourceType": "strategy"}')
	assert len(resources) == 1
	assert resources[0]["resource_type"] == "strategy"


def test_unparseable_resources_fall_back_to_raw_text():
	resources = parse_resources("Aquí tienes tres ideas para la clase.")
	assert resources == [
		{
			"title": "Recurso Generado",
			"content": "Aquí tienes tres ideas para la clase.",
			"resource_type": "material",
			"difficulty": "medium",
			"tags": ["adaptativo"],
			"estimated_time": 30,
		}
	]
	assert parse_resources("[1, 2]")[0]["title"] == "Recurso Generado"


def test_generate_resources_prompt_and_parameters():
	llm = FakeLLM(replies=[RESOURCES_JSON])
	resources = asyncio.run(
		generate_resources(llm, competency_level="Competente", identified_strengths="Visual", subject="Matemáticas")
	)
	assert len(resources) == 3
	call = llm.calls[0]
	assert call["max_tokens"] == 1500
	assert call["temperature"] == 0.8
	assert "Nivel de competencia: Competente" in call["prompt"]
	assert "Asignatura: Matemáticas" in call["prompt"]


def test_generate_resources_endpoint(client, auth_headers, fake_llm):
	fake_llm.replies.append(RESOURCES_JSON)
	student = create_student(client, auth_headers)
	r = client.post(
		f"/api/students/{student['id']}/ai-generate-resources",
		json={"resource_type": "task", "difficulty": "hard", "subject": "Ciencias"},
		headers=auth_headers,
	)
	assert r.status_code == 200, r.text
	assert r.json()["resources"][0]["title"] == "Fracciones con pizza"
	assert "Nivel de competencia: hard" in fake_llm.prompts[0]
	assert "Asignatura: Ciencias" in fake_llm.prompts[0]


def test_generate_resources_defaults_without_body(client, auth_headers, fake_llm):
	fake_llm.replies.append("sin formato")
	student = create_student(client, auth_headers)
	r = client.post(f"/api/students/{student['id']}/ai-generate-resources", headers=auth_headers)
	assert r.status_code == 200, r.text
	assert r.json()["resources"][0]["content"] == "sin formato"
	assert "Nivel de competencia: medium" in fake_llm.prompts[0]
	assert "Asignatura: general" in fake_llm.prompts[0]


def test_generate_resources_from_analysis(client, auth_headers, fake_llm):
	student = create_student(client, auth_headers)
	evidence = create_evidence(client, auth_headers, student["id"], subject="Historia")
	r = client.post(
		"/api/analysis-results",
		json={
			"evidence_id": evidence["id"],
			"adapted_score": 82,
			"competency_level": "Competente",
			"identified_strengths": "Narración oral",
			"improvement_areas": "Cronologías",
			"successful_modalities": "Audio",
			"pedagogical_recommendations": "Debates",
			"suggested_adaptations": "Tiempo extra",
			"evaluation_justification": "Buen relato",
		},
		headers=auth_headers,
	)
	assert r.status_code == 201, r.text
	fake_llm.replies.append(RESOURCES_JSON)
	r = client.post(
		f"/api/students/{student['id']}/ai-generate-resources",
		json={"based_on_evidence_id": evidence["id"]},
		headers=auth_headers,
	)
	assert r.status_code == 200, r.text
	prompt = fake_llm.prompts[0]
	assert "Nivel de competencia: Competente" in prompt
	assert "Fortalezas identificadas: Narración oral" in prompt
	assert "Áreas de mejora: Cronologías" in prompt
	assert "Asignatura: Historia" in prompt


def test_generate_resources_access(client, auth_headers, other_headers, fake_llm):
	assert client.post("/api/students/nope/ai-generate-resources", headers=auth_headers).status_code == 404
	student = create_student(client, auth_headers)
	r = client.post(f"/api/students/{student['id']}/ai-generate-resources", headers=other_headers)
	assert r.status_code == 403
	other = create_student(client, auth_headers, name="Mateo")
	evidence = create_evidence(client, auth_headers, other["id"])
	r = client.post(
		f"/api/students/{student['id']}/ai-generate-resources",
		json={"based_on_evidence_id": evidence["id"]},
		headers=auth_headers,
	)
	assert r.status_code == 404
	assert fake_llm.calls == []


def test_generate_resources_provider_failure_is_502(client, auth_headers, fake_llm):
	fake_llm.error = AIProviderError("All AI providers failed")
	student = create_student(client, auth_headers)
	r = client.post(f"/api/students/{student['id']}/ai-generate-resources", headers=auth_headers)
	assert r.status_code == 502


def test_teacher_document_upload_is_summarised(client, auth_headers, fake_llm, upload_dir):
	fake_llm.replies.append("Objetivos: comprensión lectora.")
	student = create_student(client, auth_headers)
	r = client.post(
		"/api/teacher-documents/upload",
		data={"document_type": "rubric", "title": "Rúbrica de lectura", "student_id": student["id"]},
		files={"document": ("rubrica.txt", "Criterio 1: identifica la idea principal.".encode("utf-8"), "text/plain")},
		headers=auth_headers,
	)
	assert r.status_code == 201, r.text
	body = r.json()
	assert body["message"] == "Document uploaded and processed successfully"
	doc = body["document"]
	assert doc["file_name"] == "rubrica.txt"
	assert doc["document_type"] == "rubric"
	assert doc["mime_type"] == "text/plain"
	assert doc["extracted_text"] == "Criterio 1: identifica la idea principal."
	assert doc["processed_content"] == "Objetivos: comprensión lectora."
	assert fake_llm.calls[0]["max_tokens"] == 800
	assert fake_llm.calls[0]["temperature"] == 0.3
	assert 'tipo "rubric"' in fake_llm.prompts[0]
	assert any(upload_dir.rglob("*.txt"))


def test_teacher_document_upload_rejections(client, auth_headers, fake_llm, upload_dir):
	r = client.post("/api/teacher-documents/upload", data={"document_type": "rubric"}, headers=auth_headers)
	assert r.status_code == 400
	assert r.json()["detail"] == "No file uploaded"

	r = client.post(
		"/api/teacher-documents/upload",
		files={"document": ("clase.mp3", b"ID3", "audio/mpeg")},
		headers=auth_headers,
	)
	assert r.status_code == 400
	assert not any(p.is_file() for p in upload_dir.rglob("*"))

	r = client.post(
		"/api/teacher-documents/upload",
		data={"document_type": "poema"},
		files={"document": ("nota.txt", b"hola", "text/plain")},
		headers=auth_headers,
	)
	assert r.status_code == 422
	assert fake_llm.calls == []


def test_image_document_uses_placeholder_text(upload_dir):
	path = save_upload("teacher-t1", "pizarra.png", b"\x89PNG")
	doc = read_document(path, "pizarra.png", "report")
	assert doc.extracted_text == IMAGE_PLACEHOLDER
	assert doc.mime_type == "image/png"
	assert doc.page_count is None
