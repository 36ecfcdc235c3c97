import json

from conftest import create_evidence, create_student

from test_analysis import ANALYSIS_JSON

PROFILE_JSON = json.dumps(
	{
		"dominantLearningPattern": "Visual con apoyo kinestésico",
		"cognitiveStrengths": "Razonamiento espacial",
		"learningChallenges": "Atención sostenida",
		"motivationalFactors": "Retos cortos",
		"recommendedTeachingApproaches": "Organizadores gráficos",
		"assessmentRecommendations": "Evaluación oral",
		"resourcesAndTools": "Tableta",
		"confidenceLevel": 82,
	},
	ensure_ascii=False,
)

MANUAL_PROFILE = {
	"dominant_learning_pattern": "Auditivo",
	"cognitive_strengths": "Memoria verbal",
	"learning_challenges": "Lectura",
	"motivational_factors": "Música",
	"recommended_teaching_approaches": "Explicaciones orales",
	"assessment_recommendations": "Exámenes orales",
	"resources_and_tools": "Audiolibros",
	"confidence_level": 60,
}


def test_generate_requires_analyzed_evidence(client, auth_headers, fake_llm):
	student = create_student(client, auth_headers)
	create_evidence(client, auth_headers, student["id"])
	r = client.post(f"/api/students/{student['id']}/generate-ai-profile", headers=auth_headers)
	assert r.status_code == 400
	assert fake_llm.calls == []


def test_generate_unknown_student(client, auth_headers):
	assert client.post("/api/students/ghost/generate-ai-profile", headers=auth_headers).status_code == 404


def test_generate_profile_from_analyses(client, auth_headers, fake_llm):
	fake_llm.replies.extend([ANALYSIS_JSON, f"Aquí está el perfil:\n{PROFILE_JSON}\nSaludos"])
	student = create_student(client, auth_headers)
	evidence = create_evidence(client, auth_headers, student["id"])
	client.post(f"/api/evidence/{evidence['id']}/analyze", headers=auth_headers)

	r = client.post(f"/api/students/{student['id']}/generate-ai-profile", headers=auth_headers)
	assert r.status_code == 200, r.text
	body = r.json()
	assert body["analysis_count"] == 1
	assert body["profile"]["dominant_learning_pattern"] == "Visual con apoyo kinestésico"
	assert body["profile"]["confidence_level"] == 82
	assert fake_llm.calls[1]["allow_fallback"] is False
	assert "Análisis 1" in fake_llm.prompts[1]

	stored = client.get(f"/api/students/{student['id']}/learning-profile", headers=auth_headers).json()
	assert stored["id"] == body["profile"]["id"]


def test_regenerating_updates_single_profile(client, auth_headers, fake_llm):
	fake_llm.replies.extend([ANALYSIS_JSON, PROFILE_JSON, "sin json"])
	student = create_student(client, auth_headers)
	evidence = create_evidence(client, auth_headers, student["id"])
	client.post(f"/api/evidence/{evidence['id']}/analyze", headers=auth_headers)

	first = client.post(f"/api/students/{student['id']}/generate-ai-profile", headers=auth_headers).json()
	second = client.post(f"/api/students/{student['id']}/generate-ai-profile", headers=auth_headers).json()
	assert second["profile"]["id"] == first["profile"]["id"]
	assert second["profile"]["dominant_learning_pattern"] == "Mixto - Requiere análisis adicional"
	assert second["profile"]["learning_challenges"] == "TDAH"


def test_manual_profile_crud(client, auth_headers):
	student = create_student(client, auth_headers)
	url = f"/api/students/{student['id']}/learning-profile"
	assert client.get(url, headers=auth_headers).status_code == 404
	assert client.put(url, json={"cognitive_strengths": "x"}, headers=auth_headers).status_code == 404

	r = client.post(url, json=MANUAL_PROFILE, headers=auth_headers)
	assert r.status_code == 201
	assert client.post(url, json=MANUAL_PROFILE, headers=auth_headers).status_code == 409

	r = client.put(url, json={"confidence_level": 75}, headers=auth_headers)
	assert r.status_code == 200
	assert r.json()["confidence_level"] == 75
	assert r.json()["dominant_learning_pattern"] == "Auditivo"
