from conftest import create_evidence, create_student

from flexiadapt.routers.stats import classify_pattern, modality_breakdown

from test_profiles import MANUAL_PROFILE


def test_empty_dashboard(client, auth_headers):
	r = client.get("/api/stats", headers=auth_headers)
	assert r.status_code == 200
	assert r.json() == {
		"total_students": 0,
		"total_evidence": 0,
		"analyzed_evidence": 0,
		"profiles_generated": 0,
		"pending_review": 0,
		"analysis_progress": 0,
		"modality_breakdown": None,
	}


def test_dashboard_counts(client, auth_headers, other_headers, fake_llm):
	fake_llm.replies.append('{"adaptedScore": 80}')
	first = create_student(client, auth_headers)
	second = create_student(client, auth_headers, name="Mateo")
	create_student(client, other_headers, name="Otro")
	analyzed = create_evidence(client, auth_headers, first["id"])
	create_evidence(client, auth_headers, first["id"])
	create_evidence(client, auth_headers, second["id"])
	client.post(f"/api/evidence/{analyzed['id']}/analyze", headers=auth_headers)
	client.post(f"/api/students/{first['id']}/learning-profile", json=MANUAL_PROFILE, headers=auth_headers)

	stats = client.get("/api/stats", headers=auth_headers).json()
	assert stats["total_students"] == 2
	assert stats["total_evidence"] == 3
	assert stats["analyzed_evidence"] == 1
	assert stats["pending_review"] == 2
	assert stats["analysis_progress"] == 33
	assert stats["profiles_generated"] == 1
	assert stats["modality_breakdown"] == [{"name": "Auditivo", "percentage": 100}]


def test_classify_pattern_keywords():
	assert classify_pattern("Visual-espacial") == "Visual"
	assert classify_pattern("Predominantemente auditivo") == "Auditivo"
	assert classify_pattern("Aprendizaje práctico") == "Kinestésico"
	assert classify_pattern("Lectoescritor") == "Lecto-escritura"
	assert classify_pattern("Mixto") is None
	assert classify_pattern(None) is None


def test_unmatched_patterns_are_spread():
	shares = {s.name: s.percentage for s in modality_breakdown(["Mixto"])}
	assert shares == {"Visual": 30, "Auditivo": 30, "Kinestésico": 40}


def test_breakdown_drops_empty_modalities():
	shares = modality_breakdown(["visual", "visual", "auditivo", "escritura"])
	assert [(s.name, s.percentage) for s in shares] == [("Visual", 50), ("Auditivo", 25), ("Lecto-escritura", 25)]
	assert modality_breakdown([]) is None
