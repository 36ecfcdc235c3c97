from conftest import create_evidence, create_student


def test_create_and_list_students(client, auth_headers):
	student = create_student(client, auth_headers)
	assert student["name"] == "Sofía"
	r = client.get("/api/students", headers=auth_headers)
	assert r.status_code == 200
	assert [s["id"] for s in r.json()] == [student["id"]]
	assert r.headers["cache-control"].startswith("no-cache")


def test_students_are_scoped_to_teacher(client, auth_headers, other_headers):
	student = create_student(client, auth_headers)
	assert client.get("/api/students", headers=other_headers).json() == []
	assert client.get(f"/api/students/{student['id']}", headers=other_headers).status_code == 403
	r = client.put(f"/api/students/{student['id']}", json={"grade": "6to"}, headers=other_headers)
	assert r.status_code == 403


def test_unknown_student_is_404(client, auth_headers):
	assert client.get("/api/students/missing", headers=auth_headers).status_code == 404


def test_student_age_bounds(client, auth_headers):
	body = {"name": "Leo", "age": 2, "grade": "Inicial", "main_subjects": "Arte"}
	assert client.post("/api/students", json=body, headers=auth_headers).status_code == 422
	body["age"] = 21
	assert client.post("/api/students", json=body, headers=auth_headers).status_code == 422


def test_update_student_partial(client, auth_headers):
	student = create_student(client, auth_headers)
	r = client.put(f"/api/students/{student['id']}", json={"grade": "6to"}, headers=auth_headers)
	assert r.status_code == 200
	assert r.json()["grade"] == "6to"
	assert r.json()["name"] == "Sofía"


def test_delete_student_removes_dependents(client, auth_headers):
	student = create_student(client, auth_headers)
	evidence = create_evidence(client, auth_headers, student["id"])
	client.post(f"/api/students/{student['id']}/perspective", json={"attention_level": "Media"}, headers=auth_headers)
	client.post(f"/api/students/{student['id']}/chats", json={}, headers=auth_headers)

	r = client.delete(f"/api/students/{student['id']}", headers=auth_headers)
	assert r.status_code == 204
	assert client.get(f"/api/students/{student['id']}", headers=auth_headers).status_code == 404
	assert client.get(f"/api/evidence/{evidence['id']}", headers=auth_headers).status_code == 404


def test_perspective_lifecycle(client, auth_headers):
	student = create_student(client, auth_headers)
	url = f"/api/students/{student['id']}/perspective"
	assert client.get(url, headers=auth_headers).status_code == 404
	assert client.put(url, json={"attention_level": "Alta"}, headers=auth_headers).status_code == 404

	r = client.post(url, json={"attention_level": "Media", "concentration_time": 15}, headers=auth_headers)
	assert r.status_code == 201
	assert r.json()["concentration_time"] == 15
	assert client.post(url, json={"attention_level": "Baja"}, headers=auth_headers).status_code == 409

	r = client.put(url, json={"preferred_modality": "Visual"}, headers=auth_headers)
	assert r.status_code == 200
	assert r.json()["preferred_modality"] == "Visual"
	assert r.json()["attention_level"] == "Media"


def test_perspective_rejects_non_positive_concentration(client, auth_headers):
	student = create_student(client, auth_headers)
	r = client.post(
		f"/api/students/{student['id']}/perspective",
		json={"concentration_time": 0},
		headers=auth_headers,
	)
	assert r.status_code == 422
