from flexiadapt.settings import Settings


def test_cors_origins_accepts_wildcard(monkeypatch):
	monkeypatch.setenv("CORS_ORIGINS", "*")
	assert Settings().cors_origin_list == ["*"]


def test_cors_origins_comma_separated(monkeypatch):
	monkeypatch.setenv("CORS_ORIGINS", "https://a.edu, https://b.edu,")
	assert Settings().cors_origin_list == ["https://a.edu", "https://b.edu"]


def test_blank_cors_origins_allows_all(monkeypatch):
	monkeypatch.setenv("CORS_ORIGINS", " ")
	assert Settings().cors_origin_list == ["*"]
