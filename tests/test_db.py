from sqlalchemy import create_engine, inspect
from sqlalchemy.pool import StaticPool

from flexiadapt.db import Base, ensure_schema


def _memory_engine():
	return create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)


def test_ensure_schema_adds_late_columns_to_old_tables():
	eng = _memory_engine()
	with eng.begin() as conn:
		conn.exec_driver_sql("CREATE TABLE evidence (id VARCHAR(32) PRIMARY KEY, task_title TEXT)")
		conn.exec_driver_sql(
			"CREATE TABLE analysis_results (id VARCHAR(32) PRIMARY KEY, evidence_id VARCHAR(32), adapted_score INTEGER)"
		)
		conn.exec_driver_sql("INSERT INTO analysis_results (id, evidence_id, adapted_score) VALUES ('a1', 'e1', 80)")

	added = ensure_schema(eng)
	assert added == [
		"evidence.extracted_text",
		"analysis_results.learning_style",
		"analysis_results.confidence",
		"analysis_results.is_fallback",
		"analysis_results.ai_model",
	]
	cols = {c["name"] for c in inspect(eng).get_columns("analysis_results")}
	assert {"learning_style", "confidence", "is_fallback", "ai_model"} <= cols
	with eng.connect() as conn:
		assert conn.exec_driver_sql("SELECT is_fallback FROM analysis_results").scalar() == 0

	assert ensure_schema(eng) == []
	eng.dispose()


def test_ensure_schema_is_noop_on_current_models():
	eng = _memory_engine()
	Base.metadata.create_all(bind=eng)
	assert ensure_schema(eng) == []
	eng.dispose()


def test_ensure_schema_skips_missing_tables():
	eng = _memory_engine()
	assert ensure_schema(eng) == []
	eng.dispose()
