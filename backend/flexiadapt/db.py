from __future__ import annotations
from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import sessionmaker, declarative_base
from .settings import settings


DATABASE_URL = settings.database_url or "sqlite:///./flexiadapt.db"

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=_connect_args, future=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()


def get_db():
	db = SessionLocal()
	try:
		yield db
	finally:
		db.close()


# Columns added after the first deployments; (table, column, DDL type)
_LATE_COLUMNS = (
	("evidence", "extracted_text", "TEXT"),
	("analysis_results", "learning_style", "VARCHAR(64)"),
	("analysis_results", "confidence", "FLOAT"),
	("analysis_results", "is_fallback", "BOOLEAN DEFAULT 0 NOT NULL"),
	("analysis_results", "ai_model", "VARCHAR(128)"),
)


# Best-effort lightweight migrations for development (SQLite-friendly)
def ensure_schema(bind=None) -> list[str]:
	bind = bind or engine
	added: list[str] = []
	try:
		inspector = inspect(bind)
		tables = set(inspector.get_table_names())
	except Exception:
		return added
	with bind.begin() as conn:
		for table, column, ddl in _LATE_COLUMNS:
			if table not in tables:
				continue
			cols = {c["name"] for c in inspector.get_columns(table)}
			if column not in cols:
				conn.exec_driver_sql(f"ALTER TABLE {table} ADD COLUMN {column} {ddl}")
				added.append(f"{table}.{column}")
	return added
