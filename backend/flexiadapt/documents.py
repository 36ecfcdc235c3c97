from __future__ import annotations
import logging
import mimetypes
import re
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .ai_client import LLMClient
from .settings import settings

logger = logging.getLogger(__name__)

MAX_EXTRACTED_CHARS = 8000

EVIDENCE_TYPE_BY_EXT = {
	".jpg": "imagen", ".jpeg": "imagen", ".png": "imagen", ".gif": "imagen", ".webp": "imagen",
	".mp4": "video", ".avi": "video", ".mov": "video", ".wmv": "video",
	".mp3": "audio", ".wav": "audio", ".ogg": "audio",
	".pdf": "documento", ".doc": "documento", ".docx": "documento", ".txt": "documento", ".html": "documento",
}


class UploadRejected(ValueError):
	pass


def evidence_type_for(filename: str) -> Optional[str]:
	return EVIDENCE_TYPE_BY_EXT.get(Path(filename or "").suffix.lower())


def safe_filename(original: str) -> str:
	ext = Path(original).suffix.lower()
	stem = re.sub(r"[^a-zA-Z0-9.-]", "_", Path(original).stem)[:50]
	return f"{int(time.time() * 1000)}-{secrets.token_hex(5)}-{stem}{ext}"


def upload_root() -> Path:
	return Path(settings.upload_dir).resolve()


def save_upload(student_id: str, original_name: str, content: bytes) -> Path:
	if evidence_type_for(original_name) is None:
		raise UploadRejected(f"File type not allowed: {Path(original_name).suffix or original_name}")
	if len(content) > settings.max_file_size:
		raise UploadRejected(f"File exceeds maximum size of {settings.max_file_size} bytes")
	target_dir = upload_root() / re.sub(r"[^a-zA-Z0-9_-]", "_", student_id)
	target_dir.mkdir(parents=True, exist_ok=True)
	path = target_dir / safe_filename(original_name)
	path.write_bytes(content)
	logger.info("Stored upload %s (%d bytes)", path.name, len(content))
	return path


def _read_docx(path: Path) -> str:
	from docx import Document

	doc = Document(str(path))
	return "\n".join(p.text for p in doc.paragraphs if p.text.strip())


def _read_pdf(path: Path) -> str:
	import fitz  # PyMuPDF

	with fitz.open(str(path)) as pdf:
		return "\n".join(page.get_text() for page in pdf)


def extract_text(path: Path) -> Optional[str]:
	"""Best-effort text for the analysis prompt; None for media files."""
	ext = path.suffix.lower()
	try:
		if ext in (".txt", ".html"):
			text = path.read_text(encoding="utf-8", errors="ignore")
		elif ext == ".docx":
			text = _read_docx(path)
		elif ext == ".pdf":
			text = _read_pdf(path)
		else:
			return None
	except Exception as err:
		logger.warning("Text extraction failed for %s: %s", path.name, err)
		return None
	text = text.strip()
	return text[:MAX_EXTRACTED_CHARS] or None


def delete_file(path: Optional[str]) -> bool:
	if not path:
		return False
	try:
		Path(path).unlink()
		return True
	except OSError as err:
		logger.warning("Error deleting file %s: %s", path, err)
		return False


async def read_upload(upload) -> bytes:
	"""Read an upload without buffering more than ``max_file_size + 1`` bytes."""
	limit = settings.max_file_size
	if upload.size is not None and upload.size > limit:
		raise UploadRejected(f"File exceeds maximum size of {limit} bytes")
	data = await upload.read(limit + 1)
	if len(data) > limit:
		raise UploadRejected(f"File exceeds maximum size of {limit} bytes")
	return data


# ---- Teacher documents (rubrics, diagnoses, reports) ----

DOCUMENT_TYPES = ("rubric", "diagnosis", "report", "other")

IMAGE_PLACEHOLDER = "Imagen cargada exitosamente. Contenido visual disponible para análisis."


@dataclass
class ProcessedDocument:
	original_name: str
	file_path: str
	document_type: str
	extracted_text: str
	processed_content: str = ""
	mime_type: str = "application/octet-stream"
	file_size: int = 0
	page_count: Optional[int] = None
	processing_time: int = 0


def _pdf_page_count(path: Path) -> Optional[int]:
	import fitz  # PyMuPDF

	try:
		with fitz.open(str(path)) as pdf:
			return pdf.page_count
	except Exception as err:
		logger.warning("Could not count pages of %s: %s", path.name, err)
		return None


def read_document(path: Path, original_name: str, document_type: str = "other") -> ProcessedDocument:
	"""Extract the text of a teacher document; raises UploadRejected for audio and video."""
	kind = evidence_type_for(original_name)
	mime_type = mimetypes.guess_type(original_name)[0] or "application/octet-stream"
	if kind == "imagen":
		text = IMAGE_PLACEHOLDER
	elif kind == "documento":
		text = extract_text(path) or ""
	else:
		raise UploadRejected(f"Unsupported file type: {mime_type}")
	return ProcessedDocument(
		original_name=original_name,
		file_path=str(path),
		document_type=document_type,
		extracted_text=text,
		mime_type=mime_type,
		file_size=path.stat().st_size,
		page_count=_pdf_page_count(path) if path.suffix.lower() == ".pdf" else None,
	)


def build_summary_prompt(document_text: str, document_type: str) -> str:
	return (
		f'Extrae y estructura la información más importante del siguiente documento de tipo "{document_type}".\n'
		"Identifica elementos clave como objetivos, criterios, competencias, o diagnósticos según el tipo de documento.\n\n"
		f"Documento:\n{document_text}\n\n"
		"Por favor, proporciona un resumen estructurado y organizado de la información más relevante."
	)


async def process_document(client: LLMClient, path: Path, original_name: str, document_type: str = "other") -> ProcessedDocument:
	started = time.monotonic()
	doc = read_document(path, original_name, document_type)
	response = await client.generate(build_summary_prompt(doc.extracted_text, document_type), max_tokens=800, temperature=0.3)
	doc.processed_content = response.content
	doc.processing_time = int((time.monotonic() - started) * 1000)
	logger.info("Processed %s document %s in %dms", document_type, original_name, doc.processing_time)
	return doc
