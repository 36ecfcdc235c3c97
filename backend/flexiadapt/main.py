import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles

from .ai_client import AIProviderError
from .db import Base, engine, ensure_schema
from .settings import settings
from .routers import health
from .routers import auth
from .routers import students
from .routers import evidence
from .routers import analysis
from .routers import profiles
from .routers import chat
from .routers import stats
from .routers import resources

logging.basicConfig(
	level=getattr(logging, settings.log_level.upper(), logging.INFO),
	format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("passlib").setLevel(logging.ERROR)

logger = logging.getLogger(__name__)

app = FastAPI(title="FlexiAdapt API")
app.add_middleware(
	CORSMiddleware,
	allow_origins=settings.cors_origin_list,
	allow_credentials=False,
	allow_methods=["*"],
	allow_headers=["*"],
)
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(students.router)
app.include_router(evidence.router)
app.include_router(analysis.router)
app.include_router(profiles.router)
app.include_router(chat.router)
app.include_router(stats.router)
app.include_router(resources.router)


@app.exception_handler(AIProviderError)
async def ai_provider_error_handler(request: Request, exc: AIProviderError):
	logger.error("AI provider chain failed on %s %s: %s", request.method, request.url.path, exc)
	return JSONResponse(status_code=502, content={"error": "AI service unavailable", "message": str(exc)})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
	logger.exception("Unhandled error on %s %s", request.method, request.url.path)
	return JSONResponse(status_code=500, content={"error": "Internal server error", "message": str(exc)})


# Static frontend at /app when a built bundle is configured
if settings.frontend_dir and Path(settings.frontend_dir).is_dir():
	app.mount("/app", StaticFiles(directory=Path(settings.frontend_dir).resolve(), html=True), name="frontend")

	@app.get("/", include_in_schema=False)
	async def redirect_root_to_app():
		return RedirectResponse(url="/app")


@app.get("/info")
def root():
	return {"status": "ok", "ai_provider": settings.ai_provider, "ai_configured": _ai_configured()}


def _ai_configured() -> bool:
	keys = {
		"gemini": settings.gemini_api_key,
		"github_models": settings.github_models_api_key,
		"openai": settings.openai_api_key,
	}
	return bool(keys.get(settings.ai_provider) or keys.get(settings.ai_fallback_provider))


@app.on_event("startup")
async def startup_event():
	# Initialize DB schema
	Base.metadata.create_all(bind=engine)
	# Apply lightweight dev migrations
	added = ensure_schema()
	if added:
		logger.info("Added columns: %s", ", ".join(added))
