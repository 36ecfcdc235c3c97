from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from ..ai_client import AIProviderError, LLMClient, get_llm_client
from .auth import get_current_teacher
from ..models import Teacher

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
def health():
	return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/ai/test")
async def ai_test(teacher: Teacher = Depends(get_current_teacher), client: LLMClient = Depends(get_llm_client)):
	try:
		resp = await client.generate("Responde solo con 'OK' si puedes leer este mensaje", max_tokens=10)
	except AIProviderError as e:
		return {"status": "error", "error": str(e)}
	return {"status": "success", "response": resp.content, "model": resp.model, "provider": resp.provider}
