from __future__ import annotations
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from .settings import settings

logger = logging.getLogger(__name__)

PROVIDERS = ("gemini", "github_models", "openai")


class AIProviderError(RuntimeError):
	"""Raised when the primary provider and its fallback both fail."""


@dataclass
class AIResponse:
	content: str
	model: str
	provider: str
	tokens_used: Optional[int] = None
	processing_time_ms: int = 0


class LLMClient:
	"""Calls one configured provider and, on failure, a distinct fallback provider.

	Gemini goes through the Generative Language REST API; GitHub Models and
	OpenAI share the OpenAI chat-completions wire format.
	"""

	def __init__(
		self,
		*,
		provider: Optional[str] = None,
		fallback_provider: Optional[str] = None,
		transport: Optional[httpx.AsyncBaseTransport] = None,
	) -> None:
		self.provider = provider or settings.ai_provider
		self.fallback_provider = fallback_provider or settings.ai_fallback_provider
		for name in (self.provider, self.fallback_provider):
			if name not in PROVIDERS:
				raise ValueError(f"Unsupported AI provider: {name}")
		self._client = httpx.AsyncClient(timeout=settings.ai_timeout_seconds, transport=transport)

	def is_configured(self, provider: str) -> bool:
		return bool(self._api_key(provider))

	def _api_key(self, provider: str) -> Optional[str]:
		if provider == "gemini":
			return settings.gemini_api_key
		if provider == "github_models":
			return settings.github_models_api_key
		return settings.openai_api_key

	def _default_model(self, provider: str) -> str:
		if provider == "gemini":
			return settings.gemini_model
		if provider == "github_models":
			return settings.github_model_name
		return settings.openai_model

	async def generate(
		self,
		prompt: str,
		*,
		max_tokens: Optional[int] = None,
		temperature: Optional[float] = None,
		model: Optional[str] = None,
		provider: Optional[str] = None,
		allow_fallback: bool = True,
	) -> AIResponse:
		primary = provider or self.provider
		max_tokens = max_tokens or settings.ai_max_tokens
		temperature = settings.ai_temperature if temperature is None else temperature
		try:
			return await self._call(primary, prompt, model=model, max_tokens=max_tokens, temperature=temperature)
		except Exception as primary_err:
			logger.error("AI provider %s failed: %s", primary, primary_err)
			fallback = self.fallback_provider
			if not allow_fallback or fallback == primary:
				raise AIProviderError(f"AI provider {primary} failed: {primary_err}") from primary_err
			logger.warning("Falling back to %s", fallback)
			try:
				# The model override targets the primary provider only
				return await self._call(fallback, prompt, model=None, max_tokens=max_tokens, temperature=temperature)
			except Exception as fallback_err:
				logger.error("Fallback %s also failed: %s", fallback, fallback_err)
				raise AIProviderError(
					f"All AI providers failed. Primary: {primary}, Fallback: {fallback}"
				) from fallback_err

	async def _call(
		self,
		provider: str,
		prompt: str,
		*,
		model: Optional[str],
		max_tokens: int,
		temperature: float,
	) -> AIResponse:
		api_key = self._api_key(provider)
		if not api_key:
			raise RuntimeError(f"{provider} is not configured (missing API key)")
		model_name = model or self._default_model(provider)
		started = time.monotonic()
		logger.info("Sending prompt to %s/%s (%d chars)", provider, model_name, len(prompt))
		if provider == "gemini":
			content, tokens = await self._gemini(api_key, model_name, prompt, max_tokens, temperature)
		else:
			base_url = settings.github_models_endpoint if provider == "github_models" else settings.openai_base_url
			content, tokens = await self._chat_completions(base_url, api_key, model_name, prompt, max_tokens, temperature)
		elapsed = int((time.monotonic() - started) * 1000)
		logger.info("%s response received in %dms (%d chars)", provider, elapsed, len(content))
		return AIResponse(
			content=content,
			model=model_name,
			provider=provider,
			tokens_used=tokens,
			processing_time_ms=elapsed,
		)

	async def _gemini(
		self, api_key: str, model: str, prompt: str, max_tokens: int, temperature: float
	) -> tuple[str, Optional[int]]:
		url = f"{settings.gemini_base_url}/{model}:generateContent"
		payload: Dict[str, Any] = {
			"contents": [{"parts": [{"text": prompt}]}],
			"generationConfig": {"maxOutputTokens": max_tokens, "temperature": temperature},
		}
		r = await self._client.post(url, params={"key": api_key}, json=payload)
		r.raise_for_status()
		try:
			data = r.json()
			text = data["candidates"][0]["content"]["parts"][0]["text"]
		except Exception:
			raise RuntimeError(f"Unexpected Gemini response: {r.text}")
		tokens = (data.get("usageMetadata") or {}).get("totalTokenCount")
		return text, tokens

	async def _chat_completions(
		self, base_url: str, api_key: str, model: str, prompt: str, max_tokens: int, temperature: float
	) -> tuple[str, Optional[int]]:
		headers = {
			"Authorization": f"Bearer {api_key}",
			"Content-Type": "application/json",
		}
		payload: Dict[str, Any] = {
			"model": model,
			"messages": [{"role": "user", "content": prompt}],
			"max_tokens": max_tokens,
			"temperature": temperature,
		}
		r = await self._client.post(f"{base_url.rstrip('/')}/chat/completions", headers=headers, json=payload)
		r.raise_for_status()
		try:
			data = r.json()
			text = data["choices"][0]["message"]["content"] or ""
		except Exception:
			raise RuntimeError(f"Unexpected chat completion response: {r.text}")
		tokens = (data.get("usage") or {}).get("total_tokens")
		return text, tokens

	async def aclose(self) -> None:
		await self._client.aclose()


async def get_llm_client():
	client = LLMClient()
	try:
		yield client
	finally:
		await client.aclose()
