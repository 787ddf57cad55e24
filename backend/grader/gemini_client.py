from __future__ import annotations
import httpx
import logging
from typing import Any, Dict, Optional
from .settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class GeminiClient:
	"""Thin async wrapper over the Gemini ``generateContent`` REST endpoint.

	When ``OPENROUTER_API_KEY`` is configured, a failed Gemini call is retried once
	against OpenRouter with the same prompt. Callers own the lifetime of the client
	and must ``aclose()`` it (or use it as an async context manager).
	"""

	def __init__(
		self,
		api_key: Optional[str] = None,
		*,
		model: Optional[str] = None,
		timeout: float = 30.0,
		config: Optional[Settings] = None,
	) -> None:
		cfg = config or default_settings
		self.api_key = api_key or cfg.gemini_api_key
		if not self.api_key:
			raise ValueError("GEMINI_API_KEY is not configured")
		self.model = model or cfg.gemini_model
		if cfg.gemini_provider == "vertex":
			project = cfg.vertex_project or "placeholder-project"
			self.base_url = (
				f"https://{cfg.vertex_region}-aiplatform.googleapis.com/v1/projects/{project}"
				f"/locations/{cfg.vertex_region}/publishers/google/models/{self.model}:generateContent"
			)
			self._auth_in_query = False
		else:
			self.base_url = f"https://generativelanguage.googleapis.com/v1beta/models/{self.model}:generateContent"
			self._auth_in_query = True
		self._client = httpx.AsyncClient(timeout=timeout)
		self._fallback: Optional[httpx.AsyncClient] = None
		self._openrouter_model = cfg.openrouter_model
		self._openrouter_url = cfg.openrouter_base_url
		self._openrouter_headers: Dict[str, str] = {}
		if cfg.openrouter_api_key:
			self._fallback = httpx.AsyncClient(timeout=timeout)
			self._openrouter_headers = {
				"Authorization": f"Bearer {cfg.openrouter_api_key}",
				"Content-Type": "application/json",
				"HTTP-Referer": cfg.openrouter_referer,
				"X-Title": cfg.openrouter_title,
			}

	async def __aenter__(self) -> "GeminiClient":
		return self

	async def __aexit__(self, *exc_info: Any) -> None:
		await self.aclose()

	async def generate(self, prompt: str, *, system: Optional[str] = None, json_output: bool = False) -> str:
		payload: Dict[str, Any] = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
		if system:
			payload["systemInstruction"] = {"parts": [{"text": system}]}
		if json_output:
			payload["generationConfig"] = {"responseMimeType": "application/json"}
		try:
			return await self._post_gemini(payload)
		except (httpx.HTTPError, RuntimeError) as primary_err:
			if self._fallback is None:
				raise
			logger.warning("Gemini call failed (%s); retrying via OpenRouter", primary_err)
			full_prompt = f"{system}\n\n{prompt}" if system else prompt
			return await self._post_openrouter(full_prompt, primary_err)

	async def _post_gemini(self, payload: Dict[str, Any]) -> str:
		params: Dict[str, Any] = {}
		headers: Dict[str, str] = {}
		if self._auth_in_query:
			params["key"] = self.api_key
		else:
			headers["x-goog-api-key"] = self.api_key
		r = await self._client.post(self.base_url, params=params, headers=headers, json=payload)
		r.raise_for_status()
		try:
			data = r.json()
			return data["candidates"][0]["content"]["parts"][0]["text"]
		except (ValueError, KeyError, IndexError, TypeError):
			raise RuntimeError(f"Unexpected Gemini response: {r.text[:500]}")

	async def _post_openrouter(self, prompt: str, primary_err: Exception) -> str:
		assert self._fallback is not None
		payload = {"model": self._openrouter_model, "messages": [{"role": "user", "content": prompt}]}
		try:
			r = await self._fallback.post(self._openrouter_url, headers=self._openrouter_headers, json=payload)
			r.raise_for_status()
			return r.json()["choices"][0]["message"]["content"]
		except Exception as fallback_err:
			raise RuntimeError(
				f"Gemini primary call failed ({primary_err}); fallback via OpenRouter also failed"
			) from fallback_err

	async def aclose(self) -> None:
		await self._client.aclose()
		if self._fallback is not None:
			await self._fallback.aclose()
