from __future__ import annotations
import json
import re
import httpx
from typing import Any, Dict, Optional
from .settings import settings


class GeminiError(RuntimeError):
	pass


class GeminiClient:
	def __init__(
		self,
		api_key: Optional[str] = None,
		*,
		base_url: Optional[str] = None,
		model: Optional[str] = None,
		transport: Optional[httpx.AsyncBaseTransport] = None,
	) -> None:
		self.api_key = api_key or settings.gemini_api_key
		if not self.api_key:
			raise ValueError("GEMINI_API_KEY is not configured")
		self.model = model or settings.gemini_model
		# Google AI Studio (Generative Language API)
		self.base_url = base_url or f"https://generativelanguage.googleapis.com/v1beta/models/{self.model}:generateContent"
		self._client = httpx.AsyncClient(timeout=30, transport=transport)

	async def generate(self, prompt: str) -> str:
		payload: Dict[str, Any] = {
			"contents": [{"parts": [{"text": prompt}]}],
			"generationConfig": {"responseMimeType": "application/json"},
		}
		try:
			r = await self._client.post(self.base_url, params={"key": self.api_key}, json=payload)
			r.raise_for_status()
		except httpx.HTTPError as err:
			raise GeminiError(f"Gemini call failed: {err}") from err
		try:
			data = r.json()
			return data["candidates"][0]["content"]["parts"][0]["text"]
		except (ValueError, KeyError, IndexError, TypeError) as err:
			raise GeminiError(f"Unexpected Gemini response: {r.text}") from err

	async def aclose(self) -> None:
		await self._client.aclose()


def extract_json_object(text: str) -> Dict[str, Any]:
	"""Pull the first JSON object out of a model reply, tolerating code fences."""
	candidates = [text]
	code_block = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", text)
	if code_block:
		candidates.append(code_block.group(1))
	first = text.find("{")
	last = text.rfind("}")
	if first != -1 and last > first:
		candidates.append(text[first : last + 1])
	for candidate in candidates:
		try:
			value = json.loads(candidate)
		except ValueError:
			continue
		if isinstance(value, dict):
			return value
	raise GeminiError("Model did not return a JSON object")
