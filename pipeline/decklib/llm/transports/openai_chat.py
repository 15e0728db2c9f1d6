"""
OpenAI chat completions transport.
"""

from __future__ import annotations

# PIP3 modules
import requests

# local repo modules
from decklib.llm.errors import ContextWindowError
from decklib.llm.errors import LLMResponseError
from decklib.llm.errors import TransportUnavailableError


class OpenAITransport:
	name = "OpenAI"

	def __init__(
		self,
		model: str,
		api_key: str,
		base_url: str = "https://api.openai.com",
		system_message: str = "",
		timeout: float = 120.0,
	) -> None:
		self.model = model
		self.api_key = (api_key or "").strip()
		self.base_url = base_url.rstrip("/")
		self.system_message = system_message
		self.timeout = float(timeout)

	def _build_messages(self, prompt: str) -> list[dict[str, str]]:
		messages: list[dict[str, str]] = []
		if self.system_message:
			messages.append({"role": "system", "content": self.system_message})
		messages.append({"role": "user", "content": prompt})
		return messages

	def generate(self, prompt: str, *, purpose: str, max_tokens: int) -> str:
		if not self.api_key:
			raise TransportUnavailableError("OPENAI_API_KEY is not set.")
		payload = {
			"model": self.model,
			"messages": self._build_messages(prompt),
			"max_tokens": max_tokens,
			"response_format": {"type": "json_object"},
		}
		headers = {
			"Authorization": f"Bearer {self.api_key}",
			"Content-Type": "application/json",
		}
		try:
			response = requests.post(
				f"{self.base_url}/v1/chat/completions",
				json=payload,
				headers=headers,
				timeout=self.timeout,
			)
		except (requests.ConnectionError, requests.Timeout) as exc:
			raise TransportUnavailableError("OpenAI API is unreachable.") from exc
		if response.status_code in (401, 403):
			raise TransportUnavailableError(f"OpenAI rejected the credential: status {response.status_code}")
		if response.status_code >= 400:
			detail = response.text[:200]
			if "context_length_exceeded" in detail:
				raise ContextWindowError(f"OpenAI context window exceeded ({purpose})")
			raise LLMResponseError(f"OpenAI chat error: status {response.status_code}: {detail}")
		try:
			parsed = response.json()
		except ValueError as exc:
			raise LLMResponseError("OpenAI chat returned invalid JSON") from exc
		if not isinstance(parsed, dict):
			raise LLMResponseError("OpenAI chat returned an unexpected response shape")
		choices = parsed.get("choices") or []
		if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
			raise LLMResponseError("OpenAI chat returned no choices")
		message = choices[0].get("message")
		assistant_message = (message.get("content") if isinstance(message, dict) else "") or ""
		if not assistant_message:
			raise LLMResponseError("OpenAI chat returned empty content")
		return assistant_message
