"""
Ollama chat transport.
"""

from __future__ import annotations

# Standard Library
import json
import urllib.error
import urllib.parse
import urllib.request

# local repo modules
from decklib.llm.errors import ContextWindowError
from decklib.llm.errors import LLMResponseError
from decklib.llm.errors import TransportUnavailableError


class OllamaTransport:
	name = "Ollama"

	def __init__(
		self,
		model: str,
		base_url: str = "http://localhost:11434",
		system_message: str = "",
		timeout: float = 120.0,
	) -> None:
		self.model = model
		self.base_url = base_url.rstrip("/")
		self.system_message = system_message
		self.timeout = float(timeout)

	def _build_messages(self, prompt: str) -> list[dict[str, str]]:
		messages: list[dict[str, str]] = []
		if self.system_message:
			messages.append({"role": "system", "content": self.system_message})
		messages.append({"role": "user", "content": prompt})
		return messages

	def _validated_chat_endpoint(self) -> str:
		"""
		Build and validate the Ollama chat endpoint URL.
		"""
		parsed = urllib.parse.urlparse(self.base_url)
		if parsed.scheme not in {"http", "https"}:
			raise TransportUnavailableError("Ollama base_url must use http or https.")
		if not parsed.netloc:
			raise TransportUnavailableError("Ollama base_url must include a host.")
		return urllib.parse.urljoin(self.base_url + "/", "api/chat")

	def generate(self, prompt: str, *, purpose: str, max_tokens: int) -> str:
		payload: dict[str, object] = {
			"model": self.model,
			"messages": self._build_messages(prompt),
			"stream": False,
			"format": "json",
			"options": {"num_predict": max_tokens},
		}
		request = urllib.request.Request(
			self._validated_chat_endpoint(),
			data=json.dumps(payload).encode("utf-8"),
			headers={"Content-Type": "application/json"},
			method="POST",
		)
		try:
			with urllib.request.urlopen(request, timeout=self.timeout) as response:  # nosec B310
				response_body = response.read()
		except urllib.error.HTTPError as exc:
			detail = exc.read().decode("utf-8", errors="replace")
			if "context" in detail.lower() and "length" in detail.lower():
				raise ContextWindowError(f"Ollama context window exceeded ({purpose})") from exc
			raise LLMResponseError(f"Ollama chat error: status {exc.code}: {detail[:200]}") from exc
		except urllib.error.URLError as exc:
			raise TransportUnavailableError("Ollama is unreachable.") from exc
		try:
			parsed = json.loads(response_body.decode("utf-8"))
		except ValueError as exc:
			raise LLMResponseError("Ollama chat returned invalid JSON") from exc
		if not isinstance(parsed, dict) or not isinstance(parsed.get("message"), dict):
			raise LLMResponseError("Ollama chat returned an unexpected response shape")
		assistant_message = parsed["message"].get("content") or ""
		if not assistant_message:
			raise LLMResponseError("Ollama chat returned empty content")
		return assistant_message
