"""
LLM client that walks an ordered list of transports.
"""

from __future__ import annotations

# local repo modules
from decklib.llm.errors import TransportUnavailableError


class LLMClient:
	"""
	Send prompts to the first transport that is available.

	A transport raising TransportUnavailableError hands the prompt to the
	next one. Any other error propagates to the caller unchanged.
	"""

	def __init__(self, transports: list, quiet: bool = False, log_fn=None) -> None:
		if not transports:
			raise ValueError("LLMClient needs at least one transport")
		self.transports = list(transports)
		self.quiet = bool(quiet)
		self.log_fn = log_fn
		self.last_transport_name = ""

	def _log(self, message: str) -> None:
		if self.quiet or self.log_fn is None:
			return
		self.log_fn(message)

	def generate(self, prompt: str, *, purpose: str = "", max_tokens: int = 1200) -> str:
		unavailable = []
		for transport in self.transports:
			try:
				text = transport.generate(prompt, purpose=purpose, max_tokens=max_tokens)
			except TransportUnavailableError as error:
				unavailable.append(f"{transport.name}: {error}")
				self._log(f"LLM transport {transport.name} unavailable, trying next: {error}")
				continue
			self.last_transport_name = transport.name
			return text
		raise TransportUnavailableError(
			"No LLM transport available (" + "; ".join(unavailable) + ")"
		)
