from decklib.llm.client import LLMClient
from decklib.llm.errors import ContextWindowError
from decklib.llm.errors import LLMResponseError
from decklib.llm.errors import TransportUnavailableError
from decklib.llm.transports import OllamaTransport
from decklib.llm.transports import OpenAITransport

__all__ = [
	"ContextWindowError",
	"LLMClient",
	"LLMResponseError",
	"OllamaTransport",
	"OpenAITransport",
	"TransportUnavailableError",
]
