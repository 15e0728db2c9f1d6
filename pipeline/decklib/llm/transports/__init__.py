from decklib.llm.transports.ollama import OllamaTransport
from decklib.llm.transports.openai_chat import OpenAITransport

__all__ = ["OllamaTransport", "OpenAITransport"]
