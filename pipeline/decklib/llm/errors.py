"""
Transport-level errors shared by every LLM transport.
"""


class TransportUnavailableError(RuntimeError):
	"""
	The transport cannot be reached or is not configured.
	"""


class ContextWindowError(RuntimeError):
	"""
	The prompt does not fit the model context window.
	"""


class LLMResponseError(RuntimeError):
	"""
	The transport answered, but with an error status or empty content.
	"""
