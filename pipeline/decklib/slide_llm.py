# local repo modules
from decklib import pipeline_settings
from decklib.llm import LLMClient
from decklib.llm import OllamaTransport
from decklib.llm import OpenAITransport


TRANSPORT_CHOICES = ("ollama", "openai", "auto")
DEFAULT_OLLAMA_URL = "http://localhost:11434"
DEFAULT_OPENAI_URL = "https://api.openai.com"
SYSTEM_MESSAGE = (
	"You write slides for Slidev presentations about software development history. "
	"Always answer with exactly one JSON object and nothing else."
)


#============================================
def describe_llm_execution_path(transport_name: str, model_override: str) -> str:
	"""
	Describe configured LLM transport execution order.
	"""
	model_label = model_override or "auto"
	if transport_name == "ollama":
		return f"ollama(model={model_label})"
	if transport_name == "openai":
		return f"openai(model={model_label})"
	if transport_name == "auto":
		return f"ollama(model={model_label}) -> openai(model={model_label})"
	return transport_name


#============================================
def transport_needs_openai_key(transport_name: str) -> bool:
	"""
	Return True when the transport chain cannot run without an OpenAI key.
	"""
	return transport_name == "openai"


#============================================
def _build_ollama(settings: dict, model_override: str) -> OllamaTransport:
	model = model_override or pipeline_settings.get_llm_provider_model(settings, "ollama")
	base_url = pipeline_settings.get_llm_provider_base_url(settings, "ollama", DEFAULT_OLLAMA_URL)
	return OllamaTransport(model=model, base_url=base_url, system_message=SYSTEM_MESSAGE)


#============================================
def _build_openai(settings: dict, model_override: str) -> OpenAITransport:
	model = model_override or pipeline_settings.get_llm_provider_model(settings, "openai")
	base_url = pipeline_settings.get_llm_provider_base_url(settings, "openai", DEFAULT_OPENAI_URL)
	return OpenAITransport(
		model=model,
		api_key=pipeline_settings.get_openai_api_key(settings),
		base_url=base_url,
		system_message=SYSTEM_MESSAGE,
	)


#============================================
def create_llm_client(
	settings: dict,
	transport_name: str,
	model_override: str,
	quiet: bool,
	log_fn=None,
) -> LLMClient:
	"""
	Create the LLMClient for one deck run.
	"""
	transports = []
	if transport_name == "ollama":
		transports.append(_build_ollama(settings, model_override))
	elif transport_name == "openai":
		transports.append(_build_openai(settings, model_override))
	elif transport_name == "auto":
		transports.append(_build_ollama(settings, model_override))
		transports.append(_build_openai(settings, model_override))
	else:
		raise RuntimeError(f"Unsupported llm transport: {transport_name}")
	return LLMClient(transports=transports, quiet=quiet, log_fn=log_fn)
