import os

import yaml


LLM_PROVIDERS = ("ollama", "openai")
DEFAULT_OLLAMA_MODEL = "llama3.1"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"


#============================================
def get_repo_root() -> str:
	"""
	Return repository root based on this module location.
	"""
	module_dir = os.path.dirname(os.path.abspath(__file__))
	repo_root = os.path.dirname(os.path.dirname(module_dir))
	return repo_root


#============================================
def resolve_settings_path(path_text: str) -> str:
	"""
	Resolve settings path against cwd first, then repo root.
	"""
	if os.path.isabs(path_text):
		return path_text
	cwd_candidate = os.path.abspath(path_text)
	if os.path.isfile(cwd_candidate):
		return cwd_candidate
	repo_root = get_repo_root()
	repo_candidate = os.path.join(repo_root, path_text)
	return os.path.abspath(repo_candidate)


#============================================
def load_yaml_mapping(path: str) -> dict:
	"""
	Read one YAML file that must hold a mapping; a missing file is empty.
	"""
	if not os.path.isfile(path):
		return {}
	with open(path, "r", encoding="utf-8") as handle:
		try:
			data = yaml.safe_load(handle.read())
		except yaml.YAMLError as error:
			raise RuntimeError(f"Invalid YAML in {path}: {error}") from error
	if data is None:
		return {}
	if not isinstance(data, dict):
		raise RuntimeError(f"Settings file must contain a mapping: {path}")
	return data


#============================================
def load_settings(path_text: str) -> tuple[dict, str]:
	"""
	Load YAML settings dict and return it with resolved path.
	"""
	resolved_path = resolve_settings_path(path_text)
	return load_yaml_mapping(resolved_path), resolved_path


#============================================
def get_nested_value(settings: dict, keys: list[str], default_value):
	"""
	Read nested mapping value by key path.
	"""
	current = settings
	for key in keys:
		if not isinstance(current, dict):
			return default_value
		if key not in current:
			return default_value
		current = current[key]
	return current


#============================================
def get_setting_str(settings: dict, keys: list[str], default_value: str) -> str:
	"""
	Read a string setting from nested path with fallback.
	"""
	value = get_nested_value(settings, keys, default_value)
	if value is None:
		return default_value
	return str(value).strip()


#============================================
def get_setting_int(settings: dict, keys: list[str], default_value: int) -> int:
	"""
	Read an integer setting from nested path with fallback.
	"""
	value = get_nested_value(settings, keys, default_value)
	if value is None:
		return default_value
	try:
		return int(value)
	except ValueError as error:
		raise RuntimeError(f"Invalid integer for setting path {'.'.join(keys)}: {value}") from error


#============================================
def get_setting_bool(settings: dict, keys: list[str], default_value: bool) -> bool:
	"""
	Read a boolean setting from nested path with fallback.
	"""
	value = get_nested_value(settings, keys, default_value)
	if isinstance(value, bool):
		return value
	if isinstance(value, str):
		text = value.strip().lower()
		if text in {"1", "true", "yes", "on"}:
			return True
		if text in {"0", "false", "no", "off"}:
			return False
		raise RuntimeError(f"Invalid boolean for setting path {'.'.join(keys)}: {value}")
	if isinstance(value, int):
		return value != 0
	if value is None:
		return default_value
	raise RuntimeError(f"Invalid boolean for setting path {'.'.join(keys)}: {value}")


#============================================
def get_enabled_llm_transport(settings: dict) -> str:
	"""
	Resolve the LLM transport from enabled providers in settings.

	One enabled provider selects that provider. Several enabled providers
	select 'auto', which tries ollama first and then openai. Nothing
	enabled falls back to llm.transport, then to 'ollama'.
	"""
	providers = get_nested_value(settings, ["llm", "providers"], {})
	if not isinstance(providers, dict):
		raise RuntimeError("Invalid settings: llm.providers must be a mapping.")

	enabled = []
	for provider_name, provider_config in providers.items():
		if not isinstance(provider_config, dict):
			continue
		enabled_flag = get_setting_bool(
			{"provider": {"enabled": provider_config.get("enabled", False)}},
			["provider", "enabled"],
			False,
		)
		if not enabled_flag:
			continue
		if provider_name not in LLM_PROVIDERS:
			raise RuntimeError(f"Unsupported llm provider in settings.yaml: {provider_name}")
		enabled.append(provider_name)

	if len(enabled) > 1:
		return "auto"
	if len(enabled) == 1:
		return enabled[0]
	legacy_transport = get_setting_str(settings, ["llm", "transport"], "").strip()
	if legacy_transport:
		return legacy_transport
	return "ollama"


#============================================
def get_llm_provider_model(settings: dict, provider_name: str) -> str:
	"""
	Read default model for one provider from settings.
	"""
	model_value = get_setting_str(
		settings,
		["llm", "providers", provider_name, "model"],
		"",
	)
	if model_value:
		return model_value
	model_value = get_setting_str(settings, ["llm", "model"], "")
	if model_value:
		return model_value
	if provider_name == "openai":
		return DEFAULT_OPENAI_MODEL
	return DEFAULT_OLLAMA_MODEL


#============================================
def get_llm_provider_base_url(settings: dict, provider_name: str, default_value: str) -> str:
	"""
	Read an optional base_url override for one provider.
	"""
	return get_setting_str(
		settings,
		["llm", "providers", provider_name, "base_url"],
		default_value,
	) or default_value


#============================================
def get_openai_api_key(settings: dict) -> str:
	"""
	Return the OpenAI key from OPENAI_API_KEY, then from settings.
	"""
	env_value = os.environ.get("OPENAI_API_KEY", "").strip()
	if env_value:
		return env_value
	return get_setting_str(settings, ["llm", "providers", "openai", "api_key"], "")
