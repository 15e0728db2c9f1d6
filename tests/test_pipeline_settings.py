"""Tests for pipeline/decklib/pipeline_settings.py."""

# Standard Library
import os
import sys

import pytest

# add pipeline directory to path for decklib imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "pipeline"))

from decklib import pipeline_settings


#============================================
def test_load_settings_missing_file(tmp_path) -> None:
	"""
	Missing settings file should return empty settings.
	"""
	settings, resolved_path = pipeline_settings.load_settings(str(tmp_path / "missing.yaml"))
	assert settings == {}
	assert resolved_path.endswith("missing.yaml")


#============================================
def test_load_settings_reads_yaml(tmp_path) -> None:
	"""
	YAML settings should be parsed into nested mapping values.
	"""
	settings_path = tmp_path / "settings.yaml"
	settings_path.write_text(
		"slides:\n"
		"  theme: seriph\n"
		"llm:\n"
		"  max_tokens: 999\n"
		"  providers:\n"
		"    ollama:\n"
		"      enabled: 'yes'\n",
		encoding="utf-8",
	)
	settings, _ = pipeline_settings.load_settings(str(settings_path))
	assert pipeline_settings.get_setting_str(settings, ["slides", "theme"], "") == "seriph"
	assert pipeline_settings.get_setting_int(settings, ["llm", "max_tokens"], 1200) == 999
	assert pipeline_settings.get_setting_bool(settings, ["llm", "providers", "ollama", "enabled"], False)


#============================================
def test_load_settings_rejects_non_mapping(tmp_path) -> None:
	"""
	A YAML list or broken YAML should raise RuntimeError.
	"""
	list_path = tmp_path / "list.yaml"
	list_path.write_text("- one\n- two\n", encoding="utf-8")
	with pytest.raises(RuntimeError):
		pipeline_settings.load_settings(str(list_path))
	broken_path = tmp_path / "broken.yaml"
	broken_path.write_text("slides: [unclosed\n", encoding="utf-8")
	with pytest.raises(RuntimeError):
		pipeline_settings.load_settings(str(broken_path))


#============================================
def test_get_setting_int_invalid_value_raises() -> None:
	"""
	Invalid integer setting should raise RuntimeError.
	"""
	settings = {"llm": {"max_tokens": "abc"}}
	with pytest.raises(RuntimeError):
		pipeline_settings.get_setting_int(settings, ["llm", "max_tokens"], 1200)


#============================================
def test_get_enabled_llm_transport_single_enabled() -> None:
	"""
	Exactly one enabled provider should be selected.
	"""
	settings = {
		"llm": {
			"providers": {
				"openai": {"enabled": True},
				"ollama": {"enabled": False},
			}
		}
	}
	assert pipeline_settings.get_enabled_llm_transport(settings) == "openai"


#============================================
def test_get_enabled_llm_transport_multiple_enabled_is_auto() -> None:
	"""
	More than one enabled provider should select the auto chain.
	"""
	settings = {
		"llm": {
			"providers": {
				"openai": {"enabled": True},
				"ollama": {"enabled": True},
			}
		}
	}
	assert pipeline_settings.get_enabled_llm_transport(settings) == "auto"


#============================================
def test_get_enabled_llm_transport_unknown_provider_raises() -> None:
	"""
	An enabled provider without a transport should raise RuntimeError.
	"""
	settings = {"llm": {"providers": {"apple": {"enabled": True}}}}
	with pytest.raises(RuntimeError):
		pipeline_settings.get_enabled_llm_transport(settings)


#============================================
def test_get_enabled_llm_transport_falls_back_to_legacy_value() -> None:
	"""
	Legacy llm.transport is used when providers are not enabled.
	"""
	settings = {"llm": {"transport": "openai", "providers": {}}}
	assert pipeline_settings.get_enabled_llm_transport(settings) == "openai"
	assert pipeline_settings.get_enabled_llm_transport({}) == "ollama"


#============================================
def test_get_llm_provider_model_defaults() -> None:
	"""
	Provider models fall back to llm.model, then to built-in defaults.
	"""
	settings = {"llm": {"providers": {"ollama": {"model": "qwen2.5:7b"}}}}
	assert pipeline_settings.get_llm_provider_model(settings, "ollama") == "qwen2.5:7b"
	assert pipeline_settings.get_llm_provider_model({"llm": {"model": "mistral"}}, "openai") == "mistral"
	assert pipeline_settings.get_llm_provider_model({}, "openai") == "gpt-4o-mini"
	assert pipeline_settings.get_llm_provider_model({}, "ollama") == "llama3.1"


#============================================
def test_get_openai_api_key_prefers_environment(monkeypatch) -> None:
	"""
	OPENAI_API_KEY wins over the settings value.
	"""
	settings = {"llm": {"providers": {"openai": {"api_key": "from-settings"}}}}
	monkeypatch.delenv("OPENAI_API_KEY", raising=False)
	assert pipeline_settings.get_openai_api_key(settings) == "from-settings"
	monkeypatch.setenv("OPENAI_API_KEY", "from-env")
	assert pipeline_settings.get_openai_api_key(settings) == "from-env"
