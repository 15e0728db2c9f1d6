"""Tests for pipeline/decklib/prompt_loader.py."""

# Standard Library
import os
import sys

import pytest

# add pipeline directory to path for decklib imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "pipeline"))

from decklib import prompt_loader


#============================================
def test_load_prompt_returns_string() -> None:
	"""
	load_prompt should return a non-empty string for an existing prompt file.
	"""
	text = prompt_loader.load_prompt("slide_generate.txt")
	assert isinstance(text, str)
	assert len(text) > 50


#============================================
def test_load_prompt_missing_file_raises() -> None:
	"""
	load_prompt should raise FileNotFoundError for missing prompt files.
	"""
	with pytest.raises(FileNotFoundError):
		prompt_loader.load_prompt("nonexistent_prompt_file.txt")


#============================================
def test_load_prompt_file_reads_explicit_path(tmp_path) -> None:
	"""
	load_prompt_file should read a template outside the prompts folder.
	"""
	path = tmp_path / "custom.txt"
	path.write_text("Theme: {{theme}}", encoding="utf-8")
	assert prompt_loader.load_prompt_file(str(path)) == "Theme: {{theme}}"


#============================================
def test_render_prompt_replaces_tokens() -> None:
	"""
	render_prompt should replace {{token}} placeholders with values.
	"""
	template = "Hello {{name}}, you have {{count}} items."
	result = prompt_loader.render_prompt(template, {
		"name": "Alice",
		"count": "42",
	})
	assert result == "Hello Alice, you have 42 items."


#============================================
def test_render_prompt_preserves_unreplaced_tokens() -> None:
	"""
	render_prompt should leave unknown tokens intact.
	"""
	template = "Value: {{known}} and {{unknown}}"
	result = prompt_loader.render_prompt(template, {"known": "yes"})
	assert result == "Value: yes and {{unknown}}"


#============================================
def test_load_and_render_round_trip() -> None:
	"""
	Load a real prompt and render it with sample values.
	"""
	template = prompt_loader.load_prompt("slide_format.txt")
	rendered = prompt_loader.render_prompt(template, {
		"slide_json": '{"title": "Parser"}',
	})
	assert "{{slide_json}}" not in rendered
	assert '{"title": "Parser"}' in rendered


#============================================
def test_all_prompt_files_exist() -> None:
	"""
	All expected prompt files should exist in decklib/prompts/.
	"""
	expected_files = [
		"slide_generate.txt",
		"slide_format.txt",
		"slide_validate.txt",
		"style_default.txt",
		"style_executive.txt",
		"style_technical.txt",
		"style_retrospective.txt",
	]
	for filename in expected_files:
		path = os.path.join(prompt_loader.PROMPT_ROOT, filename)
		assert os.path.isfile(path), f"Missing prompt file: {filename}"
