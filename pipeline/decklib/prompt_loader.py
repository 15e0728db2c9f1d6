# Standard Library
import os


_PROMPT_CACHE = {}
PROMPT_ROOT = os.path.join(os.path.dirname(os.path.abspath(__file__)), "prompts")


#============================================
def load_prompt(prompt_name: str) -> str:
	"""
	Load a prompt template from decklib/prompts/.
	"""
	if not prompt_name:
		raise ValueError("prompt_name is required")
	path = os.path.join(PROMPT_ROOT, prompt_name)
	return load_prompt_file(path)


#============================================
def load_prompt_file(path: str) -> str:
	"""
	Load a prompt template from an explicit file path, with caching.
	"""
	resolved = os.path.abspath(path)
	if resolved in _PROMPT_CACHE:
		return _PROMPT_CACHE[resolved]
	if not os.path.exists(resolved):
		raise FileNotFoundError(f"Prompt file not found: {resolved}")
	with open(resolved, "r", encoding="utf-8") as handle:
		text = handle.read()
	_PROMPT_CACHE[resolved] = text
	return text


#============================================
def render_prompt(template: str, values: dict[str, str]) -> str:
	"""
	Replace {{token}} placeholders with supplied values.
	"""
	if not template:
		return ""
	rendered = template
	for key, value in values.items():
		token = "{{" + key + "}}"
		replacement = str(value) if value is not None else ""
		rendered = rendered.replace(token, replacement)
	return rendered
