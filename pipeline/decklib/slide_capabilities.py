"""LLM-backed generate, format and validate steps for one slide.

All three steps share one client. Every response must be a single JSON
object; anything else is a SchemaError. A transport failure becomes a
CapabilityCallError, and an unreachable LLM becomes
CapabilityUnavailableError so the caller can switch to the fallback renderer.
"""

# Standard Library
import dataclasses
import json
import re

# local repo modules
from decklib import errors
from decklib import markup_sanitizer
from decklib import prompt_loader
from decklib import slide_validation
from decklib.llm.errors import ContextWindowError
from decklib.llm.errors import LLMResponseError
from decklib.llm.errors import TransportUnavailableError
from decklib.models import SLIDE_LAYOUTS
from decklib.models import SlideRecord
from decklib.models import ValidationResult


DEFAULT_MAX_TOKENS = 1200
FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?```$", re.DOTALL)
RECORD_FIELDS = ("title", "subtitle", "layout", "content", "right_content", "notes")
ROLE_GUIDANCE = {
	"title": (
		"Open the story: name the period, the scope and the main theme of the work. "
		"Prefer the cover or default layout."
	),
	"content": (
		"Tell what these commits changed and why it mattered, linking back to the "
		"previous slides."
	),
	"overview": (
		"These commits are already covered on earlier slides. Step back and give an "
		"overview of the whole period from the angle of this slide's focus."
	),
	"conclusion": (
		"Close the story: outcomes, what the work enables next, and who contributed. "
		"Use the center layout."
	),
}


#============================================
def strip_code_fence(text: str) -> str:
	"""
	Remove one surrounding markdown code fence from an LLM answer.
	"""
	clean = (text or "").strip()
	match = FENCE_RE.match(clean)
	if match:
		return match.group(1).strip()
	return clean


#============================================
def parse_json_object(text: str, purpose: str) -> dict:
	"""
	Parse an LLM answer that must be exactly one JSON object.
	"""
	clean = strip_code_fence(text)
	try:
		data = json.loads(clean)
	except json.JSONDecodeError as error:
		raise errors.SchemaError(f"{purpose}: response is not valid JSON ({error.msg})") from error
	if not isinstance(data, dict):
		raise errors.SchemaError(f"{purpose}: response is not a JSON object")
	return data


#============================================
def record_from_mapping(data: dict, purpose: str) -> SlideRecord:
	"""
	Build a SlideRecord from a parsed mapping, enforcing the record shape.
	"""
	values = {}
	for field_name in RECORD_FIELDS:
		value = data.get(field_name)
		if value is None:
			values[field_name] = ""
			continue
		if not isinstance(value, str):
			raise errors.SchemaError(f"{purpose}: field '{field_name}' must be a string")
		values[field_name] = value
	if not values["title"].strip():
		raise errors.SchemaError(f"{purpose}: missing 'title'")
	if not values["content"].strip():
		raise errors.SchemaError(f"{purpose}: missing 'content'")
	layout = values["layout"].strip().lower() or "default"
	if layout not in SLIDE_LAYOUTS:
		raise errors.SchemaError(f"{purpose}: unknown layout '{values['layout']}'")
	values["layout"] = layout
	return SlideRecord(**values)


#============================================
def _string_list(data: dict, key: str, purpose: str) -> tuple[str, ...]:
	value = data.get(key, [])
	if value is None:
		return ()
	if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
		raise errors.SchemaError(f"{purpose}: '{key}' must be a list of strings")
	return tuple(item.strip() for item in value if item.strip())


#============================================
def describe_segment_commits(commits) -> str:
	lines = []
	for commit in commits:
		lines.append(
			f"- {commit.short_id} {commit.subject} ({commit.author}, "
			f"{commit.timestamp.date().isoformat()}, {commit.category}, "
			f"+{commit.stats.insertions}/-{commit.stats.deletions})"
		)
	return "\n".join(lines) or "- none"


#============================================
def describe_previous_slides(context) -> str:
	if not context.previous_summaries:
		return "(none, this is the first slide)"
	lines = []
	for summary in context.previous_summaries:
		lines.append(f"- {summary['title']}: {summary['content']}")
	return "\n".join(lines)


#============================================
def record_to_json(record: SlideRecord) -> str:
	return json.dumps(dataclasses.asdict(record), ensure_ascii=False, indent=2)


#============================================
class SlideCapabilities:
	"""
	Adapter that turns one LLM client into the three slide capabilities.
	"""

	def __init__(self, llm_client, theme: str = "default", max_tokens: int = DEFAULT_MAX_TOKENS, log_fn=None):
		self.llm_client = llm_client
		self.theme = theme or "default"
		self.max_tokens = int(max_tokens)
		self.log_fn = log_fn

	#============================================
	def log(self, message: str) -> None:
		if self.log_fn is not None:
			self.log_fn(message)

	#============================================
	def _call(self, prompt: str, purpose: str) -> str:
		"""
		Send one prompt and map transport failures to capability errors.
		"""
		try:
			return self.llm_client.generate(
				prompt=prompt,
				purpose=purpose,
				max_tokens=self.max_tokens,
			)
		except TransportUnavailableError as error:
			raise errors.CapabilityUnavailableError(str(error)) from error
		except (ContextWindowError, LLMResponseError, OSError, ValueError) as error:
			raise errors.CapabilityCallError(f"{purpose}: {error}") from error

	#============================================
	def build_generate_prompt(self, segment, context, style) -> str:
		"""
		Render the generation request for one segment.
		"""
		source_commits = segment.commits or tuple(context.all_commits)
		guidance_key = segment.role
		if segment.role == "content" and not segment.commits:
			guidance_key = "overview"
		template = prompt_loader.load_prompt("slide_generate.txt")
		values = {
			"segment_number": str(context.segment_index + 1),
			"total_segments": str(context.total_segments),
			"role": segment.role,
			"focus_label": segment.focus_label,
			"overall_theme": context.overall_theme,
			"role_guidance": ROLE_GUIDANCE[guidance_key],
			"style_brief": style.brief(self.theme, source_commits),
			"segment_commits": describe_segment_commits(source_commits),
			"previous_slides": describe_previous_slides(context),
		}
		return prompt_loader.render_prompt(template, values)

	#============================================
	def generate(self, segment, context, style) -> SlideRecord:
		"""
		Draft one slide for a segment.

		Raises:
			SchemaError: the answer is not a conforming slide object.
			CapabilityCallError: the LLM call failed.
			CapabilityUnavailableError: no LLM transport is reachable.
		"""
		purpose = f"slide {context.segment_index + 1} generate"
		prompt = self.build_generate_prompt(segment, context, style)
		answer = self._call(prompt, purpose)
		return record_from_mapping(parse_json_object(answer, purpose), purpose)

	#============================================
	def format(self, record: SlideRecord) -> SlideRecord:
		"""
		Ask the LLM to clean up a draft, then run the pure sanitizer on it.
		"""
		purpose = "slide format"
		template = prompt_loader.load_prompt("slide_format.txt")
		prompt = prompt_loader.render_prompt(template, {"slide_json": record_to_json(record)})
		answer = self._call(prompt, purpose)
		formatted = record_from_mapping(parse_json_object(answer, purpose), purpose)
		return markup_sanitizer.sanitize_slide_record(formatted)

	#============================================
	def validate(self, record: SlideRecord) -> ValidationResult:
		"""
		Combine the deterministic checks with an advisory LLM review.

		The slide is valid only when both agree. Issues from the
		deterministic checks come first.
		"""
		purpose = "slide validate"
		checked = slide_validation.check_slide_record(record)
		template = prompt_loader.load_prompt("slide_validate.txt")
		prompt = prompt_loader.render_prompt(template, {"slide_json": record_to_json(record)})
		data = parse_json_object(self._call(prompt, purpose), purpose)
		verdict = data.get("is_valid")
		if not isinstance(verdict, bool):
			raise errors.SchemaError(f"{purpose}: 'is_valid' must be true or false")
		review_issues = _string_list(data, "issues", purpose)
		if not verdict and not review_issues:
			review_issues = ("reviewer rejected the slide without details",)
		recommendations = checked.recommendations + _string_list(data, "recommendations", purpose)
		return ValidationResult(
			is_valid=checked.is_valid and verdict,
			issues=checked.issues + review_issues,
			recommendations=recommendations,
		)
