"""Deterministic slide checks.

Checks run in severity order: stray alias markers, malformed block
nesting, missing or placeholder title and content, and an empty right
column on a two-cols slide. Word-count guidance is advisory only.
"""

# local repo modules
from decklib import markup_sanitizer
from decklib import text_utils
from decklib.models import ValidationResult


PLACEHOLDER_TEXTS = ("content placeholder", "tbd", "todo", "lorem ipsum", "...", "placeholder")
MIN_RECOMMENDED_WORDS = 50
MAX_RECOMMENDED_WORDS = 200
MAX_RECOMMENDED_TITLE_CHARS = 60
MIN_DECK_SLIDES = 3


#============================================
def is_placeholder_text(text: str) -> bool:
	"""
	Return True for blank text or a known filler string.
	"""
	clean = text_utils.collapse_whitespace(text).lower().strip(" .:-*#")
	if not clean:
		return True
	if clean in PLACEHOLDER_TEXTS:
		return True
	return "lorem ipsum" in clean or "content placeholder" in clean


#============================================
def check_alias_markers(record) -> list[str]:
	issues = []
	for field_name in ("title", "subtitle", "content", "right_content"):
		markers = markup_sanitizer.find_alias_markers(getattr(record, field_name))
		if markers:
			issues.append(f"{field_name} has stray alias markers: {', '.join(markers)}")
	return issues


#============================================
def check_block_nesting(record) -> list[str]:
	issues = []
	for field_name in ("content", "right_content"):
		for problem in markup_sanitizer.find_nesting_issues(getattr(record, field_name)):
			issues.append(f"{field_name}: {problem}")
	return issues


#============================================
def check_meaningful_text(record) -> list[str]:
	issues = []
	if is_placeholder_text(record.title):
		issues.append("title is empty or a placeholder")
	if is_placeholder_text(record.content):
		issues.append("content is empty or a placeholder")
	return issues


#============================================
def check_layout(record) -> list[str]:
	if record.layout == "two-cols" and not record.right_content.strip():
		return ["two-cols layout needs right column content"]
	return []


#============================================
def build_recommendations(record) -> list[str]:
	"""
	Collect advisory notes that never fail a slide.
	"""
	notes = []
	word_count = text_utils.count_words(record.content + "\n" + record.right_content)
	if word_count < MIN_RECOMMENDED_WORDS:
		notes.append(
			f"content has {word_count} words; aim for {MIN_RECOMMENDED_WORDS}-{MAX_RECOMMENDED_WORDS}"
		)
	elif word_count > MAX_RECOMMENDED_WORDS:
		notes.append(
			f"content has {word_count} words; trim toward {MAX_RECOMMENDED_WORDS}"
		)
	if len(record.title) > MAX_RECOMMENDED_TITLE_CHARS:
		notes.append(f"title is longer than {MAX_RECOMMENDED_TITLE_CHARS} characters")
	return notes


#============================================
def check_slide_record(record) -> ValidationResult:
	"""
	Run every deterministic check against one slide record.

	Args:
		record: SlideRecord to check.

	Returns:
		ValidationResult with issues listed in severity order.
	"""
	issues = []
	issues.extend(check_alias_markers(record))
	issues.extend(check_block_nesting(record))
	issues.extend(check_meaningful_text(record))
	issues.extend(check_layout(record))
	return ValidationResult(
		is_valid=not issues,
		issues=tuple(issues),
		recommendations=tuple(build_recommendations(record)),
	)


#============================================
def find_deck_problems(deck) -> list[str]:
	"""
	Return deck-level problems that should send a deck to the fallback renderer.
	"""
	problems = []
	if len(deck.slides) < MIN_DECK_SLIDES:
		problems.append(f"deck has {len(deck.slides)} slides, fewer than {MIN_DECK_SLIDES}")
	for position, slide in enumerate(deck.slides, start=1):
		result = check_slide_record(slide)
		if not result.is_valid:
			problems.append(f"slide {position}: {'; '.join(result.issues)}")
	return problems
