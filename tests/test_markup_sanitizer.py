"""Tests for pipeline/decklib/markup_sanitizer.py."""

# Standard Library
import os
import random
import sys

import pytest

# add pipeline directory to path for decklib imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "pipeline"))

from decklib import markup_sanitizer
from decklib.models import SlideRecord


FUZZ_TOKENS = (
	"*", "**", "&", "Name", " ", "\n", "-", "- ", "`", "```",
	"<<:", "#", "> ", "---", "&amp;", "x",
)


MESSY_TEXT = (
	"Intro text\n"
	"- item *Alias\n"
	"**Bold start\n"
	"- a\n"
	"- b**\n"
	"## Head\n"
	"> quote\n"
	"more\n"
	"\n\n\n"
	"```\n"
	"code *x \n"
	"```\n"
	"&Anchor here <<: x\x07"
)


#============================================
def test_stray_alias_and_anchor_markers_are_dropped():
	"""Bare '*Name' and '&Name' tokens lose their marker."""
	result = markup_sanitizer.sanitize_text("Built with *Config and &Anchor support")
	assert result == "Built with Config and Anchor support"
	assert markup_sanitizer.sanitize_text("See *Ref") == "See Ref"


#============================================
def test_paired_emphasis_and_entities_survive():
	"""Italic, bold, code spans and HTML entities are left alone."""
	text = "This is *italic* and **bold** text &amp; `*ptr` more"
	assert markup_sanitizer.sanitize_text(text) == text


#============================================
def test_merge_key_and_control_chars_removed():
	"""The '<<:' merge key and control characters never survive."""
	result = markup_sanitizer.sanitize_text("a <<: b")
	assert "<<:" not in result
	nested = markup_sanitizer.strip_control_chars("<<<<::")
	assert "<<:" not in nested
	assert markup_sanitizer.sanitize_text("Hello\x07 world\x00") == "Hello world"


#============================================
def test_list_glued_to_paragraph_gets_blank_line():
	"""A list directly under prose is separated by one blank line."""
	result = markup_sanitizer.sanitize_text("Highlights:\n- one\n- two")
	assert result == "Highlights:\n\n- one\n- two"


#============================================
def test_bold_span_around_list_is_closed_before_list():
	"""A bold span opened before a list is closed on its own line."""
	result = markup_sanitizer.sanitize_text("**Highlights:\n- one\n- two**")
	assert result == "**Highlights:**\n\n- one\n- two"


#============================================
def test_heading_and_blank_runs_normalized():
	"""Headings get a gap and blank runs collapse to one line."""
	assert markup_sanitizer.sanitize_text("## Title\nText") == "## Title\n\nText"
	assert markup_sanitizer.sanitize_text("a\n\n\n\nb") == "a\n\nb"


#============================================
def test_separator_lines_dropped():
	"""A stray '---' line cannot split the slide."""
	assert markup_sanitizer.sanitize_text("a\n---\nb") == "a\n\nb"


#============================================
def test_fenced_code_is_untouched():
	"""Fence content keeps markers, blank lines and trailing spaces."""
	text = "Intro\n```python\nx = *ptr \n\n\n\ny\n```\nAfter"
	result = markup_sanitizer.sanitize_text(text)
	assert "```python\nx = *ptr \n\n\n\ny\n```" in result
	assert result.startswith("Intro\n\n```python")
	assert result.endswith("```\n\nAfter")


#============================================
def test_html_markup_converted():
	"""div wrappers vanish and list tags become markdown."""
	result = markup_sanitizer.sanitize_text("<div class='x'>Hi <strong>there</strong></div>")
	assert result == "Hi **there**"
	result = markup_sanitizer.sanitize_text("Items:<ul><li>one</li><li>two</li></ul>")
	assert result == "Items:\n\n- one\n- two"


#============================================
def test_messy_text_cleans_in_one_call():
	"""Glued lists, bold-wrapped lists and stray markers are all repaired."""
	once = markup_sanitizer.sanitize_text(MESSY_TEXT)
	assert markup_sanitizer.find_alias_markers(once) == []
	assert markup_sanitizer.find_nesting_issues(once) == []


#============================================
def _random_markup(rng: random.Random) -> str:
	return "".join(rng.choice(FUZZ_TOKENS) for _ in range(rng.randint(1, 14)))


#============================================
@pytest.mark.parametrize("seed", range(40))
def test_sanitize_text_is_idempotent(seed):
	"""A second pass changes nothing and no alias or anchor marker survives."""
	rng = random.Random(seed)
	for _ in range(25):
		text = _random_markup(rng)
		once = markup_sanitizer.sanitize_text(text)
		assert markup_sanitizer.sanitize_text(once) == once, repr(text)
		assert markup_sanitizer.find_alias_markers(once) == [], repr(text)


#============================================
@pytest.mark.parametrize("seed", range(40))
def test_sanitize_inline_is_idempotent(seed):
	"""Single-line fields reach the same fixed point."""
	rng = random.Random(1000 + seed)
	for _ in range(25):
		text = _random_markup(rng)
		once = markup_sanitizer.sanitize_inline(text)
		assert markup_sanitizer.sanitize_inline(once) == once, repr(text)
		assert markup_sanitizer.find_alias_markers(once) == [], repr(text)


#============================================
@pytest.mark.parametrize(
	"text, expected",
	[
		("see **&Name here", "see Name here"),
		("**&Name", "Name"),
		("&*Name", "Name"),
		("`***&Name", "`Name"),
	],
)
def test_exposed_markers_are_dropped(text, expected):
	"""Removing one marker never leaves another one behind."""
	assert markup_sanitizer.sanitize_text(text) == expected
	assert markup_sanitizer.sanitize_inline(text) == expected


#============================================
def test_code_span_inside_bold_survives():
	"""Inline code nested in a bold span comes back intact."""
	text = "The **new `parse()` helper** landed"
	result = markup_sanitizer.sanitize_text(text)
	assert result == text
	assert "\x00" not in result
	assert markup_sanitizer.sanitize_inline(text) == text
	assert markup_sanitizer.find_alias_markers(text) == []


#============================================
def test_find_alias_markers():
	"""Only unpaired markers are reported."""
	assert markup_sanitizer.find_alias_markers("Uses *Config now") == ["*Config"]
	assert markup_sanitizer.find_alias_markers("*italic* and **bold**") == []
	assert markup_sanitizer.find_alias_markers("fish &amp; chips") == []
	assert "<<:" in markup_sanitizer.find_alias_markers("a <<: b")


#============================================
def test_find_nesting_issues():
	"""Glued lists, bold-wrapped lists and separators are reported."""
	assert markup_sanitizer.find_nesting_issues("Intro\n\n- a") == []
	glued = markup_sanitizer.find_nesting_issues("Intro\n- a")
	assert glued == ["list glued to a paragraph on line 2"]
	bold = markup_sanitizer.find_nesting_issues("**Bold\n- a")
	assert bold == ["list nested inside a bold span on line 2"]
	separator = markup_sanitizer.find_nesting_issues("a\n---\nb")
	assert separator == ["slide separator '---' inside content on line 2"]


#============================================
def test_sanitize_inline_collapses_whitespace():
	"""Single-line fields become one clean line."""
	assert markup_sanitizer.sanitize_inline("Release *Alpha notes\n") == "Release Alpha notes"
	assert markup_sanitizer.sanitize_inline("  two \n lines ") == "two lines"


#============================================
def test_sanitize_slide_record():
	"""Layouts normalize, notes cannot close their comment, input is unchanged."""
	record = SlideRecord(
		title="*Alpha release",
		content="Text\n- item",
		layout="Two-Cols",
		notes="a --> b",
	)
	clean = markup_sanitizer.sanitize_slide_record(record)
	assert clean.layout == "two-cols"
	assert clean.title == "Alpha release"
	assert clean.content == "Text\n\n- item"
	assert clean.notes == "a -> b"
	assert record.title == "*Alpha release"
	unknown = markup_sanitizer.sanitize_slide_record(SlideRecord(title="T", content="c", layout="fancy"))
	assert unknown.layout == "default"
	assert markup_sanitizer.sanitize_slide_record(clean) == clean
