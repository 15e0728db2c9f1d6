"""Tests for pipeline/decklib/deck_orchestrator.py."""

# Standard Library
import os
import sys
from datetime import datetime
from datetime import timezone

import pytest

# add pipeline directory to path for decklib imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "pipeline"))

from decklib import deck_orchestrator
from decklib import errors
from decklib import fallback_renderer
from decklib import prompt_styles
from decklib import slide_capabilities
from decklib.models import Commit
from decklib.models import CommitStats
from decklib.models import FileChange
from decklib.models import SlideRecord
from decklib.models import ValidationResult


GOOD_CONTENT = "The parser got faster and error messages got clearer.\n\n- parser rewrite\n- clearer errors"


#============================================
class FakeCapabilities:
	"""
	Scripted generate/format/validate steps keyed by segment index.
	"""

	def __init__(self, reject=(), fail_generate=(), unavailable=False, content=GOOD_CONTENT):
		self.reject = set(reject)
		self.fail_generate = set(fail_generate)
		self.unavailable = unavailable
		self.content = content
		self.generate_calls = []

	def generate(self, segment, context, style):
		previous = [summary["title"] for summary in context.previous_summaries]
		self.generate_calls.append((segment.index, previous))
		if self.unavailable:
			raise errors.CapabilityUnavailableError("no transport")
		if segment.index in self.fail_generate:
			raise errors.CapabilityCallError("HTTP 500")
		return SlideRecord(title=f"Slide {segment.index}", content=self.content)

	def format(self, record):
		return record

	def validate(self, record):
		index = int(record.title.split()[-1])
		if index in self.reject:
			return ValidationResult(is_valid=False, issues=("too vague",))
		return ValidationResult(is_valid=True)


#============================================
class BrokenCapabilities(FakeCapabilities):
	"""
	A generate step that fails with an error outside the capability hierarchy.
	"""

	def generate(self, segment, context, style):
		self.generate_calls.append((segment.index, []))
		raise ValueError("boom from style build_prompt")


#============================================
class CountingClient:
	def __init__(self):
		self.calls = 0

	def generate(self, prompt, *, purpose="", max_tokens=1200):
		self.calls += 1
		return "{}"


#============================================
def _commits():
	specs = (
		("feat: add slide export", "src/export.py", 1),
		("fix: crash on empty repo", "src/reader.py", 2),
		("docs: describe styles", "README.md", 3),
	)
	commits = []
	for subject, path, day in specs:
		commits.append(
			Commit.build(
				id=f"{day:040d}",
				message=subject,
				author="Ada",
				timestamp=datetime(2024, 3, day, 9, 0, tzinfo=timezone.utc),
				stats=CommitStats(files_changed=1, insertions=5, deletions=1),
				file_changes=(FileChange.build(path, "modified"),),
			)
		)
	return tuple(commits)


#============================================
def test_one_slide_per_segment_with_rolling_context():
	"""Every segment yields a slide and only the last two are remembered."""
	fake = FakeCapabilities()
	deck = deck_orchestrator.generate_slide_deck(_commits(), fake, theme="seriph")
	assert [slide.title for slide in deck.slides] == [f"Slide {index}" for index in range(5)]
	assert deck.title == "Slide 0"
	assert deck.theme == "seriph"
	assert fake.generate_calls[0] == (0, [])
	assert fake.generate_calls[1] == (1, ["Slide 0"])
	assert fake.generate_calls[4] == (4, ["Slide 2", "Slide 3"])


#============================================
def test_rejected_segment_retries_three_times_then_placeholder():
	"""A segment that keeps failing gets exactly three attempts and a placeholder."""
	fake = FakeCapabilities(reject={2})
	messages = []
	deck = deck_orchestrator.generate_slide_deck(_commits(), fake, log_fn=messages.append)
	attempts = [index for index, _ in fake.generate_calls if index == 2]
	assert len(attempts) == 3
	assert len(deck.slides) == 5
	assert deck.slides[2].title == "Development Progress"
	assert "fix: crash on empty repo" in deck.slides[2].content
	assert any("failed after 3 attempts" in message for message in messages)
	# the placeholder never enters the rolling context
	assert fake.generate_calls[-2] == (3, ["Slide 0", "Slide 1"])
	assert fake.generate_calls[-1] == (4, ["Slide 1", "Slide 3"])


#============================================
def test_generate_failures_count_as_attempts():
	"""A failing generate call uses up attempts the same way a rejection does."""
	fake = FakeCapabilities(fail_generate={0})
	deck = deck_orchestrator.generate_slide_deck(_commits(), fake, max_attempts=2)
	assert [index for index, _ in fake.generate_calls].count(0) == 2
	assert deck.slides[0].title == "Overview"
	assert deck.title == fallback_renderer.DECK_TITLE


#============================================
def test_unexpected_errors_count_as_attempts():
	"""Any exception in a step is a failed attempt, not an aborted run."""
	fake = BrokenCapabilities()
	messages = []
	deck = deck_orchestrator.generate_slide_deck(_commits(), fake, log_fn=messages.append)
	assert len(fake.generate_calls) == 15
	assert [slide.title for slide in deck.slides] == [
		"Overview",
		"Development Progress",
		"Development Progress",
		"Development Progress",
		"Summary",
	]
	assert deck.title == fallback_renderer.DECK_TITLE
	assert any("boom from style build_prompt" in message for message in messages)


#============================================
def test_broken_prompt_file_yields_placeholders(tmp_path):
	"""A custom build_prompt that raises never reaches the LLM and never aborts the deck."""
	path = tmp_path / "broken_style.py"
	path.write_text(
		"def build_prompt(theme, commit_digest, categorized_work, commits, style_options):\n"
		"    return {}['x']\n",
		encoding="utf-8",
	)
	style = prompt_styles.choose_style(prompt_file=str(path))
	client = CountingClient()
	capabilities = slide_capabilities.SlideCapabilities(client)
	deck = deck_orchestrator.generate_slide_deck(_commits(), capabilities, style=style)
	assert client.calls == 0
	assert len(deck.slides) == 5
	assert deck.slides[0].title == "Overview"
	assert deck.slides[-1].title == "Summary"


#============================================
def test_conclusion_placeholder_uses_center_layout():
	"""A failed conclusion becomes a centered summary slide."""
	fake = FakeCapabilities(reject={4})
	deck = deck_orchestrator.generate_slide_deck(_commits(), fake)
	assert deck.slides[-1].title == "Summary"
	assert deck.slides[-1].layout == "center"


#============================================
def test_cancel_between_segments():
	"""should_stop is honored before the next segment starts."""
	fake = FakeCapabilities()
	with pytest.raises(errors.GenerationCancelled):
		deck_orchestrator.generate_slide_deck(
			_commits(),
			fake,
			should_stop=lambda: len(fake.generate_calls) >= 2,
		)
	assert len(fake.generate_calls) == 2


#============================================
def test_skipped_ai_uses_fallback():
	"""No capabilities means the deterministic deck."""
	deck = deck_orchestrator.generate_slide_deck(_commits(), None, theme="seriph")
	assert deck.title == fallback_renderer.DECK_TITLE
	assert deck.theme == "seriph"
	assert deck.slides[0].title.endswith("Development Story")


#============================================
def test_unavailable_llm_uses_fallback():
	"""An unreachable LLM switches the whole deck to the fallback renderer."""
	fake = FakeCapabilities(unavailable=True)
	deck = deck_orchestrator.generate_slide_deck(_commits(), fake)
	assert len(fake.generate_calls) == 1
	assert deck.title == fallback_renderer.DECK_TITLE


#============================================
def test_deck_failing_final_checks_uses_fallback():
	"""Accepted slides that still break deck checks trigger the fallback."""
	fake = FakeCapabilities(content="Uses *Config everywhere")
	deck = deck_orchestrator.generate_slide_deck(_commits(), fake)
	assert deck.title == fallback_renderer.DECK_TITLE
	assert deck.slides[0].title == "📖 Development Story"


#============================================
def test_empty_range_rejected():
	"""An empty commit range is an error, not an empty deck."""
	with pytest.raises(errors.EmptyRangeError):
		deck_orchestrator.generate_slide_deck((), None)


#============================================
def test_derive_overall_theme():
	"""The dominant category leads the theme phrase."""
	theme = deck_orchestrator.derive_overall_theme(_commits())
	assert theme.startswith("building new features")
	assert theme.endswith("across 3 commits")
	assert "bugfix" in theme
