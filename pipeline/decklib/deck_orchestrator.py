"""Segment-by-segment deck generation with bounded retry and fallback.

Each planned segment runs generate -> format -> validate. A failed step or
a rejected slide retries the segment from generation; after max_attempts
the segment gets a deterministic placeholder slide, so every segment
yields exactly one slide.
"""

# Standard Library
import enum

# local repo modules
from decklib import commit_classifier
from decklib import errors
from decklib import fallback_renderer
from decklib import markup_sanitizer
from decklib import narrative_planner
from decklib import slide_validation
from decklib.models import NarrativeContext
from decklib.models import SlideDeck
from decklib.models import SlideRecord


DEFAULT_MAX_ATTEMPTS = 3
PLACEHOLDER_SUBJECT_LIMIT = 5
THEME_PHRASES = {
	"feature": "building new features",
	"bugfix": "fixing bugs and hardening existing behavior",
	"docs": "improving documentation",
	"test": "strengthening the test suite",
	"refactor": "refactoring and cleaning up the code",
	"config": "tuning configuration and tooling",
	"general": "general development",
}


#============================================
class SegmentState(enum.Enum):
	GENERATING = "generating"
	FORMATTING = "formatting"
	VALIDATING = "validating"
	ACCEPTED = "accepted"
	RETRY = "retry"
	FAILED = "failed"


#============================================
def derive_overall_theme(commits) -> str:
	"""
	Summarize the dominant kind of work in a commit range as one phrase.
	"""
	work = commit_classifier.categorize_work(commits)
	if not work:
		return THEME_PHRASES["general"]
	# max keeps the first-seen category on ties
	top_category = max(work, key=lambda category: len(work[category]))
	phrase = THEME_PHRASES.get(top_category, THEME_PHRASES["general"])
	others = [category for category in work if category != top_category]
	if others:
		phrase += f", alongside {', '.join(others)} work"
	return f"{phrase} across {len(commits)} commits"


#============================================
def build_placeholder(segment, context) -> SlideRecord:
	"""
	Build the deterministic stand-in slide for a segment that kept failing.
	"""
	all_commits = tuple(context.all_commits)
	if segment.role == "title":
		authors = []
		for commit in all_commits:
			if commit.author not in authors:
				authors.append(commit.author)
		record = SlideRecord(
			title="Overview",
			content=(
				f"This presentation covers {len(all_commits)} commits by "
				f"{', '.join(authors) or 'the team'}, focused on {context.overall_theme}."
			),
		)
	elif segment.role == "conclusion":
		record = SlideRecord(
			title="Summary",
			layout="center",
			content=f"In summary, {len(all_commits)} commits moved the project forward through {context.overall_theme}.",
		)
	else:
		commits = segment.commits or all_commits
		subjects = "\n".join(f"- {commit.subject}" for commit in commits[:PLACEHOLDER_SUBJECT_LIMIT])
		record = SlideRecord(
			title="Development Progress",
			content=f"Progress across {len(commits)} commits:\n\n{subjects}",
		)
	return markup_sanitizer.sanitize_slide_record(record)


#============================================
class DeckOrchestrator:
	"""
	Drive the per-segment state machine and assemble the deck.
	"""

	def __init__(
		self,
		capabilities,
		style,
		theme: str = "default",
		max_attempts: int = DEFAULT_MAX_ATTEMPTS,
		log_fn=None,
		should_stop=None,
	):
		self.capabilities = capabilities
		self.style = style
		self.theme = theme or "default"
		self.max_attempts = max(1, int(max_attempts))
		self.log_fn = log_fn
		self.should_stop = should_stop

	#============================================
	def log(self, message: str) -> None:
		if self.log_fn is not None:
			self.log_fn(message)

	#============================================
	def run_segment(self, segment, context) -> tuple[SlideRecord, bool]:
		"""
		Run one segment to a slide.

		Returns:
			(slide, accepted): accepted is False when the slide is a placeholder.
		"""
		label = f"Segment {context.segment_index + 1}/{context.total_segments} ({segment.role})"
		attempts = 0
		state = SegmentState.GENERATING
		draft = None
		formatted = None
		while True:
			if state is SegmentState.GENERATING:
				try:
					draft = self.capabilities.generate(segment, context, self.style)
				except (errors.CapabilityUnavailableError, errors.GenerationCancelled):
					raise
				except Exception as error:
					self.log(f"{label}: generate failed on attempt {attempts + 1}: {error}")
					state = SegmentState.RETRY
					continue
				state = SegmentState.FORMATTING
			elif state is SegmentState.FORMATTING:
				try:
					formatted = self.capabilities.format(draft)
				except (errors.CapabilityUnavailableError, errors.GenerationCancelled):
					raise
				except Exception as error:
					self.log(f"{label}: format failed on attempt {attempts + 1}: {error}")
					state = SegmentState.RETRY
					continue
				state = SegmentState.VALIDATING
			elif state is SegmentState.VALIDATING:
				try:
					result = self.capabilities.validate(formatted)
				except (errors.CapabilityUnavailableError, errors.GenerationCancelled):
					raise
				except Exception as error:
					self.log(f"{label}: validate failed on attempt {attempts + 1}: {error}")
					state = SegmentState.RETRY
					continue
				if result.is_valid:
					state = SegmentState.ACCEPTED
				else:
					self.log(f"{label}: slide rejected on attempt {attempts + 1}: {'; '.join(result.issues)}")
					state = SegmentState.RETRY
			elif state is SegmentState.RETRY:
				attempts += 1
				if attempts >= self.max_attempts:
					state = SegmentState.FAILED
				else:
					state = SegmentState.GENERATING
			elif state is SegmentState.ACCEPTED:
				self.log(f"{label}: accepted '{formatted.title}'")
				return formatted, True
			else:
				self.log(f"{label}: failed after {attempts} attempts, using placeholder slide")
				return build_placeholder(segment, context), False

	#============================================
	def build_deck(self, commits) -> SlideDeck:
		"""
		Generate every planned segment in order and assemble the deck.

		Raises:
			GenerationCancelled: should_stop() returned True between segments.
			CapabilityUnavailableError: the LLM cannot be reached at all.
		"""
		commits = tuple(commits)
		segments = narrative_planner.plan_segments(commits)
		context = NarrativeContext(
			overall_theme=derive_overall_theme(commits),
			total_segments=len(segments),
			all_commits=commits,
		)
		self.log(f"Planned {len(segments)} segments for {len(commits)} commits: {context.overall_theme}")
		slides = []
		deck_title = ""
		for segment in segments:
			if self.should_stop is not None and self.should_stop():
				raise errors.GenerationCancelled("Generation cancelled by user")
			context.segment_index = segment.index
			slide, accepted = self.run_segment(segment, context)
			if accepted:
				context.remember(slide)
				if segment.role == "title":
					deck_title = slide.title
			slides.append(slide)
		if not deck_title:
			deck_title = fallback_renderer.DECK_TITLE
		return SlideDeck(title=deck_title, theme=self.theme, slides=tuple(slides))


#============================================
def generate_slide_deck(
	commits,
	capabilities,
	style=None,
	theme: str = "default",
	max_attempts: int = DEFAULT_MAX_ATTEMPTS,
	log_fn=None,
	should_stop=None,
) -> SlideDeck:
	"""
	Produce a deck, using the fallback renderer whenever generation cannot finish.

	Args:
		commits: non-empty commit range, oldest first.
		capabilities: SlideCapabilities, or None when AI generation is skipped.
		style: StyleChoice passed to every generate call.
		theme: Slidev theme name.
		max_attempts: attempts per segment before a placeholder is used.
		log_fn: optional progress logger.
		should_stop: optional callable checked before each segment.

	Returns:
		SlideDeck from the LLM pipeline or from the fallback renderer.
	"""
	commits = tuple(commits)
	if not commits:
		raise errors.EmptyRangeError("No commits in the selected range")

	def log(message: str) -> None:
		if log_fn is not None:
			log_fn(message)

	if capabilities is None:
		log("AI generation skipped; rendering fallback deck.")
		return fallback_renderer.render_fallback(commits, theme)

	orchestrator = DeckOrchestrator(
		capabilities,
		style,
		theme=theme,
		max_attempts=max_attempts,
		log_fn=log_fn,
		should_stop=should_stop,
	)
	try:
		deck = orchestrator.build_deck(commits)
	except errors.CapabilityUnavailableError as error:
		log(f"LLM unavailable ({error}); rendering fallback deck.")
		return fallback_renderer.render_fallback(commits, theme)

	problems = slide_validation.find_deck_problems(deck)
	if problems:
		log(f"Generated deck failed final checks ({problems[0]}); rendering fallback deck.")
		return fallback_renderer.render_fallback(commits, theme)
	return deck
