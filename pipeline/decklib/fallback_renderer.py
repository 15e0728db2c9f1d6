"""Deterministic slide deck built from commit data alone.

Used when LLM generation is skipped, unavailable, or produces a deck that
fails deck-level checks. Needs nothing but a non-empty commit range.
"""

# local repo modules
from decklib import commit_classifier
from decklib import markup_sanitizer
from decklib import text_utils
from decklib.models import SlideDeck
from decklib.models import SlideRecord


DECK_TITLE = "Development Story"
CONTEXT_CHARS = 80
CHALLENGE_LIMIT = 2


#============================================
def _date_text(commit) -> str:
	return commit.timestamp.strftime("%Y-%m-%d")


#============================================
def _contributors(commits) -> list[str]:
	names = []
	for commit in commits:
		if commit.author not in names:
			names.append(commit.author)
	return names


#============================================
def journey_connector(index: int, count: int) -> str:
	"""
	Pick the connecting phrase for the commit at one journey position.
	"""
	if index == 0:
		return "We started by"
	if index == count - 1:
		return "Finally, we"
	if index == 1:
		return "Then we"
	return "We continued by"


#============================================
def build_title_slide(commits, contributors) -> SlideRecord:
	if len(commits) == 1:
		tagline = "A focused development session"
	else:
		mode = "collaborative" if len(contributors) > 1 else "focused"
		tagline = f"{len(commits)} commits tell the story of {mode} development"
	return SlideRecord(
		title=f"📖 {DECK_TITLE}",
		subtitle=f"{_date_text(commits[0])} - {_date_text(commits[-1])}",
		content=tagline,
	)


#============================================
def build_mission_slide(commits, work) -> SlideRecord:
	if work.get("feature"):
		opening = "We set out to build new capabilities"
		if len(commits) > 3:
			opening += ", with several key milestones planned"
	elif work.get("bugfix"):
		opening = "Our focus was on improving and fixing existing functionality"
	else:
		opening = "We worked on enhancing the codebase"
	total_files = sum(commit.stats.files_changed for commit in commits)
	insertions = sum(commit.stats.insertions for commit in commits)
	deletions = sum(commit.stats.deletions for commit in commits)
	scope = f"**Scope**: {total_files} files • **Scale**: +{insertions}/-{deletions} lines"
	return SlideRecord(title="🎯 The Mission", content=f"{opening}\n\n{scope}")


#============================================
def build_journey_slide(commits) -> SlideRecord:
	paragraphs = []
	for index, commit in enumerate(commits):
		connector = journey_connector(index, len(commits))
		paragraph = f"**{connector}** {commit.subject.lower()}"
		if commit.stats.files_changed:
			paragraph += f"\n*{commit.stats.files_changed} files modified*"
		paragraphs.append(paragraph)
	return SlideRecord(title="🚀 The Journey", content="\n\n".join(paragraphs))


#============================================
def build_challenges_slide(bugfixes) -> SlideRecord:
	blocks = []
	for commit in bugfixes[:CHALLENGE_LIMIT]:
		lines = [
			f"### {commit.subject}",
			"",
			f"- **Impact**: {commit.stats.files_changed} files affected",
			f"- **Author**: {commit.author}",
		]
		if commit.body:
			context = text_utils.collapse_whitespace(commit.body)
			if len(context) > CONTEXT_CHARS:
				context = context[:CONTEXT_CHARS] + "..."
			lines.append(f"- **Context**: {context}")
		blocks.append("\n".join(lines))
	return SlideRecord(title="🔧 Challenges & Solutions", content="\n\n".join(blocks))


#============================================
def build_outcome_slide(commits, work) -> SlideRecord:
	if len(commits) == 1:
		headline = "✨ **Mission accomplished** with a single, focused change"
	elif len(commits) < 3:
		headline = "🚀 **Streamlined execution**, efficient and effective"
	else:
		headline = "📈 **Significant progress** across multiple fronts"
	lines = []
	for category, items in work.items():
		noun = "update" if len(items) == 1 else "updates"
		files = sum(item.stats.files_changed for item in items)
		lines.append(f"- **{len(items)}** {category} {noun} ({files} files)")
	content = headline + "\n\n## What We Achieved\n\n" + "\n".join(lines)
	return SlideRecord(title="🎉 The Outcome", content=content)


#============================================
def build_next_slide(work, contributors) -> SlideRecord:
	had_features = bool(work.get("feature"))
	had_challenges = bool(work.get("bugfix"))
	if had_features and not had_challenges:
		outlook = "With these new capabilities in place, we're ready for the next phase of development"
	elif had_challenges:
		outlook = "Having resolved these challenges, the foundation is now stronger for future work"
	else:
		outlook = "This work sets us up for continued progress ahead"
	credits = f"**{' & '.join(contributors)}** • Generated with commit-deck"
	return SlideRecord(
		title="🔮 What's Next?",
		layout="center",
		content=f"{outlook}\n\n{credits}",
	)


#============================================
def render_fallback(commits, theme: str = "default") -> SlideDeck:
	"""
	Render a complete deck from an oldest-first commit range.

	Args:
		commits: non-empty sequence of Commit records, oldest first.
		theme: Slidev theme name for the deck.

	Returns:
		SlideDeck with title, mission, journey, optional challenges,
		outcome and what's-next slides.
	"""
	commits = tuple(commits)
	if not commits:
		raise ValueError("cannot render a deck for an empty commit range")
	work = commit_classifier.categorize_work(commits)
	contributors = _contributors(commits)
	slides = [
		build_title_slide(commits, contributors),
		build_mission_slide(commits, work),
		build_journey_slide(commits),
	]
	if work.get("bugfix"):
		slides.append(build_challenges_slide(work["bugfix"]))
	slides.append(build_outcome_slide(commits, work))
	slides.append(build_next_slide(work, contributors))
	clean_slides = tuple(markup_sanitizer.sanitize_slide_record(slide) for slide in slides)
	return SlideDeck(title=DECK_TITLE, theme=theme or "default", slides=clean_slides)
