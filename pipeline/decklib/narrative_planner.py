"""Split a commit range into title, content and conclusion segments."""

# Standard Library
import math

# local repo modules
from decklib.models import NarrativeSegment


MIN_SLIDES = 5
MAX_SLIDES = 8
COMMITS_PER_SLIDE = 3


#============================================
def compute_total_slides(commit_count: int) -> int:
	"""
	Compute slide count as clamp(ceil(n/3), 5, 8).
	"""
	raw_count = math.ceil(commit_count / COMMITS_PER_SLIDE)
	return max(MIN_SLIDES, min(MAX_SLIDES, raw_count))


#============================================
def slice_commits(commits: tuple, slot_count: int) -> list[tuple]:
	"""
	Cut commits into slot_count contiguous slices of ceil(n/slots) each.

	The last non-empty slice may be short and trailing slices may be
	empty; concatenating the slices always gives back the input.
	"""
	slot_count = max(1, slot_count)
	size = max(1, math.ceil(len(commits) / slot_count))
	slices = []
	for slot in range(slot_count):
		start = slot * size
		slices.append(tuple(commits[start:start + size]))
	return slices


#============================================
def focus_label_for(position: int, content_count: int) -> str:
	"""
	Pick the focus label for one content segment by its position.
	"""
	if position == 0:
		return "early-development"
	if position == content_count - 1:
		return "recent-changes"
	return "development-progress"


#============================================
def plan_segments(commits) -> list[NarrativeSegment]:
	"""
	Plan the ordered narrative segments for an oldest-first commit range.

	Args:
		commits: non-empty sequence of Commit records, oldest first.

	Returns:
		compute_total_slides(n) segments: a title segment, content
		segments that partition the range without overlap or gap, and a
		conclusion segment.
	"""
	commits = tuple(commits)
	if not commits:
		raise ValueError("cannot plan a narrative for an empty commit range")
	total_slides = compute_total_slides(len(commits))
	content_slots = max(1, total_slides - 2)
	slices = slice_commits(commits, content_slots)

	segments = [NarrativeSegment(role="title", focus_label="opening", index=0)]
	for position, chunk in enumerate(slices):
		segments.append(
			NarrativeSegment(
				role="content",
				focus_label=focus_label_for(position, len(slices)),
				index=position + 1,
				commits=chunk,
			)
		)
	segments.append(
		NarrativeSegment(role="conclusion", focus_label="summary", index=len(segments))
	)
	return segments
