"""Data records shared by the reader, planner, orchestrator and renderers."""

from __future__ import annotations

# Standard Library
import collections
from dataclasses import dataclass
from dataclasses import field
from datetime import datetime

# local repo modules
from decklib import commit_classifier


SLIDE_LAYOUTS = ("default", "center", "two-cols", "cover")
CONTEXT_SUMMARY_CHARS = 200
CONTEXT_SUMMARY_LIMIT = 2


#============================================
@dataclass(frozen=True)
class FileChange:
	path: str
	status: str
	file_type: str

	@classmethod
	def build(cls, path: str, status: str) -> "FileChange":
		"""
		Create a file change with its type derived from the path.
		"""
		return cls(path=path, status=status, file_type=commit_classifier.classify_file(path))


#============================================
@dataclass(frozen=True)
class CommitStats:
	files_changed: int = 0
	insertions: int = 0
	deletions: int = 0


#============================================
@dataclass(frozen=True)
class Commit:
	id: str
	message: str
	author: str
	timestamp: datetime
	body: str
	stats: CommitStats
	file_changes: tuple[FileChange, ...]
	category: str

	@classmethod
	def build(
		cls,
		id: str,
		message: str,
		author: str,
		timestamp: datetime,
		body: str = "",
		stats: CommitStats | None = None,
		file_changes=(),
	) -> "Commit":
		"""
		Create an enriched commit; category is always derived, never passed in.
		"""
		changes = tuple(file_changes)
		category = commit_classifier.classify_commit(message, changes)
		return cls(
			id=id,
			message=message,
			author=author,
			timestamp=timestamp,
			body=(body or "").strip(),
			stats=stats or CommitStats(),
			file_changes=changes,
			category=category,
		)

	@property
	def short_id(self) -> str:
		return self.id[:7]

	@property
	def subject(self) -> str:
		lines = self.message.strip().splitlines()
		if not lines:
			return ""
		return lines[0].strip()


#============================================
@dataclass(frozen=True)
class CommitSummary:
	index: int
	id: str
	message: str
	author: str
	timestamp: datetime
	relative_date: str

	@property
	def short_id(self) -> str:
		return self.id[:7]


#============================================
@dataclass(frozen=True)
class NarrativeSegment:
	role: str
	focus_label: str
	index: int
	commits: tuple[Commit, ...] = ()


#============================================
@dataclass
class NarrativeContext:
	"""
	Running narrative state threaded through one deck generation.

	Only the orchestrator holds a reference; previous_summaries keeps the
	last two accepted slides as {title, content} with content truncated.
	all_commits is the whole range, used by segments without commits.
	"""
	overall_theme: str
	total_segments: int
	segment_index: int = 0
	all_commits: tuple = ()
	previous_summaries: collections.deque = field(
		default_factory=lambda: collections.deque(maxlen=CONTEXT_SUMMARY_LIMIT)
	)

	@property
	def is_first(self) -> bool:
		return self.segment_index == 0

	@property
	def is_last(self) -> bool:
		return self.segment_index == self.total_segments - 1

	def remember(self, slide: "SlideRecord") -> None:
		"""
		Record one accepted slide, evicting the oldest past the limit.
		"""
		self.previous_summaries.append(
			{
				"title": slide.title,
				"content": slide.content[:CONTEXT_SUMMARY_CHARS],
			}
		)


#============================================
@dataclass(frozen=True)
class SlideRecord:
	title: str
	content: str
	layout: str = "default"
	subtitle: str = ""
	right_content: str = ""
	notes: str = ""


#============================================
@dataclass(frozen=True)
class ValidationResult:
	is_valid: bool
	issues: tuple[str, ...] = ()
	recommendations: tuple[str, ...] = ()


#============================================
@dataclass(frozen=True)
class SlideDeck:
	title: str
	theme: str
	slides: tuple[SlideRecord, ...]
