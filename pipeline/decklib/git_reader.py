"""Read and enrich commit history from a local git repository."""

# Standard Library
import concurrent.futures
import subprocess
from datetime import datetime
from datetime import timezone

# local repo modules
from decklib import errors
from decklib.models import Commit
from decklib.models import CommitStats
from decklib.models import CommitSummary
from decklib.models import FileChange


FIELD_SEP = "\x1f"
RECORD_SEP = "\x1e"
LOG_FORMAT = "%H%x1f%an%x1f%aI%x1f%s%x1f%b%x1e"
STATUS_NAMES = {"A": "added", "D": "deleted"}
DEFAULT_MAX_WORKERS = 8


#============================================
def relative_date(timestamp: datetime, now: datetime | None = None) -> str:
	"""
	Describe a commit timestamp relative to now in days, weeks or months.
	"""
	if now is None:
		now = datetime.now(timezone.utc)
	if timestamp.tzinfo is None:
		timestamp = timestamp.replace(tzinfo=timezone.utc)
	diff_days = int((now - timestamp).total_seconds() // 86400)
	if diff_days <= 0:
		return "today"
	if diff_days == 1:
		return "1 day ago"
	if diff_days < 7:
		return f"{diff_days} days ago"
	if diff_days < 30:
		return f"{diff_days // 7} weeks ago"
	return f"{diff_days // 30} months ago"


#============================================
def parse_log_output(text: str) -> list[dict]:
	"""
	Split git log output written with LOG_FORMAT into raw commit dicts.
	"""
	records = []
	for chunk in text.split(RECORD_SEP):
		chunk = chunk.lstrip("\n")
		if not chunk.strip():
			continue
		parts = chunk.split(FIELD_SEP)
		if len(parts) < 5:
			raise errors.RepositoryError(f"Unreadable git log record: {chunk[:80]!r}")
		records.append(
			{
				"id": parts[0].strip(),
				"author": parts[1].strip(),
				"timestamp": datetime.fromisoformat(parts[2].strip()),
				"message": parts[3].strip(),
				"body": parts[4].strip(),
			}
		)
	return records


#============================================
def parse_name_status(text: str) -> list[tuple[str, str]]:
	"""
	Parse `git diff --name-status` lines into (path, status) pairs.
	"""
	changes = []
	for line in text.splitlines():
		if not line.strip():
			continue
		parts = line.split("\t")
		if len(parts) < 2:
			continue
		letter = parts[0][:1].upper()
		status = STATUS_NAMES.get(letter, "modified")
		changes.append((parts[-1], status))
	return changes


#============================================
def parse_numstat(text: str) -> tuple[int, int]:
	"""
	Sum insertions and deletions from `git diff --numstat` output.

	Binary files report '-' and count as zero.
	"""
	insertions = 0
	deletions = 0
	for line in text.splitlines():
		parts = line.split("\t")
		if len(parts) < 3:
			continue
		if parts[0].isdigit():
			insertions += int(parts[0])
		if parts[1].isdigit():
			deletions += int(parts[1])
	return insertions, deletions


#============================================
class GitRepositoryReader:
	"""
	Read-only view over the git log of one working tree.
	"""

	def __init__(self, repo_path: str = ".", max_workers: int = DEFAULT_MAX_WORKERS, log_fn=None):
		self.repo_path = repo_path
		self.max_workers = max(1, int(max_workers))
		self.log_fn = log_fn

	#============================================
	def log(self, message: str) -> None:
		"""
		Emit one log line when logger is configured.
		"""
		if self.log_fn is not None:
			self.log_fn(message)

	#============================================
	def _run_git(self, args: list[str]) -> subprocess.CompletedProcess:
		"""
		Run git inside the repository and return the completed process.
		"""
		command = ["git", "-c", "core.quotepath=off"] + args
		try:
			return subprocess.run(
				command,
				cwd=self.repo_path,
				capture_output=True,
				text=True,
				encoding="utf-8",
				errors="replace",
				check=False,
			)
		except FileNotFoundError as error:
			raise errors.RepositoryError("git executable not found on PATH") from error

	#============================================
	def _git_output(self, args: list[str]) -> str:
		"""
		Run git and return stdout, raising RepositoryError on failure.
		"""
		result = self._run_git(args)
		if result.returncode != 0:
			err_text = result.stderr.strip() or "unknown git error"
			raise errors.RepositoryError(f"git {' '.join(args)} failed: {err_text}")
		return result.stdout

	#============================================
	def ensure_repository(self) -> None:
		"""
		Raise RepositoryError unless repo_path is inside a git work tree.
		"""
		result = self._run_git(["rev-parse", "--is-inside-work-tree"])
		if result.returncode != 0 or result.stdout.strip() != "true":
			raise errors.RepositoryError(
				f"Not a git repository: {self.repo_path}"
			)

	#============================================
	def has_commits(self) -> bool:
		"""
		Return True when HEAD resolves to a commit.
		"""
		result = self._run_git(["rev-parse", "--verify", "--quiet", "HEAD"])
		return result.returncode == 0

	#============================================
	def resolve_commit(self, commit_ref: str) -> str:
		"""
		Resolve a full or abbreviated commit reference to its full hash.
		"""
		ref = (commit_ref or "").strip()
		if not ref or ref.startswith("-"):
			raise errors.NotFoundError(f"Commit {commit_ref!r} not found in history")
		result = self._run_git(["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"])
		if result.returncode != 0 or not result.stdout.strip():
			raise errors.NotFoundError(f"Commit {ref} not found in history")
		return result.stdout.strip()

	#============================================
	def list_recent_commits(self, count: int = 20, now: datetime | None = None) -> list[CommitSummary]:
		"""
		List the newest commits without diff enrichment.
		"""
		self.ensure_repository()
		if not self.has_commits():
			return []
		output = self._git_output(["log", "-n", str(max(1, count)), f"--format={LOG_FORMAT}"])
		summaries = []
		for index, record in enumerate(parse_log_output(output), start=1):
			summaries.append(
				CommitSummary(
					index=index,
					id=record["id"],
					message=record["message"],
					author=record["author"],
					timestamp=record["timestamp"],
					relative_date=relative_date(record["timestamp"], now),
				)
			)
		return summaries

	#============================================
	def list_range(self, from_id: str) -> tuple[Commit, ...]:
		"""
		Return enriched commits from from_id (inclusive) to HEAD, oldest first.

		Raises:
			RepositoryError: the log cannot be read.
			EmptyRangeError: the repository has no commits.
			NotFoundError: from_id is not part of HEAD history.
		"""
		self.ensure_repository()
		if not self.has_commits():
			raise errors.EmptyRangeError("No commits found in this repository")
		full_id = self.resolve_commit(from_id)
		records = parse_log_output(self._git_output(["log", f"--format={LOG_FORMAT}", "HEAD"]))
		start_index = -1
		for index, record in enumerate(records):
			if record["id"] == full_id:
				start_index = index
				break
		if start_index < 0:
			raise errors.NotFoundError(f"Commit {from_id} not found in HEAD history")
		selected = records[:start_index + 1]
		worker_count = min(self.max_workers, len(selected))
		self.log(f"Enriching {len(selected)} commit(s) with {worker_count} worker(s).")
		with concurrent.futures.ThreadPoolExecutor(max_workers=worker_count) as executor:
			# map keeps log order no matter which diff finishes first
			enriched = list(executor.map(self.enrich_commit, selected))
		enriched.reverse()
		return tuple(enriched)

	#============================================
	def parent_exists(self, commit_id: str) -> bool:
		"""
		Return True when the commit has a first parent.
		"""
		result = self._run_git(["rev-parse", "--verify", "--quiet", f"{commit_id}^"])
		return result.returncode == 0

	#============================================
	def diff_against_parent(self, commit_id: str) -> tuple[CommitStats, tuple[FileChange, ...]]:
		"""
		Compute file changes and line stats against the first parent.

		Root commits have no parent and degrade to zero stats.
		"""
		if not self.parent_exists(commit_id):
			return CommitStats(), ()
		diff_range = [f"{commit_id}^", commit_id]
		name_status = self._git_output(["diff", "--no-renames", "--name-status"] + diff_range)
		numstat = self._git_output(["diff", "--no-renames", "--numstat"] + diff_range)
		changes = tuple(
			FileChange.build(path, status) for path, status in parse_name_status(name_status)
		)
		insertions, deletions = parse_numstat(numstat)
		stats = CommitStats(
			files_changed=len(changes),
			insertions=insertions,
			deletions=deletions,
		)
		return stats, changes

	#============================================
	def enrich_commit(self, record: dict) -> Commit:
		"""
		Build one enriched Commit from a raw log record.
		"""
		stats, changes = self.diff_against_parent(record["id"])
		return Commit.build(
			id=record["id"],
			message=record["message"],
			author=record["author"],
			timestamp=record["timestamp"],
			body=record["body"],
			stats=stats,
			file_changes=changes,
		)
