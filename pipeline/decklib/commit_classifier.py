"""Commit and file classification.

Pure functions only. Message prefixes decide the category first; changed
file types are consulted only when no prefix matches.
"""

# Standard Library
import os
import re


DOC_EXTENSIONS = {".md", ".txt", ".rst"}
CONFIG_EXTENSIONS = {".json", ".yaml", ".yml", ".toml"}
CODE_EXTENSIONS = {
	".py", ".js", ".ts", ".jsx", ".tsx", ".rb", ".go", ".java", ".c", ".cpp",
	".h", ".hpp", ".cs", ".rs", ".kt", ".swift", ".php", ".scala", ".sh", ".vue",
}
PREFIX_CATEGORIES = {
	"feat": "feature",
	"feature": "feature",
	"fix": "bugfix",
	"bugfix": "bugfix",
	"docs": "docs",
	"doc": "docs",
	"test": "test",
	"tests": "test",
	"refactor": "refactor",
}
CATEGORIES = ("feature", "bugfix", "docs", "test", "refactor", "config", "general")
LEADING_TOKEN_RE = re.compile(r"^\s*([^\s:(]+)")


#============================================
def classify_file(path: str) -> str:
	"""
	Map one changed path to code, config, test, doc, or other.
	"""
	lower_path = (path or "").lower()
	filename = os.path.basename(lower_path)
	ext = os.path.splitext(filename)[1]
	if ext in DOC_EXTENSIONS or "readme" in filename:
		return "doc"
	if ext in CONFIG_EXTENSIONS or "config" in filename or "package" in filename:
		return "config"
	if "test" in lower_path or "spec" in lower_path:
		return "test"
	if ext in CODE_EXTENSIONS:
		return "code"
	return "other"


#============================================
def message_prefix(message: str) -> str:
	"""
	Return the lower-cased leading token of the subject line.

	The token ends at the first colon, space or scope parenthesis, so
	'feat(ui): x', 'Fix: y' and 'docs update' give feat, fix and docs.
	"""
	subject = (message or "").strip().splitlines()
	if not subject:
		return ""
	match = LEADING_TOKEN_RE.match(subject[0])
	if match is None:
		return ""
	# drop a breaking-change marker like feat!:
	return match.group(1).rstrip("!").lower()


#============================================
def classify_commit(message: str, file_changes) -> str:
	"""
	Map a commit message and its file changes to one category.
	"""
	category = PREFIX_CATEGORIES.get(message_prefix(message))
	if category:
		return category
	file_types = {change.file_type for change in file_changes}
	if "test" in file_types:
		return "test"
	if "doc" in file_types:
		return "docs"
	if "config" in file_types:
		return "config"
	return "general"


#============================================
def categorize_work(commits) -> dict:
	"""
	Group commits by category, keeping first-seen category order.
	"""
	categories = {}
	for commit in commits:
		categories.setdefault(commit.category, []).append(commit)
	return categories
