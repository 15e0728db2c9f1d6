"""Presentation style registry and custom prompt loading.

Every style is a callable with the signature
build_prompt(theme, commit_digest, categorized_work, commits, style_options)
that returns the style brief embedded in each slide request.
"""

# Standard Library
import dataclasses
import importlib.util
import math
import os
import types
import typing

# local repo modules
from decklib import commit_classifier
from decklib import prompt_loader


STYLE_OPTION_KEYS = (
	"focus",
	"audience",
	"deep_dive",
	"include_metrics",
	"highlight_challenges",
	"team_size",
)
# camelCase keys from older style config files
STYLE_OPTION_ALIASES = {
	"deepDive": "deep_dive",
	"includeMetrics": "include_metrics",
	"highlightChallenges": "highlight_challenges",
	"teamSize": "team_size",
}
STYLE_DESCRIPTIONS = types.MappingProxyType(
	{
		"default": "General development story with balanced technical and narrative focus",
		"executive": "Business-focused presentation for stakeholders and leadership",
		"technical": "Developer-focused deep dive with implementation details and architecture",
		"retrospective": "Team-focused retrospective for process improvement and collaboration",
	}
)
ARCHITECTURE_WORDS = ("refactor", "architect", "restructure")
PERFORMANCE_WORDS = ("performance", "optimize", "speed")
SECURITY_WORDS = ("security", "auth", "permission")


#============================================
def build_commit_digest(commits) -> str:
	"""
	Describe each commit with its author, date, category, stats and files.
	"""
	blocks = []
	for commit in commits:
		file_list = ", ".join(
			f"{change.status}: {change.path} ({change.file_type})"
			for change in commit.file_changes
		)
		lines = [
			f"COMMIT: {commit.subject}",
			f"Author: {commit.author}",
			f"Date: {commit.timestamp.date().isoformat()}",
			f"Type: {commit.category}",
			(
				f"Files affected: {commit.stats.files_changed} files, "
				f"+{commit.stats.insertions} lines, -{commit.stats.deletions} lines"
			),
			f"Changes: {file_list or 'No file details available'}",
		]
		if commit.body:
			lines.append(f"Description: {commit.body}")
		blocks.append("\n".join(lines))
	return "\n\n".join(blocks)


#============================================
def describe_categorized_work(categorized_work: dict, limit: int = 0) -> str:
	"""
	List commits per category with their file and line stats.
	"""
	sections = []
	for category, items in categorized_work.items():
		shown = items[:limit] if limit > 0 else items
		lines = [f"{category.upper()}: {len(items)} commits"]
		for item in shown:
			lines.append(
				f"  - {item.subject} ({item.stats.files_changed} files, "
				f"+{item.stats.insertions}/-{item.stats.deletions} lines)"
			)
		sections.append("\n".join(lines))
	return "\n\n".join(sections)


#============================================
def describe_time_period(commits) -> str:
	if not commits:
		return "unknown period"
	start = commits[0].timestamp.date().isoformat()
	end = commits[-1].timestamp.date().isoformat()
	if start == end:
		return start
	return f"{start} to {end}"


#============================================
def span_days(commits) -> int:
	if not commits:
		return 1
	seconds = (commits[-1].timestamp - commits[0].timestamp).total_seconds()
	return max(1, math.ceil(seconds / 86400))


#============================================
def unique_authors(commits) -> list[str]:
	authors = []
	for commit in commits:
		if commit.author not in authors:
			authors.append(commit.author)
	return authors


#============================================
def _count_messages_with(commits, words: tuple[str, ...]) -> int:
	return sum(1 for commit in commits if any(word in commit.message.lower() for word in words))


#============================================
def render_style_options(style_options: dict | None) -> str:
	"""
	Turn style options into prompt lines; unset options are skipped.
	"""
	options = style_options or {}
	lines = []
	if options.get("focus"):
		lines.append(f"- Focus area: {options['focus']}")
	if options.get("audience"):
		lines.append(f"- Target audience: {options['audience']}")
	if options.get("deep_dive"):
		lines.append("- Go deep: include implementation details, trade-offs and code-level specifics")
	if options.get("include_metrics"):
		lines.append("- Include concrete metrics: files changed, lines added and removed, commit counts")
	if options.get("highlight_challenges"):
		lines.append("- Highlight challenges, blockers and how they were resolved")
	if options.get("team_size"):
		lines.append(f"- Team size: {options['team_size']} people; frame collaboration accordingly")
	if not lines:
		return "- No extra audience or focus preferences"
	return "\n".join(lines)


#============================================
def build_default_prompt(theme, commit_digest, categorized_work, commits, style_options=None) -> str:
	"""
	Narrative development story with a balanced technical focus.
	"""
	template = prompt_loader.load_prompt("style_default.txt")
	values = {
		"theme": theme or "default",
		"commit_digest": commit_digest,
		"categorized_work": describe_categorized_work(categorized_work),
		"time_period": describe_time_period(commits),
		"style_options": render_style_options(style_options),
	}
	return prompt_loader.render_prompt(template, values)


#============================================
def build_executive_prompt(theme, commit_digest, categorized_work, commits, style_options=None) -> str:
	"""
	Business-impact summary for stakeholders.
	"""
	template = prompt_loader.load_prompt("style_executive.txt")
	authors = unique_authors(commits)
	total_files = sum(commit.stats.files_changed for commit in commits)
	total_lines = sum(commit.stats.insertions + commit.stats.deletions for commit in commits)
	process_work = len(categorized_work.get("refactor", [])) + len(categorized_work.get("test", []))
	values = {
		"theme": theme or "default",
		"time_period": describe_time_period(commits),
		"contributor_count": str(len(authors)),
		"contributors": ", ".join(authors),
		"total_files": str(total_files),
		"total_lines": str(total_lines),
		"category_count": str(len(categorized_work)),
		"categorized_work": describe_categorized_work(categorized_work, limit=2),
		"feature_count": str(len(categorized_work.get("feature", []))),
		"bugfix_count": str(len(categorized_work.get("bugfix", []))),
		"process_count": str(process_work),
		"commit_count": str(len(commits)),
		"span_days": str(span_days(commits)),
		"style_options": render_style_options(style_options),
	}
	return prompt_loader.render_prompt(template, values)


#============================================
def build_technical_prompt(theme, commit_digest, categorized_work, commits, style_options=None) -> str:
	"""
	Implementation-level deep dive for developers.
	"""
	template = prompt_loader.load_prompt("style_technical.txt")
	file_types = [change.file_type for commit in commits for change in commit.file_changes]
	values = {
		"theme": theme or "default",
		"commit_digest": commit_digest,
		"code_files": str(file_types.count("code")),
		"config_files": str(file_types.count("config")),
		"test_files": str(file_types.count("test")),
		"architecture_count": str(_count_messages_with(commits, ARCHITECTURE_WORDS)),
		"performance_count": str(_count_messages_with(commits, PERFORMANCE_WORDS)),
		"security_count": str(_count_messages_with(commits, SECURITY_WORDS)),
		"categorized_work": describe_categorized_work(categorized_work),
		"style_options": render_style_options(style_options),
	}
	return prompt_loader.render_prompt(template, values)


#============================================
def build_retrospective_prompt(theme, commit_digest, categorized_work, commits, style_options=None) -> str:
	"""
	Team retrospective on process and collaboration.
	"""
	template = prompt_loader.load_prompt("style_retrospective.txt")
	authors = unique_authors(commits)
	days = span_days(commits)
	feature_count = len(categorized_work.get("feature", []))
	bugfix_count = len(categorized_work.get("bugfix", []))
	if bugfix_count > feature_count:
		sprint_type = "maintenance-focused"
	elif feature_count > 0:
		sprint_type = "feature-development"
	else:
		sprint_type = "general-improvement"
	distribution = []
	for author in authors:
		own = [commit for commit in commits if commit.author == author]
		files = sum(commit.stats.files_changed for commit in own)
		distribution.append(f"{author}: {len(own)} commits, {files} files impacted")
	values = {
		"theme": theme or "default",
		"span_days": str(days),
		"velocity": f"{len(commits) / days:.1f}",
		"sprint_type": sprint_type,
		"contributor_count": str(len(authors)),
		"collaboration": "collaborative" if len(authors) > 1 else "individual",
		"categorized_work": describe_categorized_work(categorized_work, limit=3),
		"work_distribution": "\n".join(distribution),
		"style_options": render_style_options(style_options),
	}
	return prompt_loader.render_prompt(template, values)


STYLE_REGISTRY = types.MappingProxyType(
	{
		"default": build_default_prompt,
		"executive": build_executive_prompt,
		"technical": build_technical_prompt,
		"retrospective": build_retrospective_prompt,
	}
)


#============================================
def load_python_prompt(path: str):
	"""
	Import a .py prompt file and return its build_prompt function.
	"""
	module_name = "deck_custom_prompt_" + os.path.splitext(os.path.basename(path))[0]
	spec = importlib.util.spec_from_file_location(module_name, path)
	if spec is None or spec.loader is None:
		raise ValueError(f"Cannot import prompt file: {path}")
	module = importlib.util.module_from_spec(spec)
	spec.loader.exec_module(module)
	build_prompt = getattr(module, "build_prompt", None)
	if not callable(build_prompt):
		raise ValueError(f"Prompt file {path} must define build_prompt(...)")
	return build_prompt


#============================================
def load_template_prompt(path: str):
	"""
	Wrap a {{token}} text template as a style function.
	"""
	template = prompt_loader.load_prompt_file(path)

	def build_prompt(theme, commit_digest, categorized_work, commits, style_options=None) -> str:
		values = {
			"theme": theme or "default",
			"commit_digest": commit_digest,
			"categorized_work": describe_categorized_work(categorized_work),
			"time_period": describe_time_period(commits),
			"commit_count": str(len(commits)),
			"contributors": ", ".join(unique_authors(commits)),
			"style_options": render_style_options(style_options),
		}
		return prompt_loader.render_prompt(template, values)

	return build_prompt


#============================================
def resolve_style(style_name: str = "default", prompt_file: str = ""):
	"""
	Pick the style function for a run.

	A prompt file wins over a style name. Unknown style names fall back
	to the default style.
	"""
	if prompt_file:
		if not os.path.isfile(prompt_file):
			raise FileNotFoundError(f"Prompt file not found: {prompt_file}")
		if prompt_file.endswith(".py"):
			return load_python_prompt(prompt_file)
		return load_template_prompt(prompt_file)
	key = (style_name or "default").strip().lower()
	return STYLE_REGISTRY.get(key, STYLE_REGISTRY["default"])


#============================================
def build_style_options(config: dict | None = None, overrides: dict | None = None) -> dict:
	"""
	Merge style options from a config mapping and CLI overrides.

	Overrides that are None or False leave the config value in place.
	"""
	options = {key: None for key in STYLE_OPTION_KEYS}
	for source in (config or {}, overrides or {}):
		normalized = {STYLE_OPTION_ALIASES.get(key, key): value for key, value in source.items()}
		for key in STYLE_OPTION_KEYS:
			value = normalized.get(key)
			if value is None or value is False or value == "":
				continue
			options[key] = value
	return options


#============================================
@dataclasses.dataclass(frozen=True)
class StyleChoice:
	"""
	One resolved presentation style plus its audience options.
	"""
	name: str
	build_prompt: typing.Callable
	options: dict = dataclasses.field(default_factory=dict)

	def brief(self, theme: str, commits) -> str:
		"""
		Render the style brief for a group of commits.
		"""
		commits = tuple(commits)
		categorized = commit_classifier.categorize_work(commits)
		digest = build_commit_digest(commits)
		return self.build_prompt(theme, digest, categorized, commits, self.options)


#============================================
def choose_style(style_name: str = "default", prompt_file: str = "", options: dict | None = None) -> StyleChoice:
	"""
	Resolve a style name or prompt file into a StyleChoice.
	"""
	name = prompt_file or (style_name or "default").strip().lower()
	if not prompt_file and name not in STYLE_REGISTRY:
		name = "default"
	return StyleChoice(
		name=name,
		build_prompt=resolve_style(style_name, prompt_file),
		options=dict(options or {}),
	)
