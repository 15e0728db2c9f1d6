#!/usr/bin/env python3
import argparse
import os
import signal
import sys
import threading
from datetime import datetime

import rich.console
import rich.prompt
import rich.table

from decklib import deck_orchestrator
from decklib import deck_serializer
from decklib import errors
from decklib import pipeline_settings
from decklib import preview
from decklib import prompt_styles
from decklib import slide_llm
from decklib.git_reader import GitRepositoryReader
from decklib.slide_capabilities import SlideCapabilities


DEFAULT_OUTPUT_DIR = "slides"
DEFAULT_COMMIT_COUNT = 20
EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CANCELLED = 130
RICH_CONSOLE = rich.console.Console()
ERROR_CONSOLE = rich.console.Console(stderr=True)


#============================================
def log_step(message: str) -> None:
	"""
	Print one timestamped progress line.
	"""
	now_text = datetime.now().strftime("%H:%M:%S")
	line = f"[commits_to_slides {now_text}] {message}"
	lower = message.lower()
	style = "cyan"
	if ("failed" in lower) or ("error" in lower):
		style = "bold red"
	elif ("fallback" in lower) or ("retry" in lower) or ("skipping" in lower) or ("skipped" in lower):
		style = "yellow"
	elif ("wrote " in lower) or ("accepted" in lower):
		style = "green"
	RICH_CONSOLE.print(line, style=style, markup=False, highlight=False)


#============================================
def report_error(message: str) -> None:
	"""
	Print one error line to stderr.
	"""
	ERROR_CONSOLE.print(f"Error: {message}", style="bold red", markup=False, highlight=False)


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(
		description="Turn a range of git commits into a narrative Slidev slide deck."
	)
	parser.add_argument(
		"--output",
		default=None,
		help=f"Output directory for slides.md (default: settings or ./{DEFAULT_OUTPUT_DIR}).",
	)
	parser.add_argument(
		"--theme",
		default=None,
		help="Slidev theme name (default: settings or 'default').",
	)
	parser.add_argument(
		"--skip-ai",
		action="store_true",
		help="Skip LLM generation and render the deterministic deck.",
	)
	parser.add_argument(
		"--style",
		default=None,
		help="Presentation style: "
		+ "; ".join(f"{name} ({text.lower()})" for name, text in prompt_styles.STYLE_DESCRIPTIONS.items())
		+ ".",
	)
	parser.add_argument(
		"--prompt-file",
		default="",
		help="Custom prompt: a .py file defining build_prompt(...) or a {{token}} text template.",
	)
	parser.add_argument(
		"--config",
		default="",
		help="YAML file with style options (focus, audience, deep_dive, ...).",
	)
	parser.add_argument(
		"--settings",
		default="settings.yaml",
		help="YAML settings path for LLM and slide defaults.",
	)
	parser.add_argument(
		"--repo",
		default=".",
		help="Path to the git working tree (default: current directory).",
	)
	parser.add_argument(
		"--from",
		dest="from_commit",
		default="",
		help="Start commit (full or short hash); skips interactive selection.",
	)
	parser.add_argument(
		"--count",
		type=int,
		default=DEFAULT_COMMIT_COUNT,
		help="Number of recent commits offered for interactive selection.",
	)
	parser.add_argument("--focus", default=None, help="Focus area for the presentation.")
	parser.add_argument("--audience", default=None, help="Target audience.")
	parser.add_argument("--deep-dive", action="store_true", help="Ask for implementation-level detail.")
	parser.add_argument("--include-metrics", action="store_true", help="Ask for concrete metrics.")
	parser.add_argument("--highlight-challenges", action="store_true", help="Emphasize challenges and fixes.")
	parser.add_argument("--team-size", type=int, default=None, help="Team size for collaboration framing.")
	parser.add_argument(
		"--llm-transport",
		choices=list(slide_llm.TRANSPORT_CHOICES),
		default=None,
		help="LLM transport selection (defaults from settings.yaml).",
	)
	parser.add_argument(
		"--llm-model",
		default=None,
		help="Optional model override (defaults from settings.yaml).",
	)
	parser.add_argument(
		"--llm-max-tokens",
		type=int,
		default=None,
		help="Max tokens per LLM call (defaults from settings.yaml).",
	)
	parser.add_argument(
		"--preview",
		dest="preview",
		action="store_true",
		help="Start a Slidev preview after writing the deck.",
	)
	parser.add_argument(
		"--no-preview",
		dest="preview",
		action="store_false",
		help="Do not start a preview (default).",
	)
	parser.set_defaults(preview=False)
	args = parser.parse_args(argv)
	return args


#============================================
def resolve_style_options(args: argparse.Namespace, settings: dict) -> dict:
	"""
	Merge style options: settings, then --config file, then inline flags.
	"""
	config = {}
	settings_options = pipeline_settings.get_nested_value(settings, ["slides", "prompt_options"], {})
	if isinstance(settings_options, dict):
		config.update(settings_options)
	if args.config:
		if not os.path.isfile(args.config):
			raise RuntimeError(f"Config file not found: {args.config}")
		file_config = pipeline_settings.load_yaml_mapping(args.config)
		nested = file_config.get("prompt_options", file_config.get("promptConfig"))
		config.update(nested if isinstance(nested, dict) else file_config)
	overrides = {
		"focus": args.focus,
		"audience": args.audience,
		"deep_dive": args.deep_dive,
		"include_metrics": args.include_metrics,
		"highlight_challenges": args.highlight_challenges,
		"team_size": args.team_size,
	}
	return prompt_styles.build_style_options(config, overrides)


#============================================
def select_start_commit(reader: GitRepositoryReader, args: argparse.Namespace) -> str:
	"""
	Return the start commit from --from or from an interactive picker.
	"""
	if args.from_commit:
		return args.from_commit.strip()
	summaries = reader.list_recent_commits(max(1, args.count))
	if not summaries:
		raise errors.EmptyRangeError("No commits found in this repository")
	if not sys.stdin.isatty():
		raise RuntimeError("No terminal for interactive selection; pass --from <commit>.")
	table = rich.table.Table(title="Recent commits")
	table.add_column("#", justify="right")
	table.add_column("Commit")
	table.add_column("Message")
	table.add_column("Author")
	table.add_column("When")
	for summary in summaries:
		table.add_row(
			str(summary.index),
			summary.short_id,
			summary.message,
			summary.author,
			summary.relative_date,
		)
	RICH_CONSOLE.print(table)
	choice = rich.prompt.Prompt.ask(
		"Start the story from which commit",
		choices=[str(summary.index) for summary in summaries],
		default=str(len(summaries)),
		console=RICH_CONSOLE,
	)
	return summaries[int(choice) - 1].id


#============================================
def build_capabilities(args: argparse.Namespace, settings: dict, theme: str):
	"""
	Build the LLM-backed capabilities, or None when AI is skipped.
	"""
	if args.skip_ai:
		return None
	transport_name = args.llm_transport or pipeline_settings.get_enabled_llm_transport(settings)
	if transport_name not in slide_llm.TRANSPORT_CHOICES:
		raise RuntimeError(f"Unsupported llm transport in settings: {transport_name}")
	model_override = ""
	if transport_name != "auto":
		model_override = pipeline_settings.get_llm_provider_model(settings, transport_name)
	if args.llm_model is not None:
		model_override = args.llm_model.strip()
	max_tokens = pipeline_settings.get_setting_int(settings, ["llm", "max_tokens"], 1200)
	if args.llm_max_tokens is not None:
		max_tokens = args.llm_max_tokens
	if max_tokens < 1:
		raise RuntimeError("llm max tokens must be >= 1")
	log_step(
		"Using LLM settings: "
		+ f"transport={transport_name}, model={model_override or 'auto'}, max_tokens={max_tokens}"
	)
	log_step(
		"LLM execution path for this run: "
		+ slide_llm.describe_llm_execution_path(transport_name, model_override)
	)
	client = slide_llm.create_llm_client(
		settings,
		transport_name,
		model_override,
		quiet=False,
		log_fn=log_step,
	)
	return SlideCapabilities(client, theme=theme, max_tokens=max_tokens, log_fn=log_step)


#============================================
def check_credentials(args: argparse.Namespace, settings: dict) -> str:
	"""
	Return an error message when the selected transport lacks a credential.
	"""
	if args.skip_ai:
		return ""
	transport_name = args.llm_transport or pipeline_settings.get_enabled_llm_transport(settings)
	if not slide_llm.transport_needs_openai_key(transport_name):
		return ""
	if pipeline_settings.get_openai_api_key(settings):
		return ""
	return "OPENAI_API_KEY is not set. Export it, or run with --skip-ai for the deterministic deck."


#============================================
def install_cancel_handler(stop_event: threading.Event):
	"""
	Route Ctrl-C to stop_event; a second Ctrl-C interrupts immediately.
	"""
	def handle_sigint(signum, frame) -> None:
		if stop_event.is_set():
			raise KeyboardInterrupt
		stop_event.set()
		log_step("Cancel requested; stopping before the next slide.")

	return signal.signal(signal.SIGINT, handle_sigint)


#============================================
def run(args: argparse.Namespace) -> int:
	"""
	Run one deck generation and return the process exit code.
	"""
	settings, settings_path = pipeline_settings.load_settings(args.settings)
	theme = args.theme or pipeline_settings.get_setting_str(settings, ["slides", "theme"], "default")
	style_name = args.style or pipeline_settings.get_setting_str(settings, ["slides", "style"], "default")
	output_dir = args.output or pipeline_settings.get_setting_str(
		settings, ["slides", "output_dir"], DEFAULT_OUTPUT_DIR
	)
	max_workers = pipeline_settings.get_setting_int(settings, ["slides", "max_workers"], 8)
	max_attempts = pipeline_settings.get_setting_int(
		settings, ["llm", "max_attempts"], deck_orchestrator.DEFAULT_MAX_ATTEMPTS
	)
	log_step(f"Using settings file: {settings_path}")
	log_step(f"Starting deck run with repo={os.path.abspath(args.repo)}, output={os.path.abspath(output_dir)}")

	reader = GitRepositoryReader(args.repo, max_workers=max_workers, log_fn=log_step)
	reader.ensure_repository()
	credential_problem = check_credentials(args, settings)
	if credential_problem:
		report_error(credential_problem)
		return EXIT_ERROR

	start_commit = select_start_commit(reader, args)
	log_step(f"Reading commits from {start_commit[:12]} to HEAD.")
	commits = reader.list_range(start_commit)
	log_step(f"Collected {len(commits)} commits by {len({commit.author for commit in commits})} author(s).")

	if not args.prompt_file and style_name.lower() not in prompt_styles.STYLE_REGISTRY:
		log_step(f"Unknown style '{style_name}'; using the default style.")
	style = prompt_styles.choose_style(style_name, args.prompt_file, resolve_style_options(args, settings))
	log_step(f"Using presentation style: {style.name}, theme: {theme}")
	capabilities = build_capabilities(args, settings, theme)

	stop_event = threading.Event()
	previous_handler = install_cancel_handler(stop_event)
	try:
		deck = deck_orchestrator.generate_slide_deck(
			commits,
			capabilities,
			style=style,
			theme=theme,
			max_attempts=max_attempts,
			log_fn=log_step,
			should_stop=stop_event.is_set,
		)
	finally:
		signal.signal(signal.SIGINT, previous_handler)

	path = deck_serializer.write_deck(deck, output_dir)
	log_step(f"Wrote {len(deck.slides)} slides to {path}")
	if args.preview:
		url = preview.launch_preview(output_dir, log_fn=log_step)
		if url:
			log_step(f"Preview: {url}")
	else:
		log_step(f"Preview with: cd {output_dir} && npx slidev {deck_serializer.OUTPUT_FILENAME}")
	return EXIT_OK


#============================================
def main(argv: list[str] | None = None) -> int:
	"""
	Generate a Slidev deck from git history and return an exit code.
	"""
	args = parse_args(argv)
	try:
		return run(args)
	except (errors.GenerationCancelled, KeyboardInterrupt):
		report_error("Generation cancelled; no slides written.")
		return EXIT_CANCELLED
	except errors.DeckError as error:
		report_error(str(error))
		return EXIT_ERROR
	except (RuntimeError, OSError, ValueError) as error:
		report_error(f"Pipeline failed: {error}")
		return EXIT_ERROR


if __name__ == "__main__":
	sys.exit(main())
