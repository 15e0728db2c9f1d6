"""Opt-in Slidev preview for a written deck."""

# Standard Library
import json
import os
import shutil
import subprocess
import webbrowser

# PIP3 modules
import requests

# local repo modules
from decklib import deck_serializer


PREVIEW_PORT = 3030
PREVIEW_URL = f"http://localhost:{PREVIEW_PORT}"
SLIDEV_PACKAGES = ("@slidev/cli", "@slidev/theme-default")
SLIDEV_PACKAGE_CONFIG = {
	"name": "commit-deck-slides",
	"version": "1.0.0",
	"description": "Slides generated by commit-deck",
	"private": True,
	"main": deck_serializer.OUTPUT_FILENAME,
	"scripts": {
		"dev": f"slidev {deck_serializer.OUTPUT_FILENAME} --open",
		"build": f"slidev build {deck_serializer.OUTPUT_FILENAME}",
		"export": f"slidev export {deck_serializer.OUTPUT_FILENAME}",
	},
}


#============================================
def is_preview_running(url: str = PREVIEW_URL) -> bool:
	"""
	Return True when something already answers on the preview port.
	"""
	try:
		requests.get(url, timeout=1)
	except requests.RequestException:
		return False
	return True


#============================================
def ensure_slidev_package_json(output_dir: str, log_fn=None) -> bool:
	"""
	Make output_dir a Slidev project so `npx slidev` runs without prompting.

	A package.json that already lists @slidev/cli is left alone. Otherwise
	one is written and the Slidev packages are installed with npm.

	Returns:
		True when the folder is ready, False when the npm install was
		skipped or failed.
	"""
	def log(message: str) -> None:
		if log_fn is not None:
			log_fn(message)

	package_path = os.path.join(output_dir, "package.json")
	if os.path.isfile(package_path):
		try:
			with open(package_path, "r", encoding="utf-8") as handle:
				existing = json.load(handle)
		except (OSError, ValueError) as error:
			log(f"Rewriting unreadable package.json: {error}")
			existing = {}
		dependencies = existing.get("dependencies") if isinstance(existing, dict) else None
		if isinstance(dependencies, dict) and SLIDEV_PACKAGES[0] in dependencies:
			return True
	try:
		os.makedirs(output_dir, exist_ok=True)
		with open(package_path, "w", encoding="utf-8") as handle:
			json.dump(SLIDEV_PACKAGE_CONFIG, handle, indent=2)
			handle.write("\n")
	except OSError as error:
		log(f"Could not write package.json: {error}")
		return False
	log(f"Wrote Slidev package.json to {package_path}")
	npm_path = shutil.which("npm")
	if not npm_path:
		log("Skipping Slidev install: npm not found on PATH.")
		return False
	log("Installing Slidev dependencies with npm...")
	try:
		result = subprocess.run(
			[npm_path, "install"] + list(SLIDEV_PACKAGES),
			cwd=os.path.abspath(output_dir),
			stdout=subprocess.DEVNULL,
			stderr=subprocess.PIPE,
			text=True,
			check=False,
		)
	except OSError as error:
		log(f"Slidev install failed to start: {error}")
		return False
	if result.returncode != 0:
		log(f"Slidev install failed (exit {result.returncode}): {(result.stderr or '').strip()[:200]}")
		return False
	return True


#============================================
def launch_preview(output_dir: str, log_fn=None, open_browser: bool = True) -> str:
	"""
	Start `npx slidev slides.md` in output_dir and return the local URL.

	Preview problems are logged and never raised; an empty string means
	no preview could be started.
	"""
	def log(message: str) -> None:
		if log_fn is not None:
			log_fn(message)

	if is_preview_running():
		log(f"Slidev already running at {PREVIEW_URL}")
		if open_browser:
			webbrowser.open(PREVIEW_URL)
		return PREVIEW_URL
	ensure_slidev_package_json(output_dir, log_fn=log_fn)
	npx_path = shutil.which("npx")
	if not npx_path:
		log("Skipping preview: npx not found on PATH (install Node.js and @slidev/cli).")
		return ""
	command = [npx_path, "slidev", deck_serializer.OUTPUT_FILENAME, "--port", str(PREVIEW_PORT)]
	if open_browser:
		command.append("--open")
	try:
		subprocess.Popen(
			command,
			cwd=os.path.abspath(output_dir),
			stdout=subprocess.DEVNULL,
			stderr=subprocess.DEVNULL,
			start_new_session=True,
		)
	except OSError as error:
		log(f"Preview failed to start: {error}")
		return ""
	log(f"Slidev preview starting at {PREVIEW_URL}")
	return PREVIEW_URL
