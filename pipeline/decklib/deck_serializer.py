"""Write a SlideDeck as Slidev markdown."""

# Standard Library
import json
import os
import re

# local repo modules
from decklib import errors


OUTPUT_FILENAME = "slides.md"
DECK_INFO = "Generated by commit-deck"
PLAIN_SCALAR_RE = re.compile(r"^[A-Za-z0-9][\w./-]*$")


#============================================
def yaml_scalar(text: str) -> str:
	"""
	Return text as a YAML scalar, double-quoted unless it is a plain word.
	"""
	if PLAIN_SCALAR_RE.match(text or ""):
		return text
	# a JSON string is a valid YAML double-quoted scalar
	return json.dumps(text or "", ensure_ascii=False)


#============================================
def render_headmatter(deck) -> str:
	lines = [
		"---",
		f"theme: {yaml_scalar(deck.theme or 'default')}",
		f"title: {json.dumps(deck.title, ensure_ascii=False)}",
		f"info: {DECK_INFO}",
		"class: text-center",
		"transition: slide-left",
	]
	if deck.slides and deck.slides[0].layout != "default":
		lines.append(f"layout: {deck.slides[0].layout}")
	lines.append("---")
	return "\n".join(lines)


#============================================
def render_slide_body(slide) -> str:
	"""
	Render title, subtitle, content, columns and notes for one slide.
	"""
	parts = [f"# {slide.title}"]
	if slide.subtitle:
		parts[0] += f"\n## {slide.subtitle}"
	if slide.layout == "two-cols":
		parts.append("::left::")
		parts.append(slide.content)
		parts.append("::right::")
		parts.append(slide.right_content)
	else:
		parts.append(slide.content)
	if slide.notes:
		parts.append(f"<!--\n{slide.notes}\n-->")
	return "\n\n".join(part for part in parts if part)


#============================================
def serialize_deck(deck) -> str:
	"""
	Render a SlideDeck to one Slidev markdown document.
	"""
	chunks = [render_headmatter(deck)]
	for index, slide in enumerate(deck.slides):
		if index > 0:
			if slide.layout != "default":
				chunks.append(f"---\nlayout: {slide.layout}\n---")
			else:
				chunks.append("---")
		chunks.append(render_slide_body(slide))
	return "\n\n".join(chunks) + "\n"


#============================================
def write_deck(deck, output_dir: str) -> str:
	"""
	Write the deck to <output_dir>/slides.md and return the file path.

	Raises:
		SerializationError: the directory or file cannot be written.
	"""
	resolved_dir = os.path.abspath(output_dir)
	path = os.path.join(resolved_dir, OUTPUT_FILENAME)
	text = serialize_deck(deck)
	try:
		os.makedirs(resolved_dir, exist_ok=True)
		with open(path, "w", encoding="utf-8") as handle:
			handle.write(text)
	except OSError as error:
		raise errors.SerializationError(f"Cannot write slide deck ({error.strerror or error})", path) from error
	return path
