"""Pure markup cleanup for Slidev slide text.

Slidev reads per-slide frontmatter with a YAML parser, so a stray '*Name' or
'&Name' token is taken for an alias or anchor and breaks the deck. These
helpers drop such markers while keeping paired emphasis, and fix the block
layouts that most often come back from an LLM: lists glued to prose,
lists wrapped in a bold span, and stray slide separators.

Every function here is deterministic and idempotent.
"""

# Standard Library
import dataclasses
import re

# local repo modules
from decklib import text_utils


CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
FENCE_RE = re.compile(r"^\s*(```|~~~)")
HEADING_RE = re.compile(r"^\s{0,3}#{1,6}(\s|$)")
LIST_ITEM_RE = re.compile(r"^\s*([-*+]|\d+[.)])\s+\S")
BLOCKQUOTE_RE = re.compile(r"^\s{0,3}>")
SEPARATOR_RE = re.compile(r"^\s*-{3,}\s*$")
COLUMN_MARKER_RE = re.compile(r"^\s*::[a-z-]+::\s*$")
CODE_SPAN_RE = re.compile(r"`[^`\n]*`")
BOLD_SPAN_RE = re.compile(r"\*\*(?=\S)(?:(?!\*\*).)+?(?<=\S)\*\*")
ITALIC_SPAN_RE = re.compile(r"(?<![*\w])\*(?=[^\s*])[^*\n]*?(?<=[^\s*])\*(?![*\w])")
ALIAS_MARKER_RE = re.compile(r"(?<![*\w])\*+(?=[A-Za-z_][\w-]*(?:\s|$))")
ANCHOR_MARKER_RE = re.compile(r"(?<![\w&])&(?=[A-Za-z_][\w-]*(?:\s|$))")
MASK_RE = re.compile(r"\x00(\d+)\x00")
MERGE_KEY = "<<:"
MAX_CLEANUP_PASSES = 8
VALID_LAYOUTS = ("default", "center", "two-cols", "cover")
HTML_REPLACEMENTS = (
	(re.compile(r"</?div\b[^>]*>", re.IGNORECASE), ""),
	(re.compile(r"<strong>(.*?)</strong>", re.IGNORECASE), r"**\1**"),
	(re.compile(r"<b>(.*?)</b>", re.IGNORECASE), r"**\1**"),
	(re.compile(r"<em>(.*?)</em>", re.IGNORECASE), r"*\1*"),
	(re.compile(r"</?(?:ul|ol)\s*>", re.IGNORECASE), "\n"),
	(re.compile(r"<li>\s*", re.IGNORECASE), "\n- "),
	(re.compile(r"</li>", re.IGNORECASE), ""),
	(re.compile(r"<h([1-6])>", re.IGNORECASE), lambda match: "\n" + "#" * int(match.group(1)) + " "),
	(re.compile(r"</h[1-6]>", re.IGNORECASE), "\n"),
	(re.compile(r"<p>", re.IGNORECASE), ""),
	(re.compile(r"</p>", re.IGNORECASE), "\n\n"),
)


#============================================
def strip_control_chars(text: str) -> str:
	"""
	Normalize newlines and drop control characters other than tab and newline.
	"""
	clean = (text or "").replace("\r\n", "\n").replace("\r", "\n")
	clean = CONTROL_CHARS_RE.sub("", clean)
	# removal can expose a new merge key, so loop until stable
	while MERGE_KEY in clean:
		clean = clean.replace(MERGE_KEY, "")
	return clean


#============================================
def _mask_spans(line: str) -> tuple[str, list[str]]:
	"""
	Swap code spans and paired emphasis for numbered placeholders.

	Code spans are masked first, so a saved emphasis span can itself hold
	a code span placeholder.
	"""
	saved = []

	def keep(match) -> str:
		saved.append(match.group(0))
		return f"\x00{len(saved) - 1}\x00"

	line = line.replace("\x00", "")
	for pattern in (CODE_SPAN_RE, BOLD_SPAN_RE, ITALIC_SPAN_RE):
		line = pattern.sub(keep, line)
	return line, saved


#============================================
def _unmask_spans(line: str, saved: list[str]) -> str:
	# placeholders nest, so restore until none are left
	while MASK_RE.search(line):
		line = MASK_RE.sub(lambda match: saved[int(match.group(1))], line)
	return line


#============================================
def _iter_prose_lines(text: str):
	"""
	Yield (index, line, kind) for lines outside fenced code blocks.
	"""
	in_fence = False
	for index, line in enumerate(text.split("\n")):
		if FENCE_RE.match(line):
			in_fence = not in_fence
			yield index, line, "fence"
			continue
		if in_fence:
			continue
		yield index, line, line_kind(line)


#============================================
def line_kind(line: str) -> str:
	"""
	Classify one markdown line for block-structure checks.
	"""
	if not line.strip():
		return "blank"
	if FENCE_RE.match(line):
		return "fence"
	if SEPARATOR_RE.match(line):
		return "separator"
	if HEADING_RE.match(line):
		return "heading"
	if LIST_ITEM_RE.match(line):
		return "list"
	if BLOCKQUOTE_RE.match(line):
		return "quote"
	if COLUMN_MARKER_RE.match(line):
		return "marker"
	if line[:1] in (" ", "\t"):
		return "indented"
	return "prose"


#============================================
def find_alias_markers(text: str) -> list[str]:
	"""
	Return stray alias/anchor tokens that a YAML parser would misread.
	"""
	found = []
	for _, line, kind in _iter_prose_lines(strip_control_chars(text)):
		if kind == "fence":
			continue
		masked, _ = _mask_spans(line)
		for pattern in (ALIAS_MARKER_RE, ANCHOR_MARKER_RE):
			for match in pattern.finditer(masked):
				token = masked[match.start():].split()[0]
				found.append(_unmask_spans(token, _mask_spans(line)[1]))
	if MERGE_KEY in (text or ""):
		found.append(MERGE_KEY)
	return found


#============================================
def _drop_markers(line: str) -> str:
	"""
	Remove marker runs from one line until none are left.

	Dropping an '&' can expose a '*' run in front of it, and the reverse,
	so the spans are re-masked on every round.
	"""
	while True:
		masked, saved = _mask_spans(line)
		masked = ALIAS_MARKER_RE.sub("", masked)
		masked = ANCHOR_MARKER_RE.sub("", masked)
		cleaned = _unmask_spans(masked, saved)
		if cleaned == line:
			return line
		line = cleaned


#============================================
def neutralize_markers(text: str) -> str:
	"""
	Drop stray '*' and '&' markers that precede a bare identifier.

	Paired emphasis (*italic*, **bold**), code spans, fenced code and
	HTML entities such as &amp; are left alone.
	"""
	lines = text.split("\n")
	for index, line, kind in list(_iter_prose_lines(text)):
		if kind in ("fence", "blank"):
			continue
		lines[index] = _drop_markers(line)
	return "\n".join(lines)


#============================================
def _needs_gap(prev_kind: str, kind: str) -> bool:
	"""
	Decide whether a blank line must separate two adjacent blocks.
	"""
	if prev_kind == "blank":
		return False
	if prev_kind == "fence" or kind == "fence":
		return True
	if kind in ("heading", "marker") or prev_kind in ("heading", "marker"):
		return True
	if kind == "quote" or prev_kind == "quote":
		return kind != prev_kind
	if kind == "list":
		return prev_kind == "prose"
	if kind == "prose":
		return prev_kind == "list"
	return False


#============================================
def _balance_bold_lists(lines: list[str]) -> list[str]:
	"""
	Close a bold span opened on a prose line that a list then follows.
	"""
	result = list(lines)
	pending_close = False
	in_fence = False
	for index, line in enumerate(result):
		if FENCE_RE.match(line):
			in_fence = not in_fence
			pending_close = False
			continue
		if in_fence:
			continue
		kind = line_kind(line)
		odd_bold = line.count("**") % 2 == 1
		next_kind = line_kind(result[index + 1]) if index + 1 < len(result) else "blank"
		if kind == "prose" and odd_bold and next_kind == "list":
			result[index] = line.rstrip() + "**"
			pending_close = True
			continue
		if pending_close and kind == "list":
			if odd_bold and line.rstrip().endswith("**"):
				result[index] = line.rstrip()[:-2].rstrip()
				pending_close = False
			continue
		pending_close = False
	return result


#============================================
def normalize_blocks(text: str) -> str:
	"""
	Separate block elements with single blank lines.

	Stray '---' separator lines are dropped and fenced code content is
	copied through untouched.
	"""
	lines = _balance_bold_lists(text.split("\n"))
	out = []
	prev_kind = "blank"
	in_fence = False
	for raw_line in lines:
		if in_fence:
			out.append(raw_line)
			if FENCE_RE.match(raw_line):
				in_fence = False
				prev_kind = "fence"
			continue
		line = raw_line.rstrip()
		kind = line_kind(line)
		if kind == "separator":
			kind = "blank"
		if kind == "blank":
			if out and out[-1] != "":
				out.append("")
			prev_kind = "blank"
			continue
		if kind == "fence":
			in_fence = True
		if kind == "indented":
			# indented text continues the block above it
			kind = prev_kind if prev_kind != "blank" else "prose"
		if out and out[-1] != "" and _needs_gap(prev_kind, kind):
			out.append("")
		out.append(line)
		prev_kind = kind
	while out and out[-1] == "":
		out.pop()
	while out and out[0] == "":
		out.pop(0)
	return "\n".join(out)


#============================================
def find_nesting_issues(text: str) -> list[str]:
	"""
	Report malformed block nesting left in slide text.
	"""
	issues = []
	prev_kind = "blank"
	prev_line = ""
	for index, line, kind in _iter_prose_lines(strip_control_chars(text)):
		line_number = index + 1
		if kind == "separator":
			issues.append(f"slide separator '---' inside content on line {line_number}")
		if kind == "list" and prev_kind == "prose":
			if prev_line.count("**") % 2 == 1:
				issues.append(f"list nested inside a bold span on line {line_number}")
			else:
				issues.append(f"list glued to a paragraph on line {line_number}")
		if kind == "indented" and prev_kind in ("list", "indented"):
			kind = "list"
		prev_kind = kind
		prev_line = line
	return issues


#============================================
def convert_html_markup(text: str) -> str:
	"""
	Turn common HTML tags into markdown outside fenced code.

	div wrappers are dropped because Slidev compiles slides as Vue
	templates and unbalanced divs break the build.
	"""
	chunks = []
	current = []
	in_fence = False
	for line in text.split("\n"):
		if FENCE_RE.match(line):
			if not in_fence:
				chunks.append(("prose", current))
				current = [line]
			else:
				current.append(line)
				chunks.append(("fence", current))
				current = []
			in_fence = not in_fence
			continue
		current.append(line)
	chunks.append(("fence" if in_fence else "prose", current))
	pieces = []
	for kind, lines in chunks:
		if not lines:
			continue
		block = "\n".join(lines)
		if kind == "prose":
			for pattern, replacement in HTML_REPLACEMENTS:
				block = pattern.sub(replacement, block)
		pieces.append(block)
	return "\n".join(pieces)


#============================================
def _until_stable(clean_fn, text: str) -> str:
	"""
	Repeat a cleanup pass until its output stops changing.

	One pass can expose new work for another: dropping a marker can flip
	the bold count that decides list balancing, and HTML conversion can
	assemble a merge key.
	"""
	clean = clean_fn(text)
	for _ in range(MAX_CLEANUP_PASSES):
		again = clean_fn(clean)
		if again == clean:
			break
		clean = again
	return clean


#============================================
def _sanitize_text_once(text: str) -> str:
	clean = strip_control_chars(text)
	clean = convert_html_markup(clean)
	clean = normalize_blocks(clean)
	clean = neutralize_markers(clean)
	return clean.strip()


#============================================
def sanitize_text(text: str) -> str:
	"""
	Run the full block cleanup and marker neutralization on slide text.
	"""
	return _until_stable(_sanitize_text_once, text)


#============================================
def _sanitize_inline_once(text: str) -> str:
	clean = strip_control_chars(text)
	clean = text_utils.collapse_whitespace(clean)
	clean = neutralize_markers(clean)
	return clean.strip()


#============================================
def sanitize_inline(text: str) -> str:
	"""
	Sanitize a single-line field such as a title or subtitle.
	"""
	return _until_stable(_sanitize_inline_once, text)


#============================================
def sanitize_notes(text: str) -> str:
	"""
	Sanitize speaker notes so they cannot close their HTML comment early.
	"""
	clean = sanitize_text(text)
	while "-->" in clean:
		clean = clean.replace("-->", "->")
	return clean


#============================================
def sanitize_slide_record(record):
	"""
	Return a sanitized copy of a SlideRecord; the input is not changed.
	"""
	layout = (record.layout or "default").strip().lower()
	if layout not in VALID_LAYOUTS:
		layout = "default"
	return dataclasses.replace(
		record,
		title=sanitize_inline(record.title),
		subtitle=sanitize_inline(record.subtitle),
		layout=layout,
		content=sanitize_text(record.content),
		right_content=sanitize_text(record.right_content),
		notes=sanitize_notes(record.notes),
	)
