import re


WORD_RE = re.compile(r"[A-Za-z0-9']+")
WHITESPACE_RE = re.compile(r"\s+")


#============================================
def extract_words(text: str) -> list[str]:
	"""
	Return tokenized words for stable word-count checks.
	"""
	words = WORD_RE.findall(text or "")
	return words


#============================================
def count_words(text: str) -> int:
	"""
	Count words using a stable regex-based tokenizer.
	"""
	words = extract_words(text)
	count = len(words)
	return count


#============================================
def collapse_whitespace(text: str) -> str:
	"""
	Fold newlines and repeated spaces into single spaces.
	"""
	return WHITESPACE_RE.sub(" ", text or "").strip()

