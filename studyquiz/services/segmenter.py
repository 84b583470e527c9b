import re
from typing import List

SENTENCE_BOUNDARY_RE = re.compile(r"[.!?]+\s+")
LETTER_RUN_RE = re.compile(r"[a-zA-Z]{3,}")
DIGIT_RE = re.compile(r"\d", re.ASCII)

MIN_WORDS = 3
MIN_CHARS = 20
MAX_CHARS = 500
MAX_DIGIT_RATIO = 0.5


def word_count(sentence: str) -> int:
    return len(sentence.split())


def is_quality_sentence(sentence: str) -> bool:
    """Filter out fragments, number tables and run-on garbage."""
    if word_count(sentence) < MIN_WORDS:
        return False
    if not LETTER_RUN_RE.search(sentence):
        return False
    if not MIN_CHARS < len(sentence) < MAX_CHARS:
        return False
    digits = len(DIGIT_RE.findall(sentence))
    return digits < len(sentence) * MAX_DIGIT_RATIO


def split_sentences(text: str) -> List[str]:
    """Split normalized text into sentences, keeping document order."""
    candidates = [s.strip() for s in SENTENCE_BOUNDARY_RE.split(text)]
    return [s for s in candidates if is_quality_sentence(s)]
