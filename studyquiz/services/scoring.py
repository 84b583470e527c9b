"""
Importance scoring for the study-notes view: key sentences and key terms
"""
import re
from typing import Dict, List, NamedTuple

from studyquiz.config import KEY_SENTENCE_LIMIT, KEY_TERM_LIMIT
from studyquiz.services.segmenter import word_count

IMPORTANCE_VOCABULARY = [
    "define", "definition", "important", "key", "main", "primary",
    "significant", "crucial", "essential", "means", "refers to",
    "is a", "are a", "includes", "consists of", "theory", "principle",
    "concept", "method", "process", "system", "function", "purpose",
]

# Capitalized words that say nothing about the subject matter
STOP_TERMS = frozenset([
    "The", "This", "That", "These", "Those", "There", "Where",
    "When", "What", "Which", "Who", "How", "Why", "Could", "Would",
    "Should", "Must", "May", "Can", "Will", "Shall", "Page",
])

PROPER_NOUN_RE = re.compile(r"\b[A-Z][a-z]+\b")
DIGIT_RUN_RE = re.compile(r"\d+", re.ASCII)
TERM_RE = re.compile(r"\b[A-Z][a-z]{2,}\b")


class ScoredSentence(NamedTuple):
    sentence: str
    score: float


def score_sentence(sentence: str, index: int) -> float:
    score = 0.0
    lower = sentence.lower()

    for word in IMPORTANCE_VOCABULARY:
        if word in lower:
            score += 3

    # early sentences usually introduce the topic
    if index < 5:
        score += 3
    elif index < 10:
        score += 2

    words = word_count(sentence)
    if 8 <= words <= 25:
        score += 3
    elif 5 <= words <= 30:
        score += 1

    proper_nouns = PROPER_NOUN_RE.findall(sentence)
    score += min(len(proper_nouns) * 0.5, 3)

    if len(DIGIT_RUN_RE.findall(sentence)) > 3:
        score -= 2

    # colons often introduce definitions
    if ":" in sentence:
        score += 2

    return score


def score_sentences(sentences: List[str]) -> List[ScoredSentence]:
    """Score every sentence and rank them, keeping document order on ties."""
    scored = [ScoredSentence(s, score_sentence(s, idx)) for idx, s in enumerate(sentences)]
    return sorted(scored, key=lambda item: item.score, reverse=True)


def extract_key_sentences(sentences: List[str], max_sentences: int = KEY_SENTENCE_LIMIT) -> List[str]:
    ranked = score_sentences(sentences)
    candidates = [item for item in ranked[:max_sentences * 2] if item.score > 0]
    return [item.sentence for item in candidates[:max_sentences]]


def term_frequencies(text: str) -> Dict[str, int]:
    frequency: Dict[str, int] = {}
    for word in TERM_RE.findall(text):
        if len(word) > 3 and word not in STOP_TERMS:
            frequency[word] = frequency.get(word, 0) + 1
    return frequency


def extract_key_terms(text: str, max_terms: int = KEY_TERM_LIMIT) -> List[str]:
    """Most frequent capitalized terms seen at least twice, first-seen order on ties."""
    repeated = [(term, count) for term, count in term_frequencies(text).items() if count >= 2]
    repeated.sort(key=lambda item: item[1], reverse=True)
    return [term for term, _ in repeated[:max_terms]]
