"""
Quiz synthesis from normalized text and its filtered sentences.

Three independent generators, each capped at five questions:

    * true/false     - short sentences taken verbatim from the text
    * multiple choice - "<Term> is <definition>" patterns with split-definition distractors
    * fill-in-the-blank - the longest plain word of a sentence is blanked out

True/false statements are always lifted from the text unchanged, so their
answer is always "True". There is no negation step.
"""
import random
import re
from typing import List, Optional

import structlog

from studyquiz.config import MAX_QUESTIONS
from studyquiz.errors import EmptyQuizResult
from studyquiz.models import (
    FillBlankQuestion, MultipleChoiceQuestion, Question, TrueFalseQuestion,
)
from studyquiz.services.logging import log_performance
from studyquiz.services.segmenter import word_count

logger = structlog.get_logger()

PER_TYPE_LIMIT = 5
BLANK = "______"
INCORRECT_SUFFIX = " (incorrect)"
NONE_OF_THE_ABOVE = "None of the above"

DEFINITION_RE = re.compile(
    r"([A-Z][a-z]+(?:\s+[A-Z][a-z]+){0,3})\s+(?:is|are|refers to|means|defines?)\s+([^.!?]{10,100})"
)
BLANK_CANDIDATE_RE = re.compile(r"^[a-zA-Z]+$")
NON_LETTER_RE = re.compile(r"[^a-z]")


def normalize_answer(text: str) -> str:
    """Lowercase and keep only a-z, the form fill-in-the-blank answers are compared in."""
    return NON_LETTER_RE.sub("", (text or "").lower())


def shuffle_options(options: List[str], rng=None) -> List[str]:
    """Fisher-Yates shuffle; ``rng`` only needs a ``random()`` method."""
    rng = rng or random
    shuffled = list(options)
    for i in range(len(shuffled) - 1, 0, -1):
        j = int(rng.random() * (i + 1))
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def build_distractors(definition: str) -> List[str]:
    words = definition.split()
    mid = len(words) // 2
    return [
        " ".join(words[:mid]) + INCORRECT_SUFFIX,
        " ".join(words[mid:]) + INCORRECT_SUFFIX,
        NONE_OF_THE_ABOVE,
    ]


def generate_true_false(sentences: List[str], limit: int = PER_TYPE_LIMIT) -> List[TrueFalseQuestion]:
    picked = [s for s in sentences if 8 <= word_count(s) <= 25][:limit]
    return [
        TrueFalseQuestion(id=f"tf{idx}", question=sentence.strip())
        for idx, sentence in enumerate(picked)
    ]


def generate_multiple_choice(text: str, limit: int = PER_TYPE_LIMIT, rng=None) -> List[MultipleChoiceQuestion]:
    questions: List[MultipleChoiceQuestion] = []
    for match in DEFINITION_RE.finditer(text):
        if len(questions) >= limit:
            break
        term = match.group(1).strip()
        definition = match.group(2).strip()
        if word_count(definition) < 3:
            continue

        options = shuffle_options([definition] + build_distractors(definition), rng)
        questions.append(MultipleChoiceQuestion(
            id=f"mcq{len(questions)}",
            question=f"What is {term}?",
            correct_answer=definition,
            options=options,
        ))
    return questions


def pick_blank_word(words: List[str]) -> Optional[int]:
    """Index of the longest purely alphabetic word over four letters, first one on ties."""
    candidates = [
        (idx, word) for idx, word in enumerate(words)
        if len(word) > 4 and BLANK_CANDIDATE_RE.match(word)
    ]
    if not candidates:
        return None
    candidates.sort(key=lambda item: len(item[1]), reverse=True)
    return candidates[0][0]


def generate_fill_blank(sentences: List[str], limit: int = PER_TYPE_LIMIT) -> List[FillBlankQuestion]:
    picked = [s for s in sentences if 8 <= word_count(s) <= 20][:limit]
    questions: List[FillBlankQuestion] = []
    for idx, sentence in enumerate(picked):
        words = sentence.split()
        blank_idx = pick_blank_word(words)
        if blank_idx is None:
            continue
        prompt = " ".join(BLANK if i == blank_idx else w for i, w in enumerate(words))
        questions.append(FillBlankQuestion(
            id=f"fib{idx}",
            question=prompt,
            correct_answer=normalize_answer(words[blank_idx]),
        ))
    return questions


@log_performance("synthesize_quiz")
def synthesize_quiz(text: str, sentences: List[str], rng=None,
                    max_questions: int = MAX_QUESTIONS) -> List[Question]:
    """Build the question set; raises EmptyQuizResult when nothing could be generated."""
    true_false = generate_true_false(sentences)
    multiple_choice = generate_multiple_choice(text, rng=rng)
    fill_blank = generate_fill_blank(sentences)

    questions: List[Question] = (true_false + multiple_choice + fill_blank)[:max_questions]
    if not questions:
        logger.info("quiz_empty", sentences=len(sentences), characters=len(text))
        raise EmptyQuizResult()

    logger.info(
        "quiz_generated",
        truefalse=len(true_false),
        mcq=len(multiple_choice),
        fillblank=len(fill_blank),
        total=len(questions),
    )
    return questions
