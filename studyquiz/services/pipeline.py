"""
Document-to-quiz orchestration: text acquisition, then normalize, segment, score and synthesize
"""
import asyncio
from concurrent.futures import Executor, ProcessPoolExecutor
from concurrent.futures.process import BrokenProcessPool
from typing import List, Optional

import structlog

from studyquiz.config import (
    EXTRACTION_TIMEOUT_SECONDS, EXTRACTION_WORKERS, KEY_SENTENCE_LIMIT, KEY_TERM_LIMIT, MAX_QUESTIONS,
    MIN_INPUT_CHARS,
)
from studyquiz.errors import ExtractionFailure, InsufficientInput, UnsupportedDocument
from studyquiz.models import ExtractedDocument, Question, StudyPack
from studyquiz.services.grader import answer_key
from studyquiz.services.monitoring import TEXT_EXTRACTIONS
from studyquiz.services.normalizer import clean_pdf_text, normalize_text
from studyquiz.services.quiz import synthesize_quiz
from studyquiz.services.salvage import SALVAGE_MIN_CHARS, record_salvage, salvage_pdf
from studyquiz.services.scoring import extract_key_sentences, extract_key_terms
from studyquiz.services.segmenter import split_sentences

logger = structlog.get_logger()

PDF = "pdf"
TEXT = "text"


# -------------------- TEXT ACQUISITION --------------------

_salvage_pool: Optional[ProcessPoolExecutor] = None


def get_salvage_pool() -> Executor:
    """Worker processes for PDF salvage, started on first use."""
    global _salvage_pool
    if _salvage_pool is None:
        _salvage_pool = ProcessPoolExecutor(max_workers=EXTRACTION_WORKERS)
    return _salvage_pool


def reset_salvage_pool():
    """Stop the salvage workers; the next PDF upload starts a fresh pool."""
    global _salvage_pool
    pool, _salvage_pool = _salvage_pool, None
    if pool is None:
        return
    # a running call cannot be cancelled, only its worker stopped
    for process in list((getattr(pool, "_processes", None) or {}).values()):
        process.terminate()
    pool.shutdown(wait=False, cancel_futures=True)


def classify_document(filename: Optional[str], content_type: Optional[str]) -> str:
    name = (filename or "").lower()
    ctype = (content_type or "").lower()
    if ctype == "application/pdf" or name.endswith(".pdf"):
        return PDF
    if "text" in ctype or name.endswith(".txt"):
        return TEXT
    raise UnsupportedDocument()


async def acquire_text(content: bytes, filename: Optional[str] = None,
                       content_type: Optional[str] = None,
                       timeout: float = EXTRACTION_TIMEOUT_SECONDS) -> ExtractedDocument:
    """Turn an uploaded file into cleaned text; PDF salvage runs in a worker process."""
    kind = classify_document(filename, content_type)

    if kind == PDF:
        loop = asyncio.get_running_loop()
        try:
            text, method = await asyncio.wait_for(
                loop.run_in_executor(get_salvage_pool(), salvage_pdf, content), timeout=timeout
            )
        except asyncio.TimeoutError as e:
            logger.warning("pdf_salvage_timeout", filename=filename, timeout=timeout)
            reset_salvage_pool()
            raise ExtractionFailure("Reading the PDF took too long. Please copy text and paste directly.") from e
        except BrokenProcessPool as e:
            logger.error("pdf_salvage_worker_lost", filename=filename)
            reset_salvage_pool()
            raise ExtractionFailure() from e
        record_salvage(method, len(content), len(text))
    else:
        text = content.decode("utf-8", errors="replace")
        TEXT_EXTRACTIONS.labels(kind=TEXT, method="decode").inc()

    cleaned = clean_pdf_text(text)
    limited = len(cleaned) < SALVAGE_MIN_CHARS
    if limited:
        logger.warning("extraction_minimal", filename=filename, kind=kind, characters=len(cleaned))

    return ExtractedDocument(
        filename=filename,
        kind=kind,
        text=cleaned,
        characters=len(cleaned),
        limited=limited,
    )


# -------------------- GENERATION --------------------

class QuizSession:
    """Per-request context: normalized text and filtered sentences of one document."""

    def __init__(self, text: str, rng=None):
        self.raw_text = text
        self.rng = rng
        self.text = normalize_text(text)
        self.sentences = split_sentences(self.text)

    def key_sentences(self, max_sentences: int = KEY_SENTENCE_LIMIT) -> List[str]:
        return extract_key_sentences(self.sentences, max_sentences)

    def key_terms(self, max_terms: int = KEY_TERM_LIMIT) -> List[str]:
        return extract_key_terms(self.text, max_terms)

    def questions(self, max_questions: int = MAX_QUESTIONS) -> List[Question]:
        return synthesize_quiz(self.text, self.sentences, rng=self.rng, max_questions=max_questions)


def validate_input(text: Optional[str]) -> str:
    stripped = (text or "").strip()
    if len(stripped) < MIN_INPUT_CHARS:
        raise InsufficientInput(
            f"Please upload a file or paste some text (at least {MIN_INPUT_CHARS} characters)!"
        )
    return stripped


def generate_study_pack(text: Optional[str], rng=None) -> StudyPack:
    """Key sentences, key terms and a graded-ready question set for one document."""
    session = QuizSession(validate_input(text), rng=rng)
    questions = session.questions()

    pack = StudyPack(
        key_sentences=session.key_sentences(),
        key_terms=session.key_terms(),
        questions=questions,
        answer_keys=[answer_key(q) for q in questions],
    )
    logger.info(
        "study_pack_generated",
        sentences=len(session.sentences),
        key_sentences=len(pack.key_sentences),
        key_terms=len(pack.key_terms),
        questions=len(pack.questions),
    )
    return pack
