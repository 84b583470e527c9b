"""
End-to-end tests for the document-to-quiz pipeline
"""
import asyncio
import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import pytest
from prometheus_client import REGISTRY

from studyquiz.errors import EmptyQuizResult, ExtractionFailure, InsufficientInput, UnsupportedDocument
from studyquiz.models import MULTIPLE_CHOICE, TRUE_FALSE
from studyquiz.services.pipeline import (
    QuizSession, acquire_text, classify_document, generate_study_pack, get_salvage_pool, reset_salvage_pool,
)
from studyquiz.services.salvage import LIMITED_EXTRACTION_MESSAGE

OSMOSIS_PARAGRAPH = (
    "Osmosis is the movement of water molecules across a membrane. "
    "Plant cells depend on this process to stay firm and healthy during the day. "
    "When water leaves the cell, the plant begins to wilt quite quickly. "
    "Gardeners notice these effects after long dry spells in the summer months."
)


class FixedRandom:
    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


class TestGenerateStudyPack:
    def test_osmosis_definition_question(self):
        """The Osmosis definition becomes a multiple choice question with one flagged answer"""
        pack = generate_study_pack(OSMOSIS_PARAGRAPH)
        mcqs = [q for q in pack.questions if q.type == MULTIPLE_CHOICE]
        assert len(mcqs) == 1
        question = mcqs[0]
        assert question.question == "What is Osmosis?"
        assert question.correct_answer == "the movement of water molecules across a membrane"
        assert len(question.options) == 4

        key = next(k for k in pack.answer_keys if k.question_id == question.id)
        assert sum(1 for o in key.options if o.correct) == 1

    def test_notes_and_questions_returned(self):
        """Key sentences and one answer key per question come back with the quiz"""
        pack = generate_study_pack(OSMOSIS_PARAGRAPH, rng=FixedRandom(0.0))
        assert pack.key_sentences
        assert len(pack.answer_keys) == len(pack.questions)
        assert len(pack.questions) <= 10
        assert pack.questions[0].type == TRUE_FALSE

    def test_short_input_rejected_before_pipeline(self):
        """Input under 100 characters never reaches the normalizer"""
        with patch("studyquiz.services.pipeline.normalize_text") as normalize:
            with pytest.raises(InsufficientInput):
                generate_study_pack("Osmosis is the movement of water.")
            normalize.assert_not_called()

    def test_whitespace_padding_does_not_count(self):
        """Length is measured after trimming"""
        with pytest.raises(InsufficientInput):
            generate_study_pack(" " * 200 + "short text")

    def test_unproductive_text_reports_empty_quiz(self):
        """Valid but unstructured input is reported as an empty quiz"""
        with pytest.raises(EmptyQuizResult):
            generate_study_pack("12345 67890 " * 20)


class TestQuizSession:
    def test_session_holds_normalized_state(self):
        """A session keeps its own normalized text and sentences"""
        session = QuizSession(OSMOSIS_PARAGRAPH)
        assert "\n\n" in session.text
        assert session.sentences[0] == "Osmosis is the movement of water molecules across a membrane"
        assert session.raw_text == OSMOSIS_PARAGRAPH

    def test_sessions_are_independent(self):
        """Two sessions share no state"""
        first = QuizSession(OSMOSIS_PARAGRAPH)
        second = QuizSession("Mitochondria release energy for the cell. Mitochondria divide on their own schedule.")
        assert first.sentences != second.sentences
        assert second.key_terms() == ["Mitochondria"]


class TestClassifyDocument:
    def test_pdf_by_type_or_extension(self):
        """PDFs are recognized by content type or file name"""
        assert classify_document("notes.bin", "application/pdf") == "pdf"
        assert classify_document("NOTES.PDF", None) == "pdf"

    def test_text_by_type_or_extension(self):
        """Text files are recognized by content type or file name"""
        assert classify_document("notes", "text/plain") == "text"
        assert classify_document("notes.txt", "application/octet-stream") == "text"

    def test_other_files_rejected(self):
        """Anything else is unsupported"""
        with pytest.raises(UnsupportedDocument):
            classify_document("photo.png", "image/png")


class TestAcquireText:
    def test_text_upload_cleaned(self):
        """Text uploads are decoded and run through the artifact cleaner"""
        content = "Cells   divide\nquicklyThe nucleus splits in two during this stage of growth.".encode("utf-8")
        document = asyncio.run(acquire_text(content, "notes.txt", "text/plain"))
        assert document.kind == "text"
        assert document.text.startswith("Cells divide quickly. The nucleus")
        assert document.characters == len(document.text)
        assert not document.limited

    def test_short_upload_flagged(self):
        """Very short extractions carry the limited flag"""
        document = asyncio.run(acquire_text(b"tiny note", "notes.txt", "text/plain"))
        assert document.limited

    def test_pdf_upload_salvaged(self):
        """PDF uploads go through salvage"""
        sentence = "Chapter two covers cell biology, including osmosis and diffusion across membranes in detail."
        content = f"%PDF-1.4\nBT ({sentence}) Tj ({sentence}) Tj ET".encode("latin-1")
        document = asyncio.run(acquire_text(content, "notes.pdf", "application/pdf"))
        assert document.kind == "pdf"
        assert "osmosis and diffusion" in document.text

    def test_unreadable_pdf_returns_notice(self):
        """A PDF with nothing readable yields the limited-extraction notice"""
        document = asyncio.run(acquire_text(b"\x00\x01\x02", "scan.pdf", "application/pdf"))
        assert document.text == LIMITED_EXTRACTION_MESSAGE

    def test_slow_salvage_times_out(self):
        """Salvage that outlives the timeout is an extraction failure and its workers are stopped"""
        def slow_salvage(data):
            time.sleep(0.3)
            return "too late", "primary"

        with ThreadPoolExecutor(max_workers=1) as pool, \
                patch("studyquiz.services.pipeline.get_salvage_pool", return_value=pool), \
                patch("studyquiz.services.pipeline.salvage_pdf", slow_salvage), \
                patch("studyquiz.services.pipeline.reset_salvage_pool") as reset:
            with pytest.raises(ExtractionFailure):
                asyncio.run(acquire_text(b"%PDF", "slow.pdf", "application/pdf", timeout=0.05))
            reset.assert_called_once()

    def test_unclosed_marker_flood_within_timeout(self):
        """A flood of unclosed BT markers is salvaged in a worker well before the timeout"""
        started = time.perf_counter()
        document = asyncio.run(acquire_text(b"BT " * 20000, "flood.pdf", "application/pdf", timeout=5))
        assert document.text == LIMITED_EXTRACTION_MESSAGE
        assert time.perf_counter() - started < 5

    def test_salvage_counted_in_serving_process(self):
        """Salvage routes are recorded here even though the work runs in a worker process"""
        labels = {"kind": "pdf", "method": "insufficient"}
        before = REGISTRY.get_sample_value("text_extractions_total", labels) or 0
        asyncio.run(acquire_text(b"\x00\x01", "scan.pdf", "application/pdf"))
        assert REGISTRY.get_sample_value("text_extractions_total", labels) == before + 1

    def test_reset_starts_fresh_pool(self):
        """After a reset the next upload gets a new worker pool"""
        first = get_salvage_pool()
        reset_salvage_pool()
        assert get_salvage_pool() is not first

    def test_unsupported_upload(self):
        """Unsupported files fail before any decoding"""
        with pytest.raises(UnsupportedDocument):
            asyncio.run(acquire_text(b"\x89PNG", "photo.png", "image/png"))
