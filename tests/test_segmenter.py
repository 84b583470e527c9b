"""
Unit tests for sentence segmentation and quality filtering
"""
from studyquiz.services.normalizer import normalize_text
from studyquiz.services.segmenter import is_quality_sentence, split_sentences, word_count

NOTES = """
Photosynthesis converts light energy into chemical energy inside plant leaves.
Chlorophyll absorbs mostly red and blue light! Why do leaves look green?
Table 4: 12 18 22 31 44 57 61 73 85 90. Ok.
Respiration releases that stored energy again when cells need it for work.
"""


class TestSplitSentences:
    def test_fragments_and_number_rows_dropped(self):
        """Short fragments and digit-only rows are filtered out, order kept"""
        text = (
            "Short one. This sentence is long enough to keep. "
            "123 456 789 000 111 222 333. Cells divide every day in the body!"
        )
        assert split_sentences(text) == [
            "This sentence is long enough to keep",
            "Cells divide every day in the body!",
        ]

    def test_split_on_all_terminators(self):
        """Periods, exclamation marks and question marks all end sentences"""
        text = "Leaves are green for a reason! Do roots need light at all? Stems carry water upward."
        assert split_sentences(text) == [
            "Leaves are green for a reason",
            "Do roots need light at all",
            "Stems carry water upward.",
        ]

    def test_filtered_sentences_hold_invariants(self):
        """Every surviving sentence satisfies the quality rules"""
        sentences = split_sentences(normalize_text(NOTES))
        assert sentences
        for s in sentences:
            assert word_count(s) >= 3
            assert 20 < len(s) < 500
            assert sum(c.isdigit() for c in s) < 0.5 * len(s)


class TestQualityRules:
    def test_minimum_words(self):
        """Two long words are not a sentence"""
        assert not is_quality_sentence("Photosynthesis everywhere")

    def test_needs_letter_run(self):
        """Sentences need at least one run of three letters"""
        assert not is_quality_sentence("a1 b2 c3 d4 e5 f6 g7 h8 i9")

    def test_length_bounds(self):
        """Twenty characters or fewer, or 500 or more, are rejected"""
        assert not is_quality_sentence("tiny but has words")
        assert not is_quality_sentence("word " * 120)
        assert is_quality_sentence("this one is just right")

    def test_digit_density(self):
        """Mostly numeric text is rejected"""
        assert not is_quality_sentence("abc 1234567890 1234567890 12")
        assert is_quality_sentence("In 1905 Einstein published four papers")
