"""
Text normalization in three ordered stages.

Every stage is a list of (pattern, replacement) rules applied in order by
``apply_rules`` followed by a trim:

    A. clean_pdf_text        - extraction artifacts and PDF structure tokens
    B. extract_readable_text - math, LaTeX, symbol clusters, non-ASCII, bare numbers
    C. improve_structure     - paragraph breaks

Later stages assume the cleanup done by earlier ones, so the order matters.
"""
import re
from typing import List, Tuple

from studyquiz.services.logging import log_performance

Rule = Tuple[re.Pattern, str]


def rule(pattern: str, replacement: str, flags: int = 0, ascii_only: bool = True) -> Rule:
    """Compile one rewrite rule; \\w, \\d and \\b are ASCII-only unless ``ascii_only`` is off."""
    return re.compile(pattern, flags | re.ASCII if ascii_only else flags), replacement


def apply_rules(text: str, rules: List[Rule]) -> str:
    for pattern, replacement in rules:
        text = pattern.sub(replacement, text)
    return text.strip()


PDF_ARTIFACT_RULES: List[Rule] = [
    # NBSP, em space and other Unicode whitespace collapse too
    rule(r"\s+", " ", ascii_only=False),
    # "w o r d" -> "word"
    rule(r"\b(\w)\s+(?=\w\b)", r"\1"),
    # object references such as "12 0 R"
    rule(r"\b\d+\s*R\s*", " "),
    rule(r"/Type\s*/Pages?", "", re.IGNORECASE),
    rule(r"/Kids\s*\[.*?\]", "", re.IGNORECASE),
    rule(r"/Count\s*\d+", "", re.IGNORECASE),
    rule(r"<<|>>", ""),
    rule(r"endobj", ""),
    rule(r"/[A-Z][a-zA-Z0-9]*", " "),
    # missing punctuation between runs: "cellsThe" -> "cells. The"
    rule(r"([a-z])([A-Z])", r"\1. \2"),
    rule(r"[.!?]{2,}", "."),
]

READABILITY_RULES: List[Rule] = [
    rule(r"\$\$[^$]+\$\$", " [math] "),
    rule(r"\$[^$]+\$", " [formula] "),
    rule(r"\\[a-z]+\{[^}]*\}", "", re.IGNORECASE),
    rule(r"\\[a-z]+", "", re.IGNORECASE),
    rule(r"[^\w\s.,!?;:()\-'\"/]{3,}", " "),
    rule(r"[^\x20-\x7E\n]", " "),
    # page numbers and other stray figures
    rule(r"\b\d+\b", ""),
]

STRUCTURE_RULES: List[Rule] = [
    rule(r"\.\s*([A-Z])", r".\n\n\1"),
    # "...text SECTION TITLE:" starts a new paragraph
    rule(r"([a-z])\s*([A-Z][A-Z\s]+):", r"\1\n\n\2:"),
    rule(r"\n{3,}", "\n\n"),
]


def clean_pdf_text(raw_text: str) -> str:
    return apply_rules(raw_text, PDF_ARTIFACT_RULES)


def extract_readable_text(text: str) -> str:
    return apply_rules(text, READABILITY_RULES)


def improve_structure(text: str) -> str:
    return apply_rules(text, STRUCTURE_RULES)


@log_performance("normalize_text")
def normalize_text(text: str) -> str:
    """Run all three stages and return the normalized text."""
    processed = clean_pdf_text(text)
    processed = extract_readable_text(processed)
    return improve_structure(processed)
