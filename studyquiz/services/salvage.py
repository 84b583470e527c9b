"""
Best-effort text salvage from raw PDF bytes (no PDF parser involved)
"""
import re
from typing import Iterator, List, Tuple

import structlog

from studyquiz.errors import ExtractionFailure
from studyquiz.services.monitoring import TEXT_EXTRACTIONS

logger = structlog.get_logger()

PRIMARY_MIN_CHARS = 100
SALVAGE_MIN_CHARS = 50
LIMITED_EXTRACTION_MESSAGE = (
    "PDF extraction was limited. Please copy and paste your text directly for better results."
)

READABLE_RUN_RE = re.compile(r"[A-Za-z]{3,}(?:\s+[A-Za-z]{3,})*")
MULTI_SPACE_RE = re.compile(r"\s+")


def decode_binary(data) -> str:
    """One character per byte, so marker offsets survive."""
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise ExtractionFailure("Could not read PDF. Please copy text and paste directly.")
    try:
        return bytes(data).decode("latin-1")
    except (TypeError, ValueError) as e:
        raise ExtractionFailure("Could not read PDF. Please copy text and paste directly.") from e


def _closing_marker(binary_text: str, body_start: int) -> int:
    """Index of the first "ET" after ``body_start`` with whitespace right before it, or -1."""
    end = binary_text.find("ET", body_start + 1)
    while end != -1 and not binary_text[end - 1].isspace():
        end = binary_text.find("ET", end + 1)
    return end


def text_objects(binary_text: str) -> Iterator[str]:
    """
    Yield the body of every ``BT <ws> ... <ws> ET`` text object, left to right.

    Finds the same non-empty bodies as ``BT\\s+(.*?)\\s+ET`` with DOTALL, in a
    single linear pass.
    """
    size = len(binary_text)
    pos = binary_text.find("BT")
    while pos != -1:
        body_start = pos + 2
        while body_start < size and binary_text[body_start].isspace():
            body_start += 1
        if body_start == pos + 2:
            pos = binary_text.find("BT", pos + 1)
            continue

        end = _closing_marker(binary_text, body_start)
        if end == -1:
            # no later BT can be closed either
            return

        body_end = end - 1
        while body_end > body_start and binary_text[body_end - 1].isspace():
            body_end -= 1
        yield binary_text[body_start:body_end]
        pos = binary_text.find("BT", end + 2)


def string_operands(body: str) -> List[str]:
    """Contents of ``(...)`` operands; an operand never spans a line break."""
    operands = []
    close = -1
    pos = body.find("(")
    while pos != -1:
        if close < pos:
            close = body.find(")", pos + 1)
            if close == -1:
                break
        newline = body.find("\n", pos + 1, close)
        if newline != -1:
            pos = body.find("(", newline + 1)
            continue
        operands.append(body[pos + 1:close])
        pos = body.find("(", close + 1)
    return operands


def extract_text_objects(binary_text: str) -> str:
    """Collect string operands found inside BT ... ET text objects."""
    extracted = []
    for body in text_objects(binary_text):
        for operand in string_operands(body):
            extracted.append(operand + " ")
    return "".join(extracted)


def scan_readable_runs(binary_text: str) -> str:
    """Join every run of 3+ letter words found anywhere in the buffer."""
    return " ".join(READABLE_RUN_RE.findall(binary_text))


def clean_salvaged_text(text: str) -> str:
    text = (
        text.replace("\\n", " ")
        .replace("\\r", " ")
        .replace("\\t", " ")
        .replace("\\", "")
        .replace("(", "")
        .replace(")", "")
    )
    return MULTI_SPACE_RE.sub(" ", text).strip()


def salvage_pdf(data) -> Tuple[str, str]:
    """
    Readable text from a PDF byte buffer plus the route that produced it.

    The route is ``primary``, ``fallback`` or ``insufficient``; the last one
    comes with the limited-extraction notice instead of text. Nothing here
    logs or counts, so it can run in a worker process.
    """
    binary_text = decode_binary(data)

    method = "primary"
    extracted = extract_text_objects(binary_text)
    if len(extracted) < PRIMARY_MIN_CHARS:
        fallback = scan_readable_runs(binary_text)
        if fallback:
            extracted = fallback
            method = "fallback"

    extracted = clean_salvaged_text(extracted)

    if len(extracted) < SALVAGE_MIN_CHARS:
        return LIMITED_EXTRACTION_MESSAGE, "insufficient"
    return extracted, method


def record_salvage(method: str, size: int, characters: int):
    if method == "insufficient":
        logger.warning("pdf_salvage_limited", bytes=size)
    else:
        logger.info("pdf_salvaged", bytes=size, characters=characters, method=method)
    TEXT_EXTRACTIONS.labels(kind="pdf", method=method).inc()


def salvage_pdf_text(data) -> str:
    """Return readable text from a PDF byte buffer, or a notice when too little survives."""
    text, method = salvage_pdf(data)
    record_salvage(method, len(data), len(text))
    return text
