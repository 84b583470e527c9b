"""
Error taxonomy for the document-to-quiz pipeline
"""
from typing import Optional


class QuizPipelineError(Exception):
    """Base class for recoverable pipeline outcomes reported back to the caller"""

    error_code = "pipeline_error"
    status_code = 400
    default_detail = "Could not process the supplied document."

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def to_dict(self) -> dict:
        return {"success": False, "error": self.error_code, "detail": self.detail}


class ExtractionFailure(QuizPipelineError):
    error_code = "extraction_failed"
    status_code = 400
    default_detail = "Could not read file. Please copy text from your document and paste it directly."


class UnsupportedDocument(ExtractionFailure):
    error_code = "unsupported_document"
    status_code = 415
    default_detail = "Supported files: PDF or TXT. For best results, paste text directly or use TXT files."


class InsufficientInput(QuizPipelineError):
    error_code = "insufficient_input"
    status_code = 400
    default_detail = "Please upload a file or paste some text (at least 100 characters)!"


class EmptyQuizResult(QuizPipelineError):
    error_code = "empty_quiz"
    status_code = 422
    default_detail = (
        "Could not generate quiz. The text might not have enough structured content. "
        "Try adding more detailed text."
    )
