from fastapi import APIRouter, File, HTTPException, Request, UploadFile
import structlog

from studyquiz.config import MAX_UPLOAD_BYTES
from studyquiz.errors import ExtractionFailure, QuizPipelineError
from studyquiz.middleware.rate_limit import generation_limit
from studyquiz.models import GenerateRequest, GradeRequest
from studyquiz.services.grader import grade_quiz, parse_question
from studyquiz.services.monitoring import QUESTIONS_GENERATED, QUIZ_GENERATION_REQUESTS, QUIZ_GRADING_REQUESTS
from studyquiz.services.pipeline import acquire_text, generate_study_pack

logger = structlog.get_logger()

router = APIRouter(prefix="/api/quiz", tags=["quiz"])


async def _read_upload(file: UploadFile) -> bytes:
    content = await file.read()
    if len(content) > MAX_UPLOAD_BYTES:
        raise ExtractionFailure(f"File is larger than {MAX_UPLOAD_BYTES} bytes. Please paste text directly.")
    return content


def _generate(text: str) -> dict:
    try:
        pack = generate_study_pack(text)
    except QuizPipelineError as e:
        QUIZ_GENERATION_REQUESTS.labels(outcome=e.error_code).inc()
        raise
    except Exception as e:
        QUIZ_GENERATION_REQUESTS.labels(outcome="error").inc()
        logger.error("quiz_generation_failed", error=str(e))
        raise HTTPException(status_code=500, detail=f"Error generating quiz: {str(e)}")

    QUIZ_GENERATION_REQUESTS.labels(outcome="success").inc()
    for question in pack.questions:
        QUESTIONS_GENERATED.labels(type=question.type).inc()
    return {"success": True, **pack.model_dump(), "total_questions": len(pack.questions)}


@router.post("/extract")
@generation_limit()
async def extract_text(request: Request, file: UploadFile = File(...)):
    """Extract and clean text from an uploaded PDF or TXT file"""
    content = await _read_upload(file)
    try:
        document = await acquire_text(content, file.filename, file.content_type)
    except QuizPipelineError:
        raise
    except Exception as e:
        logger.error("extraction_failed", filename=file.filename, error=str(e))
        raise ExtractionFailure() from e

    return {"success": True, **document.model_dump()}


@router.post("/generate")
@generation_limit()
async def generate_quiz(request: Request, payload: GenerateRequest):
    """Generate key sentences, key terms and quiz questions from pasted text"""
    return _generate(payload.text)


@router.post("/generate-from-file")
@generation_limit()
async def generate_quiz_from_file(request: Request, file: UploadFile = File(...)):
    """Generate quiz questions straight from an uploaded PDF or TXT file"""
    content = await _read_upload(file)
    try:
        document = await acquire_text(content, file.filename, file.content_type)
    except QuizPipelineError:
        raise
    except Exception as e:
        logger.error("extraction_failed", filename=file.filename, error=str(e))
        raise ExtractionFailure() from e

    result = _generate(document.text)
    result["limited_extraction"] = document.limited
    return result


@router.post("/grade")
def grade(payload: GradeRequest):
    """Grade user answers against the answer metadata carried by each question"""
    try:
        questions = [parse_question(q) for q in payload.questions]
    except ValueError as e:
        raise HTTPException(status_code=422, detail=f"Invalid question payload: {str(e)}")

    result = grade_quiz(questions, payload.answers)
    QUIZ_GRADING_REQUESTS.inc()
    return {"success": True, **result.model_dump()}
