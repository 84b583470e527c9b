"""
Answer keys and grading.

Grading depends only on the metadata carried by each question, never on
the pipeline that produced it, so a quiz can be graded in a later request.
"""
import math
from typing import Dict, List, Optional

import structlog

from studyquiz.models import (
    FILL_BLANK, MULTIPLE_CHOICE, QUESTION_TYPES, TRUE_FALSE,
    AnswerKey, Question, QuestionResult, QuizResult, RenderedOption,
)
from studyquiz.services.quiz import normalize_answer

logger = structlog.get_logger()


def parse_question(payload: dict) -> Question:
    question_type = payload.get("type")
    model = QUESTION_TYPES.get(question_type)
    if model is None:
        raise ValueError(f"Unknown question type: {question_type!r}")
    return model.model_validate(payload)


def is_correct_option(question: Question, option: str) -> bool:
    if question.type == TRUE_FALSE:
        return option.lower() == question.correct_answer.lower()
    return option == question.correct_answer


def answer_key(question: Question) -> AnswerKey:
    """The per-question metadata a renderer keeps so answers can be graded later."""
    if question.type == FILL_BLANK:
        return AnswerKey(question_id=question.id, type=question.type, expected=question.correct_answer)
    return AnswerKey(
        question_id=question.id,
        type=question.type,
        options=[RenderedOption(value=opt, correct=is_correct_option(question, opt)) for opt in question.options],
    )


def grade_answer(question: Question, response: Optional[str]) -> bool:
    if response is None:
        return False
    if question.type == FILL_BLANK:
        return normalize_answer(response) == question.correct_answer
    if question.type in (TRUE_FALSE, MULTIPLE_CHOICE):
        return is_correct_option(question, response)
    raise ValueError(f"Unknown question type: {question.type!r}")


def display_answer(question: Question) -> str:
    if question.type == FILL_BLANK:
        return question.correct_answer
    for option in question.options:
        if is_correct_option(question, option):
            return option
    return question.correct_answer


def percentage(score: int, total: int) -> int:
    if not total:
        return 0
    # half rounds up
    return int(math.floor(score / total * 100 + 0.5))


def grade_quiz(questions: List[Question], answers: Dict[str, str]) -> QuizResult:
    results = []
    for question in questions:
        response = answers.get(question.id)
        results.append(QuestionResult(
            question_id=question.id,
            correct=grade_answer(question, response),
            user_answer=response or "",
            correct_answer=display_answer(question),
        ))

    score = sum(1 for r in results if r.correct)
    result = QuizResult(
        score=score,
        total=len(questions),
        percentage=percentage(score, len(questions)),
        results=results,
    )
    logger.info("quiz_graded", score=result.score, total=result.total, percentage=result.percentage)
    return result
