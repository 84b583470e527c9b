from __future__ import annotations

from typing import Dict, List, Optional, Union

from sqlmodel import Field, SQLModel


TRUE_FALSE = "truefalse"
MULTIPLE_CHOICE = "mcq"
FILL_BLANK = "fillblank"


class TrueFalseQuestion(SQLModel):
    id: str
    type: str = TRUE_FALSE
    question: str
    correct_answer: str = "true"
    options: List[str] = Field(default_factory=lambda: ["True", "False"])


class MultipleChoiceQuestion(SQLModel):
    id: str
    type: str = MULTIPLE_CHOICE
    question: str
    correct_answer: str
    options: List[str]


class FillBlankQuestion(SQLModel):
    id: str
    type: str = FILL_BLANK
    question: str
    correct_answer: str


Question = Union[TrueFalseQuestion, MultipleChoiceQuestion, FillBlankQuestion]

QUESTION_TYPES = {
    TRUE_FALSE: TrueFalseQuestion,
    MULTIPLE_CHOICE: MultipleChoiceQuestion,
    FILL_BLANK: FillBlankQuestion,
}


class RenderedOption(SQLModel):
    value: str
    correct: bool


class AnswerKey(SQLModel):
    question_id: str
    type: str
    options: List[RenderedOption] = Field(default_factory=list)
    expected: Optional[str] = Field(default=None, description="normalized answer for fill-in-the-blank")


class StudyPack(SQLModel):
    key_sentences: List[str]
    key_terms: List[str]
    questions: List[Question]
    answer_keys: List[AnswerKey]


class ExtractedDocument(SQLModel):
    filename: Optional[str] = None
    kind: str = Field(description="pdf or text")
    text: str
    characters: int
    limited: bool = False


class GenerateRequest(SQLModel):
    text: str


class GradeRequest(SQLModel):
    questions: List[Dict]
    answers: Dict[str, str] = Field(default_factory=dict)


class QuestionResult(SQLModel):
    question_id: str
    correct: bool
    user_answer: str = ""
    correct_answer: str


class QuizResult(SQLModel):
    score: int
    total: int
    percentage: int
    results: List[QuestionResult]
