"""Pydantic schemas for the assistant-facing tools and widget requests."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from quiz_widget.constants.quiz_constants import (
    DEFAULT_DIFFICULTY,
    DEFAULT_LANGUAGE,
    DEFAULT_NUM_QUESTIONS,
    DIFFICULTY_LEVELS,
    MAX_QUESTIONS,
    MIN_QUESTIONS,
    OPTIONS_PER_QUESTION,
)
from quiz_widget.core.models import Question, QuestionOption, QuizData

Difficulty = Literal[DIFFICULTY_LEVELS]


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class OptionSchema(_CamelModel):
    """Answer option as authored by the assistant."""

    text: str = Field(description="Option text. Use $...$ for inline and $$...$$ for display math.")
    is_correct: bool = Field(alias="isCorrect", description="Whether this option is the correct answer")
    explanation: str = Field(description="Why this option is correct or wrong")

    def to_model(self) -> QuestionOption:
        return QuestionOption(text=self.text, is_correct=self.is_correct, explanation=self.explanation)


class QuestionSchema(_CamelModel):
    """Question with exactly four options, one of them correct."""

    id: str = Field(description="Unique question ID (e.g., 'q1', 'q2')")
    question: str = Field(description="The question text. Use $...$ for inline and $$...$$ for display math.")
    hint: str = Field(description="Helpful hint for this question")
    options: list[OptionSchema] = Field(
        min_length=OPTIONS_PER_QUESTION,
        max_length=OPTIONS_PER_QUESTION,
        description="Exactly 4 options, only ONE with isCorrect: true",
    )

    @field_validator("options")
    @classmethod
    def _exactly_one_correct(cls, options: list[OptionSchema]) -> list[OptionSchema]:
        if sum(1 for option in options if option.is_correct) != 1:
            raise ValueError("Each question must have exactly one correct option")
        return options

    def to_model(self) -> Question:
        return Question(
            id=self.id,
            prompt=self.question,
            hint=self.hint,
            options=tuple(option.to_model() for option in self.options),
        )


def _check_unique_ids(questions: list[QuestionSchema]) -> list[QuestionSchema]:
    ids = [question.id for question in questions]
    if len(ids) != len(set(ids)):
        raise ValueError("Question ids must be unique")
    return questions


class QuizDataSchema(_CamelModel):
    topic: str = Field(description="The topic for the quiz")
    num_questions: int = Field(
        default=DEFAULT_NUM_QUESTIONS,
        ge=MIN_QUESTIONS,
        le=MAX_QUESTIONS,
        alias="numQuestions",
        description="Number of questions to generate",
    )
    difficulty: Difficulty = Field(default=DEFAULT_DIFFICULTY)
    title: str = Field(description="Quiz title (e.g., 'Python Programming Quiz')")
    description: str = Field(description="Brief description of the quiz")
    questions: list[QuestionSchema] = Field(min_length=MIN_QUESTIONS, description="Array of quiz questions")

    @field_validator("questions")
    @classmethod
    def _unique_question_ids(cls, questions: list[QuestionSchema]) -> list[QuestionSchema]:
        return _check_unique_ids(questions)


class QuizGeneratorInput(_CamelModel):
    """Input of the quiz-generator tool."""

    language: str = Field(default=DEFAULT_LANGUAGE, description="Language code (ISO 639-1). Default: en")
    data: QuizDataSchema

    def to_quiz(self) -> QuizData:
        return QuizData(
            title=self.data.title,
            description=self.data.description,
            questions=tuple(question.to_model() for question in self.data.questions),
            language=self.language,
            topic=self.data.topic,
            difficulty=self.data.difficulty,
        )


class QuizSaverInput(_CamelModel):
    """Input of the quiz-saver tool."""

    title: str
    description: str
    questions: list[QuestionSchema] = Field(min_length=MIN_QUESTIONS)
    language: str = DEFAULT_LANGUAGE
    answers: list[int | None] | None = None

    @field_validator("questions")
    @classmethod
    def _unique_question_ids(cls, questions: list[QuestionSchema]) -> list[QuestionSchema]:
        return _check_unique_ids(questions)

    @model_validator(mode="after")
    def _answers_match_questions(self) -> QuizSaverInput:
        if self.answers is None:
            return self
        if len(self.answers) != len(self.questions):
            raise ValueError("answers must have one slot per question")
        for answer, question in zip(self.answers, self.questions):
            if answer is not None and not 0 <= answer < len(question.options):
                raise ValueError(f"answer {answer} is out of range for question '{question.id}'")
        return self

    def to_quiz(self) -> QuizData:
        return QuizData(
            title=self.title,
            description=self.description,
            questions=tuple(question.to_model() for question in self.questions),
            language=self.language,
        )


class AnswerPayload(BaseModel):
    """Payload schema for answering the current question."""

    selected_option_index: int


class GoToPayload(BaseModel):
    """Payload schema for jumping to a question."""

    index: int
