"""Question schemas — the three question variants and their scoring rules.

A question is a tagged variant discriminated by ``type``:

  - ``multiple-choice`` → one submitted choice, correct if it is a marked choice
  - ``true-false``      → exact match against "True" / "False"
  - ``fill-in-blank``   → trimmed, case-insensitive match against any accepted answer

Choices are identified by a generated id rather than their text, so two
choices with the same wording stay distinguishable.
"""

import uuid
from abc import ABC, abstractmethod
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    field_validator,
    model_validator,
)


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple-choice"
    TRUE_FALSE = "true-false"
    FILL_IN_BLANK = "fill-in-blank"

    @classmethod
    def parse(cls, raw: "str | QuestionType") -> "QuestionType":
        """Accept the hyphenated tags as well as the MULTIPLE_CHOICE style."""
        if isinstance(raw, cls):
            return raw
        return cls(str(raw).strip().lower().replace("_", "-"))


TRUE_LABEL = "True"
FALSE_LABEL = "False"


def _new_id() -> str:
    return uuid.uuid4().hex


def normalise_answer(text: str) -> str:
    """Fill-in-blank comparison form: surrounding whitespace trimmed, lowercased."""
    return text.strip().lower()


# ── Choices ───────────────────────────────────────────────────────────────────


class Choice(BaseModel):
    """One selectable option of a multiple-choice question."""

    id: str = Field(default_factory=_new_id)
    text: str

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("choice text must not be empty")
        return v


# ── Question variants ─────────────────────────────────────────────────────────


class _QuestionBase(BaseModel, ABC):
    id: str = Field(default_factory=_new_id)
    title: str = ""
    text: str = ""
    points: float = Field(gt=0)

    @field_validator("type", mode="before", check_fields=False)
    @classmethod
    def _normalise_type(cls, v: Any) -> str:
        return QuestionType.parse(v).value

    @abstractmethod
    def is_correct(self, value: str | None) -> bool: ...

    @abstractmethod
    def correct_values(self) -> list[str]: ...

    def display_value(self, value: str | None) -> str | None:
        """How a submitted value should be shown back to the student."""
        return value

    def public_view(self, choices: "list[Choice] | None" = None) -> "QuestionPublic":
        """Question as shown to a student taking the quiz (no answers)."""
        return QuestionPublic(
            id=self.id,
            type=QuestionType.parse(self.type),  # type: ignore[attr-defined]
            title=self.title,
            text=self.text,
            points=self.points,
            choices=choices,
        )


class MultipleChoiceQuestion(_QuestionBase):
    type: Literal["multiple-choice"] = "multiple-choice"
    choices: list[Choice]
    correct_choice_ids: list[str]

    @model_validator(mode="before")
    @classmethod
    def _accept_plain_choices(cls, data: Any) -> Any:
        """Allow ``choices`` as plain strings and ``correct_answers`` as choice text.

        Each correct text marks every choice that carries it.
        """
        if not isinstance(data, dict):
            return data
        data = dict(data)
        choices = []
        for raw in data.get("choices") or []:
            if isinstance(raw, Choice):
                raw = raw.model_dump()
            elif isinstance(raw, str):
                raw = {"text": raw}
            if isinstance(raw, dict) and not raw.get("id"):
                raw = {**raw, "id": _new_id()}
            choices.append(raw)
        data["choices"] = choices

        correct_texts = data.pop("correct_answers", None)
        if correct_texts is not None and "correct_choice_ids" not in data:
            wanted = set(correct_texts)
            known = {c.get("text") for c in choices if isinstance(c, dict)}
            missing = [t for t in correct_texts if t not in known]
            if missing:
                raise ValueError(f"correct answers are not among the choices: {missing}")
            data["correct_choice_ids"] = [
                c["id"] for c in choices if isinstance(c, dict) and c.get("text") in wanted
            ]
        return data

    @model_validator(mode="after")
    def _check_choices(self) -> "MultipleChoiceQuestion":
        if len(self.choices) < 2:
            raise ValueError("a multiple-choice question needs at least two choices")
        ids = [c.id for c in self.choices]
        if len(set(ids)) != len(ids):
            raise ValueError("choice ids must be unique within a question")
        if not self.correct_choice_ids:
            raise ValueError("mark at least one choice as correct")
        unknown = set(self.correct_choice_ids) - set(ids)
        if unknown:
            raise ValueError(f"correct choices are not among the choices: {sorted(unknown)}")
        return self

    def resolve_choice(self, value: str | None) -> str | None:
        """Map a submitted value to a choice id.

        The id wins; otherwise the text of exactly one choice. Ambiguous or
        unknown values resolve to ``None``.
        """
        if value is None:
            return None
        for choice in self.choices:
            if choice.id == value:
                return choice.id
        matches = [c.id for c in self.choices if c.text == value]
        return matches[0] if len(matches) == 1 else None

    def is_correct(self, value: str | None) -> bool:
        choice_id = self.resolve_choice(value)
        return choice_id is not None and choice_id in set(self.correct_choice_ids)

    def correct_values(self) -> list[str]:
        correct = set(self.correct_choice_ids)
        return [c.text for c in self.choices if c.id in correct]

    def display_value(self, value: str | None) -> str | None:
        choice_id = self.resolve_choice(value)
        for choice in self.choices:
            if choice.id == choice_id:
                return choice.text
        return value

    def public_view(self, choices: list[Choice] | None = None) -> "QuestionPublic":
        return super().public_view(list(self.choices) if choices is None else choices)


class TrueFalseQuestion(_QuestionBase):
    type: Literal["true-false"] = "true-false"
    correct_answer: bool

    @property
    def correct_label(self) -> str:
        return TRUE_LABEL if self.correct_answer else FALSE_LABEL

    def is_correct(self, value: str | None) -> bool:
        return value == self.correct_label

    def correct_values(self) -> list[str]:
        return [self.correct_label]


class FillInBlankQuestion(_QuestionBase):
    type: Literal["fill-in-blank"] = "fill-in-blank"
    accepted_answers: list[str]

    @field_validator("accepted_answers")
    @classmethod
    def _answers_present(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("a fill-in-blank question needs at least one accepted answer")
        if any(not a.strip() for a in v):
            raise ValueError("accepted answers must not be empty")
        return v

    def is_correct(self, value: str | None) -> bool:
        if value is None:
            return False
        accepted = {normalise_answer(a) for a in self.accepted_answers}
        return normalise_answer(value) in accepted

    def correct_values(self) -> list[str]:
        return list(self.accepted_answers)


# ── Tagged union ──────────────────────────────────────────────────────────────


def _question_tag(value: Any) -> str | None:
    raw = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    if raw is None:
        return None
    try:
        return QuestionType.parse(raw).value
    except ValueError:
        return None


Question = Annotated[
    Union[
        Annotated[MultipleChoiceQuestion, Tag(QuestionType.MULTIPLE_CHOICE.value)],
        Annotated[TrueFalseQuestion, Tag(QuestionType.TRUE_FALSE.value)],
        Annotated[FillInBlankQuestion, Tag(QuestionType.FILL_IN_BLANK.value)],
    ],
    Discriminator(_question_tag),
]

_question_adapter: TypeAdapter[Question] = TypeAdapter(Question)


def parse_question(data: Any) -> Question:
    """Validate a dict (or model) into the matching question variant."""
    return _question_adapter.validate_python(data)


class QuestionPublic(BaseModel):
    """Question without its correct answers, for students taking a quiz."""

    id: str
    type: QuestionType
    title: str
    text: str
    points: float
    choices: list[Choice] | None = None
