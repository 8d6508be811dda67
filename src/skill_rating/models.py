"""Core data models for Skill Rating.

This module defines the data structures shared by the questionnaire flow and
the rating engine:
- Question: one entry of a sport's questionnaire catalog
- Condition: a declarative visibility rule attached to a question
- FlowState / Snapshot: the questionnaire session state and its undo log
- RatingResult: the initial rating produced for a completed questionnaire
- AssessmentRecord: what gets handed to persistence once a session finishes
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field


class QuestionType(str, Enum):
    """Supported question types."""

    SINGLE_CHOICE = "single_choice"
    NUMBER = "number"
    COMPOSITE = "composite"


class Confidence(str, Enum):
    """Confidence classes for an initial rating, from least to most certain."""

    LOW = "low"
    MEDIUM = "medium"
    MEDIUM_HIGH = "medium-high"
    HIGH = "high"

    @property
    def rank(self) -> int:
        """Position in the ordering low < medium < medium-high < high."""
        return list(Confidence).index(self)


class RatingSource(str, Enum):
    """Where a rating result came from."""

    EXTERNAL_CONVERSION = "external_conversion"
    HEURISTIC = "heuristic"
    DEFAULT = "default"
    ERROR_FALLBACK = "error_fallback"


class Operator(str, Enum):
    """Operators understood by the condition evaluator."""

    EQUALS = "=="
    NOT_EQUALS = "!="
    EXISTS = "exists"
    NOT_EXISTS = "not_exists"


class Condition(BaseModel):
    """A single visibility clause.

    The operator is kept as plain text: a catalog may carry an operator this
    version does not know, and such a clause evaluates as visible.

    Attributes:
        key: Response key the clause looks at.
        operator: One of ``==``, ``!=``, ``exists``, ``not_exists``.
        value: Value compared by ``==`` and ``!=``.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    operator: str = Operator.EQUALS.value
    value: Any = None


VisibilityRule = Union[Condition, tuple[Condition, ...]]


class NumericRange(BaseModel):
    """Valid range for a number question."""

    model_config = ConfigDict(frozen=True)

    min_value: float
    max_value: float
    step: float = 1.0


class SubQuestion(BaseModel):
    """One sub-rating of a composite question."""

    model_config = ConfigDict(frozen=True)

    prompt: str
    options: list[str] = Field(default_factory=list)
    help_text: str | None = None


class Question(BaseModel):
    """A question in a sport's catalog.

    Attributes:
        key: Response key the answer is stored under.
        prompt: Question text shown to the player.
        type: single_choice, number or composite.
        options: Answer options for single_choice questions.
        numeric_range: Accepted range for number questions.
        sub_questions: Sub-ratings of a composite question (sub key -> sub question).
        visibility_rule: Condition (or AND-list of conditions) gating the question.
        optional: Whether the player may leave the answer blank.
        help_text: Optional hint shown under the question.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    prompt: str
    type: QuestionType = QuestionType.SINGLE_CHOICE
    options: list[str] = Field(default_factory=list)
    numeric_range: NumericRange | None = None
    sub_questions: dict[str, SubQuestion] = Field(default_factory=dict)
    visibility_rule: VisibilityRule | None = None
    optional: bool = False
    help_text: str | None = None


class Snapshot(BaseModel):
    """State captured when the flow advances past a page.

    Restoring a snapshot is how "back" works: nothing is recomputed.
    """

    model_config = ConfigDict(frozen=True)

    questions: tuple[Question, ...] = ()
    responses: dict[str, Any] = Field(default_factory=dict)
    page_answers: dict[str, Any] = Field(default_factory=dict)
    question_index: int = 0


class FlowState(BaseModel):
    """Questionnaire session state.

    Instances are never mutated; every flow transition returns a new one.

    Attributes:
        sport: Active questionnaire (kept across resets).
        questions: Questions of the current page, already expanded.
        responses: Committed answers.
        page_answers: Answers for the current page that are not yet committed.
        question_index: Position inside the current page.
        history: Snapshots taken on each forward page transition.
        page_index: Number of pages advanced, used for back availability.
        completed: True once no visible unanswered question remains.
    """

    model_config = ConfigDict(frozen=True)

    sport: str | None = None
    questions: tuple[Question, ...] = ()
    responses: dict[str, Any] = Field(default_factory=dict)
    page_answers: dict[str, Any] = Field(default_factory=dict)
    question_index: int = 0
    history: tuple[Snapshot, ...] = ()
    page_index: int = 0
    completed: bool = False


class Progress(BaseModel):
    """Step indicator values ("question current of total")."""

    model_config = ConfigDict(frozen=True)

    current: int = 1
    total: int = 1


class PatternAnalysis(BaseModel):
    """Relationship detected between a player's singles and doubles references.

    Attributes:
        more_reliable_format: "singles", "doubles" or None when no pattern was found.
        confidence_adjustment: Divisor applied to the base rating deviation.
        notes: Human-readable observations behind the decision.
    """

    model_config = ConfigDict(frozen=True)

    more_reliable_format: str | None = None
    confidence_adjustment: float = 1.0
    notes: list[str] = Field(default_factory=list)


class RatingResult(BaseModel):
    """An initial rating for one completed questionnaire.

    A replayed questionnaire produces a new result; results are never patched.

    Attributes:
        singles_rating: Initial singles rating on the internal scale.
        doubles_rating: Initial doubles rating on the internal scale.
        confidence: Confidence class of the estimate.
        rating_deviation: Uncertainty of the estimate (lower is more certain).
        source: How the rating was produced.
        error: Message of the internal failure for error_fallback results.
        confidence_ratio: Weighted confidence ratio of the heuristic path.
        confidence_breakdown: Per-category contribution to the confidence ratio.
        rating_adjustment: Heuristic delta added to the base rating.
        reference_singles: Validated singles reference rating.
        reference_doubles: Validated doubles reference rating.
        singles_reliability: Validated singles reliability score.
        doubles_reliability: Validated doubles reliability score.
        pattern_analysis: Singles/doubles pattern found on the reference path.
        adjustment_detail: Free-form diagnostics describing the conversion.
    """

    model_config = ConfigDict(frozen=True)

    singles_rating: int
    doubles_rating: int
    confidence: Confidence = Confidence.LOW
    rating_deviation: int
    source: RatingSource
    error: str | None = None
    confidence_ratio: float | None = None
    confidence_breakdown: dict[str, float] = Field(default_factory=dict)
    rating_adjustment: float | None = None
    reference_singles: float | None = None
    reference_doubles: float | None = None
    singles_reliability: int | None = None
    doubles_reliability: int | None = None
    pattern_analysis: PatternAnalysis | None = None
    adjustment_detail: dict[str, Any] = Field(default_factory=dict)


class AssessmentRecord(BaseModel):
    """Everything the persistence service receives for a finished session.

    Attributes:
        sport: Sport the questionnaire was for.
        responses: The raw response map, kept for audit and debugging.
        rating: The computed initial rating.
        feedback: Feedback text shown to the player.
    """

    model_config = ConfigDict(frozen=True)

    sport: str
    responses: dict[str, Any] = Field(default_factory=dict)
    rating: RatingResult
    feedback: str = ""
