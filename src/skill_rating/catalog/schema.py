"""Catalog schema.

A sport catalog is pure data: the questions, the per-answer weight tables,
the category ranges and the reference-rating conversion knots. The rating
engine is generic over it, so adding a sport or retuning weights is a data
change only.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..models import Question, QuestionType


class ReliabilityScaling(BaseModel):
    """How a supplied reliability score scales the estimation offset.

    Attributes:
        high_above: Reliability strictly above this enlarges the offset.
        high_factor: Multiplier used for high reliability.
        low_below: Reliability strictly below this shrinks the offset.
        low_factor: Multiplier used for low reliability.
    """

    model_config = ConfigDict(frozen=True)

    high_above: float = 70
    high_factor: float = Field(default=1.2, ge=1.0)
    low_below: float = 30
    low_factor: float = Field(default=0.7, gt=0.0, le=1.0)


class ReferenceSettings(BaseModel):
    """External reference rating system accepted by the questionnaire.

    Attributes:
        system: Display name of the reference system (e.g. "DUPR").
        gate_key: Question asking whether the player has a reference rating.
        affirmative: Gate answer meaning "yes, I have one". Visibility rules
            on the gate question must compare against it.
        singles_key: Response key of the singles reference rating.
        doubles_key: Response key of the doubles reference rating.
        singles_reliability_key: Response key of the singles reliability score.
        doubles_reliability_key: Response key of the doubles reliability score.
        min_value: Lowest valid reference rating.
        max_value: Highest valid reference rating.
        conversion: Knots (reference, internal rating) of the piecewise-linear map.
        singles_offsets: (upper bound, offset) tiers used when only singles is known.
        doubles_offsets: (upper bound, offset) tiers used when only doubles is known.
        fallback_offset: Offset used above the last tier bound.
        singles_scaling: Reliability scaling applied with singles_offsets.
        doubles_scaling: Reliability scaling applied with doubles_offsets.
    """

    model_config = ConfigDict(frozen=True)

    system: str
    gate_key: str
    affirmative: str = "Yes"
    singles_key: str
    doubles_key: str
    singles_reliability_key: str
    doubles_reliability_key: str
    min_value: float = 2.0
    max_value: float = 8.0
    conversion: list[tuple[float, float]]
    singles_offsets: list[tuple[float, float]]
    doubles_offsets: list[tuple[float, float]]
    fallback_offset: float = 0.15
    singles_scaling: ReliabilityScaling = Field(default_factory=ReliabilityScaling)
    doubles_scaling: ReliabilityScaling = Field(default_factory=ReliabilityScaling)

    @field_validator("conversion")
    @classmethod
    def validate_conversion(cls, v: list[tuple[float, float]]) -> list[tuple[float, float]]:
        """Knots must be strictly increasing in x and non-decreasing in y."""
        if len(v) < 2:
            raise ValueError("conversion needs at least two knots")
        for (x0, y0), (x1, y1) in zip(v, v[1:]):
            if x1 <= x0:
                raise ValueError(f"conversion knots must increase: {x0} then {x1}")
            if y1 < y0:
                raise ValueError(f"conversion must not decrease between {x0} and {x1}")
        return v

    @field_validator("singles_offsets", "doubles_offsets")
    @classmethod
    def validate_offsets(cls, v: list[tuple[float, float]]) -> list[tuple[float, float]]:
        """Offset tiers are listed by ascending upper bound."""
        bounds = [bound for bound, _ in v]
        if bounds != sorted(bounds):
            raise ValueError("offset tiers must be sorted by upper bound")
        return v

    @model_validator(mode="after")
    def validate_domain(self) -> ReferenceSettings:
        if self.min_value >= self.max_value:
            raise ValueError("min_value must be below max_value")
        if self.conversion[0][0] > self.min_value or self.conversion[-1][0] < self.max_value:
            raise ValueError("conversion knots must cover [min_value, max_value]")
        return self


class CategorySettings(BaseModel):
    """A heuristic category backed by one single-choice question.

    Attributes:
        range: How far this category alone may move the rating.
        confidence_weight: Weight of the category in the confidence ratio.
        weights: Answer -> weight in [-1, 1].
    """

    model_config = ConfigDict(frozen=True)

    range: float = Field(gt=0)
    confidence_weight: float = Field(gt=0)
    weights: dict[str, float]

    @field_validator("weights")
    @classmethod
    def validate_weights(cls, v: dict[str, float]) -> dict[str, float]:
        for answer, weight in v.items():
            if not -1.0 <= weight <= 1.0:
                raise ValueError(f"weight for '{answer}' must be within [-1, 1], got {weight}")
        return v


class CompositeSettings(BaseModel):
    """A heuristic category backed by a composite question.

    Sub-answers are averaged before scaling, so a composite counts as one
    category no matter how many sub-ratings it has.

    Attributes:
        range: How far the averaged sub-ratings may move the rating.
        confidence_weight: Weight of the category in the confidence ratio.
        weights: Sub key -> answer -> weight in [-1, 1].
    """

    model_config = ConfigDict(frozen=True)

    range: float = Field(gt=0)
    confidence_weight: float = Field(gt=0)
    weights: dict[str, dict[str, float]]

    @field_validator("weights")
    @classmethod
    def validate_weights(cls, v: dict[str, dict[str, float]]) -> dict[str, dict[str, float]]:
        for sub_key, table in v.items():
            for answer, weight in table.items():
                if not -1.0 <= weight <= 1.0:
                    raise ValueError(
                        f"weight for '{sub_key}: {answer}' must be within [-1, 1], got {weight}"
                    )
        return v


class SkillTier(BaseModel):
    """A named skill tier used for feedback.

    Attributes:
        below: Exclusive upper rating bound; None for the top tier.
        label: Tier name.
        description: Advice shown for the tier.
    """

    model_config = ConfigDict(frozen=True)

    below: float | None = None
    label: str
    description: str


class ConfidenceNotes(BaseModel):
    """Caveat sentences appended to feedback."""

    model_config = ConfigDict(frozen=True)

    reference: str
    low: str
    medium: str
    high: str


class SportCatalog(BaseModel):
    """Everything sport-specific the questionnaire and engine need.

    Attributes:
        sport: Sport identifier (e.g. "pickleball").
        display_name: Sport name for feedback text.
        version: Catalog version.
        rating_name: Name of the internal rating shown to players.
        reference: External reference rating settings.
        categories: Heuristic single-choice categories, keyed by question key.
        composites: Heuristic composite categories, keyed by question key.
        tiers: Skill tiers in ascending order.
        confidence_notes: Feedback caveats.
        questions: The full ordered question list.
    """

    model_config = ConfigDict(frozen=True)

    sport: str
    display_name: str
    version: int = 1
    rating_name: str = "rating"
    reference: ReferenceSettings
    categories: dict[str, CategorySettings] = Field(default_factory=dict)
    composites: dict[str, CompositeSettings] = Field(default_factory=dict)
    tiers: list[SkillTier]
    confidence_notes: ConfidenceNotes
    questions: list[Question]

    @model_validator(mode="after")
    def validate_consistency(self) -> SportCatalog:
        """Cross-check weight tables and reference keys against the questions."""
        by_key: dict[str, Question] = {}
        for question in self.questions:
            if question.key in by_key:
                raise ValueError(f"duplicate question key '{question.key}'")
            by_key[question.key] = question

        ref = self.reference
        for key in (
            ref.gate_key,
            ref.singles_key,
            ref.doubles_key,
            ref.singles_reliability_key,
            ref.doubles_reliability_key,
        ):
            if key not in by_key:
                raise ValueError(f"reference key '{key}' has no question")

        gate = by_key[ref.gate_key]
        if ref.affirmative not in gate.options:
            raise ValueError(
                f"affirmative answer '{ref.affirmative}' is not an option of '{ref.gate_key}'"
            )
        for question in self.questions:
            rule = question.visibility_rule
            clauses = rule if isinstance(rule, tuple) else (rule,) if rule is not None else ()
            for clause in clauses:
                if (
                    clause.key == ref.gate_key
                    and clause.operator in ("==", "!=")
                    and clause.value != ref.affirmative
                ):
                    raise ValueError(
                        f"'{question.key}' is gated on '{clause.value}', "
                        f"expected the affirmative answer '{ref.affirmative}'"
                    )

        for key, category in self.categories.items():
            question = by_key.get(key)
            if question is None or question.type != QuestionType.SINGLE_CHOICE:
                raise ValueError(f"category '{key}' needs a single_choice question")
            if set(category.weights) != set(question.options):
                raise ValueError(f"weights for '{key}' do not match the question options")

        for key, composite in self.composites.items():
            question = by_key.get(key)
            if question is None or question.type != QuestionType.COMPOSITE:
                raise ValueError(f"composite '{key}' needs a composite question")
            if set(composite.weights) != set(question.sub_questions):
                raise ValueError(f"weights for '{key}' do not match its sub-questions")
            for sub_key, table in composite.weights.items():
                if set(table) != set(question.sub_questions[sub_key].options):
                    raise ValueError(
                        f"weights for '{key}.{sub_key}' do not match the sub-question options"
                    )

        if not self.tiers or self.tiers[-1].below is not None:
            raise ValueError("the last skill tier must be open-ended (below: null)")
        bounds = [tier.below for tier in self.tiers[:-1]]
        if None in bounds or bounds != sorted(bounds):
            raise ValueError("skill tiers must be listed in ascending order")
        return self

    def question(self, key: str) -> Question | None:
        """Look up a catalog question by key."""
        for question in self.questions:
            if question.key == key:
                return question
        return None
