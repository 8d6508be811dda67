"""Rating inference engine.

RatingEngine is the entry point used once a questionnaire is complete. It
picks the reference-conversion path when the player supplied a reference
rating and the heuristic path otherwise, and always returns a RatingResult.
Only ValidationError escapes: every other failure is logged and replaced by
a fallback result tagged ``error_fallback``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from ..catalog import SportCatalog, load_catalog
from ..config import EngineConfig
from ..exceptions import ValidationError
from ..models import AssessmentRecord, Confidence, Question, RatingResult, RatingSource
from ..reporter.feedback import FeedbackReporter
from .conversion import SINGLES, ReferenceConverter, is_blank
from .heuristic import HeuristicAggregator

logger = logging.getLogger(__name__)


def _is_unanswered(value: Any) -> bool:
    if isinstance(value, Mapping):
        return all(_is_unanswered(v) for v in value.values())
    return is_blank(value)


class RatingEngine:
    """Computes initial ratings for one sport.

    The engine only holds immutable catalog and configuration data, so one
    instance can serve any number of questionnaire sessions.

    Example:
        ```python
        engine = RatingEngine.for_sport("pickleball")

        result = engine.calculate_initial_rating({"dupr_singles": 3.75})
        print(result.singles_rating, result.doubles_rating, result.confidence)

        print(engine.generate_feedback(result))
        ```
    """

    def __init__(self, catalog: SportCatalog, config: EngineConfig | None = None):
        """Initialize the engine.

        Args:
            catalog: The sport's question catalog and weight tables.
            config: Shared engine constants (defaults used if omitted).
        """
        self.catalog = catalog
        self.config = config or EngineConfig()
        self.converter = ReferenceConverter(catalog.reference, self.config)
        self.aggregator = HeuristicAggregator(catalog, self.config)
        self.reporter = FeedbackReporter(catalog)

    @classmethod
    def for_sport(cls, sport: str, config: EngineConfig | None = None) -> RatingEngine:
        """Create an engine from a bundled (or configured) sport catalog.

        Raises:
            UnknownSportError: If no catalog exists for the sport.
        """
        config = config or EngineConfig()
        catalog_dir = Path(config.catalog_dir) if config.catalog_dir else None
        return cls(load_catalog(sport, catalog_dir), config)

    @property
    def sport(self) -> str:
        return self.catalog.sport

    def get_all_questions(self) -> list[Question]:
        """Return every question with its visibility rule, in flow order."""
        return list(self.catalog.questions)

    def should_skip_heuristic(self, responses: Mapping[str, Any]) -> bool:
        """True if at least one usable reference rating was supplied.

        Either format alone is enough to skip the heuristic battery.
        """
        if not responses:
            return False
        ref = self.catalog.reference
        return any(
            self.converter.is_valid_reference(responses.get(key))
            for key in (ref.singles_key, ref.doubles_key)
        )

    def convert_reference(self, value: Any, field: str | None = None) -> int:
        """Convert one reference rating onto the internal scale.

        Raises:
            ValidationError: If the value is outside the reference domain.
        """
        rating = self.converter.parse_reference(
            value, field or self.catalog.reference.singles_key, SINGLES
        )
        if rating is None:
            raise ValidationError("A reference rating is required", field=field, value=value)
        return self.converter.convert(rating)

    def default_result(
        self,
        source: RatingSource = RatingSource.DEFAULT,
        error: str | None = None,
    ) -> RatingResult:
        """The safest available rating: base rating, low confidence, maximum deviation."""
        return RatingResult(
            singles_rating=self.config.base_rating,
            doubles_rating=self.config.base_rating,
            confidence=Confidence.LOW,
            rating_deviation=self.config.low_confidence_rd,
            source=source,
            error=error,
        )

    def calculate_initial_rating(self, responses: Mapping[str, Any] | None) -> RatingResult:
        """Compute the initial rating for a completed questionnaire.

        Args:
            responses: The session's response map.

        Returns:
            RatingResult tagged external_conversion, heuristic, default or
            error_fallback.

        Raises:
            ValidationError: If a supplied reference rating or reliability
                score is out of its domain.
        """
        if not isinstance(responses, Mapping):
            if responses is not None:
                logger.warning(
                    f"[{self.sport}] Expected a response mapping, got {type(responses).__name__}"
                )
            return self.default_result(RatingSource.DEFAULT)
        if not responses or all(_is_unanswered(v) for v in responses.values()):
            logger.debug(f"[{self.sport}] No answers; using default rating")
            return self.default_result(RatingSource.DEFAULT)

        try:
            if self.converter.references_supplied(responses):
                logger.debug(f"[{self.sport}] Reference rating supplied; converting")
                result = self.converter.convert_responses(responses)
            else:
                result = self.aggregator.aggregate(responses)
        except ValidationError:
            raise
        except Exception as e:
            logger.error(f"[{self.sport}] Rating computation failed, using fallback: {e}")
            return self.default_result(RatingSource.ERROR_FALLBACK, error=str(e) or type(e).__name__)

        if result is None:
            logger.debug(f"[{self.sport}] No rated category answered; using default rating")
            return self.default_result(RatingSource.DEFAULT)
        return result

    def generate_feedback(self, result: RatingResult) -> str:
        """Describe a rating as a skill tier with a confidence caveat."""
        return self.reporter.format_feedback(result)

    def assess(self, responses: Mapping[str, Any]) -> AssessmentRecord:
        """Rate a completed questionnaire and package it for persistence.

        Raises:
            ValidationError: If a supplied reference rating is invalid.
        """
        rating = self.calculate_initial_rating(responses)
        return AssessmentRecord(
            sport=self.sport,
            responses=dict(responses),
            rating=rating,
            feedback=self.generate_feedback(rating),
        )
