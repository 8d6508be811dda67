"""Heuristic rating from self-reported answers.

Each answered category contributes ``weight * range`` to a rating delta
around the base rating, and ``|weight| * confidence_weight`` to a weighted
confidence ratio. A composite category (several sub-ratings asked together)
is averaged first so it counts once.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from ..catalog.schema import SportCatalog
from ..config import EngineConfig
from ..expander import expanded_key
from ..models import Confidence, RatingResult, RatingSource
from .conversion import is_blank, round_half_up

logger = logging.getLogger(__name__)


class HeuristicAggregator:
    """Aggregates categorical answers into an initial rating.

    Example:
        ```python
        aggregator = HeuristicAggregator(catalog, EngineConfig())
        result = aggregator.aggregate({"experience": "1-2 years"})
        print(result.singles_rating, result.confidence)
        ```
    """

    def __init__(self, catalog: SportCatalog, config: EngineConfig):
        self.catalog = catalog
        self.config = config

    def _log(self, message: str) -> None:
        if self.config.verbose:
            logger.info(message)
        else:
            logger.debug(message)

    def composite_answers(self, key: str, responses: Mapping[str, Any]) -> dict[str, Any]:
        """Collect a composite's sub-answers from nested and expanded keys.

        Expanded ``<key>_<sub>`` answers win over a nested map entry.
        """
        settings = self.catalog.composites[key]
        answers: dict[str, Any] = {}
        nested = responses.get(key)
        if isinstance(nested, Mapping):
            for sub_key, answer in nested.items():
                if sub_key in settings.weights and not is_blank(answer):
                    answers[sub_key] = answer
        for sub_key in settings.weights:
            answer = responses.get(expanded_key(key, sub_key))
            if not is_blank(answer):
                answers[sub_key] = answer
        return answers

    def aggregate(self, responses: Mapping[str, Any]) -> RatingResult | None:
        """Compute a heuristic rating.

        Args:
            responses: Response map (answers outside the battery are ignored).

        Returns:
            The heuristic RatingResult, or None when no category was answered.
        """
        config = self.config
        adjustment = 0.0
        weighted_confidence = 0.0
        max_confidence = 0.0
        breakdown: dict[str, float] = {}

        for key, category in self.catalog.categories.items():
            answer = responses.get(key)
            if not isinstance(answer, str) or is_blank(answer):
                continue
            weight = category.weights.get(answer, 0.0)
            if answer not in category.weights:
                logger.warning(f"Unknown answer for '{key}': {answer!r}; weighing it as 0")
            contribution = weight * category.range
            adjustment += contribution
            breakdown[key] = abs(weight) * category.confidence_weight
            weighted_confidence += breakdown[key]
            max_confidence += category.confidence_weight
            self._log(f"{key}={answer!r} weight={weight} contribution={contribution:+.1f}")

        for key, composite in self.catalog.composites.items():
            answers = self.composite_answers(key, responses)
            weights = []
            for sub_key, answer in answers.items():
                table = composite.weights[sub_key]
                if str(answer) not in table:
                    logger.warning(
                        f"Unknown answer for '{expanded_key(key, sub_key)}': {answer!r}; "
                        "weighing it as 0"
                    )
                weights.append(table.get(str(answer), 0.0))
            if not weights:
                continue
            average = sum(weights) / len(weights)
            contribution = average * composite.range
            adjustment += contribution
            breakdown[key] = abs(average) * composite.confidence_weight
            weighted_confidence += breakdown[key]
            max_confidence += composite.confidence_weight
            self._log(
                f"{key}: {len(weights)} sub-answers avg={average:.3f} "
                f"contribution={contribution:+.1f}"
            )

        if max_confidence == 0:
            return None

        ratio = min(weighted_confidence / max_confidence, 1.0)
        if ratio < config.medium_confidence_threshold:
            confidence, rd = Confidence.LOW, config.low_confidence_rd
        elif ratio < config.high_confidence_threshold:
            confidence, rd = Confidence.MEDIUM, config.medium_confidence_rd
        else:
            confidence, rd = Confidence.HIGH, config.high_confidence_rd

        singles = round_half_up(config.base_rating + adjustment)
        # newer players are assumed closer together in doubles
        doubles = singles + (config.doubles_bonus if adjustment < 0 else 0)

        singles = max(config.min_rating, min(config.max_rating, singles))
        doubles = max(config.min_rating, min(config.max_rating, doubles))

        self._log(
            f"Heuristic delta={adjustment:+.1f} ratio={ratio:.3f} -> "
            f"{singles}/{doubles} ({confidence.value})"
        )

        return RatingResult(
            singles_rating=singles,
            doubles_rating=doubles,
            confidence=confidence,
            rating_deviation=rd,
            source=RatingSource.HEURISTIC,
            confidence_ratio=ratio,
            confidence_breakdown=breakdown,
            rating_adjustment=adjustment,
        )
