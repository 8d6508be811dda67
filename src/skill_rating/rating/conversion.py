"""Reference rating conversion.

Converts a player's external reference ratings (singles and/or doubles,
optionally with reliability scores) onto the internal rating scale,
estimating the missing format and deriving a rating deviation.
"""

from __future__ import annotations

import bisect
import logging
import math
from collections.abc import Mapping
from typing import Any

from ..catalog.schema import ReferenceSettings
from ..config import EngineConfig
from ..exceptions import ValidationError
from ..models import Confidence, PatternAnalysis, RatingResult, RatingSource

logger = logging.getLogger(__name__)

SINGLES = "singles"
DOUBLES = "doubles"
BOTH = "both"


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


def is_blank(value: Any) -> bool:
    """True for absent or empty answers."""
    return value is None or (isinstance(value, str) and value.strip() == "")


def _as_text(value: Any) -> str:
    return str(value).strip().replace(",", ".")


class ReferenceConverter:
    """Converts reference ratings onto the internal scale.

    Example:
        ```python
        converter = ReferenceConverter(catalog.reference, EngineConfig())
        converter.convert(3.75)  # 2650
        result = converter.convert_pair(singles=3.75, doubles=None)
        print(result.doubles_rating, result.rating_deviation)
        ```
    """

    def __init__(self, settings: ReferenceSettings, config: EngineConfig):
        self.settings = settings
        self.config = config
        self._knot_x = [x for x, _ in settings.conversion]
        self._knot_y = [y for _, y in settings.conversion]

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def parse_reference(self, value: Any, field: str, format_type: str = SINGLES) -> float | None:
        """Validate a reference rating answer.

        Args:
            value: Raw answer (number or text); blank means "not supplied".
            field: Response key, used in error messages.
            format_type: "singles" or "doubles", used in error messages.

        Returns:
            The rating as a float, or None when blank.

        Raises:
            ValidationError: If the value is not a number or outside the domain.
        """
        if is_blank(value):
            return None

        system = self.settings.system
        text = _as_text(value)
        try:
            if isinstance(value, bool):
                raise ValueError(text)
            rating = float(text)
        except ValueError:
            raise ValidationError(
                f"Please enter a valid number for {system} {format_type} (e.g., 3.75)",
                field=field,
                value=value,
            ) from None
        if not math.isfinite(rating):
            raise ValidationError(
                f"Please enter a valid number for {system} {format_type} (e.g., 3.75)",
                field=field,
                value=value,
            )

        low, high = self.settings.min_value, self.settings.max_value
        if rating < low:
            fraction = text.split(".", 1)[1] if "." in text else "0"
            raise ValidationError(
                f"{system} {format_type} ratings start at {low}. "
                f"Did you mean {int(low)}.{fraction}?",
                field=field,
                value=value,
            )
        if rating > high:
            raise ValidationError(
                f"{system} {format_type} ratings rarely exceed {high}. "
                "Please double-check your rating.",
                field=field,
                value=value,
            )
        return rating

    def parse_reliability(self, value: Any, field: str) -> int | None:
        """Validate a reliability score (a whole percentage).

        Raises:
            ValidationError: If the value is not a number or outside [0, 100].
        """
        if is_blank(value):
            return None
        try:
            if isinstance(value, bool):
                raise ValueError(value)
            reliability = int(float(_as_text(value)))
        except (ValueError, OverflowError):
            raise ValidationError(
                "Please enter a whole number between 0 and 100", field=field, value=value
            ) from None
        if reliability < 0:
            raise ValidationError("Reliability score cannot be negative", field=field, value=value)
        if reliability > 100:
            raise ValidationError("Reliability score cannot exceed 100%", field=field, value=value)
        return reliability

    def is_valid_reference(self, value: Any) -> bool:
        """True if the value parses and lies within the reference domain."""
        if is_blank(value) or isinstance(value, bool):
            return False
        try:
            rating = float(_as_text(value))
        except ValueError:
            return False
        return self.settings.min_value <= rating <= self.settings.max_value

    # ------------------------------------------------------------------
    # Conversion and estimation
    # ------------------------------------------------------------------

    def convert(self, reference: float) -> int:
        """Map a reference rating onto the internal scale.

        Piecewise-linear between the catalog's knots; values outside the
        knots are clamped to the end knots.
        """
        xs, ys = self._knot_x, self._knot_y
        x = max(xs[0], min(xs[-1], reference))
        i = bisect.bisect_left(xs, x)
        if i == 0:
            return round_half_up(ys[0])
        x0, x1 = xs[i - 1], xs[i]
        y0, y1 = ys[i - 1], ys[i]
        return round_half_up(y0 + (x - x0) * (y1 - y0) / (x1 - x0))

    def estimation_offset(
        self,
        known: float,
        known_format: str,
        reliability: int | None = None,
    ) -> float:
        """Tier-dependent offset between the known and the missing format.

        A supplied reliability scales the offset: a trusted reference gets
        the full asymmetry between formats, a shaky one a smaller step.
        """
        if known_format == DOUBLES:
            tiers, scaling = self.settings.doubles_offsets, self.settings.doubles_scaling
        else:
            tiers, scaling = self.settings.singles_offsets, self.settings.singles_scaling

        offset = self.settings.fallback_offset
        for bound, tier_offset in tiers:
            if known <= bound:
                offset = tier_offset
                break

        if reliability is not None:
            if reliability > scaling.high_above:
                offset *= scaling.high_factor
            elif reliability < scaling.low_below:
                offset *= scaling.low_factor
        return offset

    def estimate_counterpart(
        self,
        known: float,
        known_format: str,
        reliability: int | None = None,
    ) -> float:
        """Estimate the missing format's reference rating.

        Singles typically sits above doubles, so a known singles rating
        estimates doubles lower and a known doubles rating estimates singles
        higher.
        """
        offset = self.estimation_offset(known, known_format, reliability)
        if known_format == DOUBLES:
            return min(self.settings.max_value, known + offset)
        return max(self.settings.min_value, known - offset)

    def detect_pattern(
        self,
        singles: float | None,
        doubles: float | None,
        singles_reliability: int | None = None,
        doubles_reliability: int | None = None,
    ) -> PatternAnalysis:
        """Look for a systematic gap between singles and doubles references.

        Singles visibly above doubles is the common pattern: doubles volume
        is higher, so doubles is the better anchor. The rarer inverse points
        to a doubles specialist and makes singles the anchor.
        """
        if singles is None or doubles is None:
            return PatternAnalysis()

        difference = abs(singles - doubles)
        notes: list[str] = []

        if singles > doubles and difference > self.config.singles_gap:
            adjustment = 1.0
            notes.append("Singles higher than doubles - common pattern")
            notes.append("Doubles likely more accurate due to higher play volume")
            if doubles_reliability is not None and doubles_reliability > 50:
                adjustment = 1.2
                notes.append("High doubles reliability confirms pattern")
            if singles_reliability is not None and singles_reliability < 40:
                adjustment = 1.3
                notes.append("Low singles reliability supports doubles as more accurate")
            return PatternAnalysis(
                more_reliable_format=DOUBLES, confidence_adjustment=adjustment, notes=notes
            )

        if doubles > singles and difference > self.config.doubles_gap:
            notes.append("Doubles higher than singles - less common pattern")
            notes.append("May indicate specialized doubles player")
            return PatternAnalysis(
                more_reliable_format=SINGLES, confidence_adjustment=0.9, notes=notes
            )

        return PatternAnalysis()

    def adjusted_deviation(
        self,
        base_rd: float,
        reliability: float | None,
        format_type: str,
        has_both: bool = False,
    ) -> int:
        """Scale a base deviation by reliability, format and estimation cost.

        Args:
            base_rd: Starting deviation.
            reliability: Reported reliability; None uses the format default.
            format_type: "singles", "doubles" or "both".
            has_both: Whether both formats were known.

        Returns:
            Deviation clamped to [min_rd, max_rd].
        """
        config = self.config
        if reliability is None:
            reliability = (
                config.singles_default_reliability
                if format_type == SINGLES
                else config.doubles_default_reliability
            )

        multiplier = config.reliability_bands[-1][1]
        for bound, band_multiplier in config.reliability_bands:
            if reliability >= bound:
                multiplier = band_multiplier
                break

        if format_type == SINGLES:
            multiplier *= config.singles_penalty
        elif format_type == DOUBLES:
            multiplier *= config.doubles_bonus_multiplier

        if not has_both:
            multiplier *= config.estimation_penalty

        rd = round_half_up(base_rd * multiplier)
        return max(config.min_rd, min(config.max_rd, rd))

    # ------------------------------------------------------------------
    # Full conversion
    # ------------------------------------------------------------------

    def references_supplied(self, responses: Mapping[str, Any]) -> bool:
        """True if a singles or doubles reference answer is non-blank."""
        return not (
            is_blank(responses.get(self.settings.singles_key))
            and is_blank(responses.get(self.settings.doubles_key))
        )

    def convert_responses(self, responses: Mapping[str, Any]) -> RatingResult | None:
        """Validate the reference answers in a response map and convert them.

        Returns:
            The converted result, or None when no reference rating was given.

        Raises:
            ValidationError: If any supplied value is out of its domain.
        """
        s = self.settings
        singles = self.parse_reference(responses.get(s.singles_key), s.singles_key, SINGLES)
        doubles = self.parse_reference(responses.get(s.doubles_key), s.doubles_key, DOUBLES)
        singles_reliability = self.parse_reliability(
            responses.get(s.singles_reliability_key), s.singles_reliability_key
        )
        doubles_reliability = self.parse_reliability(
            responses.get(s.doubles_reliability_key), s.doubles_reliability_key
        )
        if singles is None and doubles is None:
            return None
        return self.convert_pair(singles, doubles, singles_reliability, doubles_reliability)

    def convert_pair(
        self,
        singles: float | None,
        doubles: float | None,
        singles_reliability: int | None = None,
        doubles_reliability: int | None = None,
    ) -> RatingResult:
        """Convert validated reference values into a RatingResult.

        At least one of singles/doubles must be given.
        """
        if singles is None and doubles is None:
            raise ValueError("convert_pair needs a singles or doubles reference")

        config = self.config
        system = self.settings.system
        pattern = self.detect_pattern(singles, doubles, singles_reliability, doubles_reliability)
        has_both = singles is not None and doubles is not None

        if singles is not None and doubles is None:
            estimated = self.estimate_counterpart(singles, SINGLES, singles_reliability)
            singles_rating = self.convert(singles)
            doubles_rating = self.convert(estimated)
            confidence = Confidence.MEDIUM
            rd = self.adjusted_deviation(
                config.singles_only_rd, singles_reliability, SINGLES, has_both
            )
            detail = (
                f"{system} Singles: {singles} "
                f"(reliability: {_describe(singles_reliability, 'low-assumed')}), "
                f"Doubles estimated: {estimated:.2f}"
            )
        elif doubles is not None and singles is None:
            estimated = self.estimate_counterpart(doubles, DOUBLES, doubles_reliability)
            singles_rating = self.convert(estimated)
            doubles_rating = self.convert(doubles)
            confidence = Confidence.MEDIUM_HIGH
            rd = self.adjusted_deviation(
                config.doubles_only_rd, doubles_reliability, DOUBLES, has_both
            )
            detail = (
                f"{system} Doubles: {doubles} "
                f"(reliability: {_describe(doubles_reliability, 'medium-assumed')}), "
                f"Singles estimated: {estimated:.2f}"
            )
        else:
            singles_rating = self.convert(singles)
            doubles_rating = self.convert(doubles)
            if pattern.more_reliable_format == DOUBLES:
                confidence = Confidence.HIGH
                base_rd = config.doubles_anchor_rd
                anchor_reliability: float | None = doubles_reliability
            elif pattern.more_reliable_format == SINGLES:
                confidence = Confidence.MEDIUM_HIGH
                base_rd = config.singles_anchor_rd
                anchor_reliability = singles_reliability
            else:
                confidence = Confidence.HIGH
                base_rd = config.no_pattern_rd
                known = [r for r in (singles_reliability, doubles_reliability) if r is not None]
                anchor_reliability = sum(known) / len(known) if known else None
            scaled = round_half_up(base_rd / pattern.confidence_adjustment)
            rd = self.adjusted_deviation(scaled, anchor_reliability, BOTH, has_both)
            notes = " | ".join(pattern.notes) if pattern.notes else "Standard pattern"
            detail = (
                f"{system} Singles: {singles} "
                f"(reliability: {_describe(singles_reliability, 'unknown')}), "
                f"Doubles: {doubles} "
                f"(reliability: {_describe(doubles_reliability, 'unknown')}) | {notes}"
            )

        logger.debug(
            f"Converted {system} singles={singles} doubles={doubles} -> "
            f"{singles_rating}/{doubles_rating} rd={rd} ({confidence.value})"
        )

        return RatingResult(
            singles_rating=singles_rating,
            doubles_rating=doubles_rating,
            confidence=confidence,
            rating_deviation=rd,
            source=RatingSource.EXTERNAL_CONVERSION,
            reference_singles=singles,
            reference_doubles=doubles,
            singles_reliability=singles_reliability,
            doubles_reliability=doubles_reliability,
            pattern_analysis=pattern,
            adjustment_detail={
                "reference_source": detail,
                "has_both_ratings": has_both,
                "more_reliable_format": pattern.more_reliable_format,
                "confidence_adjustment": pattern.confidence_adjustment,
            },
        )


def _describe(reliability: int | None, assumed: str) -> str:
    return f"{reliability}%" if reliability is not None else assumed
