"""Feedback text for computed ratings.

Turns a RatingResult into the message shown at the end of a questionnaire:
the ratings, the skill tier with its advice, and a caveat matching how the
rating was obtained.
"""

from __future__ import annotations

from ..catalog.schema import SkillTier, SportCatalog
from ..models import Confidence, RatingResult, RatingSource


class FeedbackReporter:
    """Formats rating results as player-facing feedback.

    Example:
        ```python
        reporter = FeedbackReporter(catalog)
        print(reporter.format_feedback(result))
        ```
    """

    def __init__(self, catalog: SportCatalog):
        self.catalog = catalog

    def skill_tier(self, rating: float) -> SkillTier:
        """Find the tier whose range contains the rating."""
        for tier in self.catalog.tiers:
            if tier.below is None or rating < tier.below:
                return tier
        return self.catalog.tiers[-1]

    def confidence_note(self, result: RatingResult) -> str:
        notes = self.catalog.confidence_notes
        if result.source == RatingSource.EXTERNAL_CONVERSION:
            return notes.reference
        if result.confidence == Confidence.LOW:
            return notes.low
        if result.confidence == Confidence.MEDIUM:
            return notes.medium
        return notes.high

    def format_feedback(self, result: RatingResult) -> str:
        """Format a RatingResult as feedback text.

        Args:
            result: The rating to describe.

        Returns:
            Multi-paragraph feedback string.
        """
        tier = self.skill_tier(result.singles_rating)
        rating_name = self.catalog.rating_name
        if result.source == RatingSource.EXTERNAL_CONVERSION:
            basis = f"{self.catalog.reference.system} ratings"
        else:
            basis = "questionnaire responses"

        lines = [
            f"Based on your {basis}, your initial rating is:",
            "",
            f"Singles {rating_name}: {result.singles_rating}",
            f"Doubles {rating_name}: {result.doubles_rating}",
            "",
            f"Skill Level: {tier.label}",
            "",
            tier.description,
            "",
            self.confidence_note(result),
            "",
            f"Your {self.catalog.display_name} rating will automatically adjust as you "
            "play matches in the app, becoming more accurate over time.",
        ]
        return "\n".join(lines)
