"""Configuration for the rating engine.

Sport-specific numbers (weights, ranges, conversion knots) live in the
catalogs. EngineConfig holds the constants shared by every sport: the base
rating, clamps, confidence thresholds and the rating-deviation model.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import pydantic
import yaml
from pydantic import BaseModel, Field, model_validator

from .exceptions import ConfigError

CATALOG_DIR_ENV = "SKILL_RATING_CATALOG_DIR"


class EngineConfig(BaseModel):
    """Configuration for RatingEngine.

    Attributes:
        base_rating: Rating every heuristic estimate starts from (also the default).
        min_rating: Lowest rating the heuristic path may produce.
        max_rating: Highest rating the heuristic path may produce.
        doubles_bonus: Added to doubles when the heuristic delta is negative.
        medium_confidence_threshold: Confidence ratio at which "medium" starts.
        high_confidence_threshold: Confidence ratio at which "high" starts.
        high_confidence_rd: Deviation for high-confidence heuristic results.
        medium_confidence_rd: Deviation for medium-confidence heuristic results.
        low_confidence_rd: Deviation for low-confidence and fallback results.
        min_rd: Lower clamp for reliability-adjusted deviations.
        max_rd: Upper clamp for reliability-adjusted deviations.
        singles_only_rd: Base deviation when only a singles reference is known.
        doubles_only_rd: Base deviation when only a doubles reference is known.
        doubles_anchor_rd: Base deviation when both are known and doubles is the anchor.
        singles_anchor_rd: Base deviation when both are known and singles is the anchor.
        no_pattern_rd: Base deviation when both are known without a pattern.
        singles_default_reliability: Assumed singles reliability when none is given.
        doubles_default_reliability: Assumed doubles reliability when none is given.
        singles_penalty: Deviation multiplier for singles-based estimates.
        doubles_bonus_multiplier: Deviation multiplier for doubles-based estimates.
        estimation_penalty: Deviation multiplier when only one format was known.
        reliability_bands: (minimum reliability, multiplier) pairs, highest first.
        singles_gap: Singles-over-doubles gap that marks the common pattern.
        doubles_gap: Doubles-over-singles gap that marks the inverse pattern.
        catalog_dir: Directory with extra catalogs (defaults to env var).
        verbose: Log every contribution at INFO instead of DEBUG.
    """

    # Ratings
    base_rating: int = Field(default=1500, ge=0)
    min_rating: int = Field(default=1000, ge=0)
    max_rating: int = Field(default=8000, ge=0)
    doubles_bonus: int = Field(default=50, ge=0)

    # Heuristic confidence
    medium_confidence_threshold: float = Field(default=0.4, ge=0.0, le=1.0)
    high_confidence_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    high_confidence_rd: int = Field(default=150, ge=1)
    medium_confidence_rd: int = Field(default=250, ge=1)
    low_confidence_rd: int = Field(default=350, ge=1)

    # Rating deviation for reference conversions
    min_rd: int = Field(default=30, ge=1)
    max_rd: int = Field(default=350, ge=1)
    singles_only_rd: int = Field(default=130, ge=1)
    doubles_only_rd: int = Field(default=110, ge=1)
    doubles_anchor_rd: int = Field(default=65, ge=1)
    singles_anchor_rd: int = Field(default=75, ge=1)
    no_pattern_rd: int = Field(default=70, ge=1)
    singles_default_reliability: int = Field(default=25, ge=0, le=100)
    doubles_default_reliability: int = Field(default=45, ge=0, le=100)
    singles_penalty: float = Field(default=1.3, gt=0.0)
    doubles_bonus_multiplier: float = Field(default=0.9, gt=0.0)
    estimation_penalty: float = Field(default=1.1, ge=1.0)
    reliability_bands: list[tuple[float, float]] = Field(
        default_factory=lambda: [(85, 0.6), (70, 0.8), (50, 1.0), (30, 1.4), (0, 1.8)]
    )

    # Pattern detection between singles and doubles references
    singles_gap: float = Field(default=0.15, ge=0.0)
    doubles_gap: float = Field(default=0.2, ge=0.0)

    catalog_dir: str | None = None
    verbose: bool = False

    @model_validator(mode="after")
    def validate_ranges(self) -> EngineConfig:
        if self.min_rating > self.max_rating:
            raise ValueError("min_rating must not exceed max_rating")
        if not self.min_rating <= self.base_rating <= self.max_rating:
            raise ValueError("base_rating must lie within [min_rating, max_rating]")
        if self.medium_confidence_threshold > self.high_confidence_threshold:
            raise ValueError("medium_confidence_threshold must not exceed high_confidence_threshold")
        if self.min_rd > self.max_rd:
            raise ValueError("min_rd must not exceed max_rd")
        bounds = [bound for bound, _ in self.reliability_bands]
        if not bounds or bounds != sorted(bounds, reverse=True):
            raise ValueError("reliability_bands must be listed from highest to lowest bound")
        return self

    def model_post_init(self, __context: Any) -> None:
        """Pick up the catalog directory from the environment if not provided."""
        if self.catalog_dir is None:
            self.catalog_dir = os.environ.get(CATALOG_DIR_ENV) or None

    @classmethod
    def from_yaml(cls, path: str | Path) -> EngineConfig:
        """Load configuration from a YAML file.

        The file may hold the settings at the top level or under an
        ``engine`` section.

        Args:
            path: Path to the YAML configuration file.

        Returns:
            EngineConfig instance.

        Raises:
            ConfigError: If the file is missing, not a mapping or out of bounds.
        """
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"Invalid config file: expected dict, got {type(data).__name__}")

        if isinstance(data.get("engine"), dict):
            data = data["engine"]

        try:
            return cls(**data)
        except pydantic.ValidationError as e:
            errors = e.errors()
            field = ".".join(str(part) for part in errors[0]["loc"]) if errors else None
            raise ConfigError(str(e), field=field or None) from e
