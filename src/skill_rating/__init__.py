"""Skill Rating - Initial skill ratings from an onboarding questionnaire.

A player answers a branching, per-sport questionnaire. If they already hold
an external reference rating it is converted onto the internal scale;
otherwise their self-reported answers are weighed into an estimate. Either
way the result carries a rating deviation and a confidence label.

Example:
    ```python
    from skill_rating import RatingEngine, flow, load_catalog

    catalog = load_catalog("pickleball")
    state = flow.start(catalog)
    state = flow.answer(state, "Yes")
    state = flow.advance(state, catalog)

    engine = RatingEngine(catalog)
    result = engine.calculate_initial_rating({"has_dupr": "Yes", "dupr_singles": 3.75})
    print(result.singles_rating, result.doubles_rating)
    print(engine.generate_feedback(result))
    ```
"""

from . import flow
from .catalog import SportCatalog, available_sports, load_catalog, load_catalog_file
from .conditions import filter_visible, visible
from .config import EngineConfig
from .exceptions import (
    CatalogError,
    ConfigError,
    SkillRatingError,
    UnknownSportError,
    ValidationError,
)
from .expander import expand
from .models import (
    AssessmentRecord,
    Condition,
    Confidence,
    FlowState,
    NumericRange,
    Operator,
    PatternAnalysis,
    Progress,
    Question,
    QuestionType,
    RatingResult,
    RatingSource,
    Snapshot,
    SubQuestion,
)
from .progress import progress
from .rating import HeuristicAggregator, RatingEngine, ReferenceConverter
from .reporter import FeedbackReporter

__version__ = "0.1.0"

__all__ = [
    # Main entry point
    "RatingEngine",
    # Configuration
    "EngineConfig",
    # Catalogs
    "SportCatalog",
    "load_catalog",
    "load_catalog_file",
    "available_sports",
    # Questionnaire flow
    "flow",
    "progress",
    "visible",
    "filter_visible",
    "expand",
    # Models
    "Question",
    "QuestionType",
    "SubQuestion",
    "NumericRange",
    "Condition",
    "Operator",
    "FlowState",
    "Snapshot",
    "Progress",
    "RatingResult",
    "RatingSource",
    "Confidence",
    "PatternAnalysis",
    "AssessmentRecord",
    # Rating components
    "ReferenceConverter",
    "HeuristicAggregator",
    "FeedbackReporter",
    # Exceptions
    "SkillRatingError",
    "ValidationError",
    "CatalogError",
    "UnknownSportError",
    "ConfigError",
]
