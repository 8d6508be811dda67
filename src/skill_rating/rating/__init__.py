"""Rating inference for Skill Rating.

Components:
    - RatingEngine: Entry point producing a RatingResult from a response map
    - ReferenceConverter: Maps external reference ratings onto the internal scale
    - HeuristicAggregator: Estimates a rating from self-reported answers

Example:
    ```python
    from skill_rating.rating import RatingEngine

    engine = RatingEngine.for_sport("pickleball")
    result = engine.calculate_initial_rating(responses)
    print(result.singles_rating, result.rating_deviation)
    ```
"""

from .conversion import ReferenceConverter
from .engine import RatingEngine
from .heuristic import HeuristicAggregator

__all__ = [
    "RatingEngine",
    "ReferenceConverter",
    "HeuristicAggregator",
]
