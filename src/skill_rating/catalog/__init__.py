"""Question catalogs.

Each sport ships a YAML catalog holding its questions, weight tables and
reference-rating conversion. The engine only ever reads these as data.

Example:
    ```python
    from skill_rating.catalog import load_catalog

    catalog = load_catalog("pickleball")
    print([q.key for q in catalog.questions])
    ```
"""

from .loader import (
    available_sports,
    bundled_sports,
    catalog_from_dict,
    load_catalog,
    load_catalog_file,
)
from .schema import (
    CategorySettings,
    CompositeSettings,
    ConfidenceNotes,
    ReferenceSettings,
    ReliabilityScaling,
    SkillTier,
    SportCatalog,
)

__all__ = [
    "SportCatalog",
    "ReferenceSettings",
    "ReliabilityScaling",
    "CategorySettings",
    "CompositeSettings",
    "SkillTier",
    "ConfidenceNotes",
    "load_catalog",
    "load_catalog_file",
    "catalog_from_dict",
    "available_sports",
    "bundled_sports",
]
