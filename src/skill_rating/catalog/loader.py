"""Loading sport catalogs from YAML.

Bundled catalogs live in ``skill_rating/catalog/data/<sport>.yaml``. Extra or
overriding catalogs can be loaded from any file, or from a directory named
by the ``SKILL_RATING_CATALOG_DIR`` environment variable (see EngineConfig).
"""

from __future__ import annotations

import logging
from importlib import resources
from pathlib import Path
from typing import Any

import pydantic
import yaml

from ..exceptions import CatalogError, UnknownSportError
from .schema import SportCatalog

logger = logging.getLogger(__name__)

DATA_PACKAGE = "skill_rating.catalog.data"
CATALOG_SUFFIX = ".yaml"


def catalog_from_dict(data: Any, source: str | None = None) -> SportCatalog:
    """Build a catalog from already-parsed data.

    Args:
        data: Mapping in the catalog YAML shape.
        source: Where the data came from, for error messages.

    Returns:
        Validated SportCatalog.

    Raises:
        CatalogError: If the data is not a mapping or fails validation.
    """
    if not isinstance(data, dict):
        raise CatalogError(
            f"Expected a mapping at the top level, got {type(data).__name__}",
            path=source,
        )
    try:
        return SportCatalog(**data)
    except pydantic.ValidationError as e:
        raise CatalogError(str(e), path=source) from e


def _parse(text: str, source: str) -> SportCatalog:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise CatalogError(f"Invalid YAML: {e}", path=source) from e
    return catalog_from_dict(data, source=source)


def load_catalog_file(path: str | Path) -> SportCatalog:
    """Load a catalog from a YAML file.

    Raises:
        CatalogError: If the file is missing, unreadable or invalid.
    """
    path = Path(path)
    if not path.exists():
        raise CatalogError("File not found", path=str(path))
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise CatalogError(f"Could not read file: {e}", path=str(path)) from e
    catalog = _parse(text, str(path))
    logger.debug(f"Loaded catalog '{catalog.sport}' v{catalog.version} from {path}")
    return catalog


def bundled_sports() -> list[str]:
    """Sports with a catalog shipped inside the package."""
    return sorted(
        entry.name[: -len(CATALOG_SUFFIX)]
        for entry in resources.files(DATA_PACKAGE).iterdir()
        if entry.name.endswith(CATALOG_SUFFIX)
    )


def available_sports(catalog_dir: str | Path | None = None) -> list[str]:
    """Sports that can be loaded, bundled or from ``catalog_dir``."""
    sports = set(bundled_sports())
    if catalog_dir is not None and Path(catalog_dir).is_dir():
        sports.update(p.stem for p in Path(catalog_dir).glob(f"*{CATALOG_SUFFIX}"))
    return sorted(sports)


def load_catalog(sport: str, catalog_dir: str | Path | None = None) -> SportCatalog:
    """Load the catalog for a sport.

    A file in ``catalog_dir`` takes precedence over the bundled catalog of
    the same name.

    Args:
        sport: Sport identifier, e.g. "pickleball".
        catalog_dir: Optional directory with additional catalogs.

    Returns:
        The sport's catalog.

    Raises:
        UnknownSportError: If no catalog exists for the sport.
        CatalogError: If the catalog is invalid.
    """
    name = sport.strip().lower()
    if catalog_dir is not None:
        candidate = Path(catalog_dir) / f"{name}{CATALOG_SUFFIX}"
        if candidate.is_file():
            return load_catalog_file(candidate)

    resource = resources.files(DATA_PACKAGE).joinpath(f"{name}{CATALOG_SUFFIX}")
    if not resource.is_file():
        raise UnknownSportError(sport, available_sports(catalog_dir))

    catalog = _parse(resource.read_text(encoding="utf-8"), f"{name}{CATALOG_SUFFIX}")
    logger.debug(f"Loaded bundled catalog '{catalog.sport}' v{catalog.version}")
    return catalog
