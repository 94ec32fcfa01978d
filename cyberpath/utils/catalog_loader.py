"""
Catalog loader utility for CyberPath.

Loads the YAML catalog (units, achievements and engine lookup tables) from
the package's data/ directory.
"""

from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ValidationError

from cyberpath.errors import CatalogError
from cyberpath.schemas import Achievement, AchievementConfig, RecommendationConfig, Unit


# Default catalog, shipped inside the package
DATA_DIR = Path(__file__).parent.parent / "data"
DEFAULT_CATALOG = DATA_DIR / "catalog.yaml"


class Catalog(BaseModel):
    """Everything loaded once at startup and shared read-only."""
    units: list[Unit]
    achievements: list[Achievement] = []
    recommendations: RecommendationConfig = RecommendationConfig()
    achievement_rules: AchievementConfig = AchievementConfig()


def load_catalog_data(path: Optional[Path] = None) -> dict[str, Any]:
    """
    Read the raw catalog mapping.

    Args:
        path: Optional catalog file (default: cyberpath/data/catalog.yaml)

    Raises:
        FileNotFoundError: If the catalog file doesn't exist
        CatalogError: If YAML parsing fails or the top level is not a mapping
    """
    file_path = Path(path) if path else DEFAULT_CATALOG

    if not file_path.exists():
        raise FileNotFoundError(f"Catalog not found: {file_path}")

    with open(file_path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise CatalogError(f"Invalid YAML in {file_path}: {e}") from e

    if not isinstance(data, dict):
        raise CatalogError(f"Catalog {file_path} must contain a mapping")
    return data


def load_catalog(path: Optional[Path] = None) -> Catalog:
    """
    Load and validate the catalog.

    Condition strings on achievements are parsed here, once.

    Raises:
        FileNotFoundError: If the catalog file doesn't exist
        CatalogError: If the catalog does not validate
    """
    data = load_catalog_data(path)
    try:
        catalog = Catalog.model_validate(data)
    except ValidationError as e:
        raise CatalogError(f"Invalid catalog: {e}") from e

    ids = [a.id for a in catalog.achievements]
    if len(ids) != len(set(ids)):
        raise CatalogError("Duplicate achievement id in catalog")
    return catalog
