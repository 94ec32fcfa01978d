"""
Runtime configuration for CyberPath.

Settings come from environment variables, optionally loaded from a .env file
at the project root:
- CYBERPATH_DB_PATH: progress database (default: ~/.cyberpath/progress.db)
- CYBERPATH_CATALOG: catalog YAML (default: cyberpath/data/catalog.yaml)
- CYBERPATH_LOG_LEVEL: logging level name (default: INFO)
- CYBERPATH_USERNAME: learner shown by the dashboard (default: user@cyberpath)
"""

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

from cyberpath.utils.catalog_loader import DEFAULT_CATALOG

PROJECT_ROOT = Path(__file__).parent.parent

DEFAULT_PROGRESS_DIR = Path.home() / ".cyberpath"
DEFAULT_PROGRESS_DB = DEFAULT_PROGRESS_DIR / "progress.db"

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

DEFAULT_USERNAME = "user@cyberpath"


class Settings(BaseModel):
    db_path: Path = DEFAULT_PROGRESS_DB
    catalog_path: Path = DEFAULT_CATALOG
    log_level: str = "INFO"
    username: str = DEFAULT_USERNAME

    @field_validator('log_level')
    @classmethod
    def known_level(cls, v):
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f'Unknown log level: {v}')
        return level


def get_settings(env_file: Optional[Path] = None) -> Settings:
    """
    Build settings from the environment.

    Args:
        env_file: Optional .env file (default: PROJECT_ROOT/.env); existing
            environment variables take precedence over the file
    """
    load_dotenv(env_file or PROJECT_ROOT / ".env")

    values = {}
    if os.getenv("CYBERPATH_DB_PATH"):
        values["db_path"] = Path(os.environ["CYBERPATH_DB_PATH"]).expanduser()
    if os.getenv("CYBERPATH_CATALOG"):
        values["catalog_path"] = Path(os.environ["CYBERPATH_CATALOG"]).expanduser()
    if os.getenv("CYBERPATH_LOG_LEVEL"):
        values["log_level"] = os.environ["CYBERPATH_LOG_LEVEL"]
    if os.getenv("CYBERPATH_USERNAME"):
        values["username"] = os.environ["CYBERPATH_USERNAME"]
    return Settings(**values)


def configure_logging(level: str = "INFO"):
    """Set up root logging for entry points (scripts, app)."""
    logging.basicConfig(level=getattr(logging, level.upper()), format=LOG_FORMAT)
