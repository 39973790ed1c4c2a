"""Configuration for the planner search engine and server."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass
class SearchConfig:
    """Defaults for search calls and the quick-search preset."""
    # Full search
    default_limit: int = 20
    default_threshold: float = 0.4

    # Quick search / autocomplete
    quick_limit: int = 5
    quick_threshold: float = 0.3  # Tighter than the default
    suggestion_limit: int = 10
    min_suggestion_length: int = 2

    @classmethod
    def from_env(cls) -> "SearchConfig":
        """Create config from environment variables."""
        return cls(
            default_limit=int(os.environ.get("PLANNER_SEARCH_LIMIT", "20")),
            default_threshold=float(os.environ.get("PLANNER_SEARCH_THRESHOLD", "0.4")),
            quick_limit=int(os.environ.get("PLANNER_SEARCH_QUICK_LIMIT", "5")),
            quick_threshold=float(os.environ.get("PLANNER_SEARCH_QUICK_THRESHOLD", "0.3")),
            suggestion_limit=int(os.environ.get("PLANNER_SEARCH_SUGGESTION_LIMIT", "10")),
            min_suggestion_length=int(os.environ.get("PLANNER_SEARCH_MIN_SUGGESTION", "2")),
        )


@dataclass
class Config:
    """Main configuration for the planner search server."""
    search: SearchConfig = field(default_factory=SearchConfig.from_env)
    db_path: Optional[Path] = None  # None = use default

    @classmethod
    def from_env(cls) -> "Config":
        """Create config from environment variables."""
        db_path_str = os.environ.get("PLANNER_SEARCH_DB")
        db_path = Path(db_path_str) if db_path_str else None

        return cls(
            search=SearchConfig.from_env(),
            db_path=db_path,
        )


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global config instance.

    Returns:
        Config loaded from environment
    """
    global _config

    if _config is None:
        _config = Config.from_env()

    return _config
