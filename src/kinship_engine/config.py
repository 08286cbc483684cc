"""Runtime configuration read from the environment."""
from __future__ import annotations

import os
from dataclasses import dataclass, field

# Shortest bound that still covers realistic extended-family distances.
MIN_PATH_DEPTH = 15


def _f(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _i(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _s(name: str, default: str) -> str:
    return os.getenv(name) or default


@dataclass(frozen=True)
class KinshipConfig:
    # Pairwise path search
    path_max_depth: int = field(default_factory=lambda: max(_i("KINSHIP_PATH_MAX_DEPTH", 15), MIN_PATH_DEPTH))

    # Ancestor enumeration and matching
    ancestor_max_depth: int = field(default_factory=lambda: _i("KINSHIP_ANCESTOR_MAX_DEPTH", 8))
    match_max_depth: int = field(default_factory=lambda: _i("KINSHIP_MATCH_MAX_DEPTH", 6))
    match_limit: int = field(default_factory=lambda: _i("KINSHIP_MATCH_LIMIT", 50))

    # Retry policy for upstream store reads
    store_retry_attempts: int = field(default_factory=lambda: _i("KINSHIP_STORE_RETRY_ATTEMPTS", 3))
    store_retry_max_wait: float = field(default_factory=lambda: _f("KINSHIP_STORE_RETRY_MAX_WAIT", 2.0))

    sqlite_path: str = field(default_factory=lambda: _s("KINSHIP_SQLITE_PATH", "./data/kinship.db"))
    log_level: str = field(default_factory=lambda: _s("KINSHIP_LOG_LEVEL", "INFO").upper())

    def __post_init__(self) -> None:
        if self.path_max_depth < MIN_PATH_DEPTH:
            object.__setattr__(self, "path_max_depth", MIN_PATH_DEPTH)


def load_config() -> KinshipConfig:
    """Load configuration, reading a local .env file first if present."""
    from dotenv import load_dotenv

    load_dotenv()
    return KinshipConfig()


CONFIG = KinshipConfig()
