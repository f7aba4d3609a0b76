import logging
import os
from dataclasses import dataclass
from typing import Optional


DEFAULT_NEO4J_URI = "bolt://localhost:7687"
DEFAULT_NEO4J_USER = "neo4j"
DEFAULT_MAX_OWNERSHIP_DEPTH = 10


@dataclass(frozen=True)
class Settings:
    neo4j_uri: str
    neo4j_user: str
    neo4j_password: str
    neo4j_database: Optional[str] = None
    log_level: str = "WARNING"
    max_ownership_depth: int = DEFAULT_MAX_OWNERSHIP_DEPTH


def _project_root() -> str:
    return os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))


def load_env_file(env_path: Optional[str] = None) -> None:
    """Load environment variables from a .env file at the project root if present.

    Only sets variables that aren't already present in the process environment.
    Lines that cannot be parsed are skipped.
    """
    env_path = env_path or os.path.join(_project_root(), ".env")
    if not os.path.isfile(env_path):
        return
    with open(env_path, "r", encoding="utf-8") as f:
        for line in f:
            s = line.strip()
            if not s or s.startswith("#"):
                continue
            if "=" not in s:
                continue
            key, val = s.split("=", 1)
            key = key.strip()
            val = val.strip().strip('"').strip("'")
            # Allow space around '=' like KEY = value
            if key and (key not in os.environ or not os.environ[key]):
                os.environ[key] = val


def load_settings(env_path: Optional[str] = None) -> Settings:
    """Build Settings from the environment, loading .env first and applying defaults.

    Raises a RuntimeError with a remediation hint when the Neo4j password is missing,
    and ValueError for a malformed depth or log level.
    """
    load_env_file(env_path)

    uri = os.getenv("NEO4J_URI") or DEFAULT_NEO4J_URI
    user = os.getenv("NEO4J_USER") or DEFAULT_NEO4J_USER
    pwd = os.getenv("NEO4J_PASSWORD")
    if not pwd:
        raise RuntimeError(
            "NEO4J_PASSWORD is not set.\n"
            "Define it in your environment or in a .env file at the project root, e.g.\n"
            "export NEO4J_URI='bolt://localhost:7687' NEO4J_USER='neo4j' NEO4J_PASSWORD='your_password'"
        )

    raw_depth = os.getenv("LEDGERGRAPH_MAX_OWNERSHIP_DEPTH") or str(DEFAULT_MAX_OWNERSHIP_DEPTH)
    try:
        max_depth = int(raw_depth)
    except ValueError:
        raise ValueError(f"LEDGERGRAPH_MAX_OWNERSHIP_DEPTH must be an integer, got {raw_depth!r}") from None
    if max_depth <= 0:
        raise ValueError("LEDGERGRAPH_MAX_OWNERSHIP_DEPTH must be positive")

    log_level = (os.getenv("LEDGERGRAPH_LOG_LEVEL") or "WARNING").upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"LEDGERGRAPH_LOG_LEVEL is not a logging level: {log_level!r}")

    return Settings(
        neo4j_uri=uri,
        neo4j_user=user,
        neo4j_password=pwd,
        neo4j_database=os.getenv("NEO4J_DATABASE") or None,
        log_level=log_level,
        max_ownership_depth=max_depth,
    )
