"""
Database helpers shared across queries and routers.
No analysis logic lives here — only I/O primitives.
"""
import json
import sqlite3
from pathlib import Path

from fastapi import HTTPException

DATA_DIR = Path(__file__).parent.parent / "data"
CONFIG_DIR = DATA_DIR

DEFAULT_MIN_COUPLING = 0.0
DEFAULT_MAX_MODULES  = 5
DEFAULT_THRESHOLD    = 0.0


def row_to_dict(row) -> dict:
    return dict(row)


def get_db(repo_id: str) -> sqlite3.Connection:
    db_path = DATA_DIR / f"{repo_id}.db"
    if not db_path.exists():
        raise HTTPException(
            status_code=404,
            detail=f"Repo '{repo_id}' not found. Export its call facts to data/{repo_id}.db",
        )
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


# ── Decomposition config ─────────────────────────────────────────────────────

def default_config() -> dict:
    return {
        "min_coupling": DEFAULT_MIN_COUPLING,
        "max_modules":  DEFAULT_MAX_MODULES,
        "threshold":    DEFAULT_THRESHOLD,
    }


def decomposition_config_path(repo_id: str) -> Path:
    return CONFIG_DIR / f"{repo_id}.decomposition.json"


def read_decomposition_config(repo_id: str) -> dict:
    """Stored per-repo settings merged over the defaults."""
    config = default_config()
    p = decomposition_config_path(repo_id)
    if p.exists():
        config.update(json.loads(p.read_text()))
    return config


def write_decomposition_config(repo_id: str, config: dict) -> None:
    decomposition_config_path(repo_id).write_text(json.dumps(config, indent=2))
