"""Configuration management for TableSmith."""

import os

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


def _parse_cors_origins() -> list[str]:
    """Parse CORS origins from environment variable."""
    cors_env = os.getenv("CORS_ALLOW_ORIGINS")
    if cors_env:
        return cors_env.split(",")
    return ["*"]


def _env_flag(name: str, default: str) -> bool:
    """Read a true/false environment variable."""
    return os.getenv(name, default).lower() == "true"


class Settings(BaseModel):
    """Application settings."""

    # Edit history - oldest entries are evicted beyond this size
    history_max_size: int = int(os.getenv("HISTORY_MAX_SIZE", "50"))

    # Header comparison used by the column diff
    header_ignore_case: bool = _env_flag("HEADER_IGNORE_CASE", "true")
    header_trim_whitespace: bool = _env_flag("HEADER_TRIM_WHITESPACE", "true")
    header_normalize_whitespace: bool = _env_flag("HEADER_NORMALIZE_WHITESPACE", "true")
    detect_column_renames: bool = _env_flag("DETECT_COLUMN_RENAMES", "true")
    rename_similarity_threshold: float = float(os.getenv("RENAME_SIMILARITY_THRESHOLD", "0.75"))

    # Markdown cell parsing
    handle_escaped_pipes: bool = _env_flag("HANDLE_ESCAPED_PIPES", "true")
    trim_cells: bool = _env_flag("TRIM_CELLS", "true")

    # Row diff / reconciliation
    pair_modified_rows: bool = _env_flag("PAIR_MODIFIED_ROWS", "true")
    align_current_rows_to_old_layout: bool = _env_flag("ALIGN_CURRENT_ROWS_TO_OLD_LAYOUT", "false")

    # Editing sessions kept by the API
    session_ttl_minutes: int = int(os.getenv("SESSION_TTL_MINUTES", "60"))

    # Server settings
    host: str = os.getenv("HOST", "127.0.0.1")
    port: int = int(os.getenv("PORT", "8000"))
    debug: bool = _env_flag("DEBUG", "false")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # CORS settings (comma-separated list of allowed origins, or * for all)
    cors_allow_origins: list[str] = _parse_cors_origins()


settings = Settings()
