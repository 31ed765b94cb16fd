"""
Allergy MCP Configuration — Unified settings for the tool server

Load order: env vars > ~/.allergy-mcp/config.env > defaults
"""

import os
from pathlib import Path


def _load_config_env():
    """Load key=value pairs from ~/.allergy-mcp/config.env if it exists."""
    config_file = Path.home() / ".allergy-mcp" / "config.env"
    if not config_file.exists():
        return
    for line in config_file.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" in line:
            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Load config.env before reading env vars
_load_config_env()


class Config:
    # Server identity
    SERVER_NAME = "allergy-management-server"
    SERVER_VERSION = "1.0.0"
    PROTOCOL_VERSION = "2024-11-05"

    # Paths
    DATA_DIR = Path(os.environ.get("ALLERGY_MCP_DATA_DIR", str(Path.home() / ".allergy-mcp")))
    LOG_DIR = DATA_DIR / "logs"
    DB_PATH = Path(os.environ.get("ALLERGY_MCP_DB_PATH", str(DATA_DIR / "allergies.db")))

    # Logging (NEVER to stdout — would corrupt MCP protocol)
    LOG_LEVEL = os.environ.get("ALLERGY_MCP_LOG_LEVEL", "INFO")
    LOG_FILE = LOG_DIR / "allergy-mcp.log"
    ERROR_LOG = LOG_DIR / "allergy-mcp-errors.log"

    # Per-lookup deadline applied by tool handlers, in seconds
    LOOKUP_TIMEOUT = float(os.environ.get("ALLERGY_MCP_LOOKUP_TIMEOUT", "5.0"))

    # Populate an empty database with reference allergy records
    SEED_ON_INIT = _env_bool("ALLERGY_MCP_SEED", True)

    @classmethod
    def ensure_dirs(cls):
        """Create required directories."""
        cls.DATA_DIR.mkdir(parents=True, exist_ok=True)
        cls.LOG_DIR.mkdir(parents=True, exist_ok=True)
