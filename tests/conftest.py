"""Shared fixtures for allergy MCP tests."""

import os
import pytest
from pathlib import Path


@pytest.fixture
def tmp_data_dir(tmp_path):
    """Set ALLERGY_MCP_DATA_DIR to a temp directory for isolated tests."""
    data_dir = tmp_path / ".allergy-mcp"
    data_dir.mkdir()
    (data_dir / "logs").mkdir()
    os.environ["ALLERGY_MCP_DATA_DIR"] = str(data_dir)

    # Point config at the new directory
    from allergy_mcp import config
    saved = {
        key: getattr(config.Config, key)
        for key in ("DATA_DIR", "LOG_DIR", "DB_PATH", "LOG_FILE", "ERROR_LOG")
    }
    config.Config.DATA_DIR = data_dir
    config.Config.LOG_DIR = data_dir / "logs"
    config.Config.DB_PATH = data_dir / "allergies.db"
    config.Config.LOG_FILE = data_dir / "logs" / "allergy-mcp.log"
    config.Config.ERROR_LOG = data_dir / "logs" / "allergy-mcp-errors.log"

    yield data_dir

    # Cleanup
    for key, value in saved.items():
        setattr(config.Config, key, value)
    os.environ.pop("ALLERGY_MCP_DATA_DIR", None)


@pytest.fixture
async def store(tmp_data_dir):
    """Seeded allergy database in the temp directory."""
    from allergy_mcp.db.sqlite import AllergyDB

    db = AllergyDB(db_path=tmp_data_dir / "test.db")
    await db.initialize(seed=True)
    yield db
    await db.close()


@pytest.fixture
def dispatcher(store):
    from allergy_mcp.tools import build_dispatcher

    return build_dispatcher(store)
