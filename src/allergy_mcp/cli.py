"""
Allergy MCP CLI — Command-line interface for the allergy tool server

Commands:
    allergy-mcp init        Create ~/.allergy-mcp/, generate config, seed the database
    allergy-mcp server      Start the MCP server (stdio mode)
    allergy-mcp status      Show database stats
    allergy-mcp tools       Print the tool catalog as JSON
    allergy-mcp mcp-config  Print MCP client JSON config
"""

import asyncio
import json
import sys

import click

from allergy_mcp import __version__
from allergy_mcp.config import Config


@click.group()
@click.version_option(version=__version__, prog_name="allergy-mcp")
def main():
    """Allergy MCP — schema-validated allergy tools over MCP."""
    pass


@main.command()
def init():
    """Initialize: create ~/.allergy-mcp/, generate config, seed the database."""
    from allergy_mcp.db.sqlite import AllergyDB

    Config.ensure_dirs()

    config_env = Config.DATA_DIR / "config.env"
    if not config_env.exists():
        config_env.write_text(
            "# Allergy MCP Configuration\n"
            "# Uncomment and edit as needed.\n"
            "\n"
            "# ALLERGY_MCP_DATA_DIR=~/.allergy-mcp\n"
            "# ALLERGY_MCP_DB_PATH=~/.allergy-mcp/allergies.db\n"
            "# ALLERGY_MCP_LOG_LEVEL=INFO\n"
            "# ALLERGY_MCP_LOOKUP_TIMEOUT=5.0\n"
            "# ALLERGY_MCP_SEED=true\n"
        )

    async def _seed():
        db = AllergyDB()
        await db.initialize(seed=True)
        try:
            return await db.count()
        finally:
            await db.close()

    count = asyncio.run(_seed())

    click.echo(f"Allergy MCP initialized at {Config.DATA_DIR}")
    click.echo(f"  Config:  {config_env}")
    click.echo(f"  Logs:    {Config.LOG_DIR}")
    click.echo(f"  DB:      {Config.DB_PATH} ({count} records)")
    click.echo()
    click.echo("Run `allergy-mcp mcp-config` to get the client JSON snippet.")


@main.command()
def server():
    """Start the allergy MCP server (stdio mode)."""
    from allergy_mcp.db.sqlite import AllergyDB
    from allergy_mcp.server.server import AllergyMCPServer
    from allergy_mcp.tools import build_dispatcher

    async def _run():
        store = AllergyDB()
        await store.initialize()
        srv = AllergyMCPServer(build_dispatcher(store), store=store)
        await srv.run()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        pass


@main.command()
def status():
    """Show allergy database statistics."""
    import sqlite3

    if not Config.DB_PATH.exists():
        click.echo("No database found. Run `allergy-mcp init` first.")
        return

    conn = sqlite3.connect(str(Config.DB_PATH))
    try:
        cur = conn.execute("SELECT COUNT(*) FROM allergies")
        total = cur.fetchone()[0]

        cur = conn.execute(
            "SELECT severity, COUNT(*) FROM allergies "
            "GROUP BY severity ORDER BY COUNT(*) DESC"
        )
        by_severity = cur.fetchall()
    finally:
        conn.close()

    click.echo("Allergy MCP Status")
    click.echo("=" * 40)
    click.echo(f"Records:  {total:,}")
    click.echo(f"DB:       {Config.DB_PATH}")

    if by_severity:
        click.echo()
        click.echo("By Severity:")
        for severity, count in by_severity:
            click.echo(f"  {severity}: {count}")


@main.command()
def tools():
    """Print the tool catalog (the tools/list payload) as JSON."""
    from allergy_mcp.tools import ALL_TOOLS

    click.echo(json.dumps({"tools": ALL_TOOLS}, indent=2))


@main.command("mcp-config")
def mcp_config():
    """Print MCP config JSON for an MCP client."""
    path = _find_executable()
    args = ["server"] if path.endswith("allergy-mcp") else ["-m", "allergy_mcp", "server"]

    config = {
        "mcpServers": {
            "allergy-mcp": {
                "command": path,
                "args": args,
            }
        }
    }

    click.echo("Add this to your MCP client settings:\n")
    click.echo(json.dumps(config, indent=2))


def _find_executable() -> str:
    """Find the allergy-mcp command path."""
    import shutil
    path = shutil.which("allergy-mcp")
    if path:
        return path
    # Fallback: use python -m allergy_mcp
    return sys.executable


if __name__ == "__main__":
    main()
