"""Allow `python -m curseforge_mcp`."""

from curseforge_mcp.cli import app

if __name__ == "__main__":
    app()
