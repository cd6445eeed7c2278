"""Setup wizard for first-time configuration."""

import asyncio
import re
from pathlib import Path
from typing import Dict, Optional

from rich.panel import Panel
from rich.prompt import Confirm, Prompt

from curseforge_mcp.utils.console import console

ENV_KEY_PATTERN = re.compile(r"^([A-Z_]+)\s*=\s*(.*)$")


def get_env_path() -> Path:
    """The .env file read by Settings (current working directory)."""
    return Path(".env")


def env_file_exists() -> bool:
    return get_env_path().exists()


def parse_env(content: str) -> Dict[str, str]:
    """Parse KEY=value lines, skipping comments and blank lines."""
    values = {}
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        match = ENV_KEY_PATTERN.match(line)
        if match:
            key, value = match.groups()
            values[key] = value.strip().strip('"').strip("'")
    return values


def load_existing_env(path: Optional[Path] = None) -> Dict[str, str]:
    """Load existing .env file values as defaults."""
    env_path = path or get_env_path()
    if not env_path.exists():
        return {}
    try:
        return parse_env(env_path.read_text(encoding="utf-8"))
    except OSError:
        return {}


def mask(secret: str) -> str:
    if not secret:
        return ""
    if len(secret) <= 8:
        return "*" * len(secret)
    return f"{secret[:4]}…{secret[-4:]}"


class SetupWizard:
    """Interactive setup wizard for curseforge-mcp credentials."""

    def __init__(self, env_path: Optional[Path] = None):
        self.console = console
        self.env_path = env_path or get_env_path()
        self.config: Dict[str, str] = {}
        self.existing_config = load_existing_env(self.env_path)
        self.is_reconfigure = bool(self.existing_config)
        self.run_extract = False

    def show_welcome(self):
        self.console.print()
        if self.is_reconfigure:
            self.console.print(Panel(
                "[bold cyan]curseforge-mcp Setup[/bold cyan]\n\n"
                "Reconfiguring. Press Enter to keep an existing value.",
                title="⚙️ Reconfigure",
                border_style="blue",
            ))
        else:
            self.console.print(Panel(
                "[bold cyan]Welcome to curseforge-mcp![/bold cyan]\n\n"
                "Every credential is optional. Each one unlocks a group of tools:\n"
                "  API key      → mod search, files, downloads\n"
                "  Author token → file uploads\n"
                "  Browser session → comments, project settings",
                title="🚀 First-Time Setup",
                border_style="blue",
            ))
        self.console.print()

    def _ask_secret(self, key: str, label: str, hint: str):
        existing = self.existing_config.get(key, "")
        self.console.print(f"[bold]{label}[/bold]")
        self.console.print(f"[dim]{hint}[/dim]")
        if existing:
            self.console.print(f"[green]✓ Currently set ({mask(existing)})[/green]")
            if not Confirm.ask(f"Change {label.lower()}?", default=False):
                self.config[key] = existing
                self.console.print()
                return
        value = Prompt.ask(label, default="", show_default=False, password=True)
        if value:
            self.config[key] = value.strip()
        self.console.print()

    def ask_credentials(self):
        self._ask_secret(
            "CURSEFORGE_API_KEY",
            "API key",
            "From https://console.curseforge.com/ (leave empty to skip catalog tools)",
        )
        self._ask_secret(
            "CURSEFORGE_AUTHOR_TOKEN",
            "Author token",
            "From https://authors.curseforge.com/account/api-tokens (leave empty to skip upload tools)",
        )

    def ask_game_slug(self):
        self.config["CURSEFORGE_GAME_SLUG"] = Prompt.ask(
            "Default game slug (e.g. minecraft, hytale)",
            default=self.existing_config.get("CURSEFORGE_GAME_SLUG", ""),
        ).strip()

    def ask_web_transport(self):
        self.console.print()
        self.console.print("[bold]🌐 Web API transport[/bold]")
        self.console.print("  [cyan]http[/cyan]    - send session cookies directly (fast)")
        self.console.print("  [cyan]browser[/cyan] - proxy through Chrome to pass the bot challenge")
        self.config["WEB_TRANSPORT"] = Prompt.ask(
            "Transport",
            choices=["http", "browser"],
            default=self.existing_config.get("WEB_TRANSPORT", "http"),
        )
        self.console.print()
        self.run_extract = Confirm.ask("Extract curseforge.com cookies from your browser now?", default=True)

    def generate_env_content(self) -> str:
        """Generate the .env file content."""
        lines = [
            "# curseforge-mcp Configuration",
            "# Generated by setup wizard. Run 'curseforge-mcp setup' again to change.",
            "",
        ]
        for key in ("CURSEFORGE_API_KEY", "CURSEFORGE_AUTHOR_TOKEN", "CURSEFORGE_GAME_SLUG", "WEB_TRANSPORT"):
            value = self.config.get(key, "")
            lines.append(f"{key}={value}")

        # Keep settings the wizard does not ask about
        for key, value in self.existing_config.items():
            if key not in self.config:
                lines.append(f"{key}={value}")
        lines.append("")
        return "\n".join(lines)

    def save_env_file(self) -> bool:
        try:
            self.env_path.parent.mkdir(parents=True, exist_ok=True)
            self.env_path.write_text(self.generate_env_content(), encoding="utf-8")
            return True
        except OSError as e:
            self.console.print(f"[red]Error saving .env file: {e}[/red]")
            return False

    def run_post_actions(self):
        if not self.run_extract:
            return
        self.console.print("[cyan]Extracting browser cookies...[/cyan]")
        from curseforge_mcp.auth.storage import CookieStore
        from curseforge_mcp.config import load_settings

        store = CookieStore(load_settings().cookies_path)
        outcome = asyncio.run(store.auto_extract())
        style = "green" if store.has_session() else "yellow"
        self.console.print(f"[{style}]{outcome}[/{style}]")
        if not store.has_session():
            self.console.print("[dim]  Run 'curseforge-mcp cookies-set' to paste cookies manually[/dim]")

    def run(self) -> Optional[Path]:
        self.show_welcome()
        self.ask_credentials()
        self.ask_game_slug()
        self.ask_web_transport()

        self.console.print()
        if not Confirm.ask("Save configuration?", default=True):
            self.console.print("[yellow]Setup cancelled.[/yellow]")
            return None

        if not self.save_env_file():
            return None

        self.console.print(Panel(
            f"[bold green]Configuration saved![/bold green]\n\nSettings file: [cyan]{self.env_path.resolve()}[/cyan]",
            title="✅ Setup Complete",
            border_style="green",
        ))
        self.run_post_actions()
        self.console.print()
        self.console.print("[bold]Ready to go![/bold] Point your MCP host at [cyan]curseforge-mcp serve[/cyan].")
        return self.env_path


def run_setup_wizard() -> Optional[Path]:
    """Run the setup wizard and return the path to the created .env file."""
    return SetupWizard().run()
