"""Configuration management using Pydantic Settings."""

import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_default_data_dir() -> Path:
    """Get the default data directory based on OS conventions."""
    if os.name == "nt":  # Windows
        local_app_data = os.environ.get("LOCALAPPDATA")
        if local_app_data:
            return Path(local_app_data) / "curseforge-mcp"
        return Path.home() / ".curseforge-mcp"
    else:  # Linux/macOS
        xdg_data_home = os.environ.get("XDG_DATA_HOME")
        if xdg_data_home:
            return Path(xdg_data_home) / "curseforge-mcp"
        return Path.home() / ".local" / "share" / "curseforge-mcp"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Credentials - each one is optional and unlocks its own tool group
    curseforge_api_key: str = Field(default="", description="Core API key (catalog tools)")
    curseforge_author_token: str = Field(default="", description="Author token (upload tools)")
    curseforge_game_slug: str = Field(default="", description="Default game slug, e.g. 'minecraft'")

    # Local state
    data_dir: Path = Field(
        default_factory=get_default_data_dir,
        description="Base directory for curseforge-mcp state"
    )
    auth_dir: Optional[Path] = Field(
        default=None,
        description="Session directory (default: {data_dir}/auth)"
    )
    cookies_path: Optional[Path] = Field(
        default=None,
        description="Persisted session cookies (default: {auth_dir}/cookies.json)"
    )

    # Web API transport
    web_transport: Literal["http", "browser"] = Field(
        default="http",
        description="'http' sends cookies directly, 'browser' proxies through Chrome"
    )
    chrome_path: Optional[Path] = Field(default=None, description="Chrome/Chromium executable")
    browser_headless: bool = Field(default=False, description="Run the proxy browser headless")
    challenge_timeout: float = Field(default=30.0, description="Max wait for the bot challenge (s)")

    # HTTP
    request_timeout: int = Field(default=30, description="Request timeout in seconds")
    default_game_id: int = Field(default=432, description="Default game ID (432=Minecraft)")

    @field_validator("data_dir", mode="before")
    @classmethod
    def expand_data_dir(cls, v):
        """Expand user home directory in data_dir."""
        if isinstance(v, str):
            return Path(v).expanduser()
        return v

    @field_validator("chrome_path", mode="before")
    @classmethod
    def empty_chrome_path(cls, v):
        """Treat an empty CHROME_PATH as unset."""
        if v == "":
            return None
        if isinstance(v, str):
            return Path(v).expanduser()
        return v

    @model_validator(mode="after")
    def resolve_paths(self):
        """Resolve session paths relative to data_dir if not explicitly set."""
        if self.auth_dir is None:
            self.auth_dir = self.data_dir / "auth"
        else:
            self.auth_dir = Path(self.auth_dir).expanduser()

        if self.cookies_path is None:
            self.cookies_path = self.auth_dir / "cookies.json"
        else:
            self.cookies_path = Path(self.cookies_path).expanduser()

        return self


def load_settings() -> Settings:
    """Load settings from environment and .env file."""
    settings = Settings()
    return settings
