"""Application configuration loaded from environment variables."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable loading and sensible defaults."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "gitmirror"
    debug: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000

    repos_dir: Path = Path("repos")
    config_file: Path = Path("webhook-config.json")

    # Seed values for the persisted webhook config; the file wins once written.
    github_webhook_secret: str = ""
    default_branch: str = "main"
    auto_clone: bool = True

    git_command_timeout_seconds: float = 300.0
    ssh_dir: Path = Path.home() / ".ssh"
    ssh_key_setup: bool = True


settings = Settings()
