from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import List, Optional
from pathlib import Path
import json
import os


SETTINGS_FILE = Path(__file__).parent.parent.parent / "settings.json"


def load_settings_from_file() -> dict:
    """Load settings from JSON file if exists."""
    if SETTINGS_FILE.exists():
        try:
            with open(SETTINGS_FILE) as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError):
            pass
    return {}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    # Outer confinement boundary; unset means the whole filesystem is browsable
    data_dir: Optional[str] = Field(default=None, alias="DATA_DIR")

    # Use data_dir itself as the workspace at startup
    default_workspace: bool = Field(default=False, alias="DEFAULT_WORKSPACE")

    # Server
    port: int = Field(default=3001, alias="PORT")
    client_url: str = Field(default="http://localhost:5173", alias="CLIENT_URL")
    cors_origins: List[str] = []
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # slowapi limit string for workspace selection. Process-wide: the limiter
    # is module-level and always reads the module `settings`, not a Settings
    # passed to create_app().
    select_rate_limit: str = Field(default="30/minute", alias="SELECT_RATE_LIMIT")

    def __init__(self, **kwargs):
        # Load from settings file first
        file_settings = load_settings_from_file()

        # Merge: kwargs > file_settings > env vars (handled by pydantic)
        merged = {**file_settings, **kwargs}

        super().__init__(**merged)

        # Handle CORS_ORIGINS as JSON string from env
        cors_env = os.getenv("CORS_ORIGINS")
        if cors_env:
            try:
                self.cors_origins = json.loads(cors_env)
            except json.JSONDecodeError:
                pass

        if not self.cors_origins:
            self.cors_origins = [self.client_url]

        # Empty DATA_DIR= in an env file means "not configured"
        if not self.data_dir:
            self.data_dir = None

    @property
    def default_workspace_enabled(self) -> bool:
        return self.default_workspace and self.data_dir is not None

    def get_public_settings(self) -> dict:
        """Read-only configuration exposed to the client."""
        return {
            "defaultWorkspace": self.default_workspace_enabled,
            "dataDir": self.data_dir,
        }


settings = Settings()
