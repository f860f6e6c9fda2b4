"""Application configuration.

Loads settings from .env file with AGENTDESK_ prefix.
Validates listing page sizes so a misconfigured default can never disable pagination.
"""

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """AgentDesk application settings.

    All settings are loaded from environment variables with AGENTDESK_ prefix,
    or from a .env file in the working directory.
    """

    database_url: str = "sqlite:///./data/agentdesk.db"
    upload_dir: str = "data/uploads"
    per_page: int = 20
    max_per_page: int = 100
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:5173"]
    token_name_suffix: str = "-access-token"

    model_config = {
        "env_file": ".env",
        "env_prefix": "AGENTDESK_",
    }

    @model_validator(mode="after")
    def validate_page_sizes(self) -> "Settings":
        """Reject non-positive page sizes and a default above the cap."""
        if self.per_page < 1 or self.max_per_page < 1:
            raise ValueError("per_page and max_per_page must be positive integers")
        if self.per_page > self.max_per_page:
            raise ValueError(
                f"per_page ({self.per_page}) cannot exceed max_per_page ({self.max_per_page})"
            )
        return self


def get_settings() -> Settings:
    """Create and return a Settings instance.

    Raises a clear error message if the environment holds invalid values.
    """
    try:
        return Settings()
    except Exception as e:
        raise RuntimeError(
            f"Failed to load AgentDesk settings: {e}\n"
            "Check the AGENTDESK_* environment variables or the .env file."
        ) from e
