from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from REPOPRESS_* environment variables (and .env)."""

    # Backing repository
    github_owner: str = ""
    github_repo: str = ""
    github_token: str = ""
    github_branch: Optional[str] = None
    github_api_url: str = "https://api.github.com"
    request_timeout: float = 30.0
    read_retries: int = 3

    # Repository layout
    content_dir: str = "data/md"
    index_path: str = "data/json/articles.json"
    resources_path: str = "data/json/resources.json"

    # Local cache of the resource list, served to public pages
    local_resources_path: str = "data/json/resources.json"

    # Shared secret checked by the access guard; empty denies every write
    access_password: str = ""

    # Logging (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_level: str = "INFO"
    log_level_http: str = "WARNING"      # urllib3 / requests

    model_config = SettingsConfigDict(
        env_prefix="REPOPRESS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def missing_github_settings(self) -> List[str]:
        """Names of required repository settings that are unset."""
        required = {
            "github_owner": self.github_owner,
            "github_repo": self.github_repo,
            "github_token": self.github_token,
        }
        return [name for name, value in required.items() if not value.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
