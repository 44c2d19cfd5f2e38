import os
from pathlib import Path
from typing import Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field

from dep_updater.domain.exceptions import ConfigurationException
from dep_updater.domain.models import RepositoryTarget
from dep_updater.infrastructure.repos_config import load_repositories

DEFAULT_REPOS_CONFIG_PATH = "repos.json"


class Settings(BaseModel):
    """
    Run configuration, built once at startup and handed to the batch runner.
    """
    model_config = ConfigDict(frozen=True)

    github_token: str = Field(..., min_length=1, repr=False)
    repositories: Tuple[RepositoryTarget, ...] = Field(..., min_length=1)

    @classmethod
    def from_env(cls, repos_path: Optional[Union[str, Path]] = None) -> "Settings":
        """
        Reads GITHUB_TOKEN and the repository list.

        `repos_path` takes precedence over REPOS_CONFIG_PATH, which defaults to ./repos.json.

        Raises:
            ConfigurationException: If the token is unset or the repository list is invalid.
        """
        github_token = os.getenv("GITHUB_TOKEN")
        if not github_token:
            raise ConfigurationException("GITHUB_TOKEN is not set in the environment.")

        path = repos_path or os.getenv("REPOS_CONFIG_PATH") or DEFAULT_REPOS_CONFIG_PATH
        return cls(github_token=github_token, repositories=tuple(load_repositories(path)))
