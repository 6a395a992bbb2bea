# src/branchflow/config.py: Pydantic models for configuration.
# This module defines the schema of branchflow's YAML configuration: the
# remote to sync with, the names of the two canonical branches, the branch
# prefixes for each workflow kind, the hosting API endpoint and logging. It
# also locates and loads the file, falling back to defaults when none exists.

from __future__ import annotations

import yaml
from pathlib import Path
from pydantic import BaseModel, Field, ValidationError, field_validator
from typing import Any, Dict, Literal, Optional

from .util.paths import expand_path, get_default_token_path, get_user_config_path
from .util.errors import ConfigError

REPO_CONFIG_NAME = ".branchflow.yaml"

# --- Pydantic Models for Configuration Schema ---

class CanonicalBranches(BaseModel):
    master: str = "master"
    develop: str = "develop"


class Prefixes(BaseModel):
    feature: str = "feature/"
    release: str = "release/"
    hotfix: str = "hotfix/"
    versiontag: str = ""


class HostingConfig(BaseModel):
    api_url: str = "https://api.github.com"
    repository: Optional[str] = None
    token_path: Optional[Path] = None

    @field_validator("token_path", mode="before")
    @classmethod
    def _expand_token_path(cls, value: Any) -> Any:
        if value is None:
            return value
        return expand_path(value)

    def resolved_token_path(self) -> Path:
        return self.token_path or get_default_token_path()


class LoggingConfig(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_format: bool = Field(True, alias="json")

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


class FlowConfig(BaseModel):
    version: int = 1
    remote: str = "origin"
    branches: CanonicalBranches = Field(default_factory=CanonicalBranches)
    prefixes: Prefixes = Field(default_factory=Prefixes)
    hosting: HostingConfig = Field(default_factory=HostingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def canonical_branches(self) -> list[str]:
        """The canonical branches in the order they are reconciled: stability first."""
        return [self.branches.master, self.branches.develop]

    def prefix_for(self, kind: str) -> str:
        prefixes: Dict[str, str] = {
            "feature": self.prefixes.feature,
            "release": self.prefixes.release,
            "hotfix": self.prefixes.hotfix,
        }
        if kind not in prefixes:
            raise ConfigError(
                f"Unknown branch kind '{kind}'. Expected one of: {', '.join(prefixes)}."
            )
        return prefixes[kind]


# --- Configuration Loading ---

def find_config_path(repo_path: Optional[Path] = None) -> Optional[Path]:
    """Returns the first existing config file: repository-local, then user-wide."""
    candidates = []
    if repo_path is not None:
        candidates.append(Path(repo_path) / REPO_CONFIG_NAME)
    candidates.append(get_user_config_path())
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


def load_config(path: Optional[Path] = None, repo_path: Optional[Path] = None) -> FlowConfig:
    """
    Loads, validates, and returns the configuration.

    An explicit path must exist. Without one, the repository-local and user
    config files are tried in turn, and defaults are used if neither exists.

    Raises:
        ConfigError: If the file cannot be read, parsed or validated.
    """
    if path is not None:
        config_path = Path(path)
        if not config_path.is_file():
            raise ConfigError(f"Configuration file not found at '{config_path}'.")
    else:
        config_path = find_config_path(repo_path)
        if config_path is None:
            return FlowConfig()

    try:
        with open(config_path, "r") as f:
            raw_config = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Failed to read configuration file '{config_path}': {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing YAML configuration: {e}") from e

    if not isinstance(raw_config, dict):
        raise ConfigError(f"Configuration file '{config_path}' must contain a mapping.")

    try:
        return FlowConfig.model_validate(raw_config)
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed: {e}") from e
