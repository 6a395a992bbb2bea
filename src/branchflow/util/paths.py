# src/branchflow/util/paths.py: XDG-compliant path resolution.
# This module resolves the per-user config and state directories through
# platformdirs and expands user-supplied paths. The state directory holds the
# hosting API token; the config directory holds the user-wide config.yaml.

import os
from pathlib import Path
import platformdirs

APP_NAME = "branchflow"


def get_xdg_config_home() -> Path:
    """Get the XDG_CONFIG_HOME path for the application."""
    return Path(platformdirs.user_config_dir(APP_NAME))


def get_xdg_state_home() -> Path:
    """Get the XDG_STATE_HOME path for the application."""
    return Path(platformdirs.user_state_dir(APP_NAME))


def get_user_config_path() -> Path:
    return get_xdg_config_home() / "config.yaml"


def get_default_token_path() -> Path:
    return get_xdg_state_home() / "token"


def expand_path(path: str | Path) -> Path:
    """Expand environment variables and user home directory in a path."""
    return Path(os.path.expandvars(os.path.expanduser(str(path)))).resolve()
