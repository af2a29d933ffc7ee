from pathlib import Path
from typing import Any

import yaml

from src import settings
from src.masking_engine.configuration import Configuration, ConfigurationError

USERS_KEY = "users"


def load_masking_document(path: str | Path | None = None) -> dict[str, Any]:
    """Load the raw masking-policy document (defaults to settings.MASKING_CONFIG_PATH)."""
    return _load_mapping(Path(path or settings.MASKING_CONFIG_PATH))


def load_directory_document(path: str | Path | None = None) -> dict[str, Any]:
    """Load the identity directory and return its inner `users` mapping."""
    document = _load_mapping(Path(path or settings.USERS_CONFIG_PATH))
    users = document.get(USERS_KEY) or {}
    if not isinstance(users, dict):
        raise ConfigurationError(f"'{USERS_KEY}' in directory document must be a mapping.")
    return users


def load_configuration(
    masking_path: str | Path | None = None,
    users_path: str | Path | None = None,
    env_name: str | None = None,
) -> Configuration:
    """Read both documents and combine them with the environment name."""
    return Configuration.from_documents(
        load_masking_document(masking_path),
        load_directory_document(users_path),
        env_name=env_name or settings.ENV_NAME,
    )


def _load_mapping(config_path: Path) -> dict[str, Any]:
    with config_path.open("r") as f:
        document = yaml.safe_load(f)

    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ConfigurationError(f"Config file '{config_path}' must contain a mapping.")
    return document
