"""Configuration values sourced from environment variables."""

import os
from typing import Final

ENV_NAME: Final[str] = os.getenv(key="ENV_NAME", default="dev")
MASKING_CONFIG_PATH: Final[str] = os.getenv(key="MASKING_CONFIG_PATH", default="mask.yaml")
USERS_CONFIG_PATH: Final[str] = os.getenv(key="USERS_CONFIG_PATH", default="users.yaml")
LOG_LEVEL: Final[str] = os.getenv(key="LOG_LEVEL", default="INFO")
LOGGER_NAME: Final[str] = os.getenv(key="LOGGER_NAME", default="redshift-masking")
LOG_COLOUR_ENABLED: Final[bool] = bool(
    os.getenv(key="LOG_COLOUR_ENABLED", default="True").upper() == "TRUE"
)
